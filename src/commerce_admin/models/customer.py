"""
Customer domain model for the business logic layer.

This module defines the Customer entity and its embedded addresses as stored
in the admin table.
"""

from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Address(BaseModel):
    """Postal address embedded on a customer."""

    id: Annotated[str, Field(description='Unique identifier for the address', examples=['addr_01'])]
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company: Optional[str] = None
    address_1: Optional[str] = None
    address_2: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    country_code: Optional[str] = None
    phone: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class Customer(BaseModel):
    """Core Customer domain model."""

    id: Annotated[str, Field(
        description='Unique identifier for the customer',
        examples=['cus_01G2SG30J8C85S4A5CHM2S1NS2']
    )]

    email: Annotated[Optional[str], Field(
        default=None,
        description='Customer email address, fixed once the customer has an account',
        examples=['dolly@example.com']
    )] = None

    first_name: Annotated[Optional[str], Field(default=None, examples=['Dolly'])] = None

    last_name: Annotated[Optional[str], Field(default=None, examples=['Parton'])] = None

    phone: Annotated[Optional[str], Field(default=None, examples=['+1 555 0100'])] = None

    has_account: Annotated[bool, Field(
        default=False,
        description='Whether the customer registered an account'
    )] = False

    password_hash: Annotated[Optional[str], Field(
        default=None,
        description='scrypt credential derived from the customer password'
    )] = None

    billing_address_id: Optional[str] = None

    billing_address: Optional[Address] = None

    shipping_addresses: Annotated[List[Address], Field(default_factory=list)]

    group_ids: Annotated[List[str], Field(
        default_factory=list,
        description='Customer groups the customer belongs to'
    )]

    metadata: Annotated[Optional[Dict[str, Any]], Field(
        default=None,
        description='Free-form key-value pairs'
    )] = None

    created_at: Annotated[str, Field(description='ISO timestamp when the customer was created')]

    updated_at: Annotated[str, Field(description='ISO timestamp when the customer was last updated')]
