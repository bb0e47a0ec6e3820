"""
Input models for request validation using Pydantic.

This module defines the request body and query string models validated by the
admin handlers before any service call is made. Unknown properties are rejected.
"""

import math
import re
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'

# Numbers DynamoDB can store: 38 significant digits, magnitude within 1E-130 and 1E+126
NUMBER_MAX_DIGITS = 38
NUMBER_MAX_EXPONENT = 125
NUMBER_MIN_EXPONENT = -130


def split_comma_separated(value: Optional[str]) -> List[str]:
    """Split a comma separated query value, dropping blank entries."""
    if not value:
        return []
    return [part.strip() for part in value.split(',') if part.strip()]


def check_storable_numbers(value: Any, path: str = 'metadata') -> None:
    """
    Reject numbers nested anywhere in ``value`` that DynamoDB cannot store.

    Raises:
        ValueError: On NaN, infinity, or a number outside DynamoDB's range or precision
    """
    if isinstance(value, dict):
        for key, item in value.items():
            check_storable_numbers(item, f'{path}.{key}')
        return
    if isinstance(value, list):
        for index, item in enumerate(value):
            check_storable_numbers(item, f'{path}[{index}]')
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return

    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f'{path} must be a finite number')

    number = Decimal(repr(value)) if isinstance(value, float) else Decimal(value)
    if not number:
        return
    if len(number.normalize().as_tuple().digits) > NUMBER_MAX_DIGITS:
        raise ValueError(f'{path} has more than {NUMBER_MAX_DIGITS} significant digits')
    if not NUMBER_MIN_EXPONENT <= number.adjusted() <= NUMBER_MAX_EXPONENT:
        raise ValueError(f'{path} is out of the supported number range')


def validate_metadata(v: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if v is not None:
        check_storable_numbers(v)
    return v


class CustomerGroupReference(BaseModel):
    """Customer group referenced by id in an update payload."""

    model_config = ConfigDict(extra='forbid')

    id: Annotated[str, Field(
        min_length=1,
        description='The ID of a customer group',
        examples=['cgrp_01G2SG30J8C85S4A5CHM2S1NS2']
    )]


class UpdateCustomerRequest(BaseModel):
    """Request model for updating a customer."""

    model_config = ConfigDict(extra='forbid')

    email: Annotated[Optional[str], Field(
        default=None,
        description="The customer's email. It cannot change once the customer registered an account",
        examples=['dolly@example.com']
    )] = None

    first_name: Annotated[Optional[str], Field(default=None, examples=['Dolly'])] = None

    last_name: Annotated[Optional[str], Field(default=None, examples=['Parton'])] = None

    phone: Annotated[Optional[str], Field(default=None, examples=['+1 555 0100'])] = None

    password: Annotated[Optional[str], Field(
        default=None,
        min_length=1,
        description="The customer's password"
    )] = None

    metadata: Annotated[Optional[Dict[str, Any]], Field(
        default=None,
        description='Key-value pairs merged into the existing metadata; empty string values remove a key'
    )] = None

    groups: Annotated[Optional[List[CustomerGroupReference]], Field(
        default=None,
        max_length=50,
        description='Customer groups the customer belongs to, replacing the current membership'
    )] = None

    @field_validator('email')
    @classmethod
    def validate_email_format(cls, v: Optional[str]) -> Optional[str]:
        """Validate email format."""
        if v is None:
            return v
        if not re.match(EMAIL_PATTERN, v):
            raise ValueError('Invalid email format')
        return v.lower()

    @field_validator('groups')
    @classmethod
    def deduplicate_groups(cls, v: Optional[List[CustomerGroupReference]]) -> Optional[List[CustomerGroupReference]]:
        """Drop repeated group ids while keeping their first position."""
        if v is None:
            return v
        seen = set()
        unique = []
        for group in v:
            if group.id not in seen:
                seen.add(group.id)
                unique.append(group)
        return unique

    @field_validator('metadata')
    @classmethod
    def validate_metadata_numbers(cls, v: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Reject metadata numbers that cannot be stored."""
        return validate_metadata(v)

    def changes(self) -> Dict[str, Any]:
        """Fields provided by the caller; explicit nulls count as not provided."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class UpdateReturnReasonRequest(BaseModel):
    """Request model for updating a return reason."""

    model_config = ConfigDict(extra='forbid')

    label: Annotated[Optional[str], Field(
        default=None,
        description='The label to display to the customer',
        examples=['Damaged']
    )] = None

    value: Annotated[Optional[str], Field(
        default=None,
        min_length=1,
        description='A unique value of the return reason',
        examples=['damaged']
    )] = None

    description: Annotated[Optional[str], Field(
        default=None,
        description='The description of the reason'
    )] = None

    metadata: Annotated[Optional[Dict[str, Any]], Field(
        default=None,
        description='Key-value pairs merged into the existing metadata; empty string values remove a key'
    )] = None

    @field_validator('metadata')
    @classmethod
    def validate_metadata_numbers(cls, v: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Reject metadata numbers that cannot be stored."""
        return validate_metadata(v)

    def changes(self) -> Dict[str, Any]:
        """Fields provided by the caller; explicit nulls count as not provided."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class FindParams(BaseModel):
    """Query parameters controlling the projection of a returned entity."""

    model_config = ConfigDict(extra='forbid')

    expand: Annotated[Optional[str], Field(
        default=None,
        description='Comma-separated relations that should be expanded in the returned entity',
        examples=['groups,orders']
    )] = None

    fields: Annotated[Optional[str], Field(
        default=None,
        description='Comma-separated fields that should be retrieved in the returned entity',
        examples=['email,first_name']
    )] = None

    @property
    def expand_relations(self) -> List[str]:
        """Relations requested through ``expand``."""
        return split_comma_separated(self.expand)

    @property
    def selected_fields(self) -> List[str]:
        """Fields requested through ``fields``."""
        return split_comma_separated(self.fields)
