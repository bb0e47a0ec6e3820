"""
Output models for API responses using Pydantic.

Every successful admin response is an envelope with a single top-level key
holding the projected entity.
"""

from typing import Annotated, Any, Dict

from pydantic import BaseModel, Field


class AdminCustomersRes(BaseModel):
    """Response envelope for a single customer."""

    customer: Annotated[Dict[str, Any], Field(description='Projected customer')]


class AdminReturnReasonsRes(BaseModel):
    """Response envelope for a single return reason."""

    return_reason: Annotated[Dict[str, Any], Field(description='Projected return reason')]


class AdminOrderEditsRes(BaseModel):
    """Response envelope for a single order edit with decorated totals."""

    order_edit: Annotated[Dict[str, Any], Field(description='Projected order edit')]


