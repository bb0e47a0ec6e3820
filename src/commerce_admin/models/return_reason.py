"""
Return reason domain model.

Return reasons are lookup entries shown to customers when they request a return.
Their ``value`` code is unique across all reasons.
"""

from typing import Annotated, Any, Dict, Optional

from pydantic import BaseModel, Field


class ReturnReason(BaseModel):
    """Core ReturnReason domain model."""

    id: Annotated[str, Field(
        description='Unique identifier for the return reason',
        examples=['rr_01G2SG30J8C85S4A5CHM2S1NS2']
    )]

    value: Annotated[str, Field(
        min_length=1,
        description='Unique value code of the return reason',
        examples=['damaged']
    )]

    label: Annotated[str, Field(
        description='Label displayed to the customer',
        examples=['Damaged']
    )]

    description: Optional[str] = None

    parent_return_reason_id: Annotated[Optional[str], Field(
        default=None,
        description='Parent reason when this reason is nested'
    )] = None

    metadata: Optional[Dict[str, Any]] = None

    created_at: str

    updated_at: str
