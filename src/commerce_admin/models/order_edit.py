"""
Order and order edit domain models.

An order edit holds the complete set of line items the order will have once the
edit is confirmed, together with the list of changes that produced it. Monetary
amounts are integers in the currency's minor unit.
"""

from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field


class OrderEditStatus(str, Enum):
    """Order edit lifecycle status."""

    CREATED = 'created'
    REQUESTED = 'requested'
    CONFIRMED = 'confirmed'
    DECLINED = 'declined'
    CANCELED = 'canceled'


# Statuses from which an edit can still be confirmed
CONFIRMABLE_STATUSES = (OrderEditStatus.CREATED, OrderEditStatus.REQUESTED)


class OrderItemChangeType(str, Enum):
    """Kind of change an order edit applies to a line item."""

    ITEM_ADD = 'item_add'
    ITEM_REMOVE = 'item_remove'
    ITEM_UPDATE = 'item_update'


class LineItemAdjustment(BaseModel):
    """Discount applied to a line item."""

    amount: Annotated[int, Field(ge=0, description='Discount amount in minor units')]
    description: Optional[str] = None


class LineItem(BaseModel):
    """Line item of an order or order edit."""

    id: Annotated[str, Field(examples=['item_01'])]

    title: Annotated[str, Field(examples=['Medusa T-Shirt'])]

    variant_id: Optional[str] = None

    unit_price: Annotated[int, Field(ge=0, description='Unit price in minor units', examples=[1500])]

    quantity: Annotated[int, Field(ge=0, examples=[2])]

    tax_rate: Annotated[float, Field(
        default=0,
        ge=0,
        description='Tax rate in percent',
        examples=[25]
    )] = 0

    adjustments: Annotated[List[LineItemAdjustment], Field(default_factory=list)]

    original_item_id: Annotated[Optional[str], Field(
        default=None,
        description='Order line item this edit item was cloned from'
    )] = None


class ShippingMethod(BaseModel):
    """Shipping method selected on an order."""

    id: str
    name: Optional[str] = None
    price: Annotated[int, Field(ge=0, description='Shipping price in minor units')]
    tax_rate: Annotated[float, Field(default=0, ge=0)] = 0


class OrderItemChange(BaseModel):
    """Single change recorded on an order edit."""

    id: str
    type: OrderItemChangeType
    line_item_id: Optional[str] = None
    original_line_item_id: Optional[str] = None


class Order(BaseModel):
    """Order the edit applies to."""

    id: Annotated[str, Field(examples=['order_01'])]

    display_id: Optional[int] = None

    customer_id: Optional[str] = None

    email: Optional[str] = None

    status: Annotated[str, Field(default='pending')] = 'pending'

    currency_code: Annotated[str, Field(default='usd', examples=['usd', 'eur'])] = 'usd'

    items: Annotated[List[LineItem], Field(default_factory=list)]

    shipping_methods: Annotated[List[ShippingMethod], Field(default_factory=list)]

    paid_total: Annotated[int, Field(default=0, ge=0)] = 0

    refunded_total: Annotated[int, Field(default=0, ge=0)] = 0

    created_at: str

    updated_at: str


class OrderEdit(BaseModel):
    """Core OrderEdit domain model."""

    id: Annotated[str, Field(
        description='Unique identifier for the order edit',
        examples=['oe_01G2SG30J8C85S4A5CHM2S1NS2']
    )]

    order_id: Annotated[str, Field(description='Order the edit applies to')]

    status: Annotated[OrderEditStatus, Field(
        default=OrderEditStatus.CREATED,
        description='Current status of the order edit'
    )] = OrderEditStatus.CREATED

    internal_note: Optional[str] = None

    items: Annotated[List[LineItem], Field(
        default_factory=list,
        description='Line items the order will have once the edit is confirmed'
    )]

    changes: Annotated[List[OrderItemChange], Field(default_factory=list)]

    created_by: Optional[str] = None
    requested_by: Optional[str] = None
    requested_at: Optional[str] = None
    confirmed_by: Optional[str] = None
    confirmed_at: Optional[str] = None
    declined_by: Optional[str] = None
    declined_reason: Optional[str] = None
    declined_at: Optional[str] = None
    canceled_by: Optional[str] = None
    canceled_at: Optional[str] = None

    created_at: str

    updated_at: str
