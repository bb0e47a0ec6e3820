"""
Service Models Package

This package contains the Pydantic models used throughout the service:
request input models, response envelopes and domain models.
"""

from .customer import Address, Customer
from .input import FindParams, UpdateCustomerRequest, UpdateReturnReasonRequest
from .order_edit import LineItem, Order, OrderEdit, OrderEditStatus, ShippingMethod
from .output import AdminCustomersRes, AdminOrderEditsRes, AdminReturnReasonsRes
from .return_reason import ReturnReason

__all__ = [
    # Input models
    "FindParams",
    "UpdateCustomerRequest",
    "UpdateReturnReasonRequest",

    # Output models
    "AdminCustomersRes",
    "AdminOrderEditsRes",
    "AdminReturnReasonsRes",

    # Domain models
    "Address",
    "Customer",
    "LineItem",
    "Order",
    "OrderEdit",
    "OrderEditStatus",
    "ReturnReason",
    "ShippingMethod",
]
