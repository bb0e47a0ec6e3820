"""
Business Logic Layer Module.

Services for customers, return reasons and order edits. Each write operation
stages its changes on a caller-provided transaction and registers its
post-commit side effects (metrics, logs, domain events) on it.
"""

from commerce_admin.logic.customer_service import CustomerService
from commerce_admin.logic.order_edit_service import OrderEditService
from commerce_admin.logic.return_reason_service import ReturnReasonService
from commerce_admin.logic.totals import OrderEditTotals, compute_order_edit_totals

__all__ = [
    "CustomerService",
    "OrderEditService",
    "ReturnReasonService",
    "OrderEditTotals",
    "compute_order_edit_totals",
]
