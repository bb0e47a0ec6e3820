"""
Order edit totals.

Totals are derived on every read from the current line items and shipping
methods; they are never stored. Amounts are integers in minor units, tax is
rounded half up per line item and per shipping method.
"""

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable

from commerce_admin.models.order_edit import LineItem, ShippingMethod


@dataclass(frozen=True)
class OrderEditTotals:
    subtotal: int
    discount_total: int
    shipping_total: int
    tax_total: int
    total: int
    difference_due: int

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def tax_amount(taxable: int, tax_rate: float) -> int:
    """Tax on ``taxable`` minor units at ``tax_rate`` percent."""
    if taxable <= 0 or not tax_rate:
        return 0
    return round_half_up(Decimal(taxable) * Decimal(str(tax_rate)) / Decimal(100))


def line_item_subtotal(item: LineItem) -> int:
    return item.unit_price * item.quantity


def line_item_discount(item: LineItem) -> int:
    # A discount never exceeds the line it applies to
    return min(sum(adjustment.amount for adjustment in item.adjustments), line_item_subtotal(item))


def line_item_tax(item: LineItem) -> int:
    return tax_amount(line_item_subtotal(item) - line_item_discount(item), item.tax_rate)


def compute_order_edit_totals(
    items: Iterable[LineItem],
    shipping_methods: Iterable[ShippingMethod] = (),
    paid_total: int = 0,
    refunded_total: int = 0,
) -> OrderEditTotals:
    """
    Compute the totals of an order edit.

    Args:
        items: Line items of the edit
        shipping_methods: Shipping methods of the parent order
        paid_total: Amount captured on the parent order
        refunded_total: Amount already refunded on the parent order

    Returns:
        Totals, with ``difference_due`` the amount still owed (negative when a refund is due)
    """
    items = list(items)
    shipping_methods = list(shipping_methods)

    subtotal = sum(line_item_subtotal(item) for item in items)
    discount_total = sum(line_item_discount(item) for item in items)
    shipping_total = sum(method.price for method in shipping_methods)
    tax_total = (
        sum(line_item_tax(item) for item in items)
        + sum(tax_amount(method.price, method.tax_rate) for method in shipping_methods)
    )
    total = subtotal - discount_total + shipping_total + tax_total

    return OrderEditTotals(
        subtotal=subtotal,
        discount_total=discount_total,
        shipping_total=shipping_total,
        tax_total=tax_total,
        total=total,
        difference_due=total - (paid_total - refunded_total),
    )
