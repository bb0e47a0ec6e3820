"""Unit tests for order edit totals."""

import pytest

from commerce_admin.logic.totals import compute_order_edit_totals, round_half_up, tax_amount
from commerce_admin.models.order_edit import LineItem, LineItemAdjustment, ShippingMethod


def make_item(unit_price: int, quantity: int, tax_rate: float = 0, discounts=()) -> LineItem:
    return LineItem(
        id="item",
        title="Item",
        unit_price=unit_price,
        quantity=quantity,
        tax_rate=tax_rate,
        adjustments=[LineItemAdjustment(amount=amount) for amount in discounts],
    )


class TestTaxAmount:

    def test_rounds_half_up(self):
        # 999 * 25% = 249.75
        assert tax_amount(999, 25) == 250
        # 10 * 5% = 0.5
        assert tax_amount(10, 5) == 1

    def test_zero_rate_or_amount(self):
        assert tax_amount(1000, 0) == 0
        assert tax_amount(0, 25) == 0

    def test_fractional_rate(self):
        # 1000 * 7.5% = 75
        assert tax_amount(1000, 7.5) == 75


def test_round_half_up_rounds_away_from_even():
    from decimal import Decimal

    assert round_half_up(Decimal("2.5")) == 3
    assert round_half_up(Decimal("2.4")) == 2


class TestComputeOrderEditTotals:

    def test_items_shipping_and_payments(self):
        totals = compute_order_edit_totals(
            items=[make_item(1500, 2, tax_rate=25, discounts=[500]), make_item(999, 1, tax_rate=25)],
            shipping_methods=[ShippingMethod(id="sm_1", price=1000, tax_rate=25)],
            paid_total=4000,
        )

        assert totals.subtotal == 3999
        assert totals.discount_total == 500
        assert totals.shipping_total == 1000
        # 625 (item 1) + 250 (item 2) + 250 (shipping)
        assert totals.tax_total == 1125
        assert totals.total == 5624
        assert totals.difference_due == 1624

    def test_discount_is_capped_at_line_subtotal(self):
        totals = compute_order_edit_totals(items=[make_item(100, 1, discounts=[80, 80])])

        assert totals.discount_total == 100
        assert totals.total == 0

    def test_refund_due_is_negative(self):
        totals = compute_order_edit_totals(items=[make_item(1000, 1)], paid_total=3000, refunded_total=500)

        assert totals.difference_due == 1000 - 2500

    def test_no_items(self):
        totals = compute_order_edit_totals(items=[])

        assert totals.as_dict() == {
            "subtotal": 0,
            "discount_total": 0,
            "shipping_total": 0,
            "tax_total": 0,
            "total": 0,
            "difference_due": 0,
        }

    @pytest.mark.parametrize("quantity", [0, 1, 3])
    def test_subtotal_scales_with_quantity(self, quantity):
        totals = compute_order_edit_totals(items=[make_item(250, quantity)])

        assert totals.subtotal == 250 * quantity
