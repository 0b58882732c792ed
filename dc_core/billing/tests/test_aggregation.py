# dc_core/billing/tests/test_aggregation.py
from decimal import Decimal

from dc_core.billing.aggregation import aggregate, derive_status
from dc_core.billing.constants import InvoiceStatus
from dc_core.billing.valuation import valuate_all


def test_scenario_partial_payment_with_vat():
    items = valuate_all(
        [
            {
                "id": "t-1",
                "base_price": "100",
                "include_vat": True,
                "vat_percent": "15",
                "payment_status": "partial",
                "paid_amount": "50",
            }
        ]
    )
    assert items[0].vat_amount == Decimal("15.00")
    assert items[0].total_amount == Decimal("115.00")

    totals = aggregate(items)
    assert totals.subtotal == Decimal("100.00")
    assert totals.vat_total == Decimal("15.00")
    assert totals.total_amount == Decimal("115.00")
    assert totals.paid_amount == Decimal("50.00")
    assert totals.pending_amount == Decimal("65.00")
    assert totals.status == InvoiceStatus.PARTIAL


def test_scenario_full_payment_leaves_vat_pending():
    items = valuate_all(
        [
            {
                "id": "t-1",
                "base_price": "100",
                "include_vat": True,
                "vat_percent": "15",
                "payment_status": "full",
            }
        ]
    )
    assert items[0].paid_amount == Decimal("100.00")

    totals = aggregate(items)
    assert totals.pending_amount == Decimal("15.00")
    assert totals.status == InvoiceStatus.PARTIAL


def test_scenario_mixed_unpaid_and_full_lines():
    items = valuate_all(
        [
            {"id": "a", "base_price": "200", "payment_status": "unpaid"},
            {"id": "b", "base_price": "300", "payment_status": "full"},
        ]
    )
    totals = aggregate(items)

    assert totals.subtotal == Decimal("500.00")
    assert totals.paid_amount == Decimal("300.00")
    assert totals.pending_amount == Decimal("200.00")
    assert totals.status == InvoiceStatus.PARTIAL


def test_totals_invariants_hold():
    items = valuate_all(
        [
            {"id": "a", "base_price": "19.99", "include_vat": True, "vat_percent": "12.5"},
            {"id": "b", "base_price": "5.01", "include_vat": False, "vat_percent": "20"},
            {"id": "c", "base_price": "0", "payment_status": "full"},
        ]
    )
    totals = aggregate(items)

    assert totals.subtotal == sum(i.base_price for i in items)
    assert totals.vat_total == sum(i.vat_amount for i in items if i.include_vat)
    assert totals.total_amount == totals.subtotal + totals.vat_total
    assert totals.pending_amount == totals.total_amount - totals.paid_amount


def test_aggregate_is_deterministic():
    rows = [
        {"id": "a", "base_price": "10.10", "include_vat": True, "vat_percent": "15", "payment_status": "full"},
        {"id": "b", "base_price": "3.33", "payment_status": "partial", "paid_amount": "1"},
    ]
    assert aggregate(valuate_all(rows)) == aggregate(valuate_all(rows))


def test_all_unpaid_is_unpaid():
    totals = aggregate(valuate_all([{"id": "a", "base_price": "40"}]))
    assert totals.paid_amount == Decimal("0.00")
    assert totals.status == InvoiceStatus.UNPAID


def test_fully_paid_without_vat_is_paid():
    totals = aggregate(valuate_all([{"id": "a", "base_price": "40", "payment_status": "full"}]))
    assert totals.pending_amount == Decimal("0.00")
    assert totals.status == InvoiceStatus.PAID


def test_overpayment_is_paid_with_negative_pending():
    totals = aggregate(
        valuate_all([{"id": "a", "base_price": "40", "payment_status": "partial", "paid_amount": "55"}])
    )
    assert totals.pending_amount == Decimal("-15.00")
    assert totals.status == InvoiceStatus.PAID


def test_free_line_is_paid():
    totals = aggregate(valuate_all([{"id": "a", "base_price": "0"}]))
    assert totals.status == InvoiceStatus.PAID


def test_empty_list_is_all_zero_and_unpaid():
    totals = aggregate([])
    assert totals.total_amount == Decimal("0.00")
    assert totals.pending_amount == Decimal("0.00")
    assert totals.status == InvoiceStatus.UNPAID


def test_derive_status_law():
    assert derive_status(paid_amount=Decimal("0"), pending_amount=Decimal("0")) == InvoiceStatus.PAID
    assert derive_status(paid_amount=Decimal("1"), pending_amount=Decimal("1")) == InvoiceStatus.PARTIAL
    assert derive_status(paid_amount=Decimal("0"), pending_amount=Decimal("1")) == InvoiceStatus.UNPAID
