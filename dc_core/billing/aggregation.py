# dc_core/billing/aggregation.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from dc_core.billing.constants import CENT, ZERO, InvoiceStatus
from dc_core.billing.valuation import InvoiceLineItem


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    vat_total: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    pending_amount: Decimal
    status: str

    def as_model_fields(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "vat_total": self.vat_total,
            "total_amount": self.total_amount,
            "paid_amount": self.paid_amount,
            "pending_amount": self.pending_amount,
            "status": self.status,
        }


def derive_status(*, paid_amount: Decimal, pending_amount: Decimal) -> str:
    if pending_amount <= ZERO:
        return InvoiceStatus.PAID
    if paid_amount > ZERO:
        return InvoiceStatus.PARTIAL
    return InvoiceStatus.UNPAID


def aggregate(line_items: Iterable[InvoiceLineItem]) -> InvoiceTotals:
    """
    Full recompute from the current line items; never patched incrementally.

    An empty list yields all zeros with status UNPAID (callers reject it).
    pending_amount is not clamped: an overpaid invoice reports a negative value.
    """
    subtotal = ZERO
    vat_total = ZERO
    paid_amount = ZERO
    count = 0

    for line in line_items:
        count += 1
        subtotal += line.base_price
        if line.include_vat:
            vat_total += line.vat_amount
        paid_amount += line.paid_amount

    subtotal = subtotal.quantize(CENT)
    vat_total = vat_total.quantize(CENT)
    paid_amount = paid_amount.quantize(CENT)
    total_amount = subtotal + vat_total
    pending_amount = total_amount - paid_amount

    return InvoiceTotals(
        subtotal=subtotal,
        vat_total=vat_total,
        total_amount=total_amount,
        paid_amount=paid_amount,
        pending_amount=pending_amount,
        status=(
            derive_status(paid_amount=paid_amount, pending_amount=pending_amount)
            if count
            else InvoiceStatus.UNPAID
        ),
    )
