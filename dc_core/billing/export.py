# dc_core/billing/export.py
"""
Invoice -> flat field map for the printable invoice template.

The template has a fixed number of line rows and no continuation page, so
lines beyond EXPORT_SLOT_COUNT are dropped from the map. Every key is always
present; missing values are "" because the renderer fails on absent fields.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from django.conf import settings
from django.utils import timezone

from dc_core.billing.constants import CENT
from dc_core.billing.models import Invoice
from dc_core.billing.selectors import invoice_line_items
from dc_core.billing.valuation import InvoiceLineItem

logger = logging.getLogger(__name__)

EXPORT_SLOT_COUNT = 5

HEADER_KEYS = ("date-field", "invoice-id-field", "name-field", "phone-field")
SLOT_KEY_PREFIXES = ("no", "description", "price", "qty", "total")
FOOTER_KEYS = ("subtotal-field", "taxrate-field", "grandtotal-field", "dr-name-field")


def export_field_keys() -> tuple[str, ...]:
    slot_keys = tuple(
        f"{prefix}-{n}"
        for n in range(1, EXPORT_SLOT_COUNT + 1)
        for prefix in SLOT_KEY_PREFIXES
    )
    return HEADER_KEYS + slot_keys + FOOTER_KEYS


def _money(value) -> str:
    if value is None:
        return ""
    return f"{Decimal(value).quantize(CENT):.2f}"


def _date(value) -> str:
    if value is None:
        return ""
    if timezone.is_aware(value):
        value = timezone.localtime(value)
    return value.strftime(getattr(settings, "BILLING_EXPORT_DATE_FORMAT", "%d/%m/%Y"))


def _creator_name(invoice: Invoice) -> str:
    user = invoice.created_by
    if user is None:
        return ""
    first = (getattr(user, "first_name", "") or "").strip()
    last = (getattr(user, "last_name", "") or "").strip()
    return " ".join(p for p in (first, last) if p)


def _slot_fields(n: int, line: InvoiceLineItem | None) -> dict[str, str]:
    if line is None:
        return {f"{prefix}-{n}": "" for prefix in SLOT_KEY_PREFIXES}
    return {
        f"no-{n}": str(n),
        f"description-{n}": line.name or line.description,
        f"price-{n}": _money(line.base_price),
        f"qty-{n}": "1",
        f"total-{n}": _money(line.total_amount),
    }


def overflow_line_count(invoice: Invoice, *, line_items: list[InvoiceLineItem] | None = None) -> int:
    items = invoice_line_items(invoice) if line_items is None else line_items
    return max(0, len(items) - EXPORT_SLOT_COUNT)


def invoice_to_field_map(invoice: Invoice, *, line_items: list[InvoiceLineItem] | None = None) -> dict[str, str]:
    items = invoice_line_items(invoice) if line_items is None else line_items

    dropped = overflow_line_count(invoice, line_items=items)
    if dropped:
        logger.warning(
            "Invoice %s has %d line items; %d dropped from the %d-row template",
            invoice.id,
            len(items),
            dropped,
            EXPORT_SLOT_COUNT,
        )

    patient = invoice.patient
    fields: dict[str, str] = {
        "date-field": _date(invoice.created_at),
        "invoice-id-field": invoice.id or "",
        "name-field": patient.full_name if patient else "",
        "phone-field": (patient.phone_number if patient else "") or "",
    }

    for n in range(1, EXPORT_SLOT_COUNT + 1):
        line = items[n - 1] if n <= len(items) else None
        fields.update(_slot_fields(n, line))

    fields.update(
        {
            "subtotal-field": _money(invoice.subtotal),
            "taxrate-field": _money(invoice.vat_total),
            "grandtotal-field": _money(invoice.total_amount),
            "dr-name-field": _creator_name(invoice),
        }
    )
    return fields
