# dc_core/billing/selectors.py
from __future__ import annotations

import datetime as dt
from uuid import UUID

from django.db.models import QuerySet

from dc_core.billing.exceptions import InvoiceNotFound, persistence_guard
from dc_core.billing.line_items import load_line_items
from dc_core.billing.models import Invoice
from dc_core.billing.valuation import InvoiceLineItem


def invoices_qs() -> QuerySet[Invoice]:
    return Invoice.objects.select_related("patient", "created_by")


@persistence_guard
def get_invoice(*, invoice_id: str) -> Invoice:
    try:
        return invoices_qs().get(id=invoice_id)
    except Invoice.DoesNotExist:
        raise InvoiceNotFound(invoice_id)


def invoice_line_items(invoice: Invoice) -> list[InvoiceLineItem]:
    return load_line_items(invoice.line_items)


def invoices_filtered(
    *,
    patient_id: UUID | None = None,
    status: str | None = None,
    created_from: dt.datetime | None = None,
    created_to: dt.datetime | None = None,
) -> QuerySet[Invoice]:
    qs = invoices_qs().order_by("-created_at")

    if patient_id:
        qs = qs.filter(patient_id=patient_id)

    if status:
        qs = qs.filter(status=status)

    if created_from:
        qs = qs.filter(created_at__gte=created_from)

    if created_to:
        qs = qs.filter(created_at__lte=created_to)

    return qs


def list_invoices() -> QuerySet[Invoice]:
    return invoices_filtered()


def list_by_patient(*, patient_id: UUID) -> QuerySet[Invoice]:
    return invoices_filtered(patient_id=patient_id)


def list_by_status(*, status: str) -> QuerySet[Invoice]:
    return invoices_filtered(status=status)


def list_by_date_range(*, start: dt.datetime, end: dt.datetime) -> QuerySet[Invoice]:
    """
    Inclusive on both ends of created_at.
    """
    return invoices_filtered(created_from=start, created_to=end)
