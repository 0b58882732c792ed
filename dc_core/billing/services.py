# dc_core/billing/services.py
from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Iterable, Mapping

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from dc_core.billing.aggregation import InvoiceTotals, aggregate, derive_status
from dc_core.billing.constants import MAX_AMOUNT, InvoiceStatus, PaymentMethod
from dc_core.billing.exceptions import (
    InvoiceNotFound,
    InvoiceValidationError,
    PersistenceError,
    persistence_guard,
)
from dc_core.billing.line_items import dump_line_items, load_line_items
from dc_core.billing.models import Invoice
from dc_core.billing.valuation import InvoiceLineItem, RawLineItemInput, valuate_all
from dc_core.common.api.exceptions import ConflictError
from dc_core.patients.selectors import patient_exists

logger = logging.getLogger(__name__)

LineItemInput = RawLineItemInput | Mapping[str, Any]

INVOICE_ID_SUFFIX_SPACE = 1_000_000


class InvoiceService:
    """
    Invoice lifecycle: create / update / delete / status override.

    Every write that touches line items re-valuates all of them and recomputes
    the aggregates from scratch. Validation runs before any storage call.
    """

    @staticmethod
    def _valuate_submission(line_items: Iterable[LineItemInput]) -> list[InvoiceLineItem]:
        rows = list(line_items or [])
        if not rows:
            raise InvoiceValidationError("An invoice must have at least one line item.", field="line_items")
        return valuate_all(rows, strict=True)

    @staticmethod
    def _get_locked(invoice_id: str) -> Invoice:
        try:
            return Invoice.objects.select_for_update().get(id=invoice_id)
        except Invoice.DoesNotExist:
            raise InvoiceNotFound(invoice_id)

    @staticmethod
    def _totals(items: list[InvoiceLineItem]) -> InvoiceTotals:
        totals = aggregate(items)
        for name, value in totals.as_model_fields().items():
            if name != "status" and abs(value) > MAX_AMOUNT:
                raise InvoiceValidationError(
                    f"Invoice {name.replace('_', ' ')} {value} exceeds the maximum of {MAX_AMOUNT}.",
                    field="line_items",
                )
        return totals

    @staticmethod
    def _write_line_items(invoice: Invoice, items: list[InvoiceLineItem]) -> Invoice:
        totals = InvoiceService._totals(items)

        invoice.line_items = dump_line_items(items)
        for name, value in totals.as_model_fields().items():
            setattr(invoice, name, value)

        invoice.save(
            update_fields=[
                "line_items",
                "subtotal",
                "vat_total",
                "total_amount",
                "paid_amount",
                "pending_amount",
                "status",
                "updated_at",
            ]
        )
        return invoice

    @staticmethod
    def _next_invoice_id(*, now: dt.datetime | None = None) -> str:
        """
        INV-<year>-<last 6 digits of the epoch-millisecond clock>.

        The suffix alone can repeat; on a clash with an existing id the suffix
        steps forward until a free one is found.
        """
        now = now or timezone.now()
        year = timezone.localtime(now).year if timezone.is_aware(now) else now.year
        base = int(now.timestamp() * 1000) % INVOICE_ID_SUFFIX_SPACE
        max_attempts = getattr(settings, "BILLING_INVOICE_ID_MAX_ATTEMPTS", 10)

        for step in range(max_attempts):
            candidate = f"INV-{year}-{(base + step) % INVOICE_ID_SUFFIX_SPACE:06d}"
            if not Invoice.objects.filter(id=candidate).exists():
                if step:
                    logger.warning("Invoice id suffix collision; allocated %s after %d steps", candidate, step)
                return candidate

        logger.error("Could not allocate an invoice id after %d attempts (base suffix %06d)", max_attempts, base)
        raise PersistenceError("Could not allocate a unique invoice id.")

    @staticmethod
    @persistence_guard
    @transaction.atomic
    def create(
        *,
        patient_id,
        line_items: Iterable[LineItemInput],
        created_by_id: int | None = None,
    ) -> Invoice:
        items = InvoiceService._valuate_submission(line_items)

        if not patient_exists(patient_id=patient_id):
            raise InvoiceValidationError("Patient not found.", field="patient")

        totals = InvoiceService._totals(items)
        invoice = Invoice(
            id=InvoiceService._next_invoice_id(),
            patient_id=patient_id,
            line_items=dump_line_items(items),
            created_by_id=created_by_id,
            **totals.as_model_fields(),
        )
        invoice.save(force_insert=True)

        logger.info(
            "Invoice %s created for patient %s: %d line(s), total %s, status %s",
            invoice.id,
            patient_id,
            len(items),
            invoice.total_amount,
            invoice.status,
        )
        return invoice

    @staticmethod
    @persistence_guard
    @transaction.atomic
    def update(
        *,
        invoice_id: str,
        line_items: Iterable[LineItemInput],
        expected_updated_at: dt.datetime | None = None,
    ) -> Invoice:
        """
        Full replace of the line items.

        Without expected_updated_at two concurrent edits are last-write-wins.
        With it, a stale caller gets a ConflictError and nothing is written.
        """
        items = InvoiceService._valuate_submission(line_items)
        invoice = InvoiceService._get_locked(invoice_id)

        if expected_updated_at is not None and invoice.updated_at != expected_updated_at:
            raise ConflictError(f"Invoice {invoice_id} was modified by someone else; reload and retry.")

        previous_status = invoice.status
        InvoiceService._write_line_items(invoice, items)

        logger.info(
            "Invoice %s updated: %d line(s), total %s, status %s -> %s",
            invoice.id,
            len(items),
            invoice.total_amount,
            previous_status,
            invoice.status,
        )
        return invoice

    @staticmethod
    @persistence_guard
    @transaction.atomic
    def add_line_item(*, invoice_id: str, line_item: LineItemInput) -> Invoice:
        invoice = InvoiceService._get_locked(invoice_id)

        rows: list[LineItemInput] = [i.to_raw() for i in load_line_items(invoice.line_items)]
        rows.append(line_item)
        items = InvoiceService._valuate_submission(rows)

        InvoiceService._write_line_items(invoice, items)
        logger.info("Invoice %s: line item %s added", invoice.id, items[-1].id)
        return invoice

    @staticmethod
    @persistence_guard
    @transaction.atomic
    def remove_line_item(*, invoice_id: str, line_item_id: str) -> Invoice:
        invoice = InvoiceService._get_locked(invoice_id)

        current = load_line_items(invoice.line_items)
        remaining = [i for i in current if i.id != line_item_id]

        if len(remaining) == len(current):
            raise InvoiceValidationError(
                f"Line item {line_item_id} is not on invoice {invoice_id}.", field="line_items"
            )
        if not remaining:
            raise InvoiceValidationError(
                "An invoice must have at least one line item; delete the invoice instead.",
                field="line_items",
            )

        InvoiceService._write_line_items(invoice, remaining)
        logger.info("Invoice %s: line item %s removed", invoice.id, line_item_id)
        return invoice

    @staticmethod
    @persistence_guard
    @transaction.atomic
    def delete(*, invoice_id: str) -> None:
        """
        Hard delete. No soft-delete, no audit trail, no cascade beyond the row.
        """
        deleted, _ = Invoice.objects.filter(id=invoice_id).delete()
        if not deleted:
            raise InvoiceNotFound(invoice_id)

        logger.info("Invoice %s deleted", invoice_id)

    @staticmethod
    @persistence_guard
    @transaction.atomic
    def set_status(
        *,
        invoice_id: str,
        status: str,
        payment_method: str | None = None,
    ) -> Invoice:
        """
        Manual status override (e.g. the clinic marks an invoice PAID at the desk).

        This does NOT reconcile paid_amount / pending_amount with the new status,
        so the stored status can disagree with the amounts until the next line-item
        write re-derives it.
        """
        if status not in InvoiceStatus.values:
            raise InvoiceValidationError(f"Unknown invoice status '{status}'.", field="status")

        if payment_method:
            if payment_method not in PaymentMethod.values:
                raise InvoiceValidationError(f"Unknown payment method '{payment_method}'.", field="payment_method")
            if status != InvoiceStatus.PAID:
                raise InvoiceValidationError(
                    "A payment method can only be recorded when marking an invoice PAID.",
                    field="payment_method",
                )

        invoice = InvoiceService._get_locked(invoice_id)

        derived = derive_status(paid_amount=invoice.paid_amount, pending_amount=invoice.pending_amount)
        if derived != status:
            logger.warning(
                "Invoice %s status overridden to %s while amounts imply %s (paid %s, pending %s)",
                invoice.id,
                status,
                derived,
                invoice.paid_amount,
                invoice.pending_amount,
            )

        invoice.status = status
        update_fields = ["status", "updated_at"]

        if status == InvoiceStatus.PAID:
            invoice.paid_at = timezone.now()
            update_fields.append("paid_at")
            if payment_method:
                invoice.payment_method = payment_method
                update_fields.append("payment_method")

        invoice.save(update_fields=update_fields)
        return invoice
