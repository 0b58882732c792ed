# dc_core/billing/models.py
from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models

from dc_core.billing.constants import InvoiceStatus, PaymentMethod
from dc_core.common.models import TimeStampedModel
from dc_core.patients.models import Patient


class Invoice(TimeStampedModel):
    """
    Billing aggregate for one patient.

    line_items is a versioned JSON document (see billing.line_items); every
    amount column and status are recomputed from it on each write by
    InvoiceService. The only independent write is InvoiceService.set_status.
    """
    id = models.CharField(primary_key=True, max_length=32, editable=False)  # INV-<year>-<6 digits>

    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="invoices")

    line_items = models.JSONField(default=dict)

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    vat_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    pending_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(max_length=16, choices=InvoiceStatus.choices, default=InvoiceStatus.UNPAID, db_index=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="created_invoices",
        null=True,
        blank=True,
    )

    paid_at = models.DateTimeField(null=True, blank=True)
    payment_method = models.CharField(max_length=32, choices=PaymentMethod.choices, blank=True)

    class Meta:
        db_table = "billing_invoice"
        indexes = [
            models.Index(fields=["patient", "created_at"], name="invoice_patient_created_idx"),
            models.Index(fields=["status", "created_at"], name="invoice_status_created_idx"),
        ]

    def __str__(self) -> str:
        return self.id
