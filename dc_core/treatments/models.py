# dc_core/treatments/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models

from dc_core.common.models import UUIDModel
from dc_core.patients.models import Patient


class TreatmentStatus(models.TextChoices):
    PLANNED = "PLANNED", "Planned"
    IN_PROGRESS = "IN_PROGRESS", "In Progress"
    COMPLETED = "COMPLETED", "Completed"


class Treatment(UUIDModel):
    """
    A billable treatment performed (or planned) for a patient.
    Billing snapshots name/description/date/base_price into invoice line items;
    later edits here do not change issued invoices.
    """
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="treatments")

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    date = models.DateField(null=True, blank=True)

    base_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(
        max_length=16,
        choices=TreatmentStatus.choices,
        default=TreatmentStatus.PLANNED,
        db_index=True,
    )
    notes = models.TextField(blank=True)

    class Meta:
        db_table = "treatments_treatment"
        indexes = [
            models.Index(fields=["patient", "date"], name="treatment_patient_date_idx"),
        ]

    def __str__(self) -> str:
        return self.name
