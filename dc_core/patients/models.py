# dc_core/patients/models.py
from django.db import models

from dc_core.common.models import UUIDModel


class Patient(UUIDModel):
    """
    Patient record. Owned by the records subsystem; billing only reads the
    name and phone for invoice export.
    """
    first_name = models.CharField(max_length=128)
    last_name = models.CharField(max_length=128, blank=True)
    phone_number = models.CharField(max_length=32, blank=True)
    email = models.EmailField(blank=True)
    date_of_birth = models.DateField(null=True, blank=True)

    class Meta:
        db_table = "patients_patient"
        indexes = [
            models.Index(fields=["last_name", "first_name"], name="patient_name_idx"),
            models.Index(fields=["phone_number"], name="patient_phone_idx"),
        ]

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    def __str__(self) -> str:
        return self.full_name
