# dc_core/patients/selectors.py
from __future__ import annotations

from uuid import UUID

from dc_core.patients.models import Patient


def get_patient(*, patient_id: UUID) -> Patient:
    return Patient.objects.get(id=patient_id)


def patient_exists(*, patient_id: UUID) -> bool:
    return Patient.objects.filter(id=patient_id).exists()
