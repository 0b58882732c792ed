# dc_core/treatments/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import F, QuerySet

from dc_core.treatments.models import Treatment


def billable_treatments_for_patient(*, patient_id: UUID) -> QuerySet[Treatment]:
    """
    Catalog contract used by billing: treatments that may become invoice lines.
    Undated treatments sort last.
    """
    return (
        Treatment.objects.filter(patient_id=patient_id)
        .order_by(F("date").asc(nulls_last=True), "created_at")
    )


def get_treatment(*, treatment_id: UUID) -> Treatment:
    return Treatment.objects.get(id=treatment_id)
