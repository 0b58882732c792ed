# dc_core/treatments/tests/test_catalog.py
import datetime as dt
from decimal import Decimal

import pytest

from dc_core.billing.valuation import valuate
from dc_core.treatments.models import Treatment
from dc_core.treatments.selectors import billable_treatments_for_patient
from dc_core.treatments.services import TreatmentService


@pytest.mark.django_db
def test_billable_treatments_are_the_patients_own_ordered_by_date(patient, other_patient):
    later = Treatment.objects.create(patient=patient, name="Crown", base_price=Decimal("250"), date=dt.date(2024, 6, 1))
    undated = Treatment.objects.create(patient=patient, name="Consult", base_price=Decimal("30"))
    earlier = Treatment.objects.create(patient=patient, name="Exam", base_price=Decimal("40"), date=dt.date(2024, 1, 10))
    Treatment.objects.create(patient=other_patient, name="Extraction", base_price=Decimal("90"))

    ids = [t.id for t in billable_treatments_for_patient(patient_id=patient.id)]
    assert ids == [earlier.id, later.id, undated.id]


@pytest.mark.django_db
def test_line_item_snapshot_copies_treatment_fields(treatment):
    raw = TreatmentService.to_line_item_input(treatment, payment_status="partial", paid_amount=Decimal("20"))

    assert raw.id == str(treatment.id)
    assert raw.name == treatment.name
    assert raw.description == treatment.description
    assert raw.base_price == Decimal("100.00")
    assert raw.include_vat is False

    item = valuate(raw)
    assert item.paid_amount == Decimal("20.00")
    assert item.total_amount == Decimal("100.00")


@pytest.mark.django_db
def test_snapshot_does_not_follow_later_price_changes(patient, treatment):
    raw = TreatmentService.to_line_item_input(treatment)
    treatment.base_price = Decimal("999.00")
    treatment.save()

    assert raw.base_price == Decimal("100.00")
