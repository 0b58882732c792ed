# dc_core/conftest.py
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from dc_core.patients.models import Patient
from dc_core.treatments.models import Treatment, TreatmentStatus


def line(line_id="t-1", base_price="100.00", **overrides):
    """
    Plain line-item payload as a client would send it.
    """
    data = {
        "id": line_id,
        "name": f"Treatment {line_id}",
        "base_price": base_price,
        "include_vat": False,
        "vat_percent": "0",
        "payment_status": "unpaid",
    }
    data.update(overrides)
    return data


@pytest.fixture
def user(db):
    User = get_user_model()
    return User.objects.create_user(
        username="dr.smith",
        password="testpass",
        first_name="Anna",
        last_name="Smith",
        is_active=True,
    )


@pytest.fixture
def api_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def anon_client():
    return APIClient()


@pytest.fixture
def patient(db):
    return Patient.objects.create(
        first_name="Jane",
        last_name="Doe",
        phone_number="+15550100",
        email="jane@example.com",
    )


@pytest.fixture
def other_patient(db):
    return Patient.objects.create(first_name="John", last_name="Roe", phone_number="+15550199")


@pytest.fixture
def treatment(patient):
    return Treatment.objects.create(
        patient=patient,
        name="Filling",
        description="Composite filling, upper left molar",
        base_price=Decimal("100.00"),
        status=TreatmentStatus.COMPLETED,
    )
