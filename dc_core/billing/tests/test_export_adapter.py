# dc_core/billing/tests/test_export_adapter.py
import datetime as dt
import logging

import pytest

from dc_core.billing.export import EXPORT_SLOT_COUNT, export_field_keys, invoice_to_field_map, overflow_line_count
from dc_core.billing.models import Invoice
from dc_core.billing.services import InvoiceService
from dc_core.conftest import line


@pytest.mark.django_db
def test_field_map_has_every_key_with_empty_unused_slots(patient, user):
    inv = InvoiceService.create(
        patient_id=patient.id,
        line_items=[
            line("a", "100.00", name="Filling", include_vat=True, vat_percent="15"),
            line("b", "40.5", name="", description="X-ray"),
        ],
        created_by_id=user.id,
    )
    inv = Invoice.objects.select_related("patient", "created_by").get(id=inv.id)

    fields = invoice_to_field_map(inv)

    assert set(fields) == set(export_field_keys())
    assert all(isinstance(v, str) for v in fields.values())

    assert fields["invoice-id-field"] == inv.id
    assert fields["name-field"] == "Jane Doe"
    assert fields["phone-field"] == "+15550100"
    assert fields["dr-name-field"] == "Anna Smith"

    assert fields["no-1"] == "1"
    assert fields["description-1"] == "Filling"
    assert fields["price-1"] == "100.00"
    assert fields["qty-1"] == "1"
    assert fields["total-1"] == "115.00"
    assert fields["description-2"] == "X-ray"
    assert fields["price-2"] == "40.50"

    for n in range(3, EXPORT_SLOT_COUNT + 1):
        for prefix in ("no", "description", "price", "qty", "total"):
            assert fields[f"{prefix}-{n}"] == ""

    assert fields["subtotal-field"] == "140.50"
    assert fields["taxrate-field"] == "15.00"
    assert fields["grandtotal-field"] == "155.50"


@pytest.mark.django_db
def test_date_uses_configured_format(patient, settings):
    settings.BILLING_EXPORT_DATE_FORMAT = "%Y/%m/%d"
    inv = InvoiceService.create(patient_id=patient.id, line_items=[line("a")])
    Invoice.objects.filter(id=inv.id).update(created_at=dt.datetime(2024, 2, 29, 9, 30, tzinfo=dt.timezone.utc))
    inv.refresh_from_db()

    assert invoice_to_field_map(inv)["date-field"] == "2024/02/29"


@pytest.mark.django_db
def test_missing_creator_maps_to_empty_string(patient):
    inv = InvoiceService.create(patient_id=patient.id, line_items=[line("a")])
    assert invoice_to_field_map(inv)["dr-name-field"] == ""


@pytest.mark.django_db
def test_lines_beyond_slot_count_are_dropped_and_reported(patient, caplog):
    lines = [line(f"t-{n}", "10.00") for n in range(EXPORT_SLOT_COUNT + 2)]
    inv = InvoiceService.create(patient_id=patient.id, line_items=lines)

    with caplog.at_level(logging.WARNING, logger="dc_core.billing.export"):
        fields = invoice_to_field_map(inv)

    assert set(fields) == set(export_field_keys())
    assert fields[f"description-{EXPORT_SLOT_COUNT}"] == f"Treatment t-{EXPORT_SLOT_COUNT - 1}"
    # Footer totals still cover every line.
    assert fields["subtotal-field"] == "70.00"
    assert overflow_line_count(inv) == 2
    assert "dropped" in caplog.text


@pytest.mark.django_db
def test_no_overflow_for_small_invoice(patient):
    inv = InvoiceService.create(patient_id=patient.id, line_items=[line("a")])
    assert overflow_line_count(inv) == 0
