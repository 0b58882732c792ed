# dc_core/billing/tests/test_line_items_schema.py
from decimal import Decimal

import pytest

from dc_core.billing.exceptions import InvoiceValidationError
from dc_core.billing.line_items import LINE_ITEMS_SCHEMA_VERSION, dump_line_items, load_line_items
from dc_core.billing.valuation import valuate_all


def test_dump_writes_versioned_document_with_string_decimals():
    items = valuate_all([{"id": "a", "base_price": "12.5", "date": "2024-01-02"}])
    blob = dump_line_items(items)

    assert blob["schema_version"] == LINE_ITEMS_SCHEMA_VERSION
    row = blob["items"][0]
    assert row["base_price"] == "12.50"
    assert row["date"] == "2024-01-02"
    assert load_line_items(blob) == items


def test_version_1_bare_list_is_migrated():
    legacy = [
        {
            "id": "clx0row",
            "treatmentId": "tr-1",
            "name": "Crown",
            "description": "",
            "date": "2023-11-20T00:00:00.000Z",
            "basePrice": 250.0,
            "includeVat": True,
            "vatPercent": 15,
            "vatAmount": 37.5,
            "paymentStatus": "partial",
            "paidAmount": 100,
            "notes": "",
            "totalAmount": 287.5,
        }
    ]
    [item] = load_line_items(legacy)

    assert item.id == "tr-1"
    assert item.vat_amount == Decimal("37.50")
    assert item.total_amount == Decimal("287.50")
    assert item.paid_amount == Decimal("100.00")


def test_stale_derived_values_are_recomputed_on_load():
    blob = dump_line_items(valuate_all([{"id": "a", "base_price": "100", "include_vat": True, "vat_percent": "10"}]))
    blob["items"][0]["vat_amount"] = "99.99"
    blob["items"][0]["total_amount"] = "0.00"

    [item] = load_line_items(blob)
    assert item.vat_amount == Decimal("10.00")
    assert item.total_amount == Decimal("110.00")


def test_legacy_partial_without_amount_loads_as_zero():
    [item] = load_line_items([{"treatmentId": "t", "basePrice": 10, "paymentStatus": "partial"}])
    assert item.paid_amount == Decimal("0.00")


@pytest.mark.parametrize("blob", [None, "", {}])
def test_empty_blob_loads_as_no_items(blob):
    assert load_line_items(blob) == []


def test_newer_schema_version_is_rejected():
    with pytest.raises(InvoiceValidationError):
        load_line_items({"schema_version": LINE_ITEMS_SCHEMA_VERSION + 1, "items": []})


def test_unrecognised_document_is_rejected():
    with pytest.raises(InvoiceValidationError):
        load_line_items({"rows": []})


def test_version_1_float_noise_is_cut_to_cents():
    [item] = load_line_items([{"treatmentId": "t", "basePrice": 0.1 + 0.2, "paymentStatus": "full"}])
    assert item.base_price == Decimal("0.30")
    assert item.paid_amount == Decimal("0.30")


def test_stored_document_with_out_of_range_price_is_rejected():
    blob = dump_line_items(valuate_all([{"id": "a", "base_price": "1"}]))
    blob["items"][0]["base_price"] = "-0.004"

    with pytest.raises(InvoiceValidationError) as ei:
        load_line_items(blob)
    assert ei.value.field == "base_price"
