# dc_core/billing/tests/test_document_render.py
import json

import pytest

from dc_core.billing.exceptions import ExportError
from dc_core.billing.rendering import render_invoice_document
from dc_core.billing.services import InvoiceService
from dc_core.conftest import line


class JsonRenderer:
    def render(self, field_map):
        return json.dumps(field_map, sort_keys=True).encode("utf-8")


class FailingRenderer:
    def render(self, field_map):
        raise RuntimeError("template engine crashed")


class EmptyRenderer:
    def render(self, field_map):
        return b""


json_renderer = JsonRenderer()


@pytest.fixture
def invoice(patient):
    return InvoiceService.create(patient_id=patient.id, line_items=[line("a", "25.00")])


@pytest.mark.django_db
@pytest.mark.parametrize(
    "path",
    [
        "dc_core.billing.tests.test_document_render.JsonRenderer",
        "dc_core.billing.tests.test_document_render.json_renderer",
    ],
)
def test_renderer_receives_complete_field_map(invoice, settings, path):
    settings.BILLING_DOCUMENT_RENDERER = path

    content = render_invoice_document(invoice)

    fields = json.loads(content)
    assert fields["invoice-id-field"] == invoice.id
    assert fields["grandtotal-field"] == "25.00"


@pytest.mark.django_db
@pytest.mark.parametrize(
    "path",
    [
        "",
        "dc_core.billing.tests.test_document_render.NoSuchRenderer",
        "dc_core.billing.tests.test_document_render.FailingRenderer",
        "dc_core.billing.tests.test_document_render.EmptyRenderer",
    ],
)
def test_renderer_problems_are_export_errors(invoice, settings, path):
    settings.BILLING_DOCUMENT_RENDERER = path

    with pytest.raises(ExportError):
        render_invoice_document(invoice)


class TextRenderer:
    def render(self, field_map):
        return "not bytes"


@pytest.mark.django_db
def test_non_bytes_output_is_export_error(invoice, settings):
    settings.BILLING_DOCUMENT_RENDERER = "dc_core.billing.tests.test_document_render.TextRenderer"

    with pytest.raises(ExportError):
        render_invoice_document(invoice)
