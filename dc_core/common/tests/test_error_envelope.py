# dc_core/common/tests/test_error_envelope.py
from django.http import Http404
from django.test import RequestFactory
from rest_framework.exceptions import NotFound, ValidationError

from dc_core.billing.exceptions import ExportError, InvoiceValidationError, PersistenceError
from dc_core.common.api.exceptions import ConflictError, api_exception_handler, build_error_envelope


def _handle(exc, request=None):
    request = request or RequestFactory().get("/api/v1/billing/invoices/")
    return api_exception_handler(exc, {"request": request, "view": None})


def test_envelope_shape_and_request_id_is_stable():
    req = RequestFactory().get("/")
    first = build_error_envelope(request=req, code="x", message="m")
    second = build_error_envelope(request=req, code="y", message="n", details={"a": 1})

    assert set(first["error"]) == {"code", "message", "details", "request_id"}
    assert first["error"]["request_id"] == second["error"]["request_id"]
    assert second["error"]["details"] == {"a": 1}


def test_line_validation_error_uses_line_message():
    exc = InvoiceValidationError.for_line(index=0, line_id="t-1", field="base_price", message="Base price must be >= 0.")
    resp = _handle(exc)

    assert resp.status_code == 400
    err = resp.data["error"]
    assert err["code"] == "validation_error"
    assert err["message"] == "Line item 1 (t-1): Base price must be >= 0."
    assert err["details"]["line_items"][0]["id"] == "t-1"


def test_field_validation_error():
    resp = _handle(ValidationError({"patient": ["Patient not found."]}))
    assert resp.status_code == 400
    assert resp.data["error"]["message"] == "Patient not found."


def test_detail_errors_map_to_codes():
    cases = [
        (NotFound("Invoice INV-1 not found."), 404, "not_found"),
        (Http404(), 404, "not_found"),
        (ConflictError(), 409, "conflict"),
        (PersistenceError(), 503, "persistence_error"),
        (ExportError(), 502, "export_error"),
    ]
    for exc, status_code, code in cases:
        resp = _handle(exc)
        assert resp.status_code == status_code
        assert resp.data["error"]["code"] == code
        assert resp.data["error"]["details"] is None


def test_unhandled_error_is_opaque_500():
    resp = _handle(RuntimeError("boom"))
    assert resp.status_code == 500
    assert resp.data["error"]["code"] == "server_error"
    assert "boom" not in resp.data["error"]["message"]
