# dc_core/billing/exceptions.py
"""
Billing failure taxonomy.

All classes are DRF APIExceptions so views can let them propagate to the
global envelope handler (dc_core.common.api.exceptions.api_exception_handler):

- InvoiceValidationError -> 400 validation_error (attributable to a line index/id)
- InvoiceNotFound        -> 404 not_found
- PersistenceError       -> 503 persistence_error (opaque, not assumed retryable)
- ExportError            -> 502 export_error
"""
from __future__ import annotations

import functools
import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, ValidationError

logger = logging.getLogger(__name__)


class InvoiceValidationError(ValidationError):
    def __init__(
        self,
        message: str,
        *,
        field: str = "",
        line_index: int | None = None,
        line_id: str | None = None,
    ):
        self.message = message
        self.field = field
        self.line_index = line_index
        self.line_id = line_id

        if line_index is None:
            detail = {field or "line_items": [message]}
        else:
            detail = {
                "line_items": [
                    {
                        "index": line_index,
                        "id": line_id or "",
                        "field": field,
                        "message": message,
                    }
                ]
            }
        super().__init__(detail=detail)

    @classmethod
    def for_line(cls, *, index: int, line_id: str | None, field: str, message: str) -> "InvoiceValidationError":
        label = f"Line item {index + 1}"
        if line_id:
            label += f" ({line_id})"
        return cls(f"{label}: {message}", field=field, line_index=index, line_id=line_id)

    def __str__(self) -> str:
        return self.message


class InvoiceNotFound(NotFound):
    default_detail = "Invoice not found."

    def __init__(self, invoice_id: str):
        self.invoice_id = invoice_id
        super().__init__(detail=f"Invoice {invoice_id} not found.")


class PersistenceError(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Invoice storage failed."
    default_code = "persistence_error"


class ExportError(APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Invoice export failed."
    default_code = "export_error"


def persistence_guard(fn):
    """
    Re-raises ORM/database failures as PersistenceError.
    Applied outside transaction.atomic so the rollback has already happened.
    """
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except DatabaseError as exc:
            logger.exception("Persistence failed in %s", fn.__qualname__)
            raise PersistenceError() from exc

    return wrapper
