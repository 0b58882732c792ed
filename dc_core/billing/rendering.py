# dc_core/billing/rendering.py
"""
Hand-off to the external template-fill engine.

The engine is configured by dotted path in settings.BILLING_DOCUMENT_RENDERER
and must accept the complete field map from billing.export and return the
document bytes. It is called once; failures are not retried here.
"""
from __future__ import annotations

import logging
from typing import Protocol

from django.conf import settings
from django.utils.module_loading import import_string

from dc_core.billing.exceptions import ExportError
from dc_core.billing.export import invoice_to_field_map
from dc_core.billing.models import Invoice

logger = logging.getLogger(__name__)


class DocumentRenderer(Protocol):
    def render(self, field_map: dict[str, str]) -> bytes:
        ...


def get_document_renderer() -> DocumentRenderer:
    path = getattr(settings, "BILLING_DOCUMENT_RENDERER", "") or ""
    if not path:
        raise ExportError("No invoice document renderer is configured.")

    try:
        renderer = import_string(path)
    except ImportError as exc:
        logger.error("Invoice document renderer %r could not be imported: %s", path, exc)
        raise ExportError("Invoice document renderer is unavailable.") from exc

    # Accept a class (instantiated with no args) or a ready instance.
    return renderer() if isinstance(renderer, type) else renderer


def render_invoice_document(invoice: Invoice) -> bytes:
    renderer = get_document_renderer()
    field_map = invoice_to_field_map(invoice)

    try:
        output = renderer.render(field_map)
    except Exception as exc:
        logger.exception("Invoice %s: document renderer failed", invoice.id)
        raise ExportError(f"Rendering invoice {invoice.id} failed.") from exc

    if not isinstance(output, (bytes, bytearray)):
        logger.error(
            "Invoice %s: document renderer returned %s instead of bytes", invoice.id, type(output).__name__
        )
        raise ExportError(f"Rendering invoice {invoice.id} produced no document bytes.")

    if not output:
        logger.error("Invoice %s: document renderer returned no output", invoice.id)
        raise ExportError(f"Rendering invoice {invoice.id} produced no output.")

    return bytes(output)
