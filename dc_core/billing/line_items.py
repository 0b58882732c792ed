# dc_core/billing/line_items.py
"""
Stored shape of Invoice.line_items.

Version 2 (current):
    {"schema_version": 2, "items": [<InvoiceLineItem.to_dict()>, ...]}

Version 1 (original records): a bare JSON list of camelCase objects
(basePrice, includeVat, vatPercent, paymentStatus, paidAmount, treatmentId),
numbers as floats. Loaded through an explicit migration step.

Loading always re-valuates, so derived values written by older code are
never trusted.
"""
from __future__ import annotations

import math
from decimal import Decimal
from typing import Any, Iterable

from dc_core.billing.constants import CENT
from dc_core.billing.exceptions import InvoiceValidationError
from dc_core.billing.valuation import InvoiceLineItem, valuate_all

LINE_ITEMS_SCHEMA_VERSION = 2


def dump_line_items(items: Iterable[InvoiceLineItem]) -> dict[str, Any]:
    return {
        "schema_version": LINE_ITEMS_SCHEMA_VERSION,
        "items": [item.to_dict() for item in items],
    }


_V1_NUMERIC_KEYS = ("basePrice", "vatPercent", "paidAmount")


def _migrate_v1(rows: list) -> list[dict[str, Any]]:
    """
    camelCase keys are understood by RawLineItemInput.from_dict. Version 1
    stored JSON floats, so binary noise (0.30000000000000004) is cut back to
    cents here; version 2 keeps exact decimal strings.
    """
    migrated = []
    for row in rows:
        if not isinstance(row, dict):
            migrated.append(row)
            continue
        row = dict(row)
        for key in _V1_NUMERIC_KEYS:
            value = row.get(key)
            if isinstance(value, float) and math.isfinite(value) and abs(value) < 1e12:
                row[key] = Decimal(repr(value)).quantize(CENT)
        migrated.append(row)
    return migrated


def _schema_version(blob: Any) -> int:
    if isinstance(blob, list):
        return 1
    if isinstance(blob, dict) and "schema_version" in blob:
        try:
            return int(blob["schema_version"])
        except (TypeError, ValueError):
            pass
    raise InvoiceValidationError("Unrecognised line item document.", field="line_items")


def load_line_items(blob: Any) -> list[InvoiceLineItem]:
    if not blob:
        return []

    version = _schema_version(blob)
    if version > LINE_ITEMS_SCHEMA_VERSION:
        raise InvoiceValidationError(
            f"Line item schema version {version} is newer than supported ({LINE_ITEMS_SCHEMA_VERSION}).",
            field="line_items",
        )

    rows = _migrate_v1(blob) if version == 1 else list(blob.get("items") or [])

    # Stored lines were validated on write; a legacy partial line without an
    # amount is valued as 0 instead of blocking reads.
    return valuate_all(rows, strict=False)
