# dc_core/billing/valuation.py
"""
Line-item valuation.

A RawLineItemInput is whatever the caller assembled (from the treatment
catalog or by hand); valuate() turns it into an InvoiceLineItem whose derived
fields (vat_amount, total_amount, paid_amount) are always regenerated.

Pure: no ORM access, no clock, no logging.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from django.utils.dateparse import parse_date, parse_datetime

from dc_core.billing.constants import CENT, HUNDRED, MAX_AMOUNT, ZERO, LinePaymentStatus
from dc_core.billing.exceptions import InvoiceValidationError

# Keys of the original (camelCase) line-item shape, mapped to ours.
_LEGACY_KEYS = {
    "basePrice": "base_price",
    "includeVat": "include_vat",
    "vatPercent": "vat_percent",
    "vatAmount": "vat_amount",
    "paymentStatus": "payment_status",
    "paidAmount": "paid_amount",
    "totalAmount": "total_amount",
}


def _to_decimal(value: Any, *, index: int, line_id: str | None, field_name: str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise InvoiceValidationError.for_line(
            index=index, line_id=line_id, field=field_name, message="Invalid decimal value."
        )
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        parsed = None
    if parsed is None or not parsed.is_finite():
        raise InvoiceValidationError.for_line(
            index=index, line_id=line_id, field=field_name, message="Invalid decimal value."
        )
    return parsed


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _to_date(value: Any, *, index: int, line_id: str | None) -> dt.date | None:
    if value in (None, ""):
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value

    raw = str(value).strip()
    parsed = None
    try:
        parsed = parse_date(raw)
        if parsed is None:
            parsed_dt = parse_datetime(raw.replace("Z", "+00:00"))
            parsed = parsed_dt.date() if parsed_dt else None
    except ValueError:
        parsed = None

    if parsed is None:
        raise InvoiceValidationError.for_line(
            index=index, line_id=line_id, field="date", message="Invalid date (ISO 8601 expected)."
        )
    return parsed


@dataclass(frozen=True)
class RawLineItemInput:
    """
    Caller-supplied line item. Derived values are never accepted from here.
    paid_amount only matters for payment_status="partial".
    """
    id: str
    base_price: Decimal
    name: str = ""
    description: str = ""
    date: dt.date | None = None
    include_vat: bool = False
    vat_percent: Decimal = ZERO
    payment_status: str = LinePaymentStatus.UNPAID
    paid_amount: Decimal | None = None
    notes: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, index: int = 0) -> "RawLineItemInput":
        """
        Accepts the current snake_case shape and the original camelCase shape.
        Derived keys (vat_amount, total_amount) are read and discarded.
        """
        if not isinstance(data, Mapping):
            raise InvoiceValidationError.for_line(
                index=index, line_id=None, field="", message="Line item must be an object."
            )

        norm: dict[str, Any] = {}
        for k, v in data.items():
            norm[_LEGACY_KEYS.get(k, k)] = v
        # Original shape: "id" was a per-invoice row id, "treatmentId" the stable reference.
        if data.get("treatmentId"):
            norm["id"] = data["treatmentId"]

        line_id = str(norm.get("id") or "").strip()
        if not line_id:
            raise InvoiceValidationError.for_line(
                index=index, line_id=None, field="id", message="Line item id is required."
            )

        if norm.get("base_price") in (None, ""):
            raise InvoiceValidationError.for_line(
                index=index, line_id=line_id, field="base_price", message="Base price is required."
            )

        paid_raw = norm.get("paid_amount")
        paid_amount = (
            None
            if paid_raw in (None, "")
            else _to_decimal(paid_raw, index=index, line_id=line_id, field_name="paid_amount")
        )

        return cls(
            id=line_id,
            name=str(norm.get("name") or ""),
            description=str(norm.get("description") or ""),
            date=_to_date(norm.get("date"), index=index, line_id=line_id),
            base_price=_to_decimal(norm.get("base_price"), index=index, line_id=line_id, field_name="base_price"),
            include_vat=_to_bool(norm.get("include_vat", False)),
            vat_percent=_to_decimal(
                norm.get("vat_percent") if norm.get("vat_percent") not in (None, "") else ZERO,
                index=index,
                line_id=line_id,
                field_name="vat_percent",
            ),
            payment_status=str(norm.get("payment_status") or LinePaymentStatus.UNPAID).strip().lower(),
            paid_amount=paid_amount,
            notes=str(norm.get("notes") or ""),
        )


@dataclass(frozen=True)
class InvoiceLineItem:
    """
    A valuated line item. Invariant: total_amount == base_price + vat_amount.
    """
    id: str
    name: str
    description: str
    date: dt.date | None
    base_price: Decimal
    include_vat: bool
    vat_percent: Decimal
    vat_amount: Decimal
    payment_status: str
    paid_amount: Decimal
    notes: str
    total_amount: Decimal

    def to_raw(self) -> RawLineItemInput:
        """
        Back to caller-input form, e.g. to re-valuate after an edit.
        """
        return RawLineItemInput(
            id=self.id,
            name=self.name,
            description=self.description,
            date=self.date,
            base_price=self.base_price,
            include_vat=self.include_vat,
            vat_percent=self.vat_percent,
            payment_status=self.payment_status,
            paid_amount=self.paid_amount if self.payment_status == LinePaymentStatus.PARTIAL else None,
            notes=self.notes,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "date": self.date.isoformat() if self.date else None,
            "base_price": str(self.base_price),
            "include_vat": self.include_vat,
            "vat_percent": str(self.vat_percent),
            "vat_amount": str(self.vat_amount),
            "payment_status": self.payment_status,
            "paid_amount": str(self.paid_amount),
            "notes": self.notes,
            "total_amount": str(self.total_amount),
        }


def _exact_cents(value: Decimal) -> bool:
    return value.quantize(CENT) == value


def valuate(raw: RawLineItemInput, *, index: int = 0, strict: bool = True) -> InvoiceLineItem:
    """
    Rules, in order:
      1. vat_amount = base_price * vat_percent / 100 if include_vat else 0
      2. total_amount = base_price + vat_amount
      3. paid_amount: full -> base_price (VAT not included), unpaid -> 0,
         partial -> caller amount

    Inputs are checked as given and never rounded into range: amounts must be
    >= 0, fit the stored columns and have at most two decimal places.

    strict=False values a partial line with no amount as 0 (draft preview);
    strict=True (submission) rejects it.
    """
    def fail(field_name: str, message: str) -> InvoiceValidationError:
        return InvoiceValidationError.for_line(index=index, line_id=raw.id, field=field_name, message=message)

    def checked_amount(value: Decimal, field_name: str, label: str) -> Decimal:
        if not value.is_finite():
            raise fail(field_name, "Invalid decimal value.")
        if value < ZERO:
            raise fail(field_name, f"{label} must be >= 0.")
        if value > MAX_AMOUNT:
            raise fail(field_name, f"{label} must not exceed {MAX_AMOUNT}.")
        if not _exact_cents(value):
            raise fail(field_name, f"{label} must have at most 2 decimal places.")
        return value.quantize(CENT)

    base_price = checked_amount(raw.base_price, "base_price", "Base price")

    if not raw.vat_percent.is_finite() or raw.vat_percent < ZERO or raw.vat_percent > HUNDRED:
        raise fail("vat_percent", "VAT percent must be between 0 and 100.")
    if not _exact_cents(raw.vat_percent):
        raise fail("vat_percent", "VAT percent must have at most 2 decimal places.")
    vat_percent = raw.vat_percent.quantize(CENT)

    payment_status = str(raw.payment_status)
    if payment_status not in LinePaymentStatus.values:
        raise fail("payment_status", f"Unknown payment status '{payment_status}'.")

    vat_amount = (base_price * vat_percent / HUNDRED).quantize(CENT) if raw.include_vat else ZERO
    total_amount = base_price + vat_amount

    if payment_status == LinePaymentStatus.FULL:
        # TODO: confirm with billing owners whether "full" should also cover VAT.
        paid_amount = base_price
    elif payment_status == LinePaymentStatus.UNPAID:
        paid_amount = ZERO
    elif raw.paid_amount is None:
        if strict:
            raise fail("paid_amount", "Paid amount is required for a partial payment.")
        paid_amount = ZERO
    else:
        paid_amount = checked_amount(raw.paid_amount, "paid_amount", "Paid amount")

    return InvoiceLineItem(
        id=raw.id,
        name=raw.name,
        description=raw.description,
        date=raw.date,
        base_price=base_price,
        include_vat=raw.include_vat,
        vat_percent=vat_percent,
        vat_amount=vat_amount,
        payment_status=payment_status,
        paid_amount=paid_amount,
        notes=raw.notes,
        total_amount=total_amount,
    )


def valuate_all(raws: Iterable[RawLineItemInput | Mapping[str, Any]], *, strict: bool = True) -> list[InvoiceLineItem]:
    """
    Valuates a list in order; errors carry the index of the offending line.
    Accepts RawLineItemInput objects or plain dicts (API payloads, stored blobs).
    """
    items: list[InvoiceLineItem] = []
    for idx, raw in enumerate(raws):
        if not isinstance(raw, RawLineItemInput):
            raw = RawLineItemInput.from_dict(raw, index=idx)
        items.append(valuate(raw, index=idx, strict=strict))
    return items

