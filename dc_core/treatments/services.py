# dc_core/treatments/services.py
from __future__ import annotations

from decimal import Decimal

from dc_core.billing.constants import ZERO, LinePaymentStatus
from dc_core.billing.valuation import RawLineItemInput
from dc_core.treatments.models import Treatment


class TreatmentService:
    @staticmethod
    def to_line_item_input(
        treatment: Treatment,
        *,
        payment_status: str = LinePaymentStatus.UNPAID,
        paid_amount: Decimal | None = None,
        include_vat: bool = False,
        vat_percent: Decimal = ZERO,
        notes: str = "",
    ) -> RawLineItemInput:
        """
        Snapshot a treatment into a raw invoice line.
        The line id is the treatment id so later edits can find it again.
        """
        return RawLineItemInput(
            id=str(treatment.id),
            name=treatment.name,
            description=treatment.description or "",
            date=treatment.date,
            base_price=treatment.base_price,
            include_vat=include_vat,
            vat_percent=Decimal(str(vat_percent)),
            payment_status=payment_status,
            paid_amount=paid_amount,
            notes=notes or treatment.notes or "",
        )
