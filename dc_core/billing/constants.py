# dc_core/billing/constants.py
from decimal import Decimal

from django.db import models


class InvoiceStatus(models.TextChoices):
    UNPAID = "UNPAID", "Unpaid"
    PARTIAL = "PARTIAL", "Partially Paid"
    PAID = "PAID", "Paid"


class PaymentMethod(models.TextChoices):
    CASH = "CASH", "Cash"
    CARD = "CARD", "Card"
    BANK_TRANSFER = "BANK_TRANSFER", "Bank Transfer"
    MOBILE_MONEY = "MOBILE_MONEY", "Mobile Money"
    OTHER = "OTHER", "Other"


class LinePaymentStatus(models.TextChoices):
    """
    Per-line payment status chosen at invoice time.
    Lower-case values are part of the stored line-item document.
    """
    FULL = "full", "Full"
    PARTIAL = "partial", "Partial"
    UNPAID = "unpaid", "Unpaid"


ZERO = Decimal("0.00")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")

# Largest amount a DecimalField(max_digits=12, decimal_places=2) column holds.
MAX_AMOUNT = Decimal("9999999999.99")
