# dc_core/billing/api/serializers.py
from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from dc_core.billing.constants import LinePaymentStatus
from dc_core.billing.models import Invoice
from dc_core.billing.selectors import invoice_line_items
from dc_core.treatments.models import Treatment


class LineItemInputSerializer(serializers.Serializer):
    """
    Caller-supplied line item.

    Range rules (base_price >= 0, 0 <= vat_percent <= 100, partial needs a
    paid_amount) are enforced by billing.valuation so errors name the line.
    Derived amounts are not accepted.
    """
    id = serializers.CharField(max_length=64)
    name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    description = serializers.CharField(required=False, allow_blank=True, default="")
    date = serializers.DateField(required=False, allow_null=True, default=None)
    base_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    include_vat = serializers.BooleanField(required=False, default=False)
    vat_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, default=Decimal("0.00"))
    payment_status = serializers.CharField(required=False, default=LinePaymentStatus.UNPAID.value)
    paid_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class InvoiceLineItemSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    description = serializers.CharField(read_only=True)
    date = serializers.DateField(read_only=True, allow_null=True)
    base_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    include_vat = serializers.BooleanField(read_only=True)
    vat_percent = serializers.DecimalField(max_digits=5, decimal_places=2, read_only=True)
    vat_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    payment_status = serializers.CharField(read_only=True)
    paid_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    notes = serializers.CharField(read_only=True)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)


class InvoiceSerializer(serializers.ModelSerializer):
    line_items = serializers.SerializerMethodField()
    patient_name = serializers.CharField(source="patient.full_name", read_only=True)

    class Meta:
        model = Invoice
        fields = [
            "id",
            "patient",
            "patient_name",
            "line_items",
            "subtotal",
            "vat_total",
            "total_amount",
            "paid_amount",
            "pending_amount",
            "status",
            "payment_method",
            "paid_at",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_line_items(self, obj: Invoice) -> list[dict]:
        return InvoiceLineItemSerializer(invoice_line_items(obj), many=True).data


class InvoiceCreateSerializer(serializers.Serializer):
    patient = serializers.UUIDField()
    line_items = LineItemInputSerializer(many=True)


class InvoiceUpdateSerializer(serializers.Serializer):
    line_items = LineItemInputSerializer(many=True)
    expected_updated_at = serializers.DateTimeField(required=False, allow_null=True, default=None)


class InvoiceStatusSerializer(serializers.Serializer):
    status = serializers.CharField()
    payment_method = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)


class InvoiceExportSerializer(serializers.Serializer):
    field_map = serializers.DictField(child=serializers.CharField(allow_blank=True))
    overflow_line_count = serializers.IntegerField()


class BillableTreatmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Treatment
        fields = [
            "id",
            "patient",
            "name",
            "description",
            "date",
            "base_price",
            "status",
            "notes",
        ]
        read_only_fields = fields
