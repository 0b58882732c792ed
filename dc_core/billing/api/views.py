# dc_core/billing/api/views.py
from __future__ import annotations

import mimetypes
from uuid import UUID

from django.conf import settings
from django.http import HttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from dc_core.billing.api.serializers import (
    BillableTreatmentSerializer,
    InvoiceCreateSerializer,
    InvoiceExportSerializer,
    InvoiceSerializer,
    InvoiceStatusSerializer,
    InvoiceUpdateSerializer,
    LineItemInputSerializer,
)
from dc_core.billing.exceptions import persistence_guard
from dc_core.billing.export import invoice_to_field_map, overflow_line_count
from dc_core.billing.filters import InvoiceFilter
from dc_core.billing.models import Invoice
from dc_core.billing.rendering import render_invoice_document
from dc_core.billing.selectors import get_invoice, invoice_line_items, invoices_qs
from dc_core.billing.services import InvoiceService
from dc_core.common.api.pagination import paginate
from dc_core.treatments.models import Treatment
from dc_core.treatments.selectors import billable_treatments_for_patient


def _uuid_or_400(value: str | None, field_name: str) -> UUID:
    if not value:
        raise DRFValidationError({field_name: "This query parameter is required."})
    try:
        return UUID(str(value))
    except Exception:
        raise DRFValidationError({field_name: "Invalid UUID"})


class InvoiceViewSet(viewsets.GenericViewSet):
    """
    Invoices:
    - list (filters: patient, status, created_from, created_to) / retrieve
    - create with line items
    - update (full line-item replace) / destroy (hard delete)
    - status: manual status override
    - line-items: add one / remove one
    - export: template field map
    - document: rendered invoice bytes
    """
    serializer_class = InvoiceSerializer
    queryset = Invoice.objects.none()
    lookup_value_regex = r"[^/]+"

    @extend_schema(
        tags=["Billing"],
        responses={200: InvoiceSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="patient", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="created_from",
                type=OpenApiTypes.DATETIME,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Inclusive lower bound on created_at (ISO 8601).",
            ),
            OpenApiParameter(
                name="created_to",
                type=OpenApiTypes.DATETIME,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Inclusive upper bound on created_at (ISO 8601).",
            ),
        ],
    )
    @persistence_guard
    def list(self, request):
        filterset = InvoiceFilter(request.query_params, queryset=invoices_qs().order_by("-created_at"))
        if not filterset.is_valid():
            raise DRFValidationError(filterset.errors)

        return paginate(request, filterset.qs, InvoiceSerializer)

    @extend_schema(tags=["Billing"], responses={200: InvoiceSerializer})
    def retrieve(self, request, pk=None):
        inv = get_invoice(invoice_id=pk)
        return Response(InvoiceSerializer(inv).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Billing"], request=InvoiceCreateSerializer, responses={201: InvoiceSerializer})
    def create(self, request):
        ser = InvoiceCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        inv = InvoiceService.create(
            patient_id=ser.validated_data["patient"],
            line_items=ser.validated_data["line_items"],
            created_by_id=getattr(request.user, "id", None),
        )
        return Response(InvoiceSerializer(inv).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Billing"], request=InvoiceUpdateSerializer, responses={200: InvoiceSerializer})
    def update(self, request, pk=None):
        ser = InvoiceUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        inv = InvoiceService.update(
            invoice_id=pk,
            line_items=ser.validated_data["line_items"],
            expected_updated_at=ser.validated_data.get("expected_updated_at"),
        )
        return Response(InvoiceSerializer(inv).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Billing"], responses={204: None})
    def destroy(self, request, pk=None):
        InvoiceService.delete(invoice_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Billing"], request=InvoiceStatusSerializer, responses={200: InvoiceSerializer})
    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        """
        Manual override. Amounts are left as they are; see InvoiceService.set_status.
        """
        ser = InvoiceStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        inv = InvoiceService.set_status(
            invoice_id=pk,
            status=ser.validated_data["status"],
            payment_method=ser.validated_data.get("payment_method") or None,
        )
        return Response(InvoiceSerializer(inv).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Billing"], request=LineItemInputSerializer, responses={200: InvoiceSerializer})
    @action(detail=True, methods=["post"], url_path="line-items")
    def add_line_item(self, request, pk=None):
        ser = LineItemInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        inv = InvoiceService.add_line_item(invoice_id=pk, line_item=ser.validated_data)
        return Response(InvoiceSerializer(inv).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Billing"], responses={200: InvoiceSerializer})
    @action(detail=True, methods=["delete"], url_path=r"line-items/(?P<line_id>[^/]+)")
    def remove_line_item(self, request, pk=None, line_id=None):
        inv = InvoiceService.remove_line_item(invoice_id=pk, line_item_id=line_id)
        return Response(InvoiceSerializer(inv).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Billing"], responses={200: InvoiceExportSerializer})
    @action(detail=True, methods=["get"], url_path="export")
    def export(self, request, pk=None):
        inv = get_invoice(invoice_id=pk)
        items = invoice_line_items(inv)

        data = {
            "field_map": invoice_to_field_map(inv, line_items=items),
            "overflow_line_count": overflow_line_count(inv, line_items=items),
        }
        return Response(data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Billing"], responses={(200, "application/octet-stream"): OpenApiTypes.BINARY})
    @action(detail=True, methods=["get"], url_path="document")
    def document(self, request, pk=None):
        inv = get_invoice(invoice_id=pk)
        content = render_invoice_document(inv)

        content_type = getattr(settings, "BILLING_DOCUMENT_CONTENT_TYPE", "application/pdf")
        ext = mimetypes.guess_extension(content_type) or ""

        resp = HttpResponse(content, content_type=content_type)
        resp["Content-Disposition"] = f'attachment; filename="{inv.id}{ext}"'
        return resp


class BillableTreatmentViewSet(viewsets.GenericViewSet):
    """
    Treatments a patient can be billed for (read-only).
    """
    serializer_class = BillableTreatmentSerializer
    queryset = Treatment.objects.none()

    @extend_schema(
        tags=["Billing"],
        responses={200: BillableTreatmentSerializer(many=True)},
        parameters=[
            OpenApiParameter(
                name="patient",
                type=OpenApiTypes.UUID,
                location=OpenApiParameter.QUERY,
                required=True,
                description="Patient UUID.",
            ),
        ],
    )
    @persistence_guard
    def list(self, request):
        patient_id = _uuid_or_400(request.query_params.get("patient"), "patient")
        qs = billable_treatments_for_patient(patient_id=patient_id)
        return paginate(request, qs, BillableTreatmentSerializer)
