# dc_core/billing/filters.py
from __future__ import annotations

import django_filters

from dc_core.billing.constants import InvoiceStatus
from dc_core.billing.models import Invoice


class InvoiceFilter(django_filters.FilterSet):
    """
    Query params for GET /billing/invoices/:
      patient=<uuid>&status=PAID&created_from=<iso>&created_to=<iso>
    Date range is inclusive on created_at.
    """
    patient = django_filters.UUIDFilter(field_name="patient_id")
    status = django_filters.ChoiceFilter(choices=InvoiceStatus.choices)
    created_from = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_to = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model = Invoice
        fields = ["patient", "status", "created_from", "created_to"]
