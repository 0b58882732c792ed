# dc_core/billing/admin.py
from __future__ import annotations

from django.contrib import admin

from dc_core.billing.models import Invoice


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "patient",
        "status",
        "subtotal",
        "vat_total",
        "total_amount",
        "paid_amount",
        "pending_amount",
        "payment_method",
        "created_by",
        "created_at",
    )
    list_filter = ("status", "payment_method", "created_at")
    search_fields = ("id", "patient__first_name", "patient__last_name", "patient__phone_number")
    autocomplete_fields = ("patient",)
    ordering = ("-created_at",)

    # Amounts are derived from line_items by InvoiceService; editing them here would drift.
    readonly_fields = (
        "id",
        "line_items",
        "subtotal",
        "vat_total",
        "total_amount",
        "paid_amount",
        "pending_amount",
        "status",
        "paid_at",
        "payment_method",
        "created_by",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):
        return False
