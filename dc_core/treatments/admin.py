from django.contrib import admin

from dc_core.treatments.models import Treatment


@admin.register(Treatment)
class TreatmentAdmin(admin.ModelAdmin):
    list_display = ("id", "patient", "name", "date", "base_price", "status", "created_at")
    list_filter = ("status", "date")
    search_fields = ("name", "description", "patient__first_name", "patient__last_name")
    autocomplete_fields = ("patient",)
    ordering = ("-created_at",)
