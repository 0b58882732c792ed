from django.contrib import admin

from dc_core.patients.models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("id", "first_name", "last_name", "phone_number", "created_at")
    search_fields = ("first_name", "last_name", "phone_number", "email")
    ordering = ("-created_at",)
