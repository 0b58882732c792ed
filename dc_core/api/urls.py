# dc_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from dc_core.billing.api.views import BillableTreatmentViewSet, InvoiceViewSet

router = DefaultRouter()

router.register(r"billing/invoices", InvoiceViewSet, basename="billing-invoices")
router.register(r"billing/catalog", BillableTreatmentViewSet, basename="billing-catalog")

urlpatterns = [
    # JWT auth (session/login UX lives outside this service)
    path("auth/token/", TokenObtainPairView.as_view(), name="token-obtain"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
