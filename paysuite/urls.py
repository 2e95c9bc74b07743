"""
CHANGE LOG
----------
2026-03-02
- ADD: /payments/ include for the stripe_payments app (pay, ideal, webhook, staff endpoints).
- ADD: /health/ readiness check.
"""

from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path


def health(request):
    return JsonResponse({"ok": True, "data": {"status": "up"}, "error": None})


urlpatterns = [
    path("admin/", admin.site.urls),
    path("health/", health, name="health"),
    path("payments/", include("stripe_payments.urls", namespace="stripe_payments")),
]
