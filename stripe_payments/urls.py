"""
Stripe Payments URL routes.

Mounted by the project under /payments/.
"""

from __future__ import annotations

from django.urls import path

from . import views

app_name = "stripe_payments"

urlpatterns = [
    path("pay/", views.pay, name="pay"),
    path("ideal/", views.ideal, name="ideal"),
    path("webhook/", views.stripe_webhook, name="webhook"),

    # Staff
    path("order-statuses/reorder/", views.reorder_order_statuses, name="order-status-reorder"),
    path("order-statuses/<int:status_id>/delete/", views.delete_order_status, name="order-status-delete"),
]
