"""
Admin for payment forms, orders, order statuses and the customer cache.

Order status saves/deletes go through OrderStatusRegistry so the
"single default" and "never delete a status in use" rules hold in the admin
too. Order edits here never re-send notifications.
"""

from __future__ import annotations

from django.contrib import admin, messages
from django.core.exceptions import ValidationError

from .models import Customer, Order, OrderStatus, PaymentForm, PaymentFormPlan
from .services.order_statuses import OrderStatusRegistry
from .services.orders import OrderRepository


class PaymentFormPlanInline(admin.TabularInline):
    model = PaymentFormPlan
    extra = 1
    fields = ("plan_id", "label", "setup_fee", "sort_order")


@admin.register(PaymentForm)
class PaymentFormAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "handle", "currency", "enable_subscriptions", "has_unlimited_stock", "quantity")
    list_filter = ("enable_subscriptions", "currency")
    search_fields = ("name", "handle")
    prepopulated_fields = {"handle": ("name",)}
    readonly_fields = ("date_created", "date_updated")
    inlines = [PaymentFormPlanInline]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("number", "email", "total_price", "currency", "order_status", "payment_type", "test_mode", "date_created")
    list_filter = ("order_status", "payment_type", "test_mode", "currency")
    search_fields = ("number", "email", "stripe_transaction_id")
    readonly_fields = ("number", "stripe_transaction_id", "post_data", "date_created", "date_updated")
    list_select_related = ("order_status", "payment_form")

    def save_model(self, request, obj, form, change):
        repo = OrderRepository()
        if not repo.save_order(obj, notify=False):
            raise ValidationError(obj.validation_errors)


@admin.register(OrderStatus)
class OrderStatusAdmin(admin.ModelAdmin):
    list_display = ("name", "handle", "color", "sort_order", "is_default")
    prepopulated_fields = {"handle": ("name",)}
    readonly_fields = ("date_created", "date_updated")

    def save_model(self, request, obj, form, change):
        if not OrderStatusRegistry().save_order_status(obj):
            raise ValidationError(obj.validation_errors)

    def delete_model(self, request, obj):
        if not OrderStatusRegistry().delete_order_status_by_id(obj.pk):
            messages.error(request, f"“{obj.name}” is in use or is the last status; it was not deleted.")

    def delete_queryset(self, request, queryset):
        registry = OrderStatusRegistry()
        for obj in queryset:
            if not registry.delete_order_status_by_id(obj.pk):
                messages.error(request, f"“{obj.name}” is in use or is the last status; it was not deleted.")


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("email", "stripe_id", "test_mode", "date_created")
    list_filter = ("test_mode",)
    search_fields = ("email", "stripe_id")
    readonly_fields = ("date_created", "date_updated")
