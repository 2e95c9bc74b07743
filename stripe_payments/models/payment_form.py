"""
stripe_payments.models.payment_form

A purchasable offer: price, currency, subscription plans and stock.

Design rules:
- quantity is the remaining stock; ignored when has_unlimited_stock is set.
- single_plan_info holds the Stripe plan snapshot picked in admin ({"id": ...}).
- Multiple-plan forms list their plans (+ optional setup fees) as
  PaymentFormPlan rows.
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models

from ..enums import PlanInterval, SubscriptionType


class PaymentForm(models.Model):
    name = models.CharField(max_length=255)
    handle = models.SlugField(max_length=255, unique=True)

    currency = models.CharField(max_length=3, default="USD")
    amount = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))

    # ---- subscriptions ----
    enable_subscriptions = models.BooleanField(default=False)
    subscription_type = models.IntegerField(
        choices=SubscriptionType.choices,
        default=SubscriptionType.SINGLE_PLAN,
    )
    single_plan_info = models.JSONField(blank=True, null=True)
    single_plan_setup_fee = models.DecimalField(max_digits=14, decimal_places=4, blank=True, null=True)
    single_plan_trial_period = models.PositiveIntegerField(blank=True, null=True, help_text="Trial days.")

    enable_custom_plan_amount = models.BooleanField(default=False)
    custom_plan_interval = models.PositiveIntegerField(default=1, help_text="Intervals between billings.")
    custom_plan_frequency = models.CharField(
        max_length=10, choices=PlanInterval.choices, default=PlanInterval.MONTH
    )

    # ---- billing interval when the customer turns a one-time payment recurring ----
    recurring_payment_type = models.CharField(
        max_length=10, choices=PlanInterval.choices, default=PlanInterval.MONTH
    )

    # ---- stock ----
    has_unlimited_stock = models.BooleanField(default=True)
    quantity = models.IntegerField(default=0)

    return_url = models.CharField(max_length=500, blank=True, default="")

    date_created = models.DateTimeField(auto_now_add=True)
    date_updated = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    @property
    def single_plan_id(self) -> str | None:
        info = self.single_plan_info or {}
        return info.get("id") if isinstance(info, dict) else None

    @property
    def has_finite_stock(self) -> bool:
        return not self.has_unlimited_stock and int(self.quantity or 0) > 0


class PaymentFormPlan(models.Model):
    payment_form = models.ForeignKey(
        PaymentForm,
        on_delete=models.CASCADE,
        related_name="plans",
    )
    plan_id = models.CharField(max_length=255, help_text="Stripe plan id selectable on the form.")
    label = models.CharField(max_length=255, blank=True, default="")
    setup_fee = models.DecimalField(max_digits=14, decimal_places=4, blank=True, null=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["sort_order", "id"]

    def __str__(self) -> str:
        return self.label or self.plan_id
