"""
stripe_payments.enums

Stable ids and codes shared by models, services and views.

OrderState values are the primary keys of the three lifecycle OrderStatus
rows seeded by migration 0002.
"""

from __future__ import annotations

from django.db import models


class OrderState(models.IntegerChoices):
    PENDING = 1, "Pending"
    NEW = 2, "New"
    PROCESSED = 3, "Processed"


class PaymentType(models.IntegerChoices):
    CC = 1, "Credit Card"
    IDEAL = 2, "iDEAL"
    SOFORT = 3, "SOFORT"


class SubscriptionType(models.IntegerChoices):
    SINGLE_PLAN = 0, "Single plan"
    MULTIPLE_PLANS = 1, "Multiple plans"


class PlanInterval(models.TextChoices):
    DAY = "day", "Day"
    WEEK = "week", "Week"
    MONTH = "month", "Month"
    YEAR = "year", "Year"


# Stripe bills these in whole units (no minor-unit subdivision).
ZERO_DECIMAL_CURRENCIES = frozenset(
    {
        "MGA",
        "BIF",
        "CLP",
        "PYG",
        "DJF",
        "RWF",
        "GNF",
        "UGX",
        "JPY",
        "VND",
        "VUV",
        "XAF",
        "KMF",
        "KRW",
        "XOF",
        "XPF",
    }
)

# iDEAL / SEPA sources only exist in euro.
IDEAL_CURRENCY = "EUR"

STATUS_COLORS = {
    OrderState.PENDING: "white",
    OrderState.NEW: "green",
    OrderState.PROCESSED: "blue",
}
