"""
stripe_payments.models.order

One purchase attempt and its outcome.

Lifecycle:
- built in memory from a form submission (Pending for redirect flows, New otherwise)
- persisted once the remote charge/subscription/source exists
- only mutated afterwards to attach the Stripe id and finalize status + total

total_price is stored in major units (e.g. dollars). variants and post_data are
opaque JSON blobs: the submitted metadata and the full captured payload (kept
so the iDEAL webhook can replay it).
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, Dict

from django.db import models

from ..enums import STATUS_COLORS, OrderState, PaymentType


def _decode(blob: str) -> Dict[str, Any]:
    if not blob:
        return {}
    try:
        data = json.loads(blob)
    except (TypeError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


class Order(models.Model):
    site_id = models.PositiveIntegerField(default=1, db_index=True)
    number = models.CharField(max_length=32, unique=True, editable=False)

    order_status = models.ForeignKey(
        "stripe_payments.OrderStatus",
        on_delete=models.PROTECT,
        default=OrderState.NEW,
        related_name="orders",
    )
    payment_form = models.ForeignKey(
        "stripe_payments.PaymentForm",
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="orders",
    )

    email = models.EmailField(db_index=True)

    # ---- amounts ----
    total_price = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))
    quantity = models.PositiveIntegerField(default=1)
    shipping = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))
    tax = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))
    discount = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))
    currency = models.CharField(max_length=3, blank=True, default="USD")

    payment_type = models.IntegerField(choices=PaymentType.choices, blank=True, null=True)
    stripe_transaction_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        db_index=True,
        help_text="Charge (ch_...), subscription (sub_...) or source (src_...) id.",
    )

    variants = models.TextField(blank=True, default="")

    # ---- shipping address ----
    address_name = models.CharField(max_length=255, blank=True, default="")
    address_street = models.CharField(max_length=255, blank=True, default="")
    address_city = models.CharField(max_length=255, blank=True, default="")
    address_state = models.CharField(max_length=255, blank=True, default="")
    address_zip = models.CharField(max_length=64, blank=True, default="")
    address_country = models.CharField(max_length=255, blank=True, default="")
    address_country_code = models.CharField(max_length=8, blank=True, default="")

    post_data = models.TextField(blank=True, default="")
    test_mode = models.BooleanField(default=False)

    date_created = models.DateTimeField(auto_now_add=True)
    date_updated = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-date_created",)
        indexes = [
            models.Index(fields=["site_id", "number"], name="sp_order_site_number_idx"),
            models.Index(fields=["site_id", "stripe_transaction_id"], name="sp_order_site_stripe_idx"),
        ]

    def __str__(self) -> str:
        return f"Order({self.number})<{self.email}>"

    @property
    def is_new(self) -> bool:
        return self.order_status_id == OrderState.NEW

    @property
    def is_pending(self) -> bool:
        return self.order_status_id == OrderState.PENDING

    @property
    def variants_dict(self) -> Dict[str, Any]:
        return _decode(self.variants)

    @property
    def post_data_dict(self) -> Dict[str, Any]:
        return _decode(self.post_data)

    @property
    def status_color(self) -> str:
        try:
            return STATUS_COLORS[OrderState(self.order_status_id)]
        except ValueError:
            return self.order_status.color
