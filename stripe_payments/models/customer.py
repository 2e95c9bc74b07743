"""
stripe_payments.models.customer

Local cache: (email, test_mode) -> Stripe customer id.

Avoids creating a new Stripe customer on every purchase, and keeps sandbox and
live customers apart (the same email gets one row per mode).
"""

from __future__ import annotations

from django.db import models


class Customer(models.Model):
    email = models.EmailField(db_index=True)
    stripe_id = models.CharField(max_length=255, help_text="Stripe Customer id (cus_...).")
    test_mode = models.BooleanField(default=True)

    date_created = models.DateTimeField(auto_now_add=True)
    date_updated = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date_created"]
        constraints = [
            models.UniqueConstraint(
                fields=["email", "test_mode"],
                name="uniq_customer_email_per_mode",
            )
        ]

    def __str__(self) -> str:
        mode = "test" if self.test_mode else "live"
        return f"{self.email} ({mode}) → {self.stripe_id}"
