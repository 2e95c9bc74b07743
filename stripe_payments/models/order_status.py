"""
stripe_payments.models.order_status

Ordered catalogue of order statuses (admin-editable labels + colors).

Rules enforced by OrderStatusRegistry (not by the database):
- at most one row flagged is_default
- a status referenced by an order cannot be deleted
- the catalogue never drops below one row
"""

from __future__ import annotations

from django.db import models


class OrderStatus(models.Model):
    COLOR_CHOICES = [
        ("white", "White"),
        ("green", "Green"),
        ("blue", "Blue"),
        ("orange", "Orange"),
        ("red", "Red"),
        ("purple", "Purple"),
        ("pink", "Pink"),
        ("turquoise", "Turquoise"),
        ("light", "Light"),
        ("grey", "Grey"),
        ("black", "Black"),
    ]

    name = models.CharField(max_length=255)
    handle = models.SlugField(max_length=255, unique=True)
    color = models.CharField(max_length=30, choices=COLOR_CHOICES, default="green")
    sort_order = models.PositiveIntegerField(default=999)
    is_default = models.BooleanField(default=False)

    date_created = models.DateTimeField(auto_now_add=True)
    date_updated = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["sort_order", "id"]
        verbose_name_plural = "order statuses"

    def __str__(self) -> str:
        return self.name
