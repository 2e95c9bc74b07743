"""
stripe_payments.services.orders

Order persistence: lookups, validated saves inside a transaction, deletes,
and order-number generation.

The order-complete hook fires after the save transaction commits, only for
New orders, and only when the caller asks for it (admin edits pass
notify=False). The payment flow saves with notify=False and calls
complete_order() itself once the form stock is saved too.
"""

from __future__ import annotations

import logging
import secrets
from typing import Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import transaction

from ..enums import STATUS_COLORS, OrderState
from ..events import EventHooks
from ..exceptions import OrderNotFound
from ..models import Order

logger = logging.getLogger(__name__)

NUMBER_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"


def generate_random_str(length: int = 12, keyspace: str = NUMBER_ALPHABET) -> str:
    return "".join(secrets.choice(keyspace) for _ in range(length))


class OrderRepository:
    def __init__(self, hooks: Optional[EventHooks] = None) -> None:
        self.hooks = hooks or EventHooks()

    # ---- lookups ----
    def _scoped(self, site_id: Optional[int]):
        qs = Order.objects.select_related("order_status", "payment_form")
        if site_id is not None:
            qs = qs.filter(site_id=site_id)
        return qs

    def get_order_by_id(self, order_id: int, site_id: Optional[int] = None) -> Optional[Order]:
        return self._scoped(site_id).filter(pk=order_id).first()

    def get_order_by_number(self, number: str, site_id: Optional[int] = None) -> Optional[Order]:
        return self._scoped(site_id).filter(number=number).first()

    def get_order_by_stripe_id(self, stripe_transaction_id: str, site_id: Optional[int] = None) -> Optional[Order]:
        if not stripe_transaction_id:
            return None
        return self._scoped(site_id).filter(stripe_transaction_id=stripe_transaction_id).first()

    def get_all_orders(self) -> List[Order]:
        return list(self._scoped(None))

    # ---- numbers ----
    def generate_order_number(self, length: int = 12, max_tries: int = 25) -> str:
        last = ""
        for _ in range(max(1, max_tries)):
            last = generate_random_str(length)
            if not Order.objects.filter(number=last).exists():
                return last
        raise RuntimeError(f"Unable to generate unique order number after {max_tries} tries. Last={last}")

    @staticmethod
    def get_color_statuses() -> Dict[int, str]:
        return {int(state): color for state, color in STATUS_COLORS.items()}

    # ---- writes ----
    def save_order(self, order: Order, notify: bool = True) -> bool:
        """
        Validate and persist. Returns False (errors on order.validation_errors)
        when validation fails; database errors roll back and propagate.
        """
        if order.pk and not Order.objects.filter(pk=order.pk).exists():
            raise OrderNotFound(order.pk)

        if not order.number:
            order.number = self.generate_order_number()

        try:
            order.full_clean()
        except ValidationError as e:
            order.validation_errors = e.message_dict
            return False
        order.validation_errors = {}

        with transaction.atomic():
            order.save()

        if notify:
            self.complete_order(order)

        return True

    def complete_order(self, order: Order) -> None:
        """Fire order_complete for a committed New order."""
        if order.order_status_id == OrderState.NEW:
            self.hooks.fire(EventHooks.ORDER_COMPLETE, order)

    def delete_order(self, order: Order) -> bool:
        with transaction.atomic():
            deleted, _ = Order.objects.filter(pk=order.pk).delete()
            if not deleted:
                logger.error("Couldn't delete Stripe Order id=%s", order.pk)
                return False
        return True
