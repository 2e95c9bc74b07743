"""
stripe_payments.services.order_statuses

Order status catalogue: create/update, reorder, delete.

"Only one default" is an application-level rule: saving a default status
clears the flag on every other row in the same transaction.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from django.core.exceptions import ValidationError
from django.db import transaction

from ..exceptions import OrderStatusNotFound
from ..models import Order, OrderStatus

logger = logging.getLogger(__name__)

DEFAULT_SORT_ORDER = 999


class OrderStatusRegistry:
    def get_order_status_by_id(self, status_id: int) -> Optional[OrderStatus]:
        return OrderStatus.objects.filter(pk=status_id).first()

    def get_all_order_statuses(self) -> List[OrderStatus]:
        return list(OrderStatus.objects.order_by("sort_order", "id"))

    def get_default_order_status(self) -> Optional[OrderStatus]:
        return OrderStatus.objects.filter(is_default=True).first()

    def save_order_status(self, order_status: OrderStatus) -> bool:
        if order_status.pk and not OrderStatus.objects.filter(pk=order_status.pk).exists():
            raise OrderStatusNotFound(order_status.pk)

        order_status.sort_order = order_status.sort_order or DEFAULT_SORT_ORDER

        try:
            order_status.full_clean()
        except ValidationError as e:
            order_status.validation_errors = e.message_dict
            return False
        order_status.validation_errors = {}

        with transaction.atomic():
            if order_status.is_default:
                OrderStatus.objects.exclude(pk=order_status.pk).update(is_default=False)
            order_status.save()

        return True

    def reorder_order_statuses(self, status_ids: Iterable[int]) -> bool:
        with transaction.atomic():
            for position, status_id in enumerate(status_ids, start=1):
                record = self._get_record(status_id)
                record.sort_order = position
                record.save(update_fields=["sort_order", "date_updated"])
        return True

    def delete_order_status_by_id(self, status_id: int) -> bool:
        if Order.objects.filter(order_status_id=status_id).exists():
            logger.info("Order status %s is in use; not deleting", status_id)
            return False

        if OrderStatus.objects.count() < 2:
            return False

        deleted, _ = OrderStatus.objects.filter(pk=status_id).delete()
        return bool(deleted)

    def _get_record(self, status_id: int) -> OrderStatus:
        record = OrderStatus.objects.filter(pk=status_id).first()
        if record is None:
            raise OrderStatusNotFound(status_id)
        return record
