"""
stripe_payments.services.ideal

Webhook subscriber that completes iDEAL payments.

Flow
- the customer authorizes the payment at their bank
- Stripe sends source.chargeable for the ideal source
- we find the Pending order that stored the source id and charge it

Events for other source types, unknown sources, or orders that are no longer
Pending are ignored (Stripe retries webhooks, so repeats must be harmless).
"""

from __future__ import annotations

import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)

SOURCE_CHARGEABLE = "source.chargeable"


class IdealConfirmation:
    def __init__(self, orchestrator) -> None:
        self.orchestrator = orchestrator

    def __call__(self, event: Dict[str, Any]) -> None:
        if event.get("type") != SOURCE_CHARGEABLE:
            return

        source = (event.get("data") or {}).get("object") or {}
        if source.get("type") != "ideal":
            return

        source_id = source.get("id")
        order = self.orchestrator.orders.get_order_by_stripe_id(source_id)
        if order is None:
            logger.warning("iDEAL source %s is chargeable but no order references it", source_id)
            return

        if not order.is_pending:
            logger.info("iDEAL source %s already handled (order=%s)", source_id, order.number)
            return

        result = self.orchestrator.ideal_charge(order, source)
        if result is None:
            logger.error("iDEAL charge failed for order %s -CHECK PREVIOUS LOGS-", order.number)
