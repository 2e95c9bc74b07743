"""
stripe_payments.services.customers

Resolve the Stripe customer for a purchase, creating it on first use.

One cache row per (email, test_mode): repeat buyers reuse their Stripe
customer, and sandbox customers never leak into live mode (or back).
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

import stripe

from ..models import Customer

logger = logging.getLogger(__name__)


class CustomerResolver:
    def __init__(self, gateway) -> None:
        self.gateway = gateway

    def get_customer_reference(self, email: str, test_mode: bool = True) -> Optional[str]:
        record = Customer.objects.filter(email=email, test_mode=test_mode).first()
        return record.stripe_id if record else None

    def get_customer(self, email: str, token: str, test_mode: bool = True) -> Tuple[Any, bool]:
        """
        Returns (stripe_customer, is_new).

        Existing customer: the new token is attached as its default source.
        New customer: created with the token; the cache row is written.
        """
        record = Customer.objects.filter(email=email, test_mode=test_mode).first()
        stripe_customer = self._retrieve(record.stripe_id) if record else None

        if stripe_customer is not None:
            stripe_customer = self.gateway.update_customer_source(stripe_customer.id, token)
            return stripe_customer, False

        stripe_customer = self.gateway.create_customer(email=email, source=token)

        if record is None:
            Customer.objects.create(email=email, stripe_id=stripe_customer.id, test_mode=test_mode)
        else:
            # Remote customer was deleted; repoint the cache row.
            record.stripe_id = stripe_customer.id
            record.save(update_fields=["stripe_id", "date_updated"])

        logger.info("Stripe customer created: %s (test_mode=%s)", stripe_customer.id, test_mode)
        return stripe_customer, True

    def _retrieve(self, customer_id: str):
        try:
            customer = self.gateway.retrieve_customer(customer_id)
        except stripe.InvalidRequestError as e:
            logger.warning("Stripe customer %s could not be retrieved: %s", customer_id, e)
            return None

        if not getattr(customer, "id", None) or getattr(customer, "deleted", False):
            return None
        return customer
