"""
stripe_payments.gateway

Thin wrapper over the Stripe SDK calls the payment flows need.

Every call passes the API key explicitly instead of mutating the global
stripe.api_key, so test and live keys can coexist in one process. Services
receive a gateway instance; tests inject a fake with the same methods.

Nothing here catches Stripe errors: classification and the dev-mode re-raise
policy live in PaymentOrchestrator._guard().
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import stripe

logger = logging.getLogger(__name__)


class StripeGateway:
    def __init__(self, api_key: str, stripe_version: Optional[str] = None) -> None:
        self.api_key = api_key
        self.stripe_version = stripe_version

    def _opts(self) -> Dict[str, Any]:
        opts: Dict[str, Any] = {"api_key": self.api_key}
        if self.stripe_version:
            opts["stripe_version"] = self.stripe_version
        return opts

    # ---- customers ----
    def create_customer(self, email: str, source: str):
        logger.info("Stripe: creating customer email=%s", email)
        return stripe.Customer.create(email=email, source=source, **self._opts())

    def retrieve_customer(self, customer_id: str):
        return stripe.Customer.retrieve(customer_id, **self._opts())

    def update_customer_source(self, customer_id: str, source: str):
        """Attach a new payment source; it becomes the customer's default."""
        return stripe.Customer.modify(customer_id, source=source, **self._opts())

    def set_default_source(self, customer_id: str, source: str):
        return stripe.Customer.modify(customer_id, default_source=source, **self._opts())

    # ---- one-time payments ----
    def create_charge(self, **params: Any):
        return stripe.Charge.create(**params, **self._opts())

    def create_invoice_item(self, **params: Any):
        return stripe.InvoiceItem.create(**params, **self._opts())

    # ---- recurring ----
    def retrieve_plan(self, plan_id: str):
        return stripe.Plan.retrieve(plan_id, **self._opts())

    def create_plan(self, **params: Any):
        return stripe.Plan.create(**params, **self._opts())

    def create_subscription(
        self,
        customer_id: str,
        plan_id: str,
        *,
        metadata: Optional[Dict[str, Any]] = None,
        tax_percent: Any = None,
        source: Optional[str] = None,
    ):
        params: Dict[str, Any] = {
            "customer": customer_id,
            "items": [{"plan": plan_id}],
            "metadata": metadata or {},
        }
        if tax_percent:
            params["tax_percent"] = str(tax_percent)
        if source:
            params["default_source"] = source
        return stripe.Subscription.create(**params, **self._opts())

    # ---- bank redirect sources (iDEAL / SEPA) ----
    def create_source(self, **params: Any):
        return stripe.Source.create(**params, **self._opts())
