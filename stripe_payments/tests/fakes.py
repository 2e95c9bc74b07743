"""
Test doubles for the payment services (no network).

FakeGateway mirrors StripeGateway's methods, records every call and returns
objects shaped like the Stripe responses the services read. Set
gateway.fail["create_charge"] = stripe.CardError(...) to make a call raise.
"""

from __future__ import annotations

import dataclasses
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple

import stripe

from stripe_payments.conf import PaymentsConfig, get_payments_config
from stripe_payments.enums import PaymentType
from stripe_payments.events import EventHooks
from stripe_payments.services import build_orchestrator


class FakeGateway:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.customers: Dict[str, SimpleNamespace] = {}
        self.plans = set()
        self.fail: Dict[str, Exception] = {}
        self._seq = 0

    # ---- helpers ----
    def _next_id(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}_test{self._seq}"

    def _record(self, name: str, **kwargs: Any) -> None:
        self.calls.append((name, kwargs))
        exc = self.fail.get(name)
        if exc is not None:
            raise exc

    def calls_to(self, name: str) -> List[Dict[str, Any]]:
        return [kw for n, kw in self.calls if n == name]

    # ---- customers ----
    def create_customer(self, email: str, source: str):
        self._record("create_customer", email=email, source=source)
        customer = SimpleNamespace(id=self._next_id("cus"), email=email, deleted=False)
        self.customers[customer.id] = customer
        return customer

    def retrieve_customer(self, customer_id: str):
        self._record("retrieve_customer", customer_id=customer_id)
        if customer_id not in self.customers:
            raise stripe.InvalidRequestError(f"No such customer: '{customer_id}'", "id")
        return self.customers[customer_id]

    def update_customer_source(self, customer_id: str, source: str):
        self._record("update_customer_source", customer_id=customer_id, source=source)
        return self.customers[customer_id]

    def set_default_source(self, customer_id: str, source: str):
        self._record("set_default_source", customer_id=customer_id, source=source)
        return self.customers.get(customer_id)

    # ---- one-time payments ----
    def create_charge(self, **params: Any):
        self._record("create_charge", **params)
        return SimpleNamespace(id=self._next_id("ch"), **params)

    def create_invoice_item(self, **params: Any):
        self._record("create_invoice_item", **params)
        return SimpleNamespace(id=self._next_id("ii"), **params)

    # ---- recurring ----
    def retrieve_plan(self, plan_id: str):
        self._record("retrieve_plan", plan_id=plan_id)
        if plan_id not in self.plans:
            raise stripe.InvalidRequestError(f"No such plan: '{plan_id}'", "id")
        return SimpleNamespace(id=plan_id)

    def create_plan(self, **params: Any):
        self._record("create_plan", **params)
        self.plans.add(params["id"])
        return SimpleNamespace(**params)

    def create_subscription(
        self,
        customer_id: str,
        plan_id: str,
        *,
        metadata: Optional[Dict[str, Any]] = None,
        tax_percent: Any = None,
        source: Optional[str] = None,
    ):
        self._record(
            "create_subscription",
            customer_id=customer_id,
            plan_id=plan_id,
            metadata=metadata,
            tax_percent=tax_percent,
            source=source,
        )
        return SimpleNamespace(id=self._next_id("sub"), plan=plan_id)

    # ---- sources ----
    def create_source(self, **params: Any):
        self._record("create_source", **params)
        source_id = self._next_id("src")
        return {
            "id": source_id,
            "object": "source",
            "type": params.get("type"),
            "amount": params.get("amount"),
            "currency": params.get("currency"),
            "owner": params.get("owner") or {},
            "redirect": {"url": f"https://hooks.stripe.com/redirect/authenticate/{source_id}"},
        }


def make_config(**overrides: Any) -> PaymentsConfig:
    return dataclasses.replace(get_payments_config(), **overrides)


def make_orchestrator(gateway: Optional[FakeGateway] = None, **config_overrides: Any):
    config_overrides.setdefault("raise_api_errors", False)
    return build_orchestrator(
        config=make_config(**config_overrides),
        gateway=gateway or FakeGateway(),
        hooks=EventHooks(),
    )


def payment_post(form_id: int, payment_type: int = PaymentType.CC, **fields: Any) -> Dict[str, Any]:
    """Build a submitted payload: {"paymentType": ..., "payment": {...}}."""
    payment: Dict[str, Any] = {
        "email": "buyer@example.com",
        "token": "tok_visa",
        "formId": form_id,
        "amount": "1050",
    }
    payment.update(fields)
    return {"paymentType": int(payment_type), "payment": payment}
