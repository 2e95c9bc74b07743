"""
stripe_payments.services

Default wiring for the payment services.

build_orchestrator() assembles one PaymentOrchestrator from the current
configuration:
- StripeGateway keyed for the configured mode
- NotificationDispatcher subscribed to order_complete
- IdealConfirmation subscribed to webhook
- any extra subscribers listed in settings.STRIPE_PAYMENTS["SUBSCRIBERS"]

SUBSCRIBERS maps a hook name to dotted paths of callables, e.g.
    {"order_complete": ["myshop.hooks.grant_access"]}
"""

from __future__ import annotations

from typing import Optional

from django.conf import settings
from django.utils.module_loading import import_string

from ..conf import PaymentsConfig, get_payments_config
from ..events import EventHooks
from ..gateway import StripeGateway
from .customers import CustomerResolver
from .ideal import IdealConfirmation
from .notifications import NotificationDispatcher
from .orders import OrderRepository
from .payment_forms import PaymentFormRepository
from .payments import PaymentOrchestrator


def _load_subscribers(hooks: EventHooks) -> None:
    conf = getattr(settings, "STRIPE_PAYMENTS", None) or {}
    for name, paths in (conf.get("SUBSCRIBERS") or {}).items():
        for path in paths:
            hooks.subscribe(name, import_string(path))


def build_orchestrator(
    config: Optional[PaymentsConfig] = None,
    gateway=None,
    hooks: Optional[EventHooks] = None,
) -> PaymentOrchestrator:
    config = config or get_payments_config()
    hooks = hooks or EventHooks()
    gateway = gateway or StripeGateway(config.secret_key)

    dispatcher = NotificationDispatcher(hooks=hooks, config=config)
    hooks.subscribe(EventHooks.ORDER_COMPLETE, dispatcher.notify_order_complete)

    orchestrator = PaymentOrchestrator(
        orders=OrderRepository(hooks=hooks),
        customers=CustomerResolver(gateway),
        forms=PaymentFormRepository(),
        gateway=gateway,
        hooks=hooks,
        config=config,
    )
    hooks.subscribe(EventHooks.WEBHOOK, IdealConfirmation(orchestrator))

    _load_subscribers(hooks)
    return orchestrator


__all__ = [
    "CustomerResolver",
    "IdealConfirmation",
    "NotificationDispatcher",
    "OrderRepository",
    "PaymentFormRepository",
    "PaymentOrchestrator",
    "build_orchestrator",
]
