"""
stripe_payments.events

Explicit observer hooks, invoked synchronously by the services that own the
state transition:

- order_complete(order)                     after a New order is committed
- before_send_notification(message, type)   before each notification email
- webhook(event)                            for every verified Stripe event

Subscribers are plain callables. A subscriber that raises propagates to the
caller, the same way Django signal receivers behave with send().
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List

logger = logging.getLogger(__name__)

Subscriber = Callable[..., Any]


class EventHooks:
    ORDER_COMPLETE = "order_complete"
    BEFORE_SEND_NOTIFICATION = "before_send_notification"
    WEBHOOK = "webhook"

    NAMES = (ORDER_COMPLETE, BEFORE_SEND_NOTIFICATION, WEBHOOK)

    def __init__(self) -> None:
        self._subscribers = {name: [] for name in self.NAMES}

    def subscribe(self, name: str, fn: Subscriber) -> Subscriber:
        if name not in self._subscribers:
            raise ValueError(f"Unknown event hook: {name!r}")
        if fn not in self._subscribers[name]:
            self._subscribers[name].append(fn)
        return fn

    def unsubscribe(self, name: str, fn: Subscriber) -> None:
        subs = self._subscribers.get(name) or []
        if fn in subs:
            subs.remove(fn)

    def subscribers(self, name: str) -> List[Subscriber]:
        return list(self._subscribers.get(name) or [])

    def fire(self, name: str, *args: Any) -> None:
        for fn in self.subscribers(name):
            logger.debug("event %s -> %r", name, fn)
            fn(*args)

    # Convenience decorators
    def on_order_complete(self, fn: Subscriber) -> Subscriber:
        return self.subscribe(self.ORDER_COMPLETE, fn)

    def on_before_send_notification(self, fn: Subscriber) -> Subscriber:
        return self.subscribe(self.BEFORE_SEND_NOTIFICATION, fn)

    def on_webhook(self, fn: Subscriber) -> Subscriber:
        return self.subscribe(self.WEBHOOK, fn)
