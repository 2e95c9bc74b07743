"""
stripe_payments.exceptions

Configuration and lookup errors. Bad client input is never raised (it is
logged and surfaced as a None result), so everything here points at a
misconfigured deployment or a stale id.
"""

from __future__ import annotations


class StripePaymentsError(Exception):
    """Base class for errors raised by this app."""


class PaymentFormNotFound(StripePaymentsError):
    def __init__(self, form_id):
        self.form_id = form_id
        super().__init__(f"Unable to find the payment form associated to the order (id={form_id}).")


class PlanRequired(StripePaymentsError):
    def __init__(self):
        super().__init__("Plan Id is required.")


class OrderNotFound(StripePaymentsError):
    def __init__(self, order_id):
        self.order_id = order_id
        super().__init__(f"No Order exists with the ID “{order_id}”.")


class OrderStatusNotFound(StripePaymentsError):
    def __init__(self, status_id):
        self.status_id = status_id
        super().__init__(f"No Order Status exists with the ID “{status_id}”.")


class PlanNotFound(StripePaymentsError):
    def __init__(self, plan_id):
        self.plan_id = plan_id
        super().__init__(f"Stripe plan “{plan_id}” does not exist.")
