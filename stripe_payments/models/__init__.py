"""
Stripe Payments: models package entrypoint.

Models live in one module each; importing them here lets Django register them.
"""

from .customer import Customer
from .order import Order
from .order_status import OrderStatus
from .payment_form import PaymentForm, PaymentFormPlan

__all__ = [
    "Customer",
    "Order",
    "OrderStatus",
    "PaymentForm",
    "PaymentFormPlan",
]
