"""
stripe_payments.services.notifications

Customer receipt + admin alert emails for completed orders.

Template lookup:
- default HTML templates: stripe_payments/emails/customer.html, admin.html
- an override template name from config is honored only if it exists under
  one of OVERRIDE_EXTENSIONS (checked through Django's template loaders)
- subjects are template strings rendered with {"order": order}

Sending never raises: failures are logged and reported as False, so an email
problem can't undo a payment that already went through.
"""

from __future__ import annotations

import logging
from email.utils import formataddr
from typing import List, Optional

from django.core.mail import EmailMultiAlternatives
from django.template import Context, Template, TemplateDoesNotExist
from django.template.loader import get_template, render_to_string

from ..conf import PaymentsConfig, get_payments_config
from ..events import EventHooks
from ..models import Order

logger = logging.getLogger(__name__)

EMAILS_PATH = "stripe_payments/emails/"
OVERRIDE_EXTENSIONS = (".html", ".txt")

CUSTOMER_TEXT_BODY = "Thank you! your order number is: {{ order.number }}"
ADMIN_TEXT_BODY = (
    "Congratulations! you have received a payment, total: {{ order.total_price }} "
    "order number: {{ order.number }}"
)

TYPE_CUSTOMER = "customer"
TYPE_ADMIN = "admin"


def _render_string(source: str, order: Order) -> str:
    return Template(source or "").render(Context({"order": order})).strip()


def resolve_template(default_name: str, override: str = "") -> str:
    """
    Override name if a template with one of the allowed extensions exists,
    otherwise the bundled default.
    """
    override = (override or "").strip()
    if override:
        for extension in OVERRIDE_EXTENSIONS:
            candidate = override + extension
            try:
                get_template(candidate)
            except TemplateDoesNotExist:
                continue
            return candidate
        logger.warning("Email template override %r not found; using default", override)
    return EMAILS_PATH + default_name


class NotificationDispatcher:
    def __init__(self, hooks: Optional[EventHooks] = None, config: Optional[PaymentsConfig] = None) -> None:
        self.hooks = hooks or EventHooks()
        self._config = config

    @property
    def config(self) -> PaymentsConfig:
        return self._config or get_payments_config()

    def send_customer_notification(self, order: Order) -> bool:
        cfg = self.config
        if not cfg.enable_customer_notification:
            return False

        return self._send(
            order,
            notification_type=TYPE_CUSTOMER,
            subject=cfg.customer_notification_subject,
            text_body=CUSTOMER_TEXT_BODY,
            template=resolve_template("customer.html", cfg.customer_template_override),
            sender_name=cfg.customer_notification_sender_name,
            sender_email=cfg.customer_notification_sender_email,
            reply_to=cfg.customer_notification_reply_to_email,
            recipients=[order.email],
        )

    def send_admin_notification(self, order: Order) -> bool:
        cfg = self.config
        if not cfg.enable_admin_notification:
            return False

        return self._send(
            order,
            notification_type=TYPE_ADMIN,
            subject=cfg.admin_notification_subject,
            text_body=ADMIN_TEXT_BODY,
            template=resolve_template("admin.html", cfg.admin_template_override),
            sender_name=cfg.admin_notification_sender_name,
            sender_email=cfg.admin_notification_sender_email,
            reply_to=cfg.admin_notification_reply_to_email,
            recipients=cfg.admin_recipients(),
        )

    def notify_order_complete(self, order: Order) -> None:
        """order_complete subscriber: send both emails."""
        self.send_customer_notification(order)
        self.send_admin_notification(order)

    def _send(
        self,
        order: Order,
        *,
        notification_type: str,
        subject: str,
        text_body: str,
        template: str,
        sender_name: str,
        sender_email: str,
        reply_to: str,
        recipients: List[str],
    ) -> bool:
        if not recipients:
            logger.error("Unable to send %s email: no recipients (order=%s)", notification_type, order.number)
            return False

        try:
            message = EmailMultiAlternatives(
                subject=_render_string(subject, order),
                body=_render_string(text_body, order),
                from_email=formataddr((sender_name, sender_email)) if sender_name else sender_email,
                to=recipients,
                reply_to=[reply_to] if reply_to else None,
            )
            message.attach_alternative(render_to_string(template, {"order": order}), "text/html")

            self.hooks.fire(EventHooks.BEFORE_SEND_NOTIFICATION, message, notification_type)

            sent = message.send(fail_silently=False)
        except Exception:
            logger.exception("Unable to send %s email (order=%s)", notification_type, order.number)
            return False

        if not sent:
            logger.error("Unable to send %s email (order=%s)", notification_type, order.number)
            return False

        logger.info("%s email sent successfully (order=%s)", notification_type.capitalize(), order.number)
        return True
