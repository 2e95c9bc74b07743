"""
stripe_payments.conf

Centralized, settings/env-driven configuration for the payments app.

SETTINGS
    STRIPE_PAYMENTS = {
        "MODE": "test" | "live",
        "ENABLE_TAXES": bool, "TAX": "21.0",
        "ENABLE_CUSTOMER_NOTIFICATION": bool, ...
    }

Any key missing from the dict falls back to an env var of the same name
prefixed with STRIPE_PAYMENTS_ (e.g. STRIPE_PAYMENTS_MODE).

ENV (Stripe credentials, mode-aware)
- STRIPE_TEST_SECRET_KEY  (when mode=test)
- STRIPE_LIVE_SECRET_KEY  (when mode=live)
- STRIPE_SECRET_KEY       (legacy fallback for either mode)
- STRIPE_WEBHOOK_SECRET   (webhook signature verification)

========= CHANGE LOG =========
2026-03-02 • ADD: PaymentsConfig dataclass, mode-aware key resolution.
2026-03-09 • ADD: raise_api_errors (defaults to DEBUG) for Stripe error policy.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from django.conf import settings


@dataclass(frozen=True)
class PaymentsConfig:
    mode: str
    secret_key: str
    webhook_secret: str

    enable_taxes: bool
    tax: Decimal

    raise_api_errors: bool
    site_url: str

    enable_customer_notification: bool
    customer_notification_subject: str
    customer_notification_sender_name: str
    customer_notification_sender_email: str
    customer_notification_reply_to_email: str
    customer_template_override: str

    enable_admin_notification: bool
    admin_notification_subject: str
    admin_notification_sender_name: str
    admin_notification_sender_email: str
    admin_notification_reply_to_email: str
    admin_notification_recipients: str
    admin_template_override: str

    @property
    def test_mode(self) -> bool:
        return self.mode == "test"

    @property
    def taxes_enabled(self) -> bool:
        return bool(self.enable_taxes and self.tax)

    def admin_recipients(self) -> List[str]:
        return [e.strip() for e in (self.admin_notification_recipients or "").split(",") if e.strip()]


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


def _setting(key: str, default: Any = None) -> Any:
    conf = getattr(settings, "STRIPE_PAYMENTS", None) or {}
    if key in conf:
        return conf[key]
    return _env(f"STRIPE_PAYMENTS_{key}", default)


def _bool(val: Any) -> bool:
    if isinstance(val, bool):
        return val
    return str(val or "").strip().lower() in ("1", "true", "yes", "on")


def _decimal(val: Any) -> Decimal:
    try:
        return Decimal(str(val or "0").strip())
    except InvalidOperation:
        return Decimal(0)


def _stripe_mode() -> str:
    """
    Returns "test" or "live". Defaults to "test" so a fresh install never
    bills real cards.
    """
    raw = str(_setting("MODE", "test") or "test").strip().lower()
    return "live" if raw == "live" else "test"


def _resolve_secret_key(mode: str) -> str:
    if mode == "test":
        key = _env("STRIPE_TEST_SECRET_KEY")
    else:
        key = _env("STRIPE_LIVE_SECRET_KEY")
    if not key:
        key = _env("STRIPE_SECRET_KEY") or getattr(settings, "STRIPE_SECRET_KEY", None)
    return key or ""


def get_payments_config() -> PaymentsConfig:
    mode = _stripe_mode()
    default_sender = getattr(settings, "DEFAULT_FROM_EMAIL", "") or "no-reply@localhost"
    raise_errors = _setting("RAISE_API_ERRORS", None)

    return PaymentsConfig(
        mode=mode,
        secret_key=_resolve_secret_key(mode),
        webhook_secret=_env("STRIPE_WEBHOOK_SECRET") or getattr(settings, "STRIPE_WEBHOOK_SECRET", None) or "",
        enable_taxes=_bool(_setting("ENABLE_TAXES", False)),
        tax=_decimal(_setting("TAX", "0")),
        raise_api_errors=settings.DEBUG if raise_errors is None else _bool(raise_errors),
        site_url=str(_setting("SITE_URL", getattr(settings, "DEPLOY_BASE_URL", "")) or "").rstrip("/"),
        enable_customer_notification=_bool(_setting("ENABLE_CUSTOMER_NOTIFICATION", True)),
        customer_notification_subject=_setting(
            "CUSTOMER_NOTIFICATION_SUBJECT", "Order #{{ order.number }} received"
        ),
        customer_notification_sender_name=_setting("CUSTOMER_NOTIFICATION_SENDER_NAME", ""),
        customer_notification_sender_email=_setting("CUSTOMER_NOTIFICATION_SENDER_EMAIL", default_sender),
        customer_notification_reply_to_email=_setting("CUSTOMER_NOTIFICATION_REPLY_TO_EMAIL", ""),
        customer_template_override=_setting("CUSTOMER_TEMPLATE_OVERRIDE", ""),
        enable_admin_notification=_bool(_setting("ENABLE_ADMIN_NOTIFICATION", False)),
        admin_notification_subject=_setting(
            "ADMIN_NOTIFICATION_SUBJECT", "New payment received: order #{{ order.number }}"
        ),
        admin_notification_sender_name=_setting("ADMIN_NOTIFICATION_SENDER_NAME", ""),
        admin_notification_sender_email=_setting("ADMIN_NOTIFICATION_SENDER_EMAIL", default_sender),
        admin_notification_reply_to_email=_setting("ADMIN_NOTIFICATION_REPLY_TO_EMAIL", ""),
        admin_notification_recipients=_setting("ADMIN_NOTIFICATION_RECIPIENTS", ""),
        admin_template_override=_setting("ADMIN_TEMPLATE_OVERRIDE", ""),
    )
