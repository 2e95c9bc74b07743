"""
stripe_payments.views

JSON endpoints for the payment forms.

Envelope (every response):
    {"ok": bool, "ver": VER, "data": {...} | null, "error": {"code", "message"} | null}

Endpoints
- POST pay/                          card payment (charge or subscription)
- POST ideal/                        start an iDEAL payment, returns the bank redirect URL
- POST webhook/                      Stripe webhook (signature verified)
- POST order-statuses/reorder/       staff only
- POST order-statuses/<id>/delete/   staff only

Status codes
- 400 bad body / payment not completed
- 404 unknown payment form or order status
- 409 order status in use
- 500 misconfigured (missing plan, webhook secret), or webhook handler error
- 502 Stripe error re-raised in development mode

========= CHANGE LOG =========
2026-03-02 • ADD: pay/, ideal/, webhook/ endpoints.
2026-03-09 • ADD: staff endpoints for order status reorder/delete.
2026-03-16 • FIX: staff endpoints are no longer csrf_exempt (session auth needs the CSRF check).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple

import stripe
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .conf import get_payments_config
from .exceptions import (
    OrderStatusNotFound,
    PaymentFormNotFound,
    PlanNotFound,
    PlanRequired,
    StripePaymentsError,
)
from .serializers import OrderSerializer
from .services import build_orchestrator
from .services.order_statuses import OrderStatusRegistry
from .services.payments import stripe_value

logger = logging.getLogger(__name__)

VER = "stripe-payments.v2026-03-09"


def _json_ok(data: Dict[str, Any], status: int = 200) -> JsonResponse:
    return JsonResponse({"ok": True, "data": data, "error": None, "ver": VER}, status=status)


def _json_error(message: str, status: int, code: str = "error", detail: Optional[str] = None) -> JsonResponse:
    err: Dict[str, Any] = {"message": message, "code": code}
    if detail:
        err["detail"] = detail[:500]
    return JsonResponse({"ok": False, "data": None, "error": err, "ver": VER}, status=status)


def _parse_json_body(request: HttpRequest) -> Tuple[Optional[Dict[str, Any]], Optional[JsonResponse]]:
    try:
        raw = request.body.decode("utf-8") if request.body else ""
    except UnicodeDecodeError:
        return None, _json_error("Unable to read request body.", 400, code="invalid_body")

    if not raw.strip():
        return None, _json_error("Missing JSON body.", 400, code="missing_body")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None, _json_error("Invalid JSON.", 400, code="invalid_json")
    if not isinstance(data, dict):
        return None, _json_error("JSON body must be an object.", 400, code="invalid_json")
    return data, None


def _config_error_response(e: StripePaymentsError) -> JsonResponse:
    if isinstance(e, PaymentFormNotFound):
        return _json_error(str(e), 404, code="form_not_found")
    if isinstance(e, (PlanRequired, PlanNotFound)):
        return _json_error(str(e), 500, code="plan_misconfigured")
    return _json_error(str(e), 500, code="misconfigured")


def _staff_only(request: HttpRequest) -> Optional[JsonResponse]:
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated and user.is_staff):
        return _json_error("Staff access required.", 403, code="forbidden")
    return None


@csrf_exempt
@require_POST
def pay(request: HttpRequest) -> JsonResponse:
    """
    Body: {"paymentType": 1, "payment": {"token", "formId", "amount", "email", ...}}
    """
    body, err = _parse_json_body(request)
    if err:
        return err

    orchestrator = build_orchestrator()
    try:
        order = orchestrator.process_payment(body)
    except StripePaymentsError as e:
        logger.error("Stripe Payments misconfigured: %s", e)
        return _config_error_response(e)
    except stripe.StripeError as e:
        return _json_error("Payment provider error.", 502, code="stripe_error", detail=str(e))

    if order is None:
        return _json_error("Unable to process the payment.", 400, code="payment_failed")

    return _json_ok({"order": OrderSerializer(order).data})


@csrf_exempt
@require_POST
def ideal(request: HttpRequest) -> JsonResponse:
    """
    Body: {"paymentType": 2, "payment": {...}, "email": "...", "idealBank": "ing"}
    """
    body, err = _parse_json_body(request)
    if err:
        return err

    orchestrator = build_orchestrator()
    try:
        result = orchestrator.process_ideal_payment(body, body.get("email"))
    except StripePaymentsError as e:
        logger.error("Stripe Payments misconfigured: %s", e)
        return _config_error_response(e)
    except stripe.StripeError as e:
        return _json_error("Payment provider error.", 502, code="stripe_error", detail=str(e))

    if result is None:
        return _json_error("Unable to start the iDEAL payment.", 400, code="payment_failed")

    source = result["source"]
    redirect = stripe_value(source, "redirect") or {}
    return _json_ok(
        {
            "order": OrderSerializer(result["order"]).data,
            "source_id": stripe_value(source, "id"),
            "redirect_url": stripe_value(redirect, "url"),
        }
    )


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> JsonResponse:
    """
    Verifies the Stripe signature, then hands the event to webhook subscribers.
    Handler errors return 500 so Stripe retries.
    """
    secret = get_payments_config().webhook_secret
    if not secret:
        logger.error("Stripe webhook misconfigured: missing STRIPE_WEBHOOK_SECRET")
        return _json_error("Webhook not configured.", 500, code="misconfigured")

    payload = request.body
    sig_header = request.META.get("HTTP_STRIPE_SIGNATURE", "")
    if not sig_header:
        return _json_error("Missing Stripe-Signature header.", 400, code="missing_signature")

    try:
        stripe.Webhook.construct_event(payload=payload, sig_header=sig_header, secret=secret)
    except ValueError:
        return _json_error("Invalid JSON payload.", 400, code="invalid_payload")
    except stripe.SignatureVerificationError:
        return _json_error("Signature verification failed.", 400, code="bad_signature")

    # Signature checked; subscribers get the plain decoded payload.
    event = json.loads(payload)
    event_type = str(event.get("type") or "")
    logger.info("Stripe webhook received: type=%s id=%s", event_type, event.get("id"))

    try:
        build_orchestrator().trigger_webhook_event(event)
    except Exception as e:
        logger.exception("Stripe webhook: handler error type=%s", event_type)
        return _json_error("Webhook handler failed.", 500, code="handler_error", detail=str(e))

    return _json_ok({"event": event_type})


@require_POST
def reorder_order_statuses(request: HttpRequest) -> JsonResponse:
    """Body: {"ids": [3, 1, 2]}"""
    denied = _staff_only(request)
    if denied:
        return denied

    body, err = _parse_json_body(request)
    if err:
        return err

    ids = body.get("ids")
    if not isinstance(ids, list):
        return _json_error("ids must be a list.", 400, code="invalid_ids")
    try:
        ids = [int(i) for i in ids]
    except (TypeError, ValueError):
        return _json_error("ids must be integers.", 400, code="invalid_ids")

    try:
        OrderStatusRegistry().reorder_order_statuses(ids)
    except OrderStatusNotFound as e:
        return _json_error(str(e), 404, code="status_not_found")

    return _json_ok({"ids": ids})


@require_POST
def delete_order_status(request: HttpRequest, status_id: int) -> JsonResponse:
    denied = _staff_only(request)
    if denied:
        return denied

    registry = OrderStatusRegistry()
    if registry.get_order_status_by_id(status_id) is None:
        return _json_error(f"No Order Status exists with the ID “{status_id}”.", 404, code="status_not_found")

    if not registry.delete_order_status_by_id(status_id):
        return _json_error("Order status is in use or is the last one.", 409, code="status_in_use")

    return _json_ok({"deleted": status_id})
