"""
stripe_payments.services.payments

Order lifecycle for a payment-form submission:

    submission -> Order (in memory) -> Stripe customer -> one payment strategy
               -> finalize (save order, save stock, then completion hook)

Strategies (picked from the payment form + submission):
- subscriptions, single plan, fixed amount      setup fee + subscribe to the form's plan
- subscriptions, single plan, custom amount     setup fee + one-off plan at the entered amount
- subscriptions, multiple plans                 setup fee from the plan matrix + subscribe
- no subscriptions, recurring toggle on         one-off recurring plan at the custom amount
- otherwise                                     single charge

iDEAL is two-phase: process_ideal_payment() creates the bank source and a
Pending order; the source.chargeable webhook calls ideal_charge(), which
replays the captured payload through process_payment().

Error policy:
- bad client input (token/formId/amount/email)  logged, returns None
- missing payment form or plan                  raised (deployment misconfigured)
- Stripe API errors                             logged by category; re-raised only
                                                when config.raise_api_errors (DEBUG)
- persistence errors after a remote success     logged, returns None; the remote
                                                charge is NOT reversed
- order_complete subscriber raising             logged; the paid order is returned

Totals: Order.total_price is set from the submitted minor-unit amount by
_apply_total(), the single conversion point used by both the iDEAL pending
save and finish_order(), so no flow converts twice.
"""

from __future__ import annotations

import json
import logging
import time
from decimal import Decimal
from typing import Any, Callable, Dict, Optional
from urllib.parse import urljoin

import stripe
from django.core.serializers.json import DjangoJSONEncoder

from ..conf import PaymentsConfig
from ..currency import to_major_units, to_minor_units
from ..enums import IDEAL_CURRENCY, OrderState, PaymentType, SubscriptionType
from ..events import EventHooks
from ..exceptions import PaymentFormNotFound, PlanNotFound, PlanRequired, StripePaymentsError
from ..metadata import flatten_metadata, get_post_data, get_shipping
from ..models import Order, PaymentForm
from ..serializers import (
    PAYMENT_FIELD_GROUP,
    IdealSubmissionSerializer,
    Submission,
    parse_submission,
)
from .customers import CustomerResolver
from .orders import OrderRepository, generate_random_str
from .payment_forms import PaymentFormRepository

logger = logging.getLogger(__name__)

# Used when the bank does not report the account holder's name.
SEPA_PLACEHOLDER_NAME = "Jenny Rosen"


class PaymentOrchestrator:
    def __init__(
        self,
        *,
        orders: OrderRepository,
        customers: CustomerResolver,
        forms: PaymentFormRepository,
        gateway,
        hooks: EventHooks,
        config: PaymentsConfig,
    ) -> None:
        self.orders = orders
        self.customers = customers
        self.forms = forms
        self.gateway = gateway
        self.hooks = hooks
        self.config = config

    # ------------------------------------------------------------------
    # Order population
    # ------------------------------------------------------------------
    def populate_order(self, submission: Submission, is_pending: bool = False) -> Order:
        order = Order(
            order_status_id=OrderState.PENDING if is_pending else OrderState.NEW,
            number=self.orders.generate_order_number(),
            email=submission.email,
            # Minor units for now; _apply_total() converts right before saving.
            total_price=submission.amount,
            quantity=submission.quantity or 1,
            shipping=submission.shipping_amount or Decimal("0"),
            tax=submission.tax_amount or Decimal("0"),
            discount=submission.discount_amount or Decimal("0"),
            payment_type=submission.payment_type,
            test_mode=submission.test_mode,
        )

        address = submission.address
        if address is not None:
            order.address_city = address.get("city") or ""
            order.address_country = address.get("country") or ""
            order.address_country_code = address.get("country_code") or ""
            order.address_state = address.get("state") or ""
            order.address_name = address.get("name") or ""
            order.address_street = address.get("line1") or ""
            order.address_zip = address.get("zip") or ""

        if submission.metadata:
            order.variants = json.dumps(submission.metadata, cls=DjangoJSONEncoder)

        return order

    # ------------------------------------------------------------------
    # Card / standard flow
    # ------------------------------------------------------------------
    def process_payment(self, post_data: Dict[str, Any], order: Optional[Order] = None) -> Optional[Order]:
        submission, errors = parse_submission(post_data)
        if submission is None:
            logger.error("Unable to process payment, invalid submission: %s", json.dumps(errors, default=str))
            return None

        payment_form = self._get_payment_form(submission.form_id)

        if submission.payment_type == PaymentType.IDEAL:
            # Bill in the currency the chargeable source was created in.
            currency = (submission.currency or IDEAL_CURRENCY).upper()
        else:
            currency = payment_form.currency

        if order is None:
            order = self.populate_order(submission)
        order.currency = currency
        order.payment_form = payment_form

        stripe_id = self._execute_strategy(submission, payment_form, order, currency)

        if not stripe_id:
            logger.error("Something went wrong making the charge to Stripe. -CHECK PREVIOUS LOGS-")
            return None

        order.stripe_transaction_id = stripe_id
        return self.finish_order(order, payment_form, submission)

    def _execute_strategy(
        self,
        submission: Submission,
        payment_form: PaymentForm,
        order: Order,
        currency: str,
    ) -> Optional[str]:
        # Configuration checks happen before any remote call.
        plan_id = None
        if payment_form.enable_subscriptions:
            if payment_form.subscription_type == SubscriptionType.MULTIPLE_PLANS:
                plan_id = submission.plan_id
                if not plan_id:
                    raise PlanRequired()
            elif not payment_form.enable_custom_plan_amount:
                plan_id = payment_form.single_plan_id
                if not plan_id:
                    raise PlanRequired()

        customer_and_flag = self._guard(
            "resolve customer",
            self.customers.get_customer,
            order.email,
            submission.token,
            order.test_mode,
        )
        if customer_and_flag is None:
            return None
        customer, is_new = customer_and_flag

        if payment_form.enable_subscriptions:
            subscription = self._guard(
                "create subscription",
                self._subscribe,
                submission,
                payment_form,
                customer,
                is_new,
                plan_id,
                currency,
            )
            return stripe_value(subscription, "id")

        stripe_id = None
        # A one-time payment the customer turned into a recurring one.
        if submission.recurring_toggle and submission.custom_amount and submission.custom_amount > 0:
            subscription = self._guard(
                "create recurring payment",
                self.add_recurring_payment,
                customer,
                submission,
                payment_form,
                currency,
            )
            stripe_id = stripe_value(subscription, "id")

        if stripe_id is None:
            charge = self.stripe_charge(submission, currency, customer, is_new, order)
            stripe_id = stripe_value(charge, "id")

        return stripe_id

    def _subscribe(
        self,
        submission: Submission,
        payment_form: PaymentForm,
        customer,
        is_new: bool,
        plan_id: Optional[str],
        currency: str,
    ):
        if payment_form.subscription_type == SubscriptionType.MULTIPLE_PLANS:
            setup_fee = self.get_setup_fee_from_matrix(plan_id, payment_form)
            if setup_fee:
                self.add_one_time_setup_fee(customer, setup_fee, payment_form, currency)
            return self.add_plan_to_customer(customer, plan_id, submission)

        if not payment_form.enable_custom_plan_amount:
            if payment_form.single_plan_setup_fee:
                self.add_one_time_setup_fee(customer, payment_form.single_plan_setup_fee, payment_form, currency)
            return self.add_plan_to_customer(customer, plan_id, submission)

        if submission.custom_plan_amount and submission.custom_plan_amount > 0:
            if payment_form.single_plan_setup_fee:
                self.add_one_time_setup_fee(customer, payment_form.single_plan_setup_fee, payment_form, currency)
            return self.add_custom_plan(customer, submission, payment_form, currency, is_new)

        return None

    # ------------------------------------------------------------------
    # Finalize
    # ------------------------------------------------------------------
    def _apply_total(self, order: Order, submission: Submission) -> None:
        order.total_price = to_major_units(submission.minor_amount, order.currency)

    def finish_order(self, order: Order, payment_form: PaymentForm, submission: Submission) -> Optional[Order]:
        self._apply_total(order, submission)

        # Stock: no sufficiency check and no locking; concurrent buyers can oversell.
        save_payment_form = False
        if payment_form.has_finite_stock:
            payment_form.quantity -= order.quantity
            save_payment_form = True

        try:
            saved = self.orders.save_order(order, notify=False)
        except Exception:
            logger.exception("Something went wrong saving the Stripe Order (stripe id=%s)", order.stripe_transaction_id)
            return None

        if not saved:
            logger.error(
                "Something went wrong saving the Stripe Order: %s",
                json.dumps(getattr(order, "validation_errors", {}), default=str),
            )
            return None

        if save_payment_form:
            try:
                form_saved = self.forms.save_payment_form(payment_form, validate=False)
            except Exception:
                logger.exception("Something went wrong updating the payment form stock (form=%s)", payment_form.pk)
                return None
            if not form_saved:
                logger.error("Something went wrong updating the payment form stock (form=%s)", payment_form.pk)
                return None

        logger.info("Stripe Payments - Order Created: %s", order.number)

        # Order and stock are committed and the customer is charged; a failing
        # subscriber is logged and the paid order is still returned.
        try:
            self.orders.complete_order(order)
        except Exception:
            logger.exception("order_complete subscriber failed (order=%s)", order.number)

        return order

    # ------------------------------------------------------------------
    # iDEAL / SEPA
    # ------------------------------------------------------------------
    def process_ideal_payment(self, post_data: Dict[str, Any], email: Optional[str]) -> Optional[Dict[str, Any]]:
        """
        Phase 1: create the iDEAL source + a Pending order, then the caller
        redirects the customer to source.redirect.url.
        """
        post_data = dict(post_data)
        group = dict(post_data.get(PAYMENT_FIELD_GROUP) or {})
        group["email"] = email or ""
        post_data[PAYMENT_FIELD_GROUP] = group

        submission, errors = parse_submission(post_data, serializer_class=IdealSubmissionSerializer)
        if submission is None:
            logger.error("Unable to start iDEAL payment, invalid submission: %s", json.dumps(errors, default=str))
            return None

        payment_form = self._get_payment_form(submission.form_id)

        captured = get_post_data(post_data)

        order = self.populate_order(submission, is_pending=True)
        order.payment_type = submission.payment_type or PaymentType.IDEAL
        order.post_data = json.dumps(captured, cls=DjangoJSONEncoder)
        order.currency = IDEAL_CURRENCY
        order.payment_form = payment_form

        options: Dict[str, Any] = {
            "type": "ideal",
            "amount": submission.minor_amount,
            "currency": IDEAL_CURRENCY.lower(),
            "owner": {"email": submission.email},
            "redirect": {"return_url": self._return_url(payment_form)},
            "metadata": flatten_metadata(submission.metadata),
        }
        bank = post_data.get("idealBank")
        if bank:
            options["ideal"] = {"bank": bank}

        source = self._guard("create iDEAL source", self.gateway.create_source, **options)
        source_id = stripe_value(source, "id")
        if not source_id:
            logger.error("Something went wrong creating the iDEAL source. -CHECK PREVIOUS LOGS-")
            return None

        order.stripe_transaction_id = source_id
        self._apply_total(order, submission)

        try:
            saved = self.orders.save_order(order)
        except Exception:
            logger.exception("Something went wrong saving the iDEAL Order (source=%s)", source_id)
            return None
        if not saved:
            logger.error(
                "Something went wrong saving the Stripe Order: %s",
                json.dumps(getattr(order, "validation_errors", {}), default=str),
            )
            return None

        return {"order": order, "source": source}

    def ideal_charge(self, order: Order, source: Dict[str, Any]) -> Optional[Order]:
        """
        Phase 2 (source.chargeable webhook): charge or subscribe with the now
        chargeable source by replaying the captured payload.
        """
        payment_form = order.payment_form
        if payment_form is None:
            raise PaymentFormNotFound(None)

        post_data = order.post_data_dict
        data = dict(post_data.get(PAYMENT_FIELD_GROUP) or {})
        token = order.stripe_transaction_id

        if payment_form.enable_subscriptions or (data.get("recurringToggle") or "").lower() == "on":
            # An iDEAL source is single-use; recurring billing needs a SEPA mandate.
            token = self.get_sepa_source_with_ideal(token, source)
            if not token:
                logger.error("Unable to create SEPA Direct Debit source for order %s", order.number)
                return None

        data["token"] = token
        data["amount"] = stripe_value(source, "amount")
        data["currency"] = stripe_value(source, "currency")
        post_data[PAYMENT_FIELD_GROUP] = data
        post_data.setdefault("paymentType", PaymentType.IDEAL)

        order.order_status_id = OrderState.NEW

        return self.process_payment(post_data, order)

    def get_sepa_source_with_ideal(self, token: str, source: Dict[str, Any]) -> Optional[str]:
        owner = stripe_value(source, "owner") or {}
        name = stripe_value(owner, "verified_name") or stripe_value(owner, "name") or SEPA_PLACEHOLDER_NAME

        sepa = self._guard(
            "create SEPA source",
            self.gateway.create_source,
            type="sepa_debit",
            sepa_debit={"ideal": token},
            currency=IDEAL_CURRENCY.lower(),
            owner={"name": name},
        )
        return stripe_value(sepa, "id")

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------
    def trigger_webhook_event(self, event: Dict[str, Any]) -> None:
        logger.info("Triggering Webhook event type=%s", stripe_value(event, "type"))
        self.hooks.fire(EventHooks.WEBHOOK, event)

    # ------------------------------------------------------------------
    # Stripe operations
    # ------------------------------------------------------------------
    def stripe_charge(self, submission: Submission, currency: str, customer, is_new: bool, order: Order):
        if not is_new and order.payment_type == PaymentType.IDEAL:
            # Make the chargeable bank source the one we bill.
            self._guard("set default source", self.gateway.set_default_source, customer.id, submission.token)

        params: Dict[str, Any] = {
            "amount": submission.minor_amount,
            "currency": currency,
            "customer": customer.id,
            "description": f"Order from {submission.email}",
            "metadata": flatten_metadata(submission.metadata),
        }
        if submission.address:
            params["shipping"] = get_shipping(submission.address)

        return self.charge(params)

    def charge(self, params: Dict[str, Any]):
        return self._guard("charge", self.gateway.create_charge, **params)

    def get_setup_fee_from_matrix(self, plan_id: str, payment_form: PaymentForm) -> Optional[Decimal]:
        return self.forms.get_setup_fee_from_matrix(plan_id, payment_form)

    def add_one_time_setup_fee(self, customer, amount: Decimal, payment_form: PaymentForm, currency: str):
        return self.gateway.create_invoice_item(
            customer=customer.id,
            amount=to_minor_units(amount, currency),
            currency=currency,
            description=f"One-time setup fee: {payment_form.name}",
        )

    def add_plan_to_customer(self, customer, plan_id: str, submission: Submission):
        try:
            self.gateway.retrieve_plan(plan_id)
        except stripe.InvalidRequestError as e:
            raise PlanNotFound(plan_id) from e

        return self.gateway.create_subscription(
            customer.id,
            plan_id,
            metadata=flatten_metadata(submission.metadata),
            tax_percent=self._tax_percent(),
        )

    def add_recurring_payment(self, customer, submission: Submission, payment_form: PaymentForm, currency: str):
        amount = submission.minor_amount
        if self.config.taxes_enabled:
            amount = self._minus_major(amount, submission.tax_amount, currency)

        plan_id = self._new_plan_id()
        self.gateway.create_plan(
            amount=amount,
            interval=payment_form.recurring_payment_type,
            product={"name": f"Plan for recurring payment from: {submission.email}"},
            currency=currency,
            id=plan_id,
        )

        return self.gateway.create_subscription(
            customer.id,
            plan_id,
            metadata=flatten_metadata(submission.metadata),
            tax_percent=self._tax_percent(),
        )

    def add_custom_plan(
        self,
        customer,
        submission: Submission,
        payment_form: PaymentForm,
        currency: str,
        is_new: bool,
    ):
        amount = submission.minor_amount
        if self.config.taxes_enabled:
            amount = self._minus_major(amount, submission.tax_amount, currency)
        if payment_form.single_plan_setup_fee:
            # The fee was billed separately as an invoice item.
            amount = self._minus_major(amount, payment_form.single_plan_setup_fee, currency)

        plan_id = self._new_plan_id()
        plan: Dict[str, Any] = {
            "amount": amount,
            "interval": payment_form.custom_plan_frequency,
            "interval_count": payment_form.custom_plan_interval,
            "product": {"name": f"Custom Plan from: {submission.email}"},
            "currency": currency,
            "id": plan_id,
        }
        if payment_form.single_plan_trial_period:
            plan["trial_period_days"] = payment_form.single_plan_trial_period

        self.gateway.create_plan(**plan)

        return self.gateway.create_subscription(
            customer.id,
            plan_id,
            metadata=flatten_metadata(submission.metadata),
            tax_percent=self._tax_percent(),
            source=None if is_new else submission.token,
        )

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _get_payment_form(self, form_id: int) -> PaymentForm:
        payment_form = self.forms.get_payment_form_by_id(form_id)
        if payment_form is None:
            raise PaymentFormNotFound(form_id)
        return payment_form

    def _return_url(self, payment_form: PaymentForm) -> str:
        base = self.config.site_url or "/"
        if payment_form.return_url:
            return urljoin(base.rstrip("/") + "/", payment_form.return_url)
        return base

    def _tax_percent(self) -> Optional[Decimal]:
        return self.config.tax if self.config.taxes_enabled else None

    @staticmethod
    def _minus_major(minor_amount: int, major_amount: Decimal, currency: str) -> int:
        major = to_major_units(minor_amount, currency) - Decimal(major_amount or 0)
        return to_minor_units(major, currency)

    @staticmethod
    def _new_plan_id() -> str:
        return f"{int(time.time())}-{generate_random_str(6)}"

    def _guard(self, action: str, fn: Callable[..., Any], *args: Any, **kwargs: Any):
        """
        Run a Stripe call under the API error policy: log by category, re-raise
        only when raise_api_errors is on, otherwise return None.
        """
        try:
            return fn(*args, **kwargs)
        except StripePaymentsError:
            raise
        except stripe.CardError as e:
            logger.error("Stripe - declined error occurred (%s): %s", action, json.dumps(e.json_body, default=str))
            self._maybe_raise(e)
        except stripe.RateLimitError as e:
            logger.error("Stripe - Too many requests made to the API too quickly (%s): %s", action, e)
            self._maybe_raise(e)
        except stripe.InvalidRequestError as e:
            logger.error("Stripe - Invalid parameters were supplied to Stripe's API (%s): %s", action, e)
            self._maybe_raise(e)
        except stripe.AuthenticationError as e:
            logger.error("Stripe - Authentication with Stripe's API failed (%s): %s", action, e)
            self._maybe_raise(e)
        except stripe.APIConnectionError as e:
            logger.error("Stripe - Network communication with Stripe failed (%s): %s", action, e)
            self._maybe_raise(e)
        except stripe.StripeError as e:
            logger.error("Stripe - an error occurred (%s): %s", action, e)
            self._maybe_raise(e)
        except Exception as e:
            logger.exception("Stripe - something went wrong (%s): %s", action, e)
            self._maybe_raise(e)
        return None

    def _maybe_raise(self, exc: Exception) -> None:
        if self.config.raise_api_errors:
            raise exc


def stripe_value(obj: Any, key: str) -> Any:
    """Read a key from a dict or a StripeObject (both are mappings)."""
    if obj is None:
        return None
    try:
        return obj[key]
    except (KeyError, TypeError, IndexError):
        return getattr(obj, key, None)
