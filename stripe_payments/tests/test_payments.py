"""
CHANGE LOG
- 2026-03-09: Payment orchestration tests against FakeGateway (no network).
  * one-time charge, zero-decimal currency, shipping + metadata shaping
  * input validation (missing token / NaN / non-positive or fractional amount) returns None
  * configuration errors raise (missing form, missing plan, unknown plan)
  * subscriptions: single plan, custom amount (tax + setup fee), multiple plans
  * recurring toggle, stock decrement, Stripe error policy
  * order_complete fires after order + stock are saved; a failing subscriber keeps the paid order
  * iDEAL two-phase flow (pending order -> source.chargeable -> New order)
"""

from __future__ import annotations

from decimal import Decimal
from unittest import mock

import stripe
from django.core import mail
from django.test import TestCase

from stripe_payments.enums import OrderState, PaymentType, SubscriptionType
from stripe_payments.exceptions import PaymentFormNotFound, PlanNotFound, PlanRequired
from stripe_payments.models import Customer, Order, PaymentForm, PaymentFormPlan
from stripe_payments.tests.fakes import FakeGateway, make_orchestrator, payment_post


def _form(**kwargs) -> PaymentForm:
    defaults = {"name": "T-Shirt", "handle": "t-shirt", "currency": "USD", "amount": Decimal("10.50")}
    defaults.update(kwargs)
    return PaymentForm.objects.create(**defaults)


class OneTimeChargeTests(TestCase):
    def setUp(self):
        self.gateway = FakeGateway()
        self.orchestrator = make_orchestrator(self.gateway)
        self.form = _form()

    def test_charge_creates_new_order_in_major_units(self):
        order = self.orchestrator.process_payment(payment_post(self.form.pk))

        self.assertIsNotNone(order)
        order.refresh_from_db()
        self.assertEqual(order.order_status_id, OrderState.NEW)
        self.assertEqual(order.total_price, Decimal("10.50"))
        self.assertEqual(order.currency, "USD")
        self.assertTrue(order.stripe_transaction_id.startswith("ch_"))
        self.assertEqual(order.payment_form_id, self.form.pk)
        self.assertEqual(len(order.number), 12)

        charge = self.gateway.calls_to("create_charge")[0]
        self.assertEqual(charge["amount"], 1050)
        self.assertEqual(charge["currency"], "USD")
        self.assertEqual(charge["description"], "Order from buyer@example.com")
        self.assertNotIn("shipping", charge)

    def test_customer_is_cached_and_reused(self):
        self.orchestrator.process_payment(payment_post(self.form.pk))
        self.orchestrator.process_payment(payment_post(self.form.pk, token="tok_second"))

        self.assertEqual(len(self.gateway.calls_to("create_customer")), 1)
        self.assertEqual(
            self.gateway.calls_to("update_customer_source")[0]["source"],
            "tok_second",
        )
        self.assertEqual(Customer.objects.filter(email="buyer@example.com").count(), 1)

    def test_zero_decimal_currency_is_not_divided(self):
        form = _form(name="Tea", handle="tea", currency="JPY")
        order = self.orchestrator.process_payment(payment_post(form.pk, amount="500"))

        self.assertEqual(order.total_price, Decimal("500"))
        self.assertEqual(self.gateway.calls_to("create_charge")[0]["amount"], 500)

    def test_address_and_metadata_are_shaped_for_stripe(self):
        post = payment_post(
            self.form.pk,
            address={
                "name": "Ada",
                "line1": "1 Main St",
                "city": "Springfield",
                "state": "IL",
                "zip": "62701",
                "country": "United States",
                "country_code": "US",
            },
            metadata={"size": "L", "colors": ["red", "blue"]},
        )
        order = self.orchestrator.process_payment(post)

        charge = self.gateway.calls_to("create_charge")[0]
        self.assertEqual(charge["metadata"], {"size": "L", "colors": "red - blue"})
        self.assertEqual(charge["shipping"]["address"]["postal_code"], "62701")
        self.assertEqual(charge["shipping"]["name"], "Ada")

        order.refresh_from_db()
        self.assertEqual(order.address_zip, "62701")
        self.assertEqual(order.address_country_code, "US")
        self.assertEqual(order.variants_dict, {"size": "L", "colors": ["red", "blue"]})

    def test_completion_sends_customer_email(self):
        order = self.orchestrator.process_payment(payment_post(self.form.pk))

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["buyer@example.com"])
        self.assertIn(order.number, mail.outbox[0].subject)


class InvalidSubmissionTests(TestCase):
    def setUp(self):
        self.gateway = FakeGateway()
        self.orchestrator = make_orchestrator(self.gateway)
        self.form = _form()

    def _assert_rejected(self, post):
        with self.assertLogs("stripe_payments.services.payments", level="ERROR"):
            self.assertIsNone(self.orchestrator.process_payment(post))
        self.assertEqual(self.gateway.calls, [])
        self.assertFalse(Order.objects.exists())

    def test_missing_token(self):
        post = payment_post(self.form.pk)
        del post["payment"]["token"]
        self._assert_rejected(post)

    def test_missing_form_id(self):
        post = payment_post(self.form.pk)
        del post["payment"]["formId"]
        self._assert_rejected(post)

    def test_nan_amount(self):
        self._assert_rejected(payment_post(self.form.pk, amount="NaN"))

    def test_non_positive_amount(self):
        self._assert_rejected(payment_post(self.form.pk, amount="0"))

    def test_fractional_minor_amount(self):
        self._assert_rejected(payment_post(self.form.pk, amount="0.5"))

    def test_fractional_amount_is_not_truncated(self):
        self._assert_rejected(payment_post(self.form.pk, amount="1050.9"))

    def test_unknown_form_raises(self):
        with self.assertRaises(PaymentFormNotFound):
            self.orchestrator.process_payment(payment_post(9999))
        self.assertEqual(self.gateway.calls, [])


class SubscriptionTests(TestCase):
    def setUp(self):
        self.gateway = FakeGateway()
        self.orchestrator = make_orchestrator(self.gateway)

    def test_single_plan_with_setup_fee(self):
        self.gateway.plans.add("gold")
        form = _form(
            enable_subscriptions=True,
            single_plan_info={"id": "gold"},
            single_plan_setup_fee=Decimal("5.00"),
        )

        order = self.orchestrator.process_payment(payment_post(form.pk))

        self.assertTrue(order.stripe_transaction_id.startswith("sub_"))
        fee = self.gateway.calls_to("create_invoice_item")[0]
        self.assertEqual(fee["amount"], 500)
        self.assertEqual(fee["description"], "One-time setup fee: T-Shirt")
        self.assertEqual(self.gateway.calls_to("create_subscription")[0]["plan_id"], "gold")
        self.assertEqual(self.gateway.calls_to("create_charge"), [])

    def test_single_plan_without_plan_id_raises(self):
        form = _form(enable_subscriptions=True, single_plan_info=None)
        with self.assertRaises(PlanRequired):
            self.orchestrator.process_payment(payment_post(form.pk))
        self.assertEqual(self.gateway.calls, [])

    def test_unknown_plan_raises(self):
        form = _form(enable_subscriptions=True, single_plan_info={"id": "missing"})
        with self.assertRaises(PlanNotFound):
            self.orchestrator.process_payment(payment_post(form.pk))
        self.assertFalse(Order.objects.exists())

    def test_multiple_plans_use_matrix_setup_fee(self):
        self.gateway.plans.update({"basic", "pro"})
        form = _form(enable_subscriptions=True, subscription_type=SubscriptionType.MULTIPLE_PLANS)
        PaymentFormPlan.objects.create(payment_form=form, plan_id="basic")
        PaymentFormPlan.objects.create(payment_form=form, plan_id="pro", setup_fee=Decimal("2.50"))

        order = self.orchestrator.process_payment(payment_post(form.pk, enupalMultiPlan="pro"))

        self.assertIsNotNone(order)
        self.assertEqual(self.gateway.calls_to("create_invoice_item")[0]["amount"], 250)
        self.assertEqual(self.gateway.calls_to("create_subscription")[0]["plan_id"], "pro")

    def test_multiple_plans_without_selection_raises(self):
        form = _form(enable_subscriptions=True, subscription_type=SubscriptionType.MULTIPLE_PLANS)
        with self.assertRaises(PlanRequired):
            self.orchestrator.process_payment(payment_post(form.pk))
        self.assertEqual(self.gateway.calls, [])

    def test_custom_plan_nets_out_tax_and_setup_fee(self):
        orchestrator = make_orchestrator(self.gateway, enable_taxes=True, tax=Decimal("21"))
        form = _form(
            enable_subscriptions=True,
            enable_custom_plan_amount=True,
            single_plan_setup_fee=Decimal("1.00"),
            single_plan_trial_period=14,
            custom_plan_frequency="week",
            custom_plan_interval=2,
        )

        post = payment_post(form.pk, amount="2000", taxAmount="3.00", customPlanAmount="20")
        order = orchestrator.process_payment(post)

        self.assertIsNotNone(order)
        plan = self.gateway.calls_to("create_plan")[0]
        # 20.00 - 3.00 tax - 1.00 setup fee
        self.assertEqual(plan["amount"], 1600)
        self.assertEqual(plan["interval"], "week")
        self.assertEqual(plan["interval_count"], 2)
        self.assertEqual(plan["trial_period_days"], 14)

        subscription = self.gateway.calls_to("create_subscription")[0]
        self.assertEqual(subscription["plan_id"], plan["id"])
        self.assertEqual(subscription["tax_percent"], Decimal("21"))
        # New customer: the token is already its default source.
        self.assertIsNone(subscription["source"])
        self.assertEqual(order.total_price, Decimal("20"))

    def test_recurring_toggle_creates_plan_instead_of_charge(self):
        form = _form(recurring_payment_type="year")

        post = payment_post(form.pk, recurringToggle="on", customAmount="10.50")
        order = self.orchestrator.process_payment(post)

        self.assertTrue(order.stripe_transaction_id.startswith("sub_"))
        plan = self.gateway.calls_to("create_plan")[0]
        self.assertEqual(plan["interval"], "year")
        self.assertEqual(plan["amount"], 1050)
        self.assertEqual(self.gateway.calls_to("create_charge"), [])


class StockAndErrorTests(TestCase):
    def setUp(self):
        self.gateway = FakeGateway()
        self.form = _form(has_unlimited_stock=False, quantity=5)

    def test_finite_stock_is_decremented(self):
        orchestrator = make_orchestrator(self.gateway)
        orchestrator.process_payment(payment_post(self.form.pk, quantity=2))

        self.form.refresh_from_db()
        self.assertEqual(self.form.quantity, 3)

    def test_unlimited_stock_is_untouched(self):
        form = _form(name="Mug", handle="mug", has_unlimited_stock=True, quantity=5)
        make_orchestrator(self.gateway).process_payment(payment_post(form.pk, quantity=2))

        form.refresh_from_db()
        self.assertEqual(form.quantity, 5)

    def test_card_error_is_logged_and_returns_none(self):
        self.gateway.fail["create_charge"] = stripe.CardError("Your card was declined.", "number", "card_declined")
        orchestrator = make_orchestrator(self.gateway)

        with self.assertLogs("stripe_payments.services.payments", level="ERROR") as logs:
            self.assertIsNone(orchestrator.process_payment(payment_post(self.form.pk)))

        self.assertTrue(any("declined" in line for line in logs.output))
        self.assertFalse(Order.objects.exists())
        self.form.refresh_from_db()
        self.assertEqual(self.form.quantity, 5)

    def test_card_error_reraised_in_development_mode(self):
        self.gateway.fail["create_charge"] = stripe.CardError("Your card was declined.", "number", "card_declined")
        orchestrator = make_orchestrator(self.gateway, raise_api_errors=True)

        with self.assertRaises(stripe.CardError):
            orchestrator.process_payment(payment_post(self.form.pk))

    def test_save_failure_after_charge_returns_none(self):
        orchestrator = make_orchestrator(self.gateway)

        with mock.patch.object(orchestrator.orders, "save_order", side_effect=RuntimeError("db down")):
            with self.assertLogs("stripe_payments.services.payments", level="ERROR"):
                self.assertIsNone(orchestrator.process_payment(payment_post(self.form.pk)))

        # The charge went through; it is not reversed.
        self.assertEqual(len(self.gateway.calls_to("create_charge")), 1)

    def test_failing_completion_subscriber_keeps_paid_order_and_stock(self):
        orchestrator = make_orchestrator(self.gateway)

        @orchestrator.hooks.on_order_complete
        def boom(order):
            raise RuntimeError("crm down")

        with self.assertLogs("stripe_payments.services.payments", level="ERROR"):
            order = orchestrator.process_payment(payment_post(self.form.pk, quantity=2))

        self.assertIsNotNone(order)
        self.assertEqual(Order.objects.get(pk=order.pk).order_status_id, OrderState.NEW)
        self.assertEqual(len(self.gateway.calls_to("create_charge")), 1)
        self.form.refresh_from_db()
        self.assertEqual(self.form.quantity, 3)

    def test_completion_fires_after_stock_is_saved(self):
        orchestrator = make_orchestrator(self.gateway)
        seen = []

        @orchestrator.hooks.on_order_complete
        def record_stock(order):
            seen.append(PaymentForm.objects.get(pk=self.form.pk).quantity)

        orchestrator.process_payment(payment_post(self.form.pk, quantity=2))

        self.assertEqual(seen, [3])


class IdealFlowTests(TestCase):
    def setUp(self):
        self.gateway = FakeGateway()
        self.orchestrator = make_orchestrator(self.gateway, site_url="https://shop.example.com")
        self.form = _form(return_url="thanks/")

    def _start(self, **fields):
        post = payment_post(self.form.pk, payment_type=PaymentType.IDEAL, **fields)
        del post["payment"]["token"]
        del post["payment"]["email"]
        post["idealBank"] = "ing"
        return self.orchestrator.process_ideal_payment(post, "klant@example.nl")

    def _chargeable(self, source):
        return {"id": "evt_1", "type": "source.chargeable", "data": {"object": source}}

    def test_phase_one_creates_pending_order_and_source(self):
        result = self._start()

        order = result["order"]
        order.refresh_from_db()
        self.assertEqual(order.order_status_id, OrderState.PENDING)
        self.assertEqual(order.currency, "EUR")
        self.assertEqual(order.total_price, Decimal("10.50"))
        self.assertEqual(order.stripe_transaction_id, result["source"]["id"])
        self.assertIn("payment", order.post_data_dict)

        source_call = self.gateway.calls_to("create_source")[0]
        self.assertEqual(source_call["type"], "ideal")
        self.assertEqual(source_call["amount"], 1050)
        self.assertEqual(source_call["currency"], "eur")
        self.assertEqual(source_call["owner"], {"email": "klant@example.nl"})
        self.assertEqual(source_call["ideal"], {"bank": "ing"})
        self.assertEqual(source_call["redirect"]["return_url"], "https://shop.example.com/thanks/")
        # Pending orders do not notify.
        self.assertEqual(len(mail.outbox), 0)

    def test_chargeable_webhook_completes_order_without_double_conversion(self):
        result = self._start()

        self.orchestrator.trigger_webhook_event(self._chargeable(result["source"]))

        order = Order.objects.get(pk=result["order"].pk)
        self.assertEqual(order.order_status_id, OrderState.NEW)
        self.assertEqual(order.total_price, Decimal("10.50"))
        self.assertTrue(order.stripe_transaction_id.startswith("ch_"))

        charge = self.gateway.calls_to("create_charge")[0]
        self.assertEqual(charge["amount"], 1050)
        self.assertEqual(charge["currency"], "EUR")
        self.assertEqual(len(mail.outbox), 1)

    def test_repeated_webhook_is_ignored(self):
        result = self._start()
        event = self._chargeable(result["source"])

        self.orchestrator.trigger_webhook_event(event)
        self.orchestrator.trigger_webhook_event(event)

        self.assertEqual(len(self.gateway.calls_to("create_charge")), 1)

    def test_recurring_ideal_uses_sepa_source(self):
        self.gateway.plans.add("gold")
        self.form.enable_subscriptions = True
        self.form.single_plan_info = {"id": "gold"}
        self.form.save()

        result = self._start()
        self.orchestrator.trigger_webhook_event(self._chargeable(result["source"]))

        sepa = self.gateway.calls_to("create_source")[1]
        self.assertEqual(sepa["type"], "sepa_debit")
        self.assertEqual(sepa["sepa_debit"], {"ideal": result["source"]["id"]})
        self.assertEqual(sepa["owner"], {"name": "Jenny Rosen"})

        customer = self.gateway.calls_to("create_customer")[0]
        self.assertTrue(customer["source"].startswith("src_"))
        self.assertNotEqual(customer["source"], result["source"]["id"])

        order = Order.objects.get(pk=result["order"].pk)
        self.assertTrue(order.stripe_transaction_id.startswith("sub_"))

    def test_invalid_ideal_submission_returns_none(self):
        post = payment_post(self.form.pk, payment_type=PaymentType.IDEAL)
        with self.assertLogs("stripe_payments.services.payments", level="ERROR"):
            self.assertIsNone(self.orchestrator.process_ideal_payment(post, "not-an-email"))
        self.assertEqual(self.gateway.calls, [])

    def test_webhook_hook_receives_every_event(self):
        seen = []
        self.orchestrator.hooks.subscribe("webhook", seen.append)

        self.orchestrator.trigger_webhook_event({"type": "charge.refunded", "data": {"object": {}}})

        self.assertEqual(seen[0]["type"], "charge.refunded")
        self.assertEqual(self.gateway.calls, [])


class PopulateOrderTests(TestCase):
    def test_defaults_and_pending_status(self):
        from stripe_payments.serializers import parse_submission

        form = _form()
        submission, _ = parse_submission(payment_post(form.pk))
        orchestrator = make_orchestrator()

        order = orchestrator.populate_order(submission, is_pending=True)

        self.assertEqual(order.order_status_id, OrderState.PENDING)
        self.assertEqual(order.quantity, 1)
        self.assertEqual(order.shipping, Decimal("0"))
        self.assertEqual(order.total_price, Decimal("1050"))
        self.assertEqual(order.variants, "")
        self.assertIsNone(order.pk)
