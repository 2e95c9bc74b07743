"""
stripe_payments.services.payment_forms

Payment form lookups and stock writes used by the payment flow.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from django.core.exceptions import ValidationError
from django.db import transaction

from ..models import PaymentForm

logger = logging.getLogger(__name__)


class PaymentFormRepository:
    def get_payment_form_by_id(self, form_id: int) -> Optional[PaymentForm]:
        return PaymentForm.objects.filter(pk=form_id).prefetch_related("plans").first()

    def save_payment_form(self, payment_form: PaymentForm, validate: bool = True) -> bool:
        if validate:
            try:
                payment_form.full_clean()
            except ValidationError as e:
                payment_form.validation_errors = e.message_dict
                return False

        with transaction.atomic():
            payment_form.save()
        return True

    def get_setup_fee_from_matrix(self, plan_id: str, payment_form: PaymentForm) -> Optional[Decimal]:
        for plan in payment_form.plans.all():
            if plan.plan_id == plan_id and plan.setup_fee:
                return plan.setup_fee
        return None
