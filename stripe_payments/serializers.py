"""
stripe_payments.serializers

Boundary validation: the loosely-typed form payload becomes a typed
Submission before any payment logic sees it.

Wire field names stay as the front-end posts them (camelCase), e.g.
    {"paymentType": 1, "payment": {"token": "tok_...", "formId": 3, "amount": "1050", ...}}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from rest_framework import serializers

from .enums import PaymentType
from .models import Order

# Field group holding the submitted payment fields.
PAYMENT_FIELD_GROUP = "payment"


class AddressSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, default="")
    line1 = serializers.CharField(required=False, allow_blank=True, default="")
    city = serializers.CharField(required=False, allow_blank=True, default="")
    state = serializers.CharField(required=False, allow_blank=True, default="")
    zip = serializers.CharField(required=False, allow_blank=True, default="")
    country = serializers.CharField(required=False, allow_blank=True, default="")
    country_code = serializers.CharField(required=False, allow_blank=True, default="")


class SubmissionSerializer(serializers.Serializer):
    email = serializers.EmailField()
    token = serializers.CharField(trim_whitespace=True)
    formId = serializers.IntegerField(min_value=1)
    # Minor units (cents), straight from the front-end.
    amount = serializers.DecimalField(max_digits=None, decimal_places=None)

    quantity = serializers.IntegerField(required=False, min_value=1, default=1)
    shippingAmount = serializers.DecimalField(max_digits=None, decimal_places=None, required=False, default=Decimal("0"))
    taxAmount = serializers.DecimalField(max_digits=None, decimal_places=None, required=False, default=Decimal("0"))
    discountAmount = serializers.DecimalField(max_digits=None, decimal_places=None, required=False, default=Decimal("0"))

    address = AddressSerializer(required=False, allow_null=True)
    metadata = serializers.DictField(required=False, default=dict)
    testMode = serializers.BooleanField(required=False, default=False)

    customAmount = serializers.DecimalField(max_digits=None, decimal_places=None, required=False, allow_null=True)
    customPlanAmount = serializers.DecimalField(max_digits=None, decimal_places=None, required=False, allow_null=True)
    recurringToggle = serializers.CharField(required=False, allow_blank=True, default="")
    enupalMultiPlan = serializers.CharField(required=False, allow_blank=True, default="")
    currency = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_amount(self, value: Decimal) -> Decimal:
        if value <= 0:
            raise serializers.ValidationError("Amount must be greater than zero.")
        # Minor units are whole numbers.
        if value != value.to_integral_value():
            raise serializers.ValidationError("Amount must be a whole number of minor units.")
        return value


class IdealSubmissionSerializer(SubmissionSerializer):
    # The bank source (and so the token) only exists after the redirect.
    token = serializers.CharField(required=False, allow_blank=True, default="")


@dataclass
class Submission:
    email: str
    token: str
    form_id: int
    amount: Decimal
    quantity: int = 1
    shipping_amount: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    address: Optional[Dict[str, str]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    test_mode: bool = False
    custom_amount: Optional[Decimal] = None
    custom_plan_amount: Optional[Decimal] = None
    recurring_toggle: bool = False
    plan_id: str = ""
    currency: str = ""
    payment_type: Optional[int] = None

    @classmethod
    def from_validated(cls, data: Dict[str, Any], payment_type: Optional[int] = None) -> "Submission":
        return cls(
            email=data["email"],
            token=data["token"],
            form_id=data["formId"],
            amount=data["amount"],
            quantity=data.get("quantity") or 1,
            shipping_amount=data.get("shippingAmount") or Decimal("0"),
            tax_amount=data.get("taxAmount") or Decimal("0"),
            discount_amount=data.get("discountAmount") or Decimal("0"),
            address=dict(data["address"]) if data.get("address") else None,
            metadata=dict(data.get("metadata") or {}),
            test_mode=bool(data.get("testMode")),
            custom_amount=data.get("customAmount"),
            custom_plan_amount=data.get("customPlanAmount"),
            recurring_toggle=(data.get("recurringToggle") or "").lower() == "on",
            plan_id=(data.get("enupalMultiPlan") or "").strip(),
            currency=(data.get("currency") or "").strip(),
            payment_type=payment_type,
        )

    @property
    def minor_amount(self) -> int:
        return int(self.amount)


def _coerce_payment_type(value: Any) -> Optional[int]:
    try:
        value = int(value)
    except (TypeError, ValueError):
        return None
    return value if value in PaymentType.values else None


def parse_submission(
    post_data: Dict[str, Any],
    serializer_class=SubmissionSerializer,
) -> Tuple[Optional[Submission], Dict[str, Any]]:
    """
    Returns (submission, {}) when valid, else (None, field_errors).
    """
    group = post_data.get(PAYMENT_FIELD_GROUP) or {}
    if not isinstance(group, dict):
        return None, {PAYMENT_FIELD_GROUP: ["Expected an object."]}

    serializer = serializer_class(data=group)
    if not serializer.is_valid():
        return None, dict(serializer.errors)

    return Submission.from_validated(
        serializer.validated_data,
        payment_type=_coerce_payment_type(post_data.get("paymentType")),
    ), {}


class OrderSerializer(serializers.ModelSerializer):
    status = serializers.CharField(source="order_status.name", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "number",
            "status",
            "email",
            "total_price",
            "quantity",
            "currency",
            "payment_type",
            "stripe_transaction_id",
            "test_mode",
            "date_created",
        ]
