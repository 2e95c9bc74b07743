from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="OrderStatus",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("handle", models.SlugField(max_length=255, unique=True)),
                (
                    "color",
                    models.CharField(
                        choices=[
                            ("white", "White"),
                            ("green", "Green"),
                            ("blue", "Blue"),
                            ("orange", "Orange"),
                            ("red", "Red"),
                            ("purple", "Purple"),
                            ("pink", "Pink"),
                            ("turquoise", "Turquoise"),
                            ("light", "Light"),
                            ("grey", "Grey"),
                            ("black", "Black"),
                        ],
                        default="green",
                        max_length=30,
                    ),
                ),
                ("sort_order", models.PositiveIntegerField(default=999)),
                ("is_default", models.BooleanField(default=False)),
                ("date_created", models.DateTimeField(auto_now_add=True)),
                ("date_updated", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["sort_order", "id"],
                "verbose_name_plural": "order statuses",
            },
        ),
        migrations.CreateModel(
            name="PaymentForm",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("handle", models.SlugField(max_length=255, unique=True)),
                ("currency", models.CharField(default="USD", max_length=3)),
                ("amount", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("enable_subscriptions", models.BooleanField(default=False)),
                (
                    "subscription_type",
                    models.IntegerField(choices=[(0, "Single plan"), (1, "Multiple plans")], default=0),
                ),
                ("single_plan_info", models.JSONField(blank=True, null=True)),
                (
                    "single_plan_setup_fee",
                    models.DecimalField(blank=True, decimal_places=4, max_digits=14, null=True),
                ),
                (
                    "single_plan_trial_period",
                    models.PositiveIntegerField(blank=True, help_text="Trial days.", null=True),
                ),
                ("enable_custom_plan_amount", models.BooleanField(default=False)),
                (
                    "custom_plan_interval",
                    models.PositiveIntegerField(default=1, help_text="Intervals between billings."),
                ),
                (
                    "custom_plan_frequency",
                    models.CharField(
                        choices=[("day", "Day"), ("week", "Week"), ("month", "Month"), ("year", "Year")],
                        default="month",
                        max_length=10,
                    ),
                ),
                (
                    "recurring_payment_type",
                    models.CharField(
                        choices=[("day", "Day"), ("week", "Week"), ("month", "Month"), ("year", "Year")],
                        default="month",
                        max_length=10,
                    ),
                ),
                ("has_unlimited_stock", models.BooleanField(default=True)),
                ("quantity", models.IntegerField(default=0)),
                ("return_url", models.CharField(blank=True, default="", max_length=500)),
                ("date_created", models.DateTimeField(auto_now_add=True)),
                ("date_updated", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="PaymentFormPlan",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "plan_id",
                    models.CharField(help_text="Stripe plan id selectable on the form.", max_length=255),
                ),
                ("label", models.CharField(blank=True, default="", max_length=255)),
                ("setup_fee", models.DecimalField(blank=True, decimal_places=4, max_digits=14, null=True)),
                ("sort_order", models.PositiveIntegerField(default=0)),
                (
                    "payment_form",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="plans",
                        to="stripe_payments.paymentform",
                    ),
                ),
            ],
            options={
                "ordering": ["sort_order", "id"],
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("email", models.EmailField(db_index=True, max_length=254)),
                ("stripe_id", models.CharField(help_text="Stripe Customer id (cus_...).", max_length=255)),
                ("test_mode", models.BooleanField(default=True)),
                ("date_created", models.DateTimeField(auto_now_add=True)),
                ("date_updated", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-date_created"],
            },
        ),
        migrations.AddConstraint(
            model_name="customer",
            constraint=models.UniqueConstraint(fields=("email", "test_mode"), name="uniq_customer_email_per_mode"),
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("site_id", models.PositiveIntegerField(db_index=True, default=1)),
                ("number", models.CharField(editable=False, max_length=32, unique=True)),
                ("email", models.EmailField(db_index=True, max_length=254)),
                ("total_price", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("shipping", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("tax", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("discount", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("currency", models.CharField(blank=True, default="USD", max_length=3)),
                (
                    "payment_type",
                    models.IntegerField(
                        blank=True,
                        choices=[(1, "Credit Card"), (2, "iDEAL"), (3, "SOFORT")],
                        null=True,
                    ),
                ),
                (
                    "stripe_transaction_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        default="",
                        help_text="Charge (ch_...), subscription (sub_...) or source (src_...) id.",
                        max_length=255,
                    ),
                ),
                ("variants", models.TextField(blank=True, default="")),
                ("address_name", models.CharField(blank=True, default="", max_length=255)),
                ("address_street", models.CharField(blank=True, default="", max_length=255)),
                ("address_city", models.CharField(blank=True, default="", max_length=255)),
                ("address_state", models.CharField(blank=True, default="", max_length=255)),
                ("address_zip", models.CharField(blank=True, default="", max_length=64)),
                ("address_country", models.CharField(blank=True, default="", max_length=255)),
                ("address_country_code", models.CharField(blank=True, default="", max_length=8)),
                ("post_data", models.TextField(blank=True, default="")),
                ("test_mode", models.BooleanField(default=False)),
                ("date_created", models.DateTimeField(auto_now_add=True)),
                ("date_updated", models.DateTimeField(auto_now=True)),
                (
                    "order_status",
                    models.ForeignKey(
                        default=2,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="stripe_payments.orderstatus",
                    ),
                ),
                (
                    "payment_form",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to="stripe_payments.paymentform",
                    ),
                ),
            ],
            options={
                "ordering": ("-date_created",),
            },
        ),
        migrations.AddIndex(
            model_name="order",
            index=models.Index(fields=["site_id", "number"], name="sp_order_site_number_idx"),
        ),
        migrations.AddIndex(
            model_name="order",
            index=models.Index(fields=["site_id", "stripe_transaction_id"], name="sp_order_site_stripe_idx"),
        ),
    ]
