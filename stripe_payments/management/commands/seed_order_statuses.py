"""
CHANGE LOG
- 2026-03-09: Initial creation of management command `seed_order_statuses`.
  Idempotently (re)creates the Pending / New / Processed statuses with the
  fixed ids the payment flow relies on.
"""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandParser
from django.core.management.color import no_style
from django.db import connection, transaction

from stripe_payments.enums import STATUS_COLORS, OrderState
from stripe_payments.models import OrderStatus

SEED = (
    (OrderState.PENDING, "pending", False),
    (OrderState.NEW, "new", True),
    (OrderState.PROCESSED, "processed", False),
)


class Command(BaseCommand):
    help = "Creates (or restores) the Pending, New and Processed order statuses."

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument(
            "--keep-default",
            action="store_true",
            help="Do not reset which status is the default.",
        )

    def handle(self, *args, **opts) -> None:
        keep_default: bool = bool(opts.get("keep_default") or False)

        with transaction.atomic():
            for state, handle, is_default in SEED:
                defaults = {
                    "name": state.label,
                    "handle": handle,
                    "color": STATUS_COLORS[state],
                    "sort_order": int(state),
                }
                if not keep_default:
                    defaults["is_default"] = is_default

                _, created = OrderStatus.objects.update_or_create(pk=int(state), defaults=defaults)
                verb = "created" if created else "updated"
                self.stdout.write(self.style.SUCCESS(f"[seed] {state.label} ({handle}) {verb}"))

            if not keep_default:
                OrderStatus.objects.exclude(pk=OrderState.NEW).update(is_default=False)

            with connection.cursor() as cursor:
                for sql in connection.ops.sequence_reset_sql(no_style(), [OrderStatus]):
                    cursor.execute(sql)
