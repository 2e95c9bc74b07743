from django.core.management.color import no_style
from django.db import migrations

# (id, name, handle, color, sort_order, is_default); ids match enums.OrderState
DEFAULT_STATUSES = [
    (1, "Pending", "pending", "white", 1, False),
    (2, "New", "new", "green", 2, True),
    (3, "Processed", "processed", "blue", 3, False),
]


def seed_statuses(apps, schema_editor):
    OrderStatus = apps.get_model("stripe_payments", "OrderStatus")
    for pk, name, handle, color, sort_order, is_default in DEFAULT_STATUSES:
        OrderStatus.objects.update_or_create(
            pk=pk,
            defaults={
                "name": name,
                "handle": handle,
                "color": color,
                "sort_order": sort_order,
                "is_default": is_default,
            },
        )
    # Explicit ids leave the pk sequence behind on Postgres.
    for sql in schema_editor.connection.ops.sequence_reset_sql(no_style(), [OrderStatus]):
        schema_editor.execute(sql)


def unseed_statuses(apps, schema_editor):
    OrderStatus = apps.get_model("stripe_payments", "OrderStatus")
    OrderStatus.objects.filter(pk__in=[row[0] for row in DEFAULT_STATUSES]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("stripe_payments", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_statuses, unseed_statuses),
    ]
