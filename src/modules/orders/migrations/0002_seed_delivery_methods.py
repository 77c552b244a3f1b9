from decimal import Decimal

from django.db import migrations

DELIVERY_METHODS = [
    ("standard", "Standard Shipping", "Free standard shipping", "0.00", 5, 7),
    ("express", "Express Shipping", "Fast delivery", "9.99", 2, 3),
    ("overnight", "Overnight Shipping", "Next day delivery", "19.99", 1, 1),
]


def seed(apps, schema_editor):
    DeliveryMethod = apps.get_model("orders", "DeliveryMethod")
    for code, name, description, price, min_days, max_days in DELIVERY_METHODS:
        DeliveryMethod.objects.update_or_create(
            code=code,
            defaults={
                "name": name,
                "description": description,
                "price": Decimal(price),
                "min_days": min_days,
                "max_days": max_days,
                "is_active": True,
            },
        )


def unseed(apps, schema_editor):
    DeliveryMethod = apps.get_model("orders", "DeliveryMethod")
    DeliveryMethod.objects.filter(code__in=[row[0] for row in DELIVERY_METHODS]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed, unseed),
    ]
