from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("orders", "0002_seed_delivery_methods"),
    ]

    operations = [
        migrations.AlterField(
            model_name="order",
            name="order_number",
            field=models.CharField(db_index=True, editable=False, max_length=8),
        ),
    ]
