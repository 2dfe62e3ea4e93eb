from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="StoredRecord",
            fields=[
                (
                    "key",
                    models.CharField(
                        help_text="Store key in collection/record_id format.",
                        max_length=255,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "collection",
                    models.CharField(
                        help_text="First segment of the key.",
                        max_length=100,
                    ),
                ),
                (
                    "data",
                    models.JSONField(
                        default=dict,
                        help_text="JSON document stored under this key.",
                    ),
                ),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Write counter for this key.",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Last time this key was written.",
                    ),
                ),
            ],
            options={
                "db_table": "bol_store_record",
                "ordering": ["key"],
                "indexes": [
                    models.Index(
                        fields=["collection"],
                        name="idx_store_collection",
                    ),
                ],
            },
        ),
    ]
