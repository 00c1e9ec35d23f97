import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("authentication", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="UserViolation",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("reason", models.TextField()),
                (
                    "violation_type",
                    models.CharField(
                        choices=[
                            ("SPAM", "Spam"),
                            ("CHEAT", "Cheat"),
                            ("POLICY_VIOLATION", "Policy Violation"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "action_taken",
                    models.CharField(
                        choices=[
                            ("WARNING", "Warning"),
                            ("LOCK", "Lock"),
                            ("BAN", "Ban"),
                            ("UNLOCK", "Unlock"),
                        ],
                        max_length=10,
                    ),
                ),
                ("lock_duration_days", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("created_by_id", models.UUIDField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="violations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.AddField(
            model_name="user",
            name="last_violation",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to="authentication.userviolation",
            ),
        ),
    ]
