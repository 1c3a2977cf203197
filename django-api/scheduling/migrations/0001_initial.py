import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="RecurringSubscription",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("client_id", models.CharField(max_length=255)),
                (
                    "state",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("active", "Active"),
                            ("paused", "Paused"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="draft",
                        max_length=16,
                    ),
                ),
                ("price_per_session", models.DecimalField(decimal_places=2, max_digits=10)),
                ("paused_reason", models.CharField(blank=True, max_length=255, null=True)),
                ("paused_until", models.DateField(blank=True, null=True)),
                ("terms_acknowledged_at", models.DateTimeField(blank=True, null=True)),
                ("payment_method_token", models.CharField(blank=True, max_length=255, null=True)),
                ("skip_dates", models.JSONField(blank=True, default=list)),
                ("failed_payment_count", models.PositiveIntegerField(default=0)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["state"], name="subscription_state_idx"),
                    models.Index(fields=["client_id"], name="subscription_client_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="WeeklyScheduleSlot",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("day_of_week", models.PositiveSmallIntegerField()),
                ("time_of_day", models.TimeField()),
                ("timezone", models.CharField(max_length=64)),
                ("enabled", models.BooleanField(default=True)),
                ("needs_timezone_confirmation", models.BooleanField(default=False)),
                ("position", models.PositiveIntegerField(default=0)),
                (
                    "subscription",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="slots",
                        to="scheduling.recurringsubscription",
                    ),
                ),
            ],
            options={
                "ordering": ["position"],
                "indexes": [
                    models.Index(fields=["subscription", "position"], name="slot_subscription_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SessionOccurrence",
            fields=[
                ("id", models.UUIDField(editable=False, primary_key=True, serialize=False)),
                ("slot_id", models.UUIDField(blank=True, null=True)),
                ("sequence_index", models.IntegerField()),
                ("scheduled_at", models.DateTimeField()),
                ("duration_minutes", models.PositiveIntegerField()),
                ("amount_due", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "kind",
                    models.CharField(
                        choices=[("trial", "Trial"), ("standard", "Standard")],
                        default="standard",
                        max_length=16,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("scheduled", "Scheduled"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                            ("rescheduled", "Rescheduled"),
                        ],
                        default="scheduled",
                        max_length=16,
                    ),
                ),
                ("charge_trigger_at", models.DateTimeField()),
                ("suspended", models.BooleanField(default=False)),
                ("charged_at", models.DateTimeField(blank=True, null=True)),
                ("fee_charged", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("replaces_id", models.UUIDField(blank=True, null=True)),
                (
                    "subscription",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="occurrences",
                        to="scheduling.recurringsubscription",
                    ),
                ),
            ],
            options={
                "ordering": ["scheduled_at"],
                "indexes": [
                    models.Index(fields=["subscription", "scheduled_at"], name="occurrence_schedule_idx"),
                    models.Index(fields=["status", "charge_trigger_at"], name="occurrence_charge_idx"),
                ],
            },
        ),
    ]
