"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/.
"""

import uuid

from django.db import models


class RecurringSubscription(models.Model):
    """Persistence model for recurring-sessions subscriptions."""

    class State(models.TextChoices):
        DRAFT = "draft"
        ACTIVE = "active"
        PAUSED = "paused"
        CANCELLED = "cancelled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client_id = models.CharField(max_length=255)
    state = models.CharField(max_length=16, choices=State.choices, default=State.DRAFT)
    price_per_session = models.DecimalField(max_digits=10, decimal_places=2)
    paused_reason = models.CharField(max_length=255, blank=True, null=True)
    paused_until = models.DateField(blank=True, null=True)
    terms_acknowledged_at = models.DateTimeField(blank=True, null=True)
    payment_method_token = models.CharField(max_length=255, blank=True, null=True)
    skip_dates = models.JSONField(default=list, blank=True)
    failed_payment_count = models.PositiveIntegerField(default=0)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["state"], name="subscription_state_idx"),
            models.Index(fields=["client_id"], name="subscription_client_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.client_id} ({self.state})"


class WeeklyScheduleSlot(models.Model):
    """Persistence model for a subscription's weekly time slots."""

    class Frequency(models.TextChoices):
        WEEKLY = "weekly"
        BIWEEKLY = "biweekly"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    subscription = models.ForeignKey(
        RecurringSubscription, on_delete=models.CASCADE, related_name="slots"
    )
    day_of_week = models.PositiveSmallIntegerField()
    time_of_day = models.TimeField()
    timezone = models.CharField(max_length=64)
    enabled = models.BooleanField(default=True)
    needs_timezone_confirmation = models.BooleanField(default=False)
    frequency = models.CharField(max_length=16, choices=Frequency.choices, default=Frequency.WEEKLY)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position"]
        indexes = [
            models.Index(fields=["subscription", "position"], name="slot_subscription_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.day_of_week} {self.time_of_day} {self.timezone}"


class SessionOccurrence(models.Model):
    """Persistence model for materialized sessions."""

    class Status(models.TextChoices):
        SCHEDULED = "scheduled"
        COMPLETED = "completed"
        CANCELLED = "cancelled"
        RESCHEDULED = "rescheduled"

    class Kind(models.TextChoices):
        TRIAL = "trial"
        STANDARD = "standard"

    id = models.UUIDField(primary_key=True, editable=False)
    subscription = models.ForeignKey(
        RecurringSubscription, on_delete=models.CASCADE, related_name="occurrences"
    )
    slot_id = models.UUIDField(blank=True, null=True)
    sequence_index = models.IntegerField()
    scheduled_at = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField()
    amount_due = models.DecimalField(max_digits=10, decimal_places=2)
    kind = models.CharField(max_length=16, choices=Kind.choices, default=Kind.STANDARD)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.SCHEDULED)
    charge_trigger_at = models.DateTimeField()
    suspended = models.BooleanField(default=False)
    charged_at = models.DateTimeField(blank=True, null=True)
    fee_charged = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    fee_charged_at = models.DateTimeField(blank=True, null=True)
    replaces_id = models.UUIDField(blank=True, null=True)

    class Meta:
        ordering = ["scheduled_at"]
        indexes = [
            models.Index(fields=["subscription", "scheduled_at"], name="occurrence_schedule_idx"),
            models.Index(fields=["status", "charge_trigger_at"], name="occurrence_charge_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.subscription_id} - {self.scheduled_at}"
