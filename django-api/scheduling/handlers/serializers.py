"""Serializers for transforming domain models to API responses and parsing input."""

from rest_framework import serializers

from scheduling.domain import FeeAction, ScheduleFrequency, SessionKind
from scheduling.domain.lifecycle import allowed_actions
from scheduling.domain.timezones import format_instant, format_slot


class SlotSerializer(serializers.Serializer):
    """Serializer for WeeklyScheduleSlot domain model."""

    id = serializers.CharField()
    day_of_week = serializers.IntegerField()
    day_name = serializers.CharField()
    time_of_day = serializers.TimeField(format="%H:%M")
    timezone = serializers.CharField()
    enabled = serializers.BooleanField()
    needs_timezone_confirmation = serializers.BooleanField()
    frequency = serializers.CharField(source="frequency.value")
    label = serializers.SerializerMethodField()

    def get_label(self, slot) -> str:
        return format_slot(slot.time_of_day, slot.timezone, with_zone_label=True)


class OccurrenceSerializer(serializers.Serializer):
    """Serializer for SessionOccurrence domain model."""

    id = serializers.CharField()
    slot_id = serializers.CharField(allow_null=True)
    scheduled_at = serializers.DateTimeField()
    duration_minutes = serializers.IntegerField()
    amount_due = serializers.CharField()
    kind = serializers.CharField(source="kind.value")
    status = serializers.CharField(source="status.value")
    charge_trigger_at = serializers.DateTimeField()
    suspended = serializers.BooleanField()
    charged_at = serializers.DateTimeField(allow_null=True)
    fee_charged = serializers.CharField()
    fee_charged_at = serializers.DateTimeField(allow_null=True)
    replaces = serializers.CharField(allow_null=True)
    local_display = serializers.SerializerMethodField()

    def get_local_display(self, occurrence) -> str:
        timezone = self.context.get("timezones", {}).get(occurrence.slot_id, "UTC")
        return format_instant(occurrence.scheduled_at, timezone)


class SubscriptionSerializer(serializers.Serializer):
    """Serializer for RecurringSubscription domain model."""

    id = serializers.CharField()
    client_id = serializers.CharField()
    state = serializers.CharField(source="state.value")
    price_per_session = serializers.CharField()
    slots = SlotSerializer(many=True)
    paused_reason = serializers.CharField(allow_null=True)
    paused_until = serializers.DateField(allow_null=True)
    terms_acknowledged_at = serializers.DateTimeField(allow_null=True)
    has_payment_method = serializers.SerializerMethodField()
    skip_dates = serializers.SerializerMethodField()
    failed_payment_count = serializers.IntegerField()
    allowed_actions = serializers.SerializerMethodField()
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()

    def get_has_payment_method(self, subscription) -> bool:
        return bool(subscription.payment_method_token)

    def get_skip_dates(self, subscription) -> list[str]:
        return sorted(day.isoformat() for day in subscription.skip_dates)

    def get_allowed_actions(self, subscription) -> list[str]:
        return list(allowed_actions(subscription))


class FeeDecisionSerializer(serializers.Serializer):
    action = serializers.CharField(source="action.value")
    hours_until_session = serializers.FloatField()
    fee_applies = serializers.BooleanField()
    fee_amount = serializers.CharField()


class SessionPreviewSerializer(serializers.Serializer):
    slot_id = serializers.CharField()
    scheduled_at = serializers.DateTimeField()
    local_display = serializers.CharField()
    duration_minutes = serializers.IntegerField()
    charge_at = serializers.DateTimeField()
    amount = serializers.CharField()
    is_conflict = serializers.BooleanField()
    conflict_reason = serializers.CharField(allow_null=True)


class SummarySerializer(serializers.Serializer):
    total_sessions = serializers.IntegerField()
    completed_sessions = serializers.IntegerField()
    cancelled_sessions = serializers.IntegerField()
    rescheduled_sessions = serializers.IntegerField()
    upcoming_sessions = serializers.IntegerField()
    amount_charged = serializers.CharField()
    fees_charged = serializers.CharField()
    fees_outstanding = serializers.CharField()
    failed_payments = serializers.IntegerField()


class TimezoneSerializer(serializers.Serializer):
    value = serializers.CharField(source="name")
    label = serializers.CharField(source="display_name")
    abbreviation = serializers.CharField()
    offset = serializers.CharField()


# -- input -----------------------------------------------------------------


class CreateSubscriptionSerializer(serializers.Serializer):
    client_id = serializers.CharField(max_length=255)


class SlotInputSerializer(serializers.Serializer):
    day_of_week = serializers.IntegerField(min_value=0, max_value=6)
    time_of_day = serializers.TimeField()
    timezone = serializers.CharField(required=False, allow_blank=True)
    enabled = serializers.BooleanField(required=False, default=True)
    frequency = serializers.ChoiceField(
        choices=[frequency.value for frequency in ScheduleFrequency],
        default=ScheduleFrequency.WEEKLY.value,
    )


class SlotUpdateSerializer(serializers.Serializer):
    day_of_week = serializers.IntegerField(min_value=0, max_value=6, required=False)
    time_of_day = serializers.TimeField(required=False)
    timezone = serializers.CharField(required=False)
    enabled = serializers.BooleanField(required=False)
    frequency = serializers.ChoiceField(
        choices=[frequency.value for frequency in ScheduleFrequency], required=False
    )


class PaymentMethodSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=255)


class PauseSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)
    until = serializers.DateField(required=False, allow_null=True)


class SkipDateSerializer(serializers.Serializer):
    date = serializers.DateField()


class RescheduleSerializer(serializers.Serializer):
    new_start = serializers.DateTimeField()


class StandaloneBookingSerializer(serializers.Serializer):
    starts_at = serializers.DateTimeField()
    kind = serializers.ChoiceField(
        choices=[kind.value for kind in SessionKind], default=SessionKind.STANDARD.value
    )


class FeeQuerySerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=[action.value for action in FeeAction])


class PreviewQuerySerializer(serializers.Serializer):
    count = serializers.IntegerField(min_value=1, max_value=52, required=False, default=8)
