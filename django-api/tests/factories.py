"""Builders and test doubles shared by the test modules."""

from dataclasses import replace
from datetime import datetime, time, timezone
from uuid import uuid4

from scheduling.domain import (
    Money,
    RecurringSubscription,
    ScheduleFrequency,
    SlotId,
    SubscriptionId,
    SubscriptionState,
    WeeklyScheduleSlot,
)
from scheduling.gateways import ChargeOutcome, ChargeResult, NotificationSink, PaymentGateway

NEW_YORK = "America/New_York"

# Monday 2024-01-08 09:00 in New York (EST, UTC-5).
MONDAY_MORNING = datetime(2024, 1, 8, 14, 0, tzinfo=timezone.utc)


class RecordingSink(NotificationSink):
    def __init__(self) -> None:
        self.events = []

    def notify(self, event) -> None:
        self.events.append(event)

    @property
    def types(self) -> list:
        return [event.type for event in self.events]


class ScriptedGateway(PaymentGateway):
    """Returns ``outcome`` for every charge and records the calls."""

    def __init__(self, outcome: ChargeOutcome = ChargeOutcome.SUCCESS) -> None:
        self.outcome = outcome
        self.charges = []

    def charge(self, payment_method_token, amount, occurrence_id) -> ChargeResult:
        self.charges.append((payment_method_token, amount, occurrence_id))
        return ChargeResult(outcome=self.outcome, reference="ref_test", message=self.outcome.value)


class Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_slot(
    day_of_week=2, hour=14, tz=NEW_YORK, enabled=True, frequency=ScheduleFrequency.WEEKLY
) -> WeeklyScheduleSlot:
    return WeeklyScheduleSlot(
        id=SlotId(uuid4()),
        day_of_week=day_of_week,
        time_of_day=time(hour, 0),
        timezone=tz,
        enabled=enabled,
        frequency=frequency,
    )


def make_subscription(*slots, ready=True, now=MONDAY_MORNING) -> RecurringSubscription:
    """Draft subscription; ``ready`` adds terms and a payment method."""
    subscription = RecurringSubscription(
        id=SubscriptionId(uuid4()),
        client_id="client-1",
        state=SubscriptionState.DRAFT,
        price_per_session=Money("150.00"),
        created_at=now,
        updated_at=now,
        slots=tuple(slots),
    )
    if ready:
        subscription = replace(subscription, terms_acknowledged_at=now, payment_method_token="pm_test")
    return subscription
