"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in scheduling/models.py (persistence layer).
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from scheduling.domain.errors import InvalidSlotError
from scheduling.domain.value_objects import (
    Money,
    OccurrenceId,
    OccurrenceStatus,
    ScheduleFrequency,
    SessionKind,
    SlotId,
    SubscriptionId,
    SubscriptionState,
)

# The practice books on the hour between 9 AM and 7 PM.
BOOKABLE_TIMES: tuple[time, ...] = tuple(time(hour, 0) for hour in range(9, 20))

DAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)


@dataclass(frozen=True)
class WeeklyScheduleSlot:
    """A client's recurring (day-of-week, time-of-day, timezone) preference.

    ``day_of_week`` counts from Sunday = 0. A biweekly slot recurs every
    other week.
    """

    id: SlotId
    day_of_week: int
    time_of_day: time
    timezone: str
    enabled: bool = True
    needs_timezone_confirmation: bool = False
    frequency: ScheduleFrequency = ScheduleFrequency.WEEKLY

    def __post_init__(self) -> None:
        if not isinstance(self.frequency, ScheduleFrequency):
            raise InvalidSlotError("Unknown schedule frequency")
        if not 0 <= self.day_of_week <= 6:
            raise InvalidSlotError("Day of week must be between 0 (Sunday) and 6 (Saturday)")
        if self.time_of_day not in BOOKABLE_TIMES:
            raise InvalidSlotError("Time of day is not a bookable slot")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise InvalidSlotError("Unknown timezone") from exc

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_of_week]


@dataclass(frozen=True)
class SessionOccurrence:
    """One concrete, dated instance of a slot (or a one-off booking)."""

    id: OccurrenceId
    slot_id: SlotId | None
    sequence_index: int
    scheduled_at: datetime
    duration_minutes: int
    amount_due: Money
    kind: SessionKind
    status: OccurrenceStatus
    charge_trigger_at: datetime
    suspended: bool = False
    charged_at: datetime | None = None
    fee_charged: Money = field(default_factory=Money.zero)
    fee_charged_at: datetime | None = None
    replaces: OccurrenceId | None = None

    @property
    def is_standalone(self) -> bool:
        return self.slot_id is None

    @property
    def is_scheduled(self) -> bool:
        return self.status is OccurrenceStatus.SCHEDULED


@dataclass(frozen=True)
class RecurringSubscription:
    """Domain representation of a client's recurring-sessions subscription."""

    id: SubscriptionId
    client_id: str
    state: SubscriptionState
    price_per_session: Money
    created_at: datetime
    updated_at: datetime
    slots: tuple[WeeklyScheduleSlot, ...] = ()
    occurrences: tuple[SessionOccurrence, ...] = ()
    paused_reason: str | None = None
    paused_until: date | None = None
    terms_acknowledged_at: datetime | None = None
    payment_method_token: str | None = None
    skip_dates: frozenset[date] = frozenset()
    failed_payment_count: int = 0
    cancelled_at: datetime | None = None

    @property
    def enabled_slots(self) -> tuple[WeeklyScheduleSlot, ...]:
        return tuple(slot for slot in self.slots if slot.enabled)

    def find_slot(self, slot_id: SlotId) -> WeeklyScheduleSlot | None:
        return next((slot for slot in self.slots if slot.id == slot_id), None)

    def find_occurrence(self, occurrence_id: OccurrenceId) -> SessionOccurrence | None:
        return next((occ for occ in self.occurrences if occ.id == occurrence_id), None)

    def upcoming(self, now: datetime) -> tuple[SessionOccurrence, ...]:
        """Scheduled occurrences that have not started yet, earliest first."""
        return tuple(
            occ for occ in self.occurrences if occ.is_scheduled and occ.scheduled_at > now
        )
