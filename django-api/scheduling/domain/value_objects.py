"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Self
from uuid import UUID, uuid5

from scheduling.domain.errors import InvalidIdError


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(str(value))
    except ValueError as exc:
        raise InvalidIdError() from exc


@dataclass(frozen=True)
class SubscriptionId:
    """Unique identifier for a RecurringSubscription."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=_parse_uuid(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class SlotId:
    """Unique identifier for a WeeklyScheduleSlot."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=_parse_uuid(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class OccurrenceId:
    """Unique identifier for a SessionOccurrence.

    Recurring occurrences derive their id from the slot and sequence index so
    re-expanding the same week always yields the same id.
    """

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=_parse_uuid(value))

    @classmethod
    def for_slot(cls, slot_id: SlotId, sequence_index: int) -> Self:
        return cls(value=uuid5(slot_id.value, f"occurrence:{sequence_index}"))

    @classmethod
    def for_standalone(cls, subscription_id: SubscriptionId, starts_at_iso: str) -> Self:
        return cls(value=uuid5(subscription_id.value, f"standalone:{starts_at_iso}"))

    def replacement(self, starts_at_iso: str) -> Self:
        return type(self)(value=uuid5(self.value, f"rescheduled:{starts_at_iso}"))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Money:
    """Price representation with validation."""

    amount: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")

    @classmethod
    def zero(cls) -> Self:
        return cls(amount=Decimal("0"))

    def __add__(self, other: "Money") -> "Money":
        return Money(amount=self.amount + other.amount)

    def __bool__(self) -> bool:
        return self.amount != 0

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


class SubscriptionState(Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class OccurrenceStatus(Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class SessionKind(Enum):
    """Trial sessions are short, cheap and never carry a late fee."""

    TRIAL = "trial"
    STANDARD = "standard"

    @property
    def duration_minutes(self) -> int:
        return 15 if self is SessionKind.TRIAL else 60


class FeeAction(Enum):
    CANCEL = "cancel"
    RESCHEDULE = "reschedule"


class ScheduleFrequency(Enum):
    """How often a weekly slot recurs; biweekly slots fall on even weeks."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"

    @property
    def interval(self) -> int:
        return 2 if self is ScheduleFrequency.BIWEEKLY else 1
