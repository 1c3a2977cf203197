from scheduling.domain.models import (
    BOOKABLE_TIMES,
    RecurringSubscription,
    SessionOccurrence,
    WeeklyScheduleSlot,
)
from scheduling.domain.policy import BookingPolicy
from scheduling.domain.value_objects import (
    FeeAction,
    Money,
    OccurrenceId,
    OccurrenceStatus,
    ScheduleFrequency,
    SessionKind,
    SlotId,
    SubscriptionId,
    SubscriptionState,
)

__all__ = [
    "BOOKABLE_TIMES",
    "RecurringSubscription",
    "SessionOccurrence",
    "WeeklyScheduleSlot",
    "BookingPolicy",
    "FeeAction",
    "Money",
    "OccurrenceId",
    "OccurrenceStatus",
    "ScheduleFrequency",
    "SessionKind",
    "SlotId",
    "SubscriptionId",
    "SubscriptionState",
]
