"""Weekly and biweekly recurrence expansion with wall-clock (DST-aware) semantics.

Each occurrence is built from its naive local date and the slot's time of
day, then converted to UTC. Stepping by local dates instead of adding
``timedelta(days=7)`` to a UTC instant keeps a 2:00 PM slot at 2:00 PM across
daylight-saving transitions.
"""

from collections.abc import Iterator
from datetime import date, datetime, timedelta, timezone as dt_timezone

from scheduling.domain.models import WeeklyScheduleSlot
from scheduling.domain.timezones import get_zone

# 1970-01-04 is the first Sunday of the Unix epoch.
EPOCH_SUNDAY = date(1970, 1, 4)
WEEK = timedelta(days=7)


def sunday_weekday(day: date) -> int:
    """Day of week with Sunday = 0."""
    return (day.weekday() + 1) % 7


def sequence_index_for(local_date: date) -> int:
    """Whole weeks between the epoch Sunday and ``local_date``."""
    return (local_date - EPOCH_SUNDAY).days // 7


def local_instant(slot: WeeklyScheduleSlot, local_date: date) -> datetime:
    """UTC instant of the slot's wall-clock time on ``local_date``."""
    zone = get_zone(slot.timezone)
    return datetime.combine(local_date, slot.time_of_day, tzinfo=zone).astimezone(dt_timezone.utc)


def first_local_date(slot: WeeklyScheduleSlot, from_: datetime) -> date:
    """Local date of the earliest occurrence strictly after ``from_``."""
    if from_.tzinfo is None:
        raise ValueError("from_ must be timezone-aware")
    zone = get_zone(slot.timezone)
    local_today = from_.astimezone(zone).date()
    candidate = local_today + timedelta(days=(slot.day_of_week - sunday_weekday(local_today)) % 7)
    if local_instant(slot, candidate) <= from_:
        candidate += WEEK
    return candidate


class OccurrenceSequence:
    """Lazy, finite and restartable sequence of a slot's upcoming instants.

    Iterating twice yields the same instants; nothing is computed until
    iteration starts.
    """

    def __init__(self, slot: WeeklyScheduleSlot, from_: datetime, count: int) -> None:
        if count < 0:
            raise ValueError("count cannot be negative")
        if from_.tzinfo is None:
            raise ValueError("from_ must be timezone-aware")
        self.slot = slot
        self.from_ = from_
        self.count = count

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[datetime]:
        for _, instant in self.indexed():
            yield instant

    def local_dates(self) -> Iterator[date]:
        if self.count == 0:
            return
        interval = self.slot.frequency.interval
        start = first_local_date(self.slot, self.from_)
        # Biweekly slots fall on even epoch weeks.
        while sequence_index_for(start) % interval:
            start += WEEK
        for offset in range(self.count):
            yield start + WEEK * interval * offset

    def indexed(self) -> Iterator[tuple[int, datetime]]:
        """Yield ``(sequence_index, instant)`` pairs."""
        for local_date in self.local_dates():
            yield sequence_index_for(local_date), local_instant(self.slot, local_date)

    def __repr__(self) -> str:
        return f"OccurrenceSequence(slot={self.slot.id}, from_={self.from_.isoformat()}, count={self.count})"


def next_occurrences(slot: WeeklyScheduleSlot, from_: datetime, count: int) -> OccurrenceSequence:
    """Return the next ``count`` occurrences of ``slot`` strictly after ``from_``.

    An occurrence exactly at ``from_`` is skipped; a later time on the same
    local day is included.
    """
    return OccurrenceSequence(slot, from_, count)
