"""Conflict detection among one client's weekly slots."""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from itertools import combinations

from scheduling.domain.models import WeeklyScheduleSlot
from scheduling.domain.timezones import describe_conflict, weekly_offset
from scheduling.domain.value_objects import SlotId

ConflictPair = frozenset[SlotId]


def find_conflicts(
    slots: Iterable[WeeklyScheduleSlot], on: date | None = None
) -> set[ConflictPair]:
    """Return every unordered pair of enabled slots landing on the same moment.

    Slots are compared by their UTC position within the week containing
    ``on``, so ``Tue 14:00 America/New_York`` and ``Tue 19:00 UTC`` collide
    while ``Tue 14:00`` in New York and Los Angeles do not. Disabled slots
    never conflict.
    """
    reference = on or date.today()
    buckets: dict[int, list[SlotId]] = defaultdict(list)
    for slot in slots:
        if slot.enabled:
            buckets[weekly_offset(slot, reference)].append(slot.id)

    conflicts: set[ConflictPair] = set()
    for slot_ids in buckets.values():
        for first, second in combinations(slot_ids, 2):
            if first != second:
                conflicts.add(frozenset((first, second)))
    return conflicts


def conflict_messages(
    slots: Iterable[WeeklyScheduleSlot], on: date | None = None
) -> list[str]:
    """Human-readable messages for each conflicting pair, in slot order."""
    slots = list(slots)
    by_id = {slot.id: slot for slot in slots}
    order = {slot.id: index for index, slot in enumerate(slots)}
    messages = []
    for pair in sorted(find_conflicts(slots, on), key=lambda p: sorted(order[s] for s in p)):
        first, second = sorted(pair, key=order.__getitem__)
        message = describe_conflict(by_id[first], by_id[second], on)
        if message:
            messages.append(message)
    return messages
