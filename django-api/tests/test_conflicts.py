"""Unit tests for conflict detection.

Run with: pytest tests/test_conflicts.py -v
"""

from datetime import date

from scheduling.domain.conflicts import conflict_messages, find_conflicts
from tests.factories import NEW_YORK, make_slot

WINTER = date(2024, 1, 9)
SUMMER = date(2024, 7, 9)


class TestFindConflicts:
    """Tests for find_conflicts."""

    def test_no_slots(self):
        """An empty schedule has no conflicts."""
        assert find_conflicts([]) == set()

    def test_distinct_slots(self):
        """Slots on different days or times do not conflict."""
        slots = [make_slot(day_of_week=1, hour=14), make_slot(day_of_week=2, hour=14), make_slot(day_of_week=1, hour=15)]
        assert find_conflicts(slots) == set()

    def test_pair_on_same_day_and_time(self):
        """Two enabled slots sharing day and time form one pair."""
        first, second = make_slot(), make_slot()
        assert find_conflicts([first, second]) == {frozenset({first.id, second.id})}

    def test_pairs_are_unordered(self):
        """Input order does not change the result."""
        first, second = make_slot(), make_slot()
        assert find_conflicts([first, second]) == find_conflicts([second, first])

    def test_three_way_collision(self):
        """Three colliding slots produce every pair."""
        slots = [make_slot(), make_slot(), make_slot()]
        assert len(find_conflicts(slots)) == 3

    def test_disabled_slots_are_ignored(self):
        """A disabled slot never conflicts."""
        assert find_conflicts([make_slot(), make_slot(enabled=False)]) == set()

    def test_no_self_pairs(self):
        """A slot listed twice is not reported against itself."""
        slot = make_slot()
        assert find_conflicts([slot, slot]) == set()

    def test_same_wall_clock_in_other_zones_is_free(self):
        """Tuesday 2 PM in New York and in Los Angeles are three hours apart."""
        new_york = make_slot(day_of_week=2, hour=14, tz=NEW_YORK)
        los_angeles = make_slot(day_of_week=2, hour=14, tz="America/Los_Angeles")
        assert find_conflicts([new_york, los_angeles], WINTER) == set()

    def test_same_instant_in_other_zones_collides(self):
        """Tuesday 2 PM New York and Tuesday 7 PM UTC are the same moment in winter."""
        new_york = make_slot(day_of_week=2, hour=14, tz=NEW_YORK)
        utc = make_slot(day_of_week=2, hour=19, tz="UTC")
        assert find_conflicts([new_york, utc], WINTER) == {frozenset({new_york.id, utc.id})}

    def test_collision_follows_daylight_saving(self):
        """In summer New York 2 PM lines up with 6 PM UTC instead."""
        new_york = make_slot(day_of_week=2, hour=14, tz=NEW_YORK)
        assert find_conflicts([new_york, make_slot(day_of_week=2, hour=19, tz="UTC")], SUMMER) == set()
        assert len(find_conflicts([new_york, make_slot(day_of_week=2, hour=18, tz="UTC")], SUMMER)) == 1

    def test_collision_across_the_date_line(self):
        """Monday 9 AM Tokyo is Sunday 7 PM in New York during winter."""
        tokyo = make_slot(day_of_week=1, hour=9, tz="Asia/Tokyo")
        new_york = make_slot(day_of_week=0, hour=19, tz=NEW_YORK)
        assert len(find_conflicts([tokyo, new_york], WINTER)) == 1


class TestConflictMessages:
    """Tests for conflict_messages."""

    def test_one_message_per_pair(self):
        """Each pair becomes one human-readable message."""
        messages = conflict_messages([make_slot(), make_slot()], date(2024, 1, 9))
        assert messages == ["You have more than one session on Tuesday at 2:00 PM EST"]

    def test_cross_zone_message_uses_first_slot(self):
        """The message names the first slot's local day and time."""
        messages = conflict_messages(
            [make_slot(day_of_week=2, hour=14, tz=NEW_YORK), make_slot(day_of_week=2, hour=19, tz="UTC")],
            WINTER,
        )
        assert messages == ["You have more than one session on Tuesday at 2:00 PM EST"]

    def test_no_conflicts_no_messages(self):
        """A clean schedule yields no messages."""
        assert conflict_messages([make_slot(hour=10), make_slot(hour=11)]) == []
