"""Tests for cache behavior.

Run with: pytest tests/test_cache.py -v
"""

from datetime import time, timedelta
from uuid import uuid4

import pytest
from django.core.cache import cache

from scheduling import models as orm
from scheduling.cache import sessions_key, subscription_key
from tests.factories import MONDAY_MORNING


def create_subscription() -> orm.RecurringSubscription:
    return orm.RecurringSubscription.objects.create(
        client_id="client-1",
        price_per_session="150.00",
        created_at=MONDAY_MORNING,
        updated_at=MONDAY_MORNING,
    )


def prime(subscription_id) -> None:
    cache.set(subscription_key(subscription_id), {"cached": True})
    cache.set(sessions_key(subscription_id), [{"cached": True}])


def assert_invalidated(subscription_id) -> None:
    assert cache.get(subscription_key(subscription_id)) is None
    assert cache.get(sessions_key(subscription_id)) is None


@pytest.mark.django_db
class TestCacheInvalidation:
    """Tests for cache invalidation on model changes."""

    def test_subscription_save_invalidates_cache(self):
        """Saving a subscription invalidates its detail and sessions keys."""
        subscription = create_subscription()
        prime(subscription.id)
        subscription.state = orm.RecurringSubscription.State.ACTIVE
        subscription.save()
        assert_invalidated(subscription.id)

    def test_slot_save_invalidates_cache(self):
        """Saving a slot invalidates its subscription's keys."""
        subscription = create_subscription()
        prime(subscription.id)
        orm.WeeklyScheduleSlot.objects.create(
            subscription=subscription,
            day_of_week=2,
            time_of_day=time(14, 0),
            timezone="America/New_York",
        )
        assert_invalidated(subscription.id)

    def test_occurrence_save_invalidates_cache(self):
        """Saving a session invalidates its subscription's keys."""
        subscription = create_subscription()
        prime(subscription.id)
        orm.SessionOccurrence.objects.create(
            id=uuid4(),
            subscription=subscription,
            sequence_index=0,
            scheduled_at=MONDAY_MORNING + timedelta(days=1),
            duration_minutes=60,
            amount_due="150.00",
            charge_trigger_at=MONDAY_MORNING - timedelta(days=1),
        )
        assert_invalidated(subscription.id)

    def test_subscription_delete_invalidates_cache(self):
        """Deleting a subscription invalidates its keys."""
        subscription = create_subscription()
        subscription_id = subscription.id
        prime(subscription_id)
        subscription.delete()
        assert_invalidated(subscription_id)

    def test_other_subscriptions_stay_cached(self):
        """Only the changed subscription's keys are dropped."""
        changed, untouched = create_subscription(), create_subscription()
        prime(untouched.id)
        changed.save()
        assert cache.get(subscription_key(untouched.id)) == {"cached": True}
