"""Subscription service - all orchestration lives here.

Services:
- Depend only on interfaces (stores, gateways)
- Delegate every correctness decision to the domain lifecycle
- Persist the resulting value and publish notifications
- Return domain models or raise domain errors
"""

import logging
from collections.abc import Callable
from datetime import date, datetime, time
from uuid import uuid4

from django.utils import timezone

from scheduling.domain import (
    FeeAction,
    OccurrenceId,
    RecurringSubscription,
    ScheduleFrequency,
    SessionKind,
    SessionOccurrence,
    SlotId,
    SubscriptionId,
    SubscriptionState,
    WeeklyScheduleSlot,
)
from scheduling.domain.conflicts import conflict_messages
from scheduling.domain.errors import SubscriptionNotFoundError
from scheduling.domain.fees import FeeDecision
from scheduling.domain.lifecycle import SubscriptionLifecycle
from scheduling.domain.policy import DEFAULT_POLICY, BookingPolicy
from scheduling.domain.summary import SessionPreview, SubscriptionSummary, preview_sessions, summarize
from scheduling.domain.timezones import resolve_local_timezone
from scheduling.gateways import EventType, NotificationEvent, NotificationSink
from scheduling.stores.interfaces import SubscriptionStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class SubscriptionService:
    """Service for the recurring-sessions setup wizard and session management."""

    def __init__(
        self,
        store: SubscriptionStore,
        notifications: NotificationSink,
        policy: BookingPolicy = DEFAULT_POLICY,
        clock: Clock = timezone.now,
    ) -> None:
        self._store = store
        self._notifications = notifications
        self._policy = policy
        self._lifecycle = SubscriptionLifecycle(policy)
        self._clock = clock

    def _load(self, subscription_id: str) -> RecurringSubscription:
        sub_id = SubscriptionId.from_string(subscription_id)
        subscription = self._store.get_subscription(sub_id)
        if subscription is None:
            raise SubscriptionNotFoundError(subscription_id)
        return subscription

    def _save(self, subscription: RecurringSubscription) -> RecurringSubscription:
        self._store.save_subscription(subscription)
        return subscription

    def _notify(
        self,
        event_type: EventType,
        subscription: RecurringSubscription,
        occurrence_id: OccurrenceId | None = None,
        decision: FeeDecision | None = None,
        **details,
    ) -> None:
        self._notifications.notify(
            NotificationEvent(
                type=event_type,
                subscription_id=subscription.id,
                client_id=subscription.client_id,
                occurrence_id=occurrence_id,
                fee_amount=decision.fee_amount if decision else None,
                details=details,
            )
        )

    # -- wizard ---------------------------------------------------------

    def create_subscription(self, client_id: str) -> RecurringSubscription:
        """Start a draft subscription at the current recurring rate."""
        now = self._clock()
        subscription = RecurringSubscription(
            id=SubscriptionId(uuid4()),
            client_id=client_id,
            state=SubscriptionState.DRAFT,
            price_per_session=self._policy.recurring_rate,
            created_at=now,
            updated_at=now,
        )
        logger.info("Created draft subscription %s for client %s", subscription.id, client_id)
        return self._save(subscription)

    def get_subscription(self, subscription_id: str) -> RecurringSubscription:
        """Return a subscription by ID.

        Raises:
            InvalidIdError: If the subscription_id is not a valid UUID.
            SubscriptionNotFoundError: If the subscription does not exist.
        """
        return self._load(subscription_id)

    def add_slot(
        self,
        subscription_id: str,
        day_of_week: int,
        time_of_day: time,
        timezone_candidates: tuple[str | None, ...] = (),
        enabled: bool = True,
        frequency: ScheduleFrequency = ScheduleFrequency.WEEKLY,
    ) -> tuple[RecurringSubscription, WeeklyScheduleSlot]:
        """Add a weekly or biweekly slot in the first resolvable candidate timezone.

        Raises:
            InvalidSlotError: If the day or time is not bookable.
            ConflictError: If the subscription is live and the slot collides.
        """
        subscription = self._load(subscription_id)
        resolved = resolve_local_timezone(*timezone_candidates)
        slot = WeeklyScheduleSlot(
            id=SlotId(uuid4()),
            day_of_week=day_of_week,
            time_of_day=time_of_day,
            timezone=resolved.name,
            enabled=enabled,
            needs_timezone_confirmation=resolved.fallback,
            frequency=frequency,
        )
        updated = self._lifecycle.add_slot(subscription, slot, self._clock())
        logger.info("Added slot %s (%s %s %s) to %s", slot.id, slot.day_name, slot.time_of_day, slot.timezone, subscription.id)
        return self._save(updated), slot

    def update_slot(self, subscription_id: str, slot_id: str, **changes) -> RecurringSubscription:
        """Edit a slot; a ``timezone`` change is resolved like on creation."""
        subscription = self._load(subscription_id)
        if "timezone" in changes:
            resolved = resolve_local_timezone(changes["timezone"])
            changes["timezone"] = resolved.name
            changes["needs_timezone_confirmation"] = resolved.fallback
        updated = self._lifecycle.update_slot(
            subscription, SlotId.from_string(slot_id), self._clock(), **changes
        )
        logger.info("Updated slot %s of %s: %s", slot_id, subscription.id, sorted(changes))
        return self._save(updated)

    def remove_slot(self, subscription_id: str, slot_id: str) -> RecurringSubscription:
        subscription = self._load(subscription_id)
        updated = self._lifecycle.remove_slot(subscription, SlotId.from_string(slot_id), self._clock())
        logger.info("Removed slot %s from %s", slot_id, subscription.id)
        return self._save(updated)

    def list_conflicts(self, subscription_id: str) -> list[str]:
        subscription = self._load(subscription_id)
        return conflict_messages(subscription.slots, self._clock().date())

    def preview(self, subscription_id: str, count: int = 8) -> list[SessionPreview]:
        subscription = self._load(subscription_id)
        return preview_sessions(subscription, self._clock(), count, self._policy)

    def acknowledge_terms(self, subscription_id: str) -> RecurringSubscription:
        subscription = self._load(subscription_id)
        return self._save(self._lifecycle.acknowledge_terms(subscription, self._clock()))

    def set_payment_method(self, subscription_id: str, token: str) -> RecurringSubscription:
        subscription = self._load(subscription_id)
        return self._save(self._lifecycle.set_payment_method(subscription, token, self._clock()))

    # -- transitions ----------------------------------------------------

    def activate(self, subscription_id: str) -> RecurringSubscription:
        """Activate a draft and materialize its first batch of sessions.

        Raises:
            ValidationError: If a precondition is unmet; nothing is saved.
            ConflictError: If enabled slots collide; nothing is saved.
        """
        subscription = self._load(subscription_id)
        activated = self._lifecycle.activate(subscription, self._clock())
        self._save(activated)
        logger.info(
            "Activated subscription %s with %d sessions",
            activated.id,
            len(activated.occurrences),
        )
        self._notify(EventType.SUBSCRIPTION_ACTIVATED, activated)
        return activated

    def pause(self, subscription_id: str, reason: str, until: date | None = None) -> RecurringSubscription:
        subscription = self._load(subscription_id)
        paused = self._save(self._lifecycle.pause(subscription, reason, self._clock(), until))
        logger.info("Paused subscription %s (%s)", paused.id, reason)
        self._notify(EventType.SUBSCRIPTION_PAUSED, paused, reason=reason)
        return paused

    def resume(self, subscription_id: str) -> RecurringSubscription:
        subscription = self._load(subscription_id)
        resumed = self._save(self._lifecycle.resume(subscription, self._clock()))
        logger.info("Resumed subscription %s", resumed.id)
        self._notify(EventType.SUBSCRIPTION_RESUMED, resumed)
        return resumed

    def cancel(self, subscription_id: str) -> RecurringSubscription:
        subscription = self._load(subscription_id)
        cancelled = self._save(self._lifecycle.cancel(subscription, self._clock()))
        logger.info("Cancelled subscription %s", cancelled.id)
        self._notify(EventType.SUBSCRIPTION_CANCELLED, cancelled)
        return cancelled

    def add_skip_date(self, subscription_id: str, day: date) -> RecurringSubscription:
        subscription = self._load(subscription_id)
        return self._save(self._lifecycle.add_skip_date(subscription, day, self._clock()))

    # -- sessions -------------------------------------------------------

    def upcoming_sessions(self, subscription_id: str) -> list[SessionOccurrence]:
        """Scheduled future sessions across all slots, earliest first."""
        subscription = self._load(subscription_id)
        return list(subscription.upcoming(self._clock()))

    def decide_fee(self, subscription_id: str, occurrence_id: str, action: FeeAction) -> FeeDecision:
        """Fee a cancel/reschedule would incur now; changes nothing.

        Raises:
            PastSessionError: If the session has already started.
        """
        subscription = self._load(subscription_id)
        return self._lifecycle.decide_fee(
            subscription, OccurrenceId.from_string(occurrence_id), action, self._clock()
        )

    def cancel_session(self, subscription_id: str, occurrence_id: str) -> FeeDecision:
        subscription = self._load(subscription_id)
        occ_id = OccurrenceId.from_string(occurrence_id)
        updated, decision = self._lifecycle.cancel_occurrence(subscription, occ_id, self._clock())
        self._save(updated)
        logger.info(
            "Cancelled session %s of %s (%.1fh ahead, fee %s)",
            occ_id,
            subscription.id,
            decision.hours_until_session,
            decision.fee_amount,
        )
        self._notify(EventType.SESSION_CANCELLED, updated, occ_id, decision)
        return decision

    def reschedule_session(
        self, subscription_id: str, occurrence_id: str, new_start: datetime
    ) -> tuple[SessionOccurrence, FeeDecision]:
        subscription = self._load(subscription_id)
        occ_id = OccurrenceId.from_string(occurrence_id)
        updated, replacement, decision = self._lifecycle.reschedule_occurrence(
            subscription, occ_id, new_start, self._clock()
        )
        self._save(updated)
        logger.info(
            "Rescheduled session %s of %s to %s (fee %s)",
            occ_id,
            subscription.id,
            replacement.scheduled_at.isoformat(),
            decision.fee_amount,
        )
        self._notify(
            EventType.SESSION_RESCHEDULED,
            updated,
            replacement.id,
            decision,
            replaces=str(occ_id),
        )
        return replacement, decision

    def book_standalone(
        self, subscription_id: str, starts_at: datetime, kind: SessionKind = SessionKind.STANDARD
    ) -> SessionOccurrence:
        subscription = self._load(subscription_id)
        updated, occurrence = self._lifecycle.book_standalone(subscription, starts_at, self._clock(), kind)
        self._save(updated)
        logger.info("Booked %s session %s for %s", kind.value, occurrence.id, subscription.id)
        return occurrence

    def complete_session(self, subscription_id: str, occurrence_id: str) -> SessionOccurrence:
        """Mark a session that has started as completed.

        Raises:
            ValidationError: If the session is not scheduled or has not started.
        """
        subscription = self._load(subscription_id)
        occ_id = OccurrenceId.from_string(occurrence_id)
        updated = self._save(self._lifecycle.complete_occurrence(subscription, occ_id, self._clock()))
        logger.info("Completed session %s of %s", occ_id, subscription.id)
        return updated.find_occurrence(occ_id)

    def complete_elapsed_sessions(self) -> int:
        """Complete every session that has ended; returns how many changed."""
        now = self._clock()
        completed = 0
        states = [SubscriptionState.ACTIVE, SubscriptionState.PAUSED]
        for subscription in self._store.list_subscriptions(states):
            updated = self._lifecycle.complete_elapsed(subscription, now)
            if updated is not subscription:
                self._save(updated)
                completed += sum(
                    1
                    for before, after in zip(subscription.occurrences, updated.occurrences)
                    if before.status is not after.status
                )
        logger.info("Completed %d elapsed sessions", completed)
        return completed

    def summary(self, subscription_id: str) -> SubscriptionSummary:
        return summarize(self._load(subscription_id), self._clock())

    def refresh_lookahead(self) -> int:
        """Top up every active subscription; returns how many sessions were added."""
        now = self._clock()
        added = 0
        for subscription in self._store.list_subscriptions([SubscriptionState.ACTIVE]):
            refreshed = self._lifecycle.refresh(subscription, now)
            new = len(refreshed.occurrences) - len(subscription.occurrences)
            if new:
                self._save(refreshed)
                added += new
        logger.info("Look-ahead refresh added %d sessions", added)
        return added
