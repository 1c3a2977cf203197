"""Recurring subscription state machine.

``draft -> active <-> paused`` and ``{draft, active, paused} -> cancelled``.

Every transition takes a ``RecurringSubscription`` value and returns a new
one. A failed precondition raises before anything is built, so the caller's
value is never partially transitioned.
"""

from collections.abc import Iterable
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone as dt_timezone

from scheduling.domain import billing, fees
from scheduling.domain.conflicts import conflict_messages, find_conflicts
from scheduling.domain.errors import (
    ConflictError,
    OccurrenceNotFoundError,
    PastSessionError,
    Precondition,
    SlotNotFoundError,
    ValidationError,
)
from scheduling.domain.fees import FeeDecision
from scheduling.domain.models import (
    RecurringSubscription,
    SessionOccurrence,
    WeeklyScheduleSlot,
)
from scheduling.domain.policy import DEFAULT_POLICY, BookingPolicy
from scheduling.domain.recurrence import next_occurrences
from scheduling.domain.timezones import get_zone
from scheduling.domain.value_objects import (
    FeeAction,
    Money,
    OccurrenceId,
    OccurrenceStatus,
    SessionKind,
    SlotId,
    SubscriptionState,
)

DRAFT = SubscriptionState.DRAFT
ACTIVE = SubscriptionState.ACTIVE
PAUSED = SubscriptionState.PAUSED
CANCELLED = SubscriptionState.CANCELLED

ALLOWED_ACTIONS: dict[SubscriptionState, tuple[str, ...]] = {
    DRAFT: (
        "add_slot",
        "update_slot",
        "remove_slot",
        "acknowledge_terms",
        "set_payment_method",
        "add_skip_date",
        "activate",
        "cancel",
    ),
    ACTIVE: (
        "add_slot",
        "update_slot",
        "remove_slot",
        "set_payment_method",
        "add_skip_date",
        "book_standalone",
        "cancel_session",
        "reschedule_session",
        "pause",
        "cancel",
    ),
    PAUSED: (
        "add_slot",
        "update_slot",
        "remove_slot",
        "set_payment_method",
        "add_skip_date",
        "cancel_session",
        "reschedule_session",
        "resume",
        "cancel",
    ),
    CANCELLED: (),
}


def _utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        raise ValueError("Instants must be timezone-aware")
    return instant.astimezone(dt_timezone.utc)


def _ordered(occurrences: Iterable[SessionOccurrence]) -> tuple[SessionOccurrence, ...]:
    return tuple(sorted(occurrences, key=lambda occ: (occ.scheduled_at, str(occ.id))))


def _is_pending(occurrence: SessionOccurrence, now: datetime) -> bool:
    """Scheduled, in the future and not yet paid for."""
    return occurrence.is_scheduled and occurrence.scheduled_at > now and occurrence.charged_at is None


class SubscriptionLifecycle:
    """Applies transitions to subscriptions under a booking policy."""

    def __init__(self, policy: BookingPolicy = DEFAULT_POLICY) -> None:
        self.policy = policy

    # -- guards ---------------------------------------------------------

    def _require_state(
        self, subscription: RecurringSubscription, allowed: Iterable[SubscriptionState], action: str
    ) -> None:
        if subscription.state not in allowed:
            raise ValidationError.unmet(
                Precondition.STATE_ALLOWS_TRANSITION,
                f"Cannot {action} a {subscription.state.value} subscription",
            )

    def _require_no_conflicts(self, slots: Iterable[WeeklyScheduleSlot], now: datetime) -> None:
        slots = tuple(slots)
        if find_conflicts(slots, now.date()):
            raise ConflictError.from_messages(conflict_messages(slots, now.date()))

    def _require_slot(self, subscription: RecurringSubscription, slot_id: SlotId) -> WeeklyScheduleSlot:
        slot = subscription.find_slot(slot_id)
        if slot is None:
            raise SlotNotFoundError(str(slot_id))
        return slot

    def _require_scheduled(
        self, subscription: RecurringSubscription, occurrence_id: OccurrenceId
    ) -> SessionOccurrence:
        occurrence = subscription.find_occurrence(occurrence_id)
        if occurrence is None:
            raise OccurrenceNotFoundError(str(occurrence_id))
        if not occurrence.is_scheduled:
            raise ValidationError.unmet(
                Precondition.SESSION_SCHEDULED,
                f"Session is already {occurrence.status.value}",
            )
        return occurrence

    # -- materialization ------------------------------------------------

    def _new_occurrence(
        self,
        subscription: RecurringSubscription,
        slot: WeeklyScheduleSlot,
        sequence_index: int,
        scheduled_at: datetime,
    ) -> SessionOccurrence:
        kind = SessionKind.STANDARD
        return SessionOccurrence(
            id=OccurrenceId.for_slot(slot.id, sequence_index),
            slot_id=slot.id,
            sequence_index=sequence_index,
            scheduled_at=scheduled_at,
            duration_minutes=kind.duration_minutes,
            amount_due=billing.amount_for(kind, False, subscription, self.policy),
            kind=kind,
            status=OccurrenceStatus.SCHEDULED,
            charge_trigger_at=scheduled_at - self.policy.billing_lead_time,
        )

    def _top_up(
        self,
        subscription: RecurringSubscription,
        slot: WeeklyScheduleSlot,
        occurrences: Iterable[SessionOccurrence],
        now: datetime,
    ) -> list[SessionOccurrence]:
        """New occurrences bringing ``slot`` back to a full look-ahead batch.

        Weeks that already have an occurrence for the slot (in any status)
        and skip dates are never filled.
        """
        own = [occ for occ in occurrences if occ.slot_id == slot.id]
        upcoming = sum(1 for occ in own if occ.is_scheduled and occ.scheduled_at > now)
        needed = self.policy.batch_size - upcoming
        if needed <= 0 or not slot.enabled:
            return []

        taken = {occ.sequence_index for occ in own}
        zone = get_zone(slot.timezone)
        horizon = needed + len(taken) + len(subscription.skip_dates)
        created = []
        for sequence_index, instant in next_occurrences(slot, now, horizon).indexed():
            if sequence_index in taken or instant.astimezone(zone).date() in subscription.skip_dates:
                continue
            created.append(self._new_occurrence(subscription, slot, sequence_index, instant))
            if len(created) == needed:
                break
        return created

    def _materialize(
        self,
        subscription: RecurringSubscription,
        slots: Iterable[WeeklyScheduleSlot],
        occurrences: Iterable[SessionOccurrence],
        now: datetime,
    ) -> tuple[SessionOccurrence, ...]:
        result = list(occurrences)
        for slot in slots:
            result.extend(self._top_up(subscription, slot, result, now))
        return _ordered(result)

    # -- transitions ----------------------------------------------------

    def activate(self, subscription: RecurringSubscription, now: datetime) -> RecurringSubscription:
        """Move a complete draft to active and materialize the first batch.

        Raises:
            ValidationError: A precondition is unmet (``precondition`` says which).
            ConflictError: Two enabled slots land on the same moment of the week.
        """
        now = _utc(now)
        self._require_state(subscription, (DRAFT,), "activate")
        if not subscription.enabled_slots:
            raise ValidationError.unmet(
                Precondition.ENABLED_SLOT_REQUIRED,
                "Choose at least one weekly time slot",
            )
        self._require_no_conflicts(subscription.slots, now)
        if subscription.terms_acknowledged_at is None:
            raise ValidationError.unmet(
                Precondition.TERMS_ACKNOWLEDGED,
                "The cancellation and billing terms must be acknowledged",
            )
        if not subscription.payment_method_token:
            raise ValidationError.unmet(
                Precondition.PAYMENT_METHOD_PRESENT,
                "A payment method is required",
            )

        occurrences = self._materialize(
            subscription, subscription.enabled_slots, subscription.occurrences, now
        )
        return replace(subscription, state=ACTIVE, occurrences=occurrences, updated_at=now)

    def pause(
        self,
        subscription: RecurringSubscription,
        reason: str,
        now: datetime,
        until: date | None = None,
    ) -> RecurringSubscription:
        """Suspend future unpaid sessions; already-charged sessions stay booked."""
        now = _utc(now)
        self._require_state(subscription, (ACTIVE,), "pause")
        occurrences = tuple(
            replace(occ, suspended=True) if _is_pending(occ, now) else occ
            for occ in subscription.occurrences
        )
        return replace(
            subscription,
            state=PAUSED,
            occurrences=occurrences,
            paused_reason=reason,
            paused_until=until,
            updated_at=now,
        )

    def resume(self, subscription: RecurringSubscription, now: datetime) -> RecurringSubscription:
        """Reactivate suspended sessions and top every slot back up to a full batch.

        Suspended sessions that lapsed while paused are dropped; slots short of
        the look-ahead batch (lapses, skip dates, slots added while paused) are
        refilled from ``now``.
        """
        now = _utc(now)
        self._require_state(subscription, (PAUSED,), "resume")
        kept = []
        for occ in subscription.occurrences:
            if not occ.suspended:
                kept.append(occ)
            elif occ.scheduled_at > now:
                kept.append(replace(occ, suspended=False))

        resumed = replace(
            subscription,
            state=ACTIVE,
            paused_reason=None,
            paused_until=None,
            updated_at=now,
        )
        return replace(
            resumed, occurrences=self._materialize(resumed, resumed.enabled_slots, kept, now)
        )

    def cancel(self, subscription: RecurringSubscription, now: datetime) -> RecurringSubscription:
        """Terminal cancellation; future sessions are cancelled without a fee."""
        now = _utc(now)
        self._require_state(subscription, (DRAFT, ACTIVE, PAUSED), "cancel")
        occurrences = tuple(
            replace(occ, status=OccurrenceStatus.CANCELLED, suspended=False, fee_charged=Money.zero())
            if occ.is_scheduled and occ.scheduled_at > now
            else occ
            for occ in subscription.occurrences
        )
        return replace(
            subscription,
            state=CANCELLED,
            occurrences=occurrences,
            paused_reason=None,
            paused_until=None,
            cancelled_at=now,
            updated_at=now,
        )

    def refresh(self, subscription: RecurringSubscription, now: datetime) -> RecurringSubscription:
        """Top up every enabled slot to a full look-ahead batch."""
        now = _utc(now)
        self._require_state(subscription, (ACTIVE,), "refresh")
        occurrences = self._materialize(
            subscription, subscription.enabled_slots, subscription.occurrences, now
        )
        return replace(subscription, occurrences=occurrences, updated_at=now)

    # -- wizard steps ---------------------------------------------------

    def acknowledge_terms(self, subscription: RecurringSubscription, now: datetime) -> RecurringSubscription:
        now = _utc(now)
        self._require_state(subscription, (DRAFT,), "acknowledge terms for")
        return replace(subscription, terms_acknowledged_at=now, updated_at=now)

    def set_payment_method(
        self, subscription: RecurringSubscription, token: str, now: datetime
    ) -> RecurringSubscription:
        now = _utc(now)
        self._require_state(subscription, (DRAFT, ACTIVE, PAUSED), "change the payment method of")
        if not token:
            raise ValidationError.unmet(
                Precondition.PAYMENT_METHOD_PRESENT,
                "A payment method is required",
            )
        return replace(subscription, payment_method_token=token, updated_at=now)

    # -- slot editing ---------------------------------------------------

    def _with_slots(
        self,
        subscription: RecurringSubscription,
        slots: tuple[WeeklyScheduleSlot, ...],
        changed: SlotId,
        now: datetime,
    ) -> RecurringSubscription:
        """Swap in ``slots`` and re-materialize only the ``changed`` slot."""
        if subscription.state in (ACTIVE, PAUSED):
            self._require_no_conflicts(slots, now)

        occurrences = tuple(
            occ
            for occ in subscription.occurrences
            if not (occ.slot_id == changed and _is_pending(occ, now))
        )
        updated = replace(subscription, slots=slots, occurrences=occurrences, updated_at=now)
        slot = updated.find_slot(changed)
        if subscription.state is ACTIVE and slot is not None:
            updated = replace(updated, occurrences=self._materialize(updated, [slot], occurrences, now))
        return updated

    def add_slot(
        self, subscription: RecurringSubscription, slot: WeeklyScheduleSlot, now: datetime
    ) -> RecurringSubscription:
        """Add a slot. Draft subscriptions keep conflicts for the wizard to show."""
        now = _utc(now)
        self._require_state(subscription, (DRAFT, ACTIVE, PAUSED), "add a slot to")
        if subscription.find_slot(slot.id) is not None:
            raise ValidationError.unmet(Precondition.SLOT_UNIQUE, "Time slot already exists")
        return self._with_slots(subscription, subscription.slots + (slot,), slot.id, now)

    def update_slot(
        self, subscription: RecurringSubscription, slot_id: SlotId, now: datetime, **changes
    ) -> RecurringSubscription:
        """Edit time, day, timezone or enabled flag of one slot."""
        now = _utc(now)
        self._require_state(subscription, (DRAFT, ACTIVE, PAUSED), "edit a slot of")
        current = self._require_slot(subscription, slot_id)
        edited = replace(current, **changes)
        slots = tuple(edited if slot.id == slot_id else slot for slot in subscription.slots)
        return self._with_slots(subscription, slots, slot_id, now)

    def remove_slot(
        self, subscription: RecurringSubscription, slot_id: SlotId, now: datetime
    ) -> RecurringSubscription:
        now = _utc(now)
        self._require_state(subscription, (DRAFT, ACTIVE, PAUSED), "remove a slot from")
        self._require_slot(subscription, slot_id)
        slots = tuple(slot for slot in subscription.slots if slot.id != slot_id)
        return self._with_slots(subscription, slots, slot_id, now)

    def add_skip_date(
        self, subscription: RecurringSubscription, day: date, now: datetime
    ) -> RecurringSubscription:
        """Skip a local date (e.g. therapist vacation) and backfill the lost weeks."""
        now = _utc(now)
        self._require_state(subscription, (DRAFT, ACTIVE, PAUSED), "skip a date for")
        zones = {slot.id: get_zone(slot.timezone) for slot in subscription.slots}

        def on_day(occ: SessionOccurrence) -> bool:
            zone = zones.get(occ.slot_id)
            return zone is not None and occ.scheduled_at.astimezone(zone).date() == day

        occurrences = tuple(
            occ for occ in subscription.occurrences if not (_is_pending(occ, now) and on_day(occ))
        )
        updated = replace(
            subscription,
            skip_dates=subscription.skip_dates | {day},
            occurrences=occurrences,
            updated_at=now,
        )
        if updated.state is ACTIVE:
            updated = replace(
                updated,
                occurrences=self._materialize(updated, updated.enabled_slots, occurrences, now),
            )
        return updated

    # -- session management ---------------------------------------------

    def book_standalone(
        self,
        subscription: RecurringSubscription,
        starts_at: datetime,
        now: datetime,
        kind: SessionKind = SessionKind.STANDARD,
    ) -> tuple[RecurringSubscription, SessionOccurrence]:
        """Book a one-off session billed at the standalone (or trial) rate."""
        now = _utc(now)
        starts_at = _utc(starts_at)
        self._require_state(subscription, (ACTIVE,), "book a session for")
        if starts_at <= now:
            raise ValidationError.unmet(Precondition.SESSION_IN_FUTURE, "Sessions must be booked in the future")
        occurrence = SessionOccurrence(
            id=OccurrenceId.for_standalone(subscription.id, starts_at.isoformat()),
            slot_id=None,
            sequence_index=0,
            scheduled_at=starts_at,
            duration_minutes=kind.duration_minutes,
            amount_due=billing.amount_for(kind, True, subscription, self.policy),
            kind=kind,
            status=OccurrenceStatus.SCHEDULED,
            charge_trigger_at=starts_at - self.policy.billing_lead_time,
        )
        if subscription.find_occurrence(occurrence.id) is not None:
            raise ValidationError.unmet(Precondition.SESSION_SCHEDULED, "Session is already booked")
        updated = replace(
            subscription,
            occurrences=_ordered(subscription.occurrences + (occurrence,)),
            updated_at=now,
        )
        return updated, occurrence

    def decide_fee(
        self,
        subscription: RecurringSubscription,
        occurrence_id: OccurrenceId,
        action: FeeAction,
        now: datetime,
    ) -> FeeDecision:
        occurrence = self._require_scheduled(subscription, occurrence_id)
        return fees.decide(action, occurrence, _utc(now), policy=self.policy)

    def cancel_occurrence(
        self, subscription: RecurringSubscription, occurrence_id: OccurrenceId, now: datetime
    ) -> tuple[RecurringSubscription, FeeDecision]:
        """Client-initiated cancellation; a late fee is recorded when it applies."""
        now = _utc(now)
        self._require_state(subscription, (ACTIVE, PAUSED), "cancel a session of")
        occurrence = self._require_scheduled(subscription, occurrence_id)
        decision = fees.decide(FeeAction.CANCEL, occurrence, now, policy=self.policy)
        cancelled = replace(
            occurrence,
            status=OccurrenceStatus.CANCELLED,
            suspended=False,
            fee_charged=decision.fee_amount,
        )
        return self._swap(subscription, occurrence, [cancelled], now), decision

    def reschedule_occurrence(
        self,
        subscription: RecurringSubscription,
        occurrence_id: OccurrenceId,
        new_start: datetime,
        now: datetime,
    ) -> tuple[RecurringSubscription, SessionOccurrence, FeeDecision]:
        """Replace a session with one at ``new_start``; payment carries over."""
        now = _utc(now)
        new_start = _utc(new_start)
        self._require_state(subscription, (ACTIVE, PAUSED), "reschedule a session of")
        occurrence = self._require_scheduled(subscription, occurrence_id)
        decision = fees.decide(FeeAction.RESCHEDULE, occurrence, now, policy=self.policy)
        if new_start <= now:
            raise PastSessionError(str(occurrence_id))

        original = replace(
            occurrence,
            status=OccurrenceStatus.RESCHEDULED,
            suspended=False,
            fee_charged=decision.fee_amount,
        )
        replacement = replace(
            occurrence,
            id=occurrence.id.replacement(new_start.isoformat()),
            scheduled_at=new_start,
            charge_trigger_at=new_start - self.policy.billing_lead_time,
            fee_charged=Money.zero(),
            replaces=occurrence.id,
        )
        updated = self._swap(subscription, occurrence, [original, replacement], now)
        return updated, replacement, decision

    def complete_occurrence(
        self, subscription: RecurringSubscription, occurrence_id: OccurrenceId, now: datetime
    ) -> RecurringSubscription:
        now = _utc(now)
        occurrence = self._require_scheduled(subscription, occurrence_id)
        if occurrence.scheduled_at > now:
            raise ValidationError.unmet(Precondition.SESSION_STARTED, "Session has not started yet")
        completed = replace(occurrence, status=OccurrenceStatus.COMPLETED)
        return self._swap(subscription, occurrence, [completed], now)

    def record_charge(
        self, subscription: RecurringSubscription, occurrence_id: OccurrenceId, now: datetime
    ) -> RecurringSubscription:
        now = _utc(now)
        occurrence = self._require_scheduled(subscription, occurrence_id)
        return self._swap(subscription, occurrence, [replace(occurrence, charged_at=now)], now)

    def complete_elapsed(self, subscription: RecurringSubscription, now: datetime) -> RecurringSubscription:
        """Mark every scheduled, unsuspended session that has ended as completed."""
        now = _utc(now)

        def ended(occ: SessionOccurrence) -> bool:
            return (
                occ.is_scheduled
                and not occ.suspended
                and occ.scheduled_at + timedelta(minutes=occ.duration_minutes) <= now
            )

        if not any(ended(occ) for occ in subscription.occurrences):
            return subscription
        occurrences = tuple(
            replace(occ, status=OccurrenceStatus.COMPLETED) if ended(occ) else occ
            for occ in subscription.occurrences
        )
        return replace(subscription, occurrences=occurrences, updated_at=now)

    def record_fee_charge(
        self, subscription: RecurringSubscription, occurrence_id: OccurrenceId, now: datetime
    ) -> RecurringSubscription:
        """Mark the late fee of a cancelled or rescheduled session as collected."""
        now = _utc(now)
        occurrence = subscription.find_occurrence(occurrence_id)
        if occurrence is None:
            raise OccurrenceNotFoundError(str(occurrence_id))
        if not billing.is_fee_due(occurrence):
            raise ValidationError.unmet(
                Precondition.FEE_OUTSTANDING,
                "Session has no outstanding fee",
            )
        return self._swap(subscription, occurrence, [replace(occurrence, fee_charged_at=now)], now)

    def record_failed_charge(self, subscription: RecurringSubscription, now: datetime) -> RecurringSubscription:
        return replace(
            subscription,
            failed_payment_count=subscription.failed_payment_count + 1,
            updated_at=_utc(now),
        )

    def _swap(
        self,
        subscription: RecurringSubscription,
        old: SessionOccurrence,
        new: list[SessionOccurrence],
        now: datetime,
    ) -> RecurringSubscription:
        occurrences = [occ for occ in subscription.occurrences if occ.id != old.id] + new
        return replace(subscription, occurrences=_ordered(occurrences), updated_at=now)


def allowed_actions(subscription: RecurringSubscription) -> tuple[str, ...]:
    """Actions the UI may offer for the subscription's current state."""
    return ALLOWED_ACTIONS[subscription.state]
