"""Read-side projections: wizard previews and subscription summaries."""

from dataclasses import dataclass
from datetime import datetime
from heapq import merge

from scheduling.domain import billing
from scheduling.domain.conflicts import find_conflicts
from scheduling.domain.models import RecurringSubscription
from scheduling.domain.policy import DEFAULT_POLICY, BookingPolicy
from scheduling.domain.recurrence import next_occurrences
from scheduling.domain.timezones import describe_conflict, format_instant
from scheduling.domain.value_objects import Money, OccurrenceStatus, SessionKind, SlotId


@dataclass(frozen=True)
class SessionPreview:
    slot_id: SlotId
    scheduled_at: datetime
    local_display: str
    duration_minutes: int
    charge_at: datetime
    amount: Money
    is_conflict: bool
    conflict_reason: str | None = None


def preview_sessions(
    subscription: RecurringSubscription,
    now: datetime,
    count: int = 8,
    policy: BookingPolicy = DEFAULT_POLICY,
) -> list[SessionPreview]:
    """Next ``count`` sessions of every enabled slot, merged by start time."""
    slots = subscription.enabled_slots
    conflicts = find_conflicts(slots, now.date())
    by_id = {slot.id: slot for slot in slots}
    amount = billing.amount_for(SessionKind.STANDARD, False, subscription, policy)

    def reason_for(slot_id: SlotId) -> str | None:
        for pair in conflicts:
            if slot_id in pair:
                other = next(iter(pair - {slot_id}))
                return describe_conflict(by_id[slot_id], by_id[other], now.date())
        return None

    def stream(slot):
        for instant in next_occurrences(slot, now, count):
            yield instant, slot

    streams = [stream(slot) for slot in slots]
    previews = []
    for instant, slot in merge(*streams, key=lambda item: item[0]):
        reason = reason_for(slot.id)
        previews.append(
            SessionPreview(
                slot_id=slot.id,
                scheduled_at=instant,
                local_display=format_instant(instant, slot.timezone),
                duration_minutes=SessionKind.STANDARD.duration_minutes,
                charge_at=instant - policy.billing_lead_time,
                amount=amount,
                is_conflict=reason is not None,
                conflict_reason=reason,
            )
        )
    return previews


@dataclass(frozen=True)
class SubscriptionSummary:
    total_sessions: int
    completed_sessions: int
    cancelled_sessions: int
    rescheduled_sessions: int
    upcoming_sessions: int
    amount_charged: Money
    fees_charged: Money
    fees_outstanding: Money
    failed_payments: int


def summarize(subscription: RecurringSubscription, now: datetime) -> SubscriptionSummary:
    occurrences = subscription.occurrences
    by_status = {status: 0 for status in OccurrenceStatus}
    charged = Money.zero()
    fees = Money.zero()
    outstanding = Money.zero()
    for occ in occurrences:
        by_status[occ.status] += 1
        if occ.charged_at is not None:
            charged = charged + occ.amount_due
        if occ.fee_charged_at is not None:
            fees = fees + occ.fee_charged
        elif billing.is_fee_due(occ):
            outstanding = outstanding + occ.fee_charged
    return SubscriptionSummary(
        total_sessions=len(occurrences),
        completed_sessions=by_status[OccurrenceStatus.COMPLETED],
        cancelled_sessions=by_status[OccurrenceStatus.CANCELLED],
        rescheduled_sessions=by_status[OccurrenceStatus.RESCHEDULED],
        upcoming_sessions=len(subscription.upcoming(now)),
        amount_charged=charged,
        fees_charged=fees,
        fees_outstanding=outstanding,
        failed_payments=subscription.failed_payment_count,
    )
