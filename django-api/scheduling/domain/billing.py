"""When and how much to charge for a session.

Only computes; executing the charge is the payment gateway's job.
"""

from datetime import datetime, timedelta

from scheduling.domain.models import RecurringSubscription, SessionOccurrence
from scheduling.domain.policy import DEFAULT_POLICY, BookingPolicy
from scheduling.domain.value_objects import Money, OccurrenceStatus, SessionKind

BILLING_LEAD_TIME = DEFAULT_POLICY.billing_lead_time


def charge_trigger(
    occurrence: SessionOccurrence, lead_time: timedelta = BILLING_LEAD_TIME
) -> datetime:
    return occurrence.scheduled_at - lead_time


def is_charge_due(
    occurrence: SessionOccurrence,
    now: datetime,
    lead_time: timedelta = BILLING_LEAD_TIME,
) -> bool:
    """True once the lead time is reached for a scheduled, unpaid session."""
    return (
        occurrence.status is OccurrenceStatus.SCHEDULED
        and not occurrence.suspended
        and occurrence.charged_at is None
        and now >= charge_trigger(occurrence, lead_time)
    )


def is_fee_due(occurrence: SessionOccurrence) -> bool:
    """True for a late-cancel or late-reschedule fee not yet collected."""
    return (
        occurrence.status in (OccurrenceStatus.CANCELLED, OccurrenceStatus.RESCHEDULED)
        and bool(occurrence.fee_charged)
        and occurrence.fee_charged_at is None
    )


def amount_for(
    kind: SessionKind,
    standalone: bool,
    subscription: RecurringSubscription,
    policy: BookingPolicy = DEFAULT_POLICY,
) -> Money:
    if not standalone:
        return subscription.price_per_session
    if kind is SessionKind.TRIAL:
        return policy.trial_rate
    return policy.standalone_rate


def amount_for_occurrence(
    occurrence: SessionOccurrence,
    subscription: RecurringSubscription,
    policy: BookingPolicy = DEFAULT_POLICY,
) -> Money:
    """Recurring-plan price for slot occurrences, standalone rate for one-offs."""
    return amount_for(occurrence.kind, occurrence.is_standalone, subscription, policy)
