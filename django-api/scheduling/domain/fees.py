"""Late cancellation and rescheduling fee rules."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from scheduling.domain.errors import PastSessionError
from scheduling.domain.models import SessionOccurrence
from scheduling.domain.policy import DEFAULT_POLICY, BookingPolicy
from scheduling.domain.value_objects import FeeAction, Money, SessionKind


@dataclass(frozen=True)
class FeeDecision:
    action: FeeAction
    hours_until_session: float
    fee_applies: bool
    fee_amount: Money


def hours_until(occurrence: SessionOccurrence, now: datetime) -> float:
    return (occurrence.scheduled_at - now) / timedelta(hours=1)


def decide(
    action: FeeAction,
    occurrence: SessionOccurrence,
    now: datetime,
    session_kind: SessionKind | None = None,
    policy: BookingPolicy = DEFAULT_POLICY,
) -> FeeDecision:
    """Classify a cancel/reschedule request as fee-free or fee-bearing.

    Exactly 24 hours ahead is still free. ``session_kind`` defaults to the
    occurrence's own kind.

    Raises:
        PastSessionError: If the session has already started.
    """
    hours = hours_until(occurrence, now)
    if hours <= 0:
        raise PastSessionError(str(occurrence.id))

    kind = session_kind or occurrence.kind
    fee_applies = occurrence.scheduled_at - now < policy.fee_threshold
    if kind is SessionKind.TRIAL or not fee_applies:
        amount = Money.zero()
    else:
        amount = policy.late_fee
    return FeeDecision(
        action=action,
        hours_until_session=hours,
        fee_applies=fee_applies,
        fee_amount=amount,
    )
