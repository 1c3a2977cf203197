"""Unit tests for SubscriptionService and BillingService.

These test orchestration, notifications and domain error mapping.
Run with: pytest tests/test_services.py -v
"""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from scheduling.domain import FeeAction, Money, OccurrenceStatus, SessionKind, SubscriptionState
from scheduling.domain.errors import (
    ConflictError,
    InvalidIdError,
    InvalidSlotError,
    SubscriptionNotFoundError,
    ValidationError,
)
from scheduling.gateways import ChargeOutcome, EventType
from scheduling.services import BillingService, SubscriptionService
from tests.factories import NEW_YORK, ScriptedGateway

UTC = timezone.utc


@pytest.fixture
def service(store, sink, clock) -> SubscriptionService:
    return SubscriptionService(store, sink, clock=clock)


def ready_draft(service, *slots):
    """Draft with terms, payment method and the given (day, hour) slots."""
    subscription = service.create_subscription("client-1")
    sid = str(subscription.id)
    for day, hour in slots:
        service.add_slot(sid, day, time(hour, 0), (NEW_YORK,))
    service.acknowledge_terms(sid)
    service.set_payment_method(sid, "pm_test")
    return sid


class TestWizard:
    """Tests for the setup wizard operations."""

    def test_create_subscription(self, service, store):
        """A new subscription is a saved draft at the recurring rate."""
        subscription = service.create_subscription("client-1")
        assert subscription.state is SubscriptionState.DRAFT
        assert subscription.price_per_session == Money("150.00")
        assert store.subscription_exists(subscription.id)

    def test_get_subscription_not_found(self, service):
        """Unknown ids raise SubscriptionNotFoundError."""
        with pytest.raises(SubscriptionNotFoundError):
            service.get_subscription(str(uuid4()))

    def test_get_subscription_invalid_id(self, service):
        """Malformed ids raise InvalidIdError."""
        with pytest.raises(InvalidIdError):
            service.get_subscription("not-a-uuid")

    def test_add_slot_uses_first_resolvable_timezone(self, service):
        """The slot captures the caller's zone."""
        sid = str(service.create_subscription("client-1").id)
        _, slot = service.add_slot(sid, 2, time(14, 0), (None, NEW_YORK))
        assert slot.timezone == NEW_YORK
        assert slot.needs_timezone_confirmation is False

    def test_add_slot_flags_fallback_timezone(self, service):
        """Without a usable zone the slot is UTC and flagged for confirmation."""
        sid = str(service.create_subscription("client-1").id)
        _, slot = service.add_slot(sid, 2, time(14, 0), ("Nowhere/Special",))
        assert slot.timezone == "UTC"
        assert slot.needs_timezone_confirmation is True

    def test_add_unbookable_slot(self, service):
        """Times outside business hours are rejected."""
        sid = str(service.create_subscription("client-1").id)
        with pytest.raises(InvalidSlotError):
            service.add_slot(sid, 2, time(22, 0), (NEW_YORK,))

    def test_update_slot_timezone(self, service):
        """Changing a slot's zone resolves it like on creation."""
        sid = str(service.create_subscription("client-1").id)
        _, slot = service.add_slot(sid, 2, time(14, 0), (NEW_YORK,))
        updated = service.update_slot(sid, str(slot.id), timezone="Europe/London")
        assert updated.find_slot(slot.id).timezone == "Europe/London"

    def test_list_conflicts(self, service):
        """Colliding draft slots are reported as messages."""
        sid = ready_draft(service, (2, 14), (2, 14))
        assert service.list_conflicts(sid) == [
            "You have more than one session on Tuesday at 2:00 PM EST"
        ]

    def test_preview_flags_conflicts(self, service):
        """Preview sessions show conflicts before activation."""
        sid = ready_draft(service, (2, 14), (2, 14))
        previews = service.preview(sid, count=2)
        assert len(previews) == 4
        assert all(preview.is_conflict for preview in previews)

    def test_preview_is_merged_by_time(self, service):
        """Preview interleaves slots by start time and shows the charge time."""
        sid = ready_draft(service, (5, 14), (2, 14))
        previews = service.preview(sid, count=3)
        instants = [preview.scheduled_at for preview in previews]
        assert instants == sorted(instants)
        assert previews[0].local_display == "Jan 9, 2024 at 2:00 PM EST"
        assert previews[0].charge_at == previews[0].scheduled_at - timedelta(hours=48)
        assert not any(preview.is_conflict for preview in previews)


class TestTransitions:
    """Tests for activation, pause, resume and cancel."""

    def test_activate_notifies(self, service, sink, store):
        """Activation saves the sessions and notifies once."""
        sid = ready_draft(service, (2, 14))
        activated = service.activate(sid)
        assert len(activated.occurrences) == 4
        assert store.get_subscription(activated.id).state is SubscriptionState.ACTIVE
        assert sink.types == [EventType.SUBSCRIPTION_ACTIVATED]

    def test_failed_activation_saves_nothing(self, service, sink, store):
        """A conflict leaves the stored draft untouched."""
        sid = ready_draft(service, (2, 14), (2, 14))
        with pytest.raises(ConflictError):
            service.activate(sid)
        assert service.get_subscription(sid).state is SubscriptionState.DRAFT
        assert sink.events == []

    def test_pause_resume_cancel(self, service, sink):
        """Each transition is persisted and published."""
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        paused = service.pause(sid, "vacation", until=date(2024, 2, 1))
        assert paused.state is SubscriptionState.PAUSED
        resumed = service.resume(sid)
        assert resumed.state is SubscriptionState.ACTIVE
        cancelled = service.cancel(sid)
        assert cancelled.state is SubscriptionState.CANCELLED
        assert sink.types == [
            EventType.SUBSCRIPTION_ACTIVATED,
            EventType.SUBSCRIPTION_PAUSED,
            EventType.SUBSCRIPTION_RESUMED,
            EventType.SUBSCRIPTION_CANCELLED,
        ]

    def test_invalid_transition(self, service):
        """Resuming a draft raises ValidationError."""
        sid = ready_draft(service, (2, 14))
        with pytest.raises(ValidationError):
            service.resume(sid)


class TestSessions:
    """Tests for session operations."""

    def test_upcoming_sessions(self, service):
        """Upcoming sessions are earliest first."""
        sid = ready_draft(service, (2, 14), (4, 10))
        service.activate(sid)
        sessions = service.upcoming_sessions(sid)
        assert len(sessions) == 8
        assert sessions[0].scheduled_at == datetime(2024, 1, 9, 19, 0, tzinfo=UTC)

    def test_decide_fee_changes_nothing(self, service):
        """Asking for the fee does not cancel anything."""
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        first = service.upcoming_sessions(sid)[0]
        decision = service.decide_fee(sid, str(first.id), FeeAction.CANCEL)
        assert decision.fee_applies is False
        assert service.upcoming_sessions(sid)[0] == first

    def test_late_cancellation(self, service, sink, clock):
        """A late cancellation records and publishes the fee."""
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        first = service.upcoming_sessions(sid)[0]
        clock.now = datetime(2024, 1, 9, 13, 0, tzinfo=UTC)
        decision = service.cancel_session(sid, str(first.id))
        assert decision.fee_amount == Money("50.00")
        assert sink.events[-1].type is EventType.SESSION_CANCELLED
        assert sink.events[-1].fee_amount == Money("50.00")
        assert first.id not in [occ.id for occ in service.upcoming_sessions(sid)]

    def test_reschedule(self, service, sink):
        """Rescheduling returns the replacement and publishes it."""
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        first = service.upcoming_sessions(sid)[0]
        new_start = datetime(2024, 1, 10, 19, 0, tzinfo=UTC)
        replacement, decision = service.reschedule_session(sid, str(first.id), new_start)
        assert replacement.scheduled_at == new_start
        assert decision.fee_applies is False
        assert sink.events[-1].type is EventType.SESSION_RESCHEDULED
        assert sink.events[-1].details["replaces"] == str(first.id)

    def test_book_standalone(self, service):
        """A one-off trial session is booked at the trial rate."""
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        occurrence = service.book_standalone(
            sid, datetime(2024, 1, 12, 15, 0, tzinfo=UTC), SessionKind.TRIAL
        )
        assert occurrence.amount_due == Money("1.00")
        assert occurrence in service.upcoming_sessions(sid)

    def test_summary(self, service, clock):
        """The summary counts sessions by outcome."""
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        first = service.upcoming_sessions(sid)[0]
        clock.now = datetime(2024, 1, 9, 13, 0, tzinfo=UTC)
        service.cancel_session(sid, str(first.id))
        summary = service.summary(sid)
        assert summary.total_sessions == 4
        assert summary.cancelled_sessions == 1
        assert summary.upcoming_sessions == 3
        assert summary.fees_charged == Money.zero()
        assert summary.fees_outstanding == Money("50.00")

    def test_complete_session(self, service, clock):
        """A session that has started can be marked completed."""
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        first = service.upcoming_sessions(sid)[0]
        clock.now = datetime(2024, 1, 9, 20, 0, tzinfo=UTC)
        completed = service.complete_session(sid, str(first.id))
        assert completed.status is OccurrenceStatus.COMPLETED
        assert service.summary(sid).completed_sessions == 1

    def test_complete_future_session(self, service):
        """A session that has not started cannot be completed."""
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        first = service.upcoming_sessions(sid)[0]
        with pytest.raises(ValidationError):
            service.complete_session(sid, str(first.id))

    def test_complete_elapsed_sessions(self, service, clock):
        """The periodic job completes every session that has ended."""
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        clock.now = datetime(2024, 1, 17, 0, 0, tzinfo=UTC)
        assert service.complete_elapsed_sessions() == 2
        assert service.complete_elapsed_sessions() == 0
        assert service.summary(sid).completed_sessions == 2

    def test_refresh_lookahead(self, service, clock):
        """The periodic refresh tops up active subscriptions."""
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        clock.now = datetime(2024, 1, 15, 15, 0, tzinfo=UTC)
        assert service.refresh_lookahead() == 1
        assert len(service.upcoming_sessions(sid)) == 4


class TestBillingService:
    """Tests for BillingService.run_due_charges."""

    @pytest.fixture
    def billing(self, store, gateway, sink, clock) -> BillingService:
        return BillingService(store, gateway, sink, clock=clock)

    def test_charges_only_due_sessions(self, service, billing, gateway, store):
        """Only the session inside its 48-hour window is charged."""
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        attempts = billing.run_due_charges()
        assert len(attempts) == 1
        assert attempts[0].outcome is ChargeOutcome.SUCCESS
        assert gateway.charges[0][0] == "pm_test"
        subscription = service.get_subscription(sid)
        assert subscription.occurrences[0].charged_at is not None
        assert all(occ.charged_at is None for occ in subscription.occurrences[1:])

    def test_charges_once(self, service, billing, gateway):
        """A second run does not charge the same session again."""
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        billing.run_due_charges()
        assert billing.run_due_charges() == []
        assert len(gateway.charges) == 1

    def test_paused_sessions_are_not_charged(self, service, billing):
        """Suspended sessions are skipped."""
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        service.pause(sid, "vacation")
        assert billing.run_due_charges() == []

    def test_declined_charge_is_counted_and_retried(self, service, store, sink, clock):
        """A decline counts a failed payment and is retried next run."""
        billing = BillingService(store, ScriptedGateway(ChargeOutcome.DECLINED), sink, clock=clock)
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        billing.run_due_charges()
        billing.run_due_charges()
        subscription = service.get_subscription(sid)
        assert subscription.failed_payment_count == 2
        assert subscription.occurrences[0].charged_at is None
        assert sink.types.count(EventType.PAYMENT_FAILED) == 2

    def test_gateway_error_is_a_failed_payment(self, service, store, sink, clock):
        """A gateway error is treated like a decline."""
        billing = BillingService(store, ScriptedGateway(ChargeOutcome.ERROR), sink, clock=clock)
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        attempts = billing.run_due_charges()
        assert attempts[0].outcome is ChargeOutcome.ERROR
        assert service.get_subscription(sid).failed_payment_count == 1

    def test_late_cancel_fee_is_charged(self, service, billing, gateway, sink, clock):
        """A late-cancellation fee is sent to the gateway once."""
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        first = service.upcoming_sessions(sid)[0]
        clock.now = datetime(2024, 1, 9, 13, 0, tzinfo=UTC)
        service.cancel_session(sid, str(first.id))

        attempts = billing.run_due_charges()
        assert gateway.charges == [("pm_test", Money("50.00"), first.id)]
        assert attempts[0].is_fee is True
        assert sink.events[-1].type is EventType.FEE_CHARGED
        assert service.get_subscription(sid).find_occurrence(first.id).fee_charged_at == clock.now
        summary = service.summary(sid)
        assert summary.fees_charged == Money("50.00")
        assert summary.fees_outstanding == Money.zero()

        assert billing.run_due_charges() == []

    def test_late_reschedule_fee_is_charged(self, service, billing, gateway, clock):
        """A late-reschedule fee is collected alongside session charges."""
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        first = service.upcoming_sessions(sid)[0]
        clock.now = datetime(2024, 1, 9, 13, 0, tzinfo=UTC)
        service.reschedule_session(sid, str(first.id), datetime(2024, 1, 10, 19, 0, tzinfo=UTC))
        billing.run_due_charges()
        amounts = sorted(charge[1].amount for charge in gateway.charges)
        assert amounts == [Decimal("50"), Decimal("150")]

    def test_declined_fee_stays_outstanding(self, service, store, sink, clock):
        """A declined fee counts a failed payment and is retried."""
        billing = BillingService(store, ScriptedGateway(ChargeOutcome.DECLINED), sink, clock=clock)
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        first = service.upcoming_sessions(sid)[0]
        clock.now = datetime(2024, 1, 9, 13, 0, tzinfo=UTC)
        service.cancel_session(sid, str(first.id))
        billing.run_due_charges()
        subscription = service.get_subscription(sid)
        assert subscription.failed_payment_count == 1
        assert subscription.find_occurrence(first.id).fee_charged_at is None
        assert sink.types[-1] is EventType.PAYMENT_FAILED
        assert service.summary(sid).fees_outstanding == Money("50.00")

    def test_fee_is_collected_after_subscription_cancel(self, service, billing, gateway, clock):
        """Cancelling the whole plan does not waive an earlier late fee."""
        sid = ready_draft(service, (2, 14))
        service.activate(sid)
        first = service.upcoming_sessions(sid)[0]
        clock.now = datetime(2024, 1, 9, 13, 0, tzinfo=UTC)
        service.cancel_session(sid, str(first.id))
        service.cancel(sid)
        billing.run_due_charges()
        assert gateway.charges == [("pm_test", Money("50.00"), first.id)]
