"""Billing run - charges every session whose lead time has been reached.

Meant to be invoked periodically (see the ``charge_due_sessions`` command);
``billing.is_charge_due`` and ``billing.is_fee_due`` are the only places that
decide whether to charge.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from django.utils import timezone

from scheduling.domain import Money, OccurrenceId, RecurringSubscription, SubscriptionId, SubscriptionState
from scheduling.domain import billing
from scheduling.domain.lifecycle import SubscriptionLifecycle
from scheduling.domain.policy import DEFAULT_POLICY, BookingPolicy
from scheduling.gateways import (
    ChargeOutcome,
    ChargeResult,
    EventType,
    NotificationEvent,
    NotificationSink,
    PaymentGateway,
)
from scheduling.stores.interfaces import SubscriptionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChargeAttempt:
    subscription_id: SubscriptionId
    occurrence_id: OccurrenceId
    amount: Money
    outcome: ChargeOutcome
    is_fee: bool = False


class BillingService:
    def __init__(
        self,
        store: SubscriptionStore,
        gateway: PaymentGateway,
        notifications: NotificationSink,
        policy: BookingPolicy = DEFAULT_POLICY,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._notifications = notifications
        self._policy = policy
        self._lifecycle = SubscriptionLifecycle(policy)
        self._clock = clock

    def _failed(
        self, subscription: RecurringSubscription, occurrence_id: OccurrenceId, result: ChargeResult, now: datetime
    ) -> RecurringSubscription:
        if result.outcome is ChargeOutcome.DECLINED:
            logger.warning("Charge declined for session %s: %s", occurrence_id, result.message)
        else:
            logger.error("Payment gateway error for session %s: %s", occurrence_id, result.message)
        return self._lifecycle.record_failed_charge(subscription, now)

    def _notify(
        self,
        event_type: EventType,
        subscription: RecurringSubscription,
        occurrence_id: OccurrenceId,
        amount: Money,
        result: ChargeResult,
        is_fee: bool,
    ) -> None:
        self._notifications.notify(
            NotificationEvent(
                type=event_type,
                subscription_id=subscription.id,
                client_id=subscription.client_id,
                occurrence_id=occurrence_id,
                fee_amount=amount if is_fee else None,
                details={"amount": str(amount), "reference": result.reference},
            )
        )

    def run_due_charges(self) -> list[ChargeAttempt]:
        """Charge due sessions and outstanding late fees of live subscriptions.

        Fees of cancelled subscriptions are still collected.
        """
        now = self._clock()
        attempts = []
        states = [SubscriptionState.ACTIVE, SubscriptionState.PAUSED, SubscriptionState.CANCELLED]
        for subscription in self._store.list_subscriptions(states):
            due = []
            if subscription.state is not SubscriptionState.CANCELLED:
                due = [
                    occ
                    for occ in subscription.occurrences
                    if billing.is_charge_due(occ, now, self._policy.billing_lead_time)
                ]
            fees = [occ for occ in subscription.occurrences if billing.is_fee_due(occ)]
            if not due and not fees:
                continue

            updated = subscription
            token = subscription.payment_method_token or ""
            for occurrence in due:
                result = self._gateway.charge(token, occurrence.amount_due, occurrence.id)
                attempts.append(
                    ChargeAttempt(subscription.id, occurrence.id, occurrence.amount_due, result.outcome)
                )
                if result.succeeded:
                    updated = self._lifecycle.record_charge(updated, occurrence.id, now)
                    event_type = EventType.SESSION_CHARGED
                else:
                    updated = self._failed(updated, occurrence.id, result, now)
                    event_type = EventType.PAYMENT_FAILED
                self._notify(event_type, subscription, occurrence.id, occurrence.amount_due, result, False)

            for occurrence in fees:
                result = self._gateway.charge(token, occurrence.fee_charged, occurrence.id)
                attempts.append(
                    ChargeAttempt(subscription.id, occurrence.id, occurrence.fee_charged, result.outcome, True)
                )
                if result.succeeded:
                    updated = self._lifecycle.record_fee_charge(updated, occurrence.id, now)
                    event_type = EventType.FEE_CHARGED
                else:
                    updated = self._failed(updated, occurrence.id, result, now)
                    event_type = EventType.PAYMENT_FAILED
                self._notify(event_type, subscription, occurrence.id, occurrence.fee_charged, result, True)
            self._store.save_subscription(updated)

        logger.info("Billing run at %s made %d charge attempts", now.isoformat(), len(attempts))
        return attempts
