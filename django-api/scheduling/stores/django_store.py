"""Django ORM implementation of the SubscriptionStore."""

from collections.abc import Iterable
from datetime import date

from django.db import transaction

from scheduling import models as orm
from scheduling.domain import (
    Money,
    OccurrenceId,
    OccurrenceStatus,
    RecurringSubscription,
    ScheduleFrequency,
    SessionKind,
    SessionOccurrence,
    SlotId,
    SubscriptionId,
    SubscriptionState,
    WeeklyScheduleSlot,
)
from scheduling.stores.interfaces import SubscriptionStore


def _slot_to_domain(row: orm.WeeklyScheduleSlot) -> WeeklyScheduleSlot:
    return WeeklyScheduleSlot(
        id=SlotId(row.id),
        day_of_week=row.day_of_week,
        time_of_day=row.time_of_day,
        timezone=row.timezone,
        enabled=row.enabled,
        needs_timezone_confirmation=row.needs_timezone_confirmation,
        frequency=ScheduleFrequency(row.frequency),
    )


def _occurrence_to_domain(row: orm.SessionOccurrence) -> SessionOccurrence:
    return SessionOccurrence(
        id=OccurrenceId(row.id),
        slot_id=SlotId(row.slot_id) if row.slot_id else None,
        sequence_index=row.sequence_index,
        scheduled_at=row.scheduled_at,
        duration_minutes=row.duration_minutes,
        amount_due=Money(row.amount_due),
        kind=SessionKind(row.kind),
        status=OccurrenceStatus(row.status),
        charge_trigger_at=row.charge_trigger_at,
        suspended=row.suspended,
        charged_at=row.charged_at,
        fee_charged=Money(row.fee_charged),
        fee_charged_at=row.fee_charged_at,
        replaces=OccurrenceId(row.replaces_id) if row.replaces_id else None,
    )


def _to_domain(row: orm.RecurringSubscription) -> RecurringSubscription:
    return RecurringSubscription(
        id=SubscriptionId(row.id),
        client_id=row.client_id,
        state=SubscriptionState(row.state),
        price_per_session=Money(row.price_per_session),
        created_at=row.created_at,
        updated_at=row.updated_at,
        slots=tuple(_slot_to_domain(slot) for slot in row.slots.all()),
        occurrences=tuple(_occurrence_to_domain(occ) for occ in row.occurrences.all()),
        paused_reason=row.paused_reason,
        paused_until=row.paused_until,
        terms_acknowledged_at=row.terms_acknowledged_at,
        payment_method_token=row.payment_method_token,
        skip_dates=frozenset(date.fromisoformat(day) for day in row.skip_dates),
        failed_payment_count=row.failed_payment_count,
        cancelled_at=row.cancelled_at,
    )


class DjangoSubscriptionStore(SubscriptionStore):
    """PostgreSQL-backed subscription store using Django ORM."""

    def _queryset(self):
        return orm.RecurringSubscription.objects.prefetch_related("slots", "occurrences")

    def get_subscription(self, subscription_id: SubscriptionId) -> RecurringSubscription | None:
        row = self._queryset().filter(id=subscription_id.value).first()
        return _to_domain(row) if row is not None else None

    def list_subscriptions(
        self, states: Iterable[SubscriptionState] | None = None
    ) -> list[RecurringSubscription]:
        queryset = self._queryset()
        if states is not None:
            queryset = queryset.filter(state__in=[state.value for state in states])
        return [_to_domain(row) for row in queryset]

    def subscription_exists(self, subscription_id: SubscriptionId) -> bool:
        return orm.RecurringSubscription.objects.filter(id=subscription_id.value).exists()

    @transaction.atomic
    def save_subscription(self, subscription: RecurringSubscription) -> None:
        row, _ = orm.RecurringSubscription.objects.update_or_create(
            id=subscription.id.value,
            defaults={
                "client_id": subscription.client_id,
                "state": subscription.state.value,
                "price_per_session": subscription.price_per_session.amount,
                "paused_reason": subscription.paused_reason,
                "paused_until": subscription.paused_until,
                "terms_acknowledged_at": subscription.terms_acknowledged_at,
                "payment_method_token": subscription.payment_method_token,
                "skip_dates": sorted(day.isoformat() for day in subscription.skip_dates),
                "failed_payment_count": subscription.failed_payment_count,
                "cancelled_at": subscription.cancelled_at,
                "created_at": subscription.created_at,
                "updated_at": subscription.updated_at,
            },
        )

        slot_ids = [slot.id.value for slot in subscription.slots]
        for removed in row.slots.exclude(id__in=slot_ids):
            removed.delete()
        for position, slot in enumerate(subscription.slots):
            orm.WeeklyScheduleSlot.objects.update_or_create(
                id=slot.id.value,
                defaults={
                    "subscription": row,
                    "day_of_week": slot.day_of_week,
                    "time_of_day": slot.time_of_day,
                    "timezone": slot.timezone,
                    "enabled": slot.enabled,
                    "needs_timezone_confirmation": slot.needs_timezone_confirmation,
                    "frequency": slot.frequency.value,
                    "position": position,
                },
            )

        occurrence_ids = [occ.id.value for occ in subscription.occurrences]
        for removed in row.occurrences.exclude(id__in=occurrence_ids):
            removed.delete()
        for occ in subscription.occurrences:
            orm.SessionOccurrence.objects.update_or_create(
                id=occ.id.value,
                defaults={
                    "subscription": row,
                    "slot_id": occ.slot_id.value if occ.slot_id else None,
                    "sequence_index": occ.sequence_index,
                    "scheduled_at": occ.scheduled_at,
                    "duration_minutes": occ.duration_minutes,
                    "amount_due": occ.amount_due.amount,
                    "kind": occ.kind.value,
                    "status": occ.status.value,
                    "charge_trigger_at": occ.charge_trigger_at,
                    "suspended": occ.suspended,
                    "charged_at": occ.charged_at,
                    "fee_charged": occ.fee_charged.amount,
                    "fee_charged_at": occ.fee_charged_at,
                    "replaces_id": occ.replaces.value if occ.replaces else None,
                },
            )
