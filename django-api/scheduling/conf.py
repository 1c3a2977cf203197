"""Scheduling settings read from ``settings.SCHEDULING``."""

from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.utils.module_loading import import_string

from scheduling.domain import BookingPolicy, Money
from scheduling.gateways import NotificationSink, PaymentGateway

DEFAULTS = {
    "RECURRING_RATE": "150.00",
    "STANDALONE_RATE": "170.00",
    "TRIAL_RATE": "1.00",
    "LATE_FEE": "50.00",
    "FEE_THRESHOLD_HOURS": 24,
    "BILLING_LEAD_HOURS": 48,
    "BATCH_SIZE": 4,
    "PAYMENT_GATEWAY": "scheduling.gateways.logging_gateway.LoggingPaymentGateway",
    "NOTIFICATION_SINK": "scheduling.gateways.signal_sink.SignalNotificationSink",
}


def get(name: str):
    return getattr(settings, "SCHEDULING", {}).get(name, DEFAULTS[name])


def booking_policy() -> BookingPolicy:
    return BookingPolicy(
        recurring_rate=Money(Decimal(str(get("RECURRING_RATE")))),
        standalone_rate=Money(Decimal(str(get("STANDALONE_RATE")))),
        trial_rate=Money(Decimal(str(get("TRIAL_RATE")))),
        late_fee=Money(Decimal(str(get("LATE_FEE")))),
        fee_threshold=timedelta(hours=get("FEE_THRESHOLD_HOURS")),
        billing_lead_time=timedelta(hours=get("BILLING_LEAD_HOURS")),
        batch_size=int(get("BATCH_SIZE")),
    )


def payment_gateway() -> PaymentGateway:
    return import_string(get("PAYMENT_GATEWAY"))()


def notification_sink() -> NotificationSink:
    return import_string(get("NOTIFICATION_SINK"))()
