from scheduling.gateways.interfaces import (
    ChargeOutcome,
    ChargeResult,
    EventType,
    NotificationEvent,
    NotificationSink,
    PaymentGateway,
)

__all__ = [
    "ChargeOutcome",
    "ChargeResult",
    "EventType",
    "NotificationEvent",
    "NotificationSink",
    "PaymentGateway",
]
