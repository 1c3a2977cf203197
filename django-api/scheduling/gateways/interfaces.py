"""Boundary contracts for the payment processor and notification delivery.

The scheduling core only decides when and how much to charge and what
happened; these collaborators execute and present it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from scheduling.domain import Money, OccurrenceId, SubscriptionId


class ChargeOutcome(Enum):
    SUCCESS = "success"
    DECLINED = "declined"
    ERROR = "error"


@dataclass(frozen=True)
class ChargeResult:
    outcome: ChargeOutcome
    reference: str | None = None
    message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is ChargeOutcome.SUCCESS


class EventType(Enum):
    SUBSCRIPTION_ACTIVATED = "subscription_activated"
    SUBSCRIPTION_PAUSED = "subscription_paused"
    SUBSCRIPTION_RESUMED = "subscription_resumed"
    SUBSCRIPTION_CANCELLED = "subscription_cancelled"
    SESSION_CANCELLED = "session_cancelled"
    SESSION_RESCHEDULED = "session_rescheduled"
    SESSION_CHARGED = "session_charged"
    FEE_CHARGED = "fee_charged"
    PAYMENT_FAILED = "payment_failed"


@dataclass(frozen=True)
class NotificationEvent:
    type: EventType
    subscription_id: SubscriptionId
    client_id: str
    occurrence_id: OccurrenceId | None = None
    fee_amount: Money | None = None
    details: dict[str, Any] = field(default_factory=dict)


class PaymentGateway(ABC):
    """Interface for executing a charge against a stored payment method."""

    @abstractmethod
    def charge(self, payment_method_token: str, amount: Money, occurrence_id: OccurrenceId) -> ChargeResult:
        """Charge ``amount`` for one session; never raises for a declined card."""
        ...


class NotificationSink(ABC):
    """Interface for delivering scheduling events to the client."""

    @abstractmethod
    def notify(self, event: NotificationEvent) -> None:
        ...
