"""Domain error codes for the scheduling module."""

from dataclasses import dataclass, field
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    SCHEDULE_CONFLICT = "SCHEDULE_CONFLICT"
    PAST_SESSION = "PAST_SESSION"
    TIMEZONE_UNRESOLVED = "TIMEZONE_UNRESOLVED"
    INVALID_SLOT = "INVALID_SLOT"
    INVALID_ID = "INVALID_ID"
    SUBSCRIPTION_NOT_FOUND = "SUBSCRIPTION_NOT_FOUND"
    SLOT_NOT_FOUND = "SLOT_NOT_FOUND"
    OCCURRENCE_NOT_FOUND = "OCCURRENCE_NOT_FOUND"


class Precondition(Enum):
    """Named preconditions a lifecycle transition can fail on."""

    ENABLED_SLOT_REQUIRED = "enabled_slot_required"
    NO_CONFLICTS = "no_conflicts"
    TERMS_ACKNOWLEDGED = "terms_acknowledged"
    PAYMENT_METHOD_PRESENT = "payment_method_present"
    STATE_ALLOWS_TRANSITION = "state_allows_transition"
    SESSION_IN_FUTURE = "session_in_future"
    SESSION_SCHEDULED = "session_scheduled"
    SESSION_STARTED = "session_started"
    SLOT_UNIQUE = "slot_unique"
    FEE_OUTSTANDING = "fee_outstanding"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


@dataclass(eq=False)
class ValidationError(DomainError):
    """Raised when a state transition precondition is not met.

    The subscription the transition was attempted on is left unchanged.
    """

    precondition: Precondition = Precondition.STATE_ALLOWS_TRANSITION

    @classmethod
    def unmet(cls, precondition: Precondition, message: str) -> "ValidationError":
        return cls(
            code=ErrorCode.VALIDATION_FAILED,
            message=message,
            precondition=precondition,
        )


@dataclass(eq=False)
class ConflictError(ValidationError):
    """Raised when two or more enabled slots share a day and time."""

    conflicts: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_messages(cls, messages: list[str]) -> "ConflictError":
        return cls(
            code=ErrorCode.SCHEDULE_CONFLICT,
            message="Multiple sessions are scheduled at the same day and time",
            precondition=Precondition.NO_CONFLICTS,
            conflicts=tuple(messages),
        )


class PastSessionError(DomainError):
    """Raised when a session that already started is modified."""

    def __init__(self, occurrence_id: str) -> None:
        super().__init__(
            code=ErrorCode.PAST_SESSION,
            message="This session can no longer be modified",
        )
        self.occurrence_id = occurrence_id


class TimezoneResolutionFailure(DomainError):
    """Raised when a timezone name cannot be resolved."""

    def __init__(self, timezone_name: str | None) -> None:
        super().__init__(
            code=ErrorCode.TIMEZONE_UNRESOLVED,
            message="Could not determine your timezone",
        )
        self.timezone_name = timezone_name


class InvalidSlotError(DomainError):
    """Raised when a weekly slot is built from unbookable values."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_SLOT, message=message)


class InvalidIdError(DomainError):
    """Raised when an identifier is not a valid UUID."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_ID,
            message="Invalid identifier format",
        )


class SubscriptionNotFoundError(DomainError):
    """Raised when a subscription is not found."""

    def __init__(self, subscription_id: str) -> None:
        super().__init__(
            code=ErrorCode.SUBSCRIPTION_NOT_FOUND,
            message="Subscription not found",
        )
        self.subscription_id = subscription_id


class SlotNotFoundError(DomainError):
    """Raised when a slot is not part of the subscription."""

    def __init__(self, slot_id: str) -> None:
        super().__init__(
            code=ErrorCode.SLOT_NOT_FOUND,
            message="Time slot not found",
        )
        self.slot_id = slot_id


class OccurrenceNotFoundError(DomainError):
    """Raised when a session is not part of the subscription."""

    def __init__(self, occurrence_id: str) -> None:
        super().__init__(
            code=ErrorCode.OCCURRENCE_NOT_FOUND,
            message="Session not found",
        )
        self.occurrence_id = occurrence_id
