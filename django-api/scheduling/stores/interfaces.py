"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from scheduling.domain import RecurringSubscription, SubscriptionId, SubscriptionState


class SubscriptionStore(ABC):
    """Interface for subscription persistence operations."""

    @abstractmethod
    def get_subscription(self, subscription_id: SubscriptionId) -> RecurringSubscription | None:
        """Return a subscription with its slots and occurrences, or None if not found."""
        ...

    @abstractmethod
    def save_subscription(self, subscription: RecurringSubscription) -> None:
        """Persist the subscription, its slots and its occurrences as a whole."""
        ...

    @abstractmethod
    def list_subscriptions(
        self, states: Iterable[SubscriptionState] | None = None
    ) -> list[RecurringSubscription]:
        """Return subscriptions, optionally filtered by state, newest first."""
        ...

    @abstractmethod
    def subscription_exists(self, subscription_id: SubscriptionId) -> bool:
        """Check if a subscription exists."""
        ...
