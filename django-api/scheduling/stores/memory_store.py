"""Dictionary-backed store, used by tests and one-off tooling."""

from collections.abc import Iterable

from scheduling.domain import RecurringSubscription, SubscriptionId, SubscriptionState
from scheduling.stores.interfaces import SubscriptionStore


class InMemorySubscriptionStore(SubscriptionStore):
    def __init__(self, subscriptions: Iterable[RecurringSubscription] = ()) -> None:
        self._subscriptions: dict[SubscriptionId, RecurringSubscription] = {
            sub.id: sub for sub in subscriptions
        }

    def get_subscription(self, subscription_id: SubscriptionId) -> RecurringSubscription | None:
        return self._subscriptions.get(subscription_id)

    def save_subscription(self, subscription: RecurringSubscription) -> None:
        self._subscriptions[subscription.id] = subscription

    def list_subscriptions(
        self, states: Iterable[SubscriptionState] | None = None
    ) -> list[RecurringSubscription]:
        wanted = set(states) if states is not None else None
        subs = [
            sub for sub in self._subscriptions.values() if wanted is None or sub.state in wanted
        ]
        return sorted(subs, key=lambda sub: sub.created_at, reverse=True)

    def subscription_exists(self, subscription_id: SubscriptionId) -> bool:
        return subscription_id in self._subscriptions
