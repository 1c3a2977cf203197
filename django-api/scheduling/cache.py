"""Cache keys for subscription read endpoints."""

from django.core.cache import cache

SUBSCRIPTION_TTL = 300
SESSIONS_TTL = 60


def subscription_key(subscription_id) -> str:
    return f"subscriptions:{subscription_id}"


def sessions_key(subscription_id) -> str:
    return f"subscriptions:{subscription_id}:sessions"


def invalidate_subscription(subscription_id) -> None:
    cache.delete_many([subscription_key(subscription_id), sessions_key(subscription_id)])
