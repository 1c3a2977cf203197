"""Django signals for cache invalidation."""

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from scheduling.cache import invalidate_subscription
from scheduling.models import RecurringSubscription, SessionOccurrence, WeeklyScheduleSlot


@receiver([post_save, post_delete], sender=RecurringSubscription)
def invalidate_subscription_cache(sender, instance, **kwargs):
    """Invalidate caches when a subscription is saved or deleted."""
    invalidate_subscription(instance.id)


@receiver([post_save, post_delete], sender=WeeklyScheduleSlot)
def invalidate_slot_cache(sender, instance, **kwargs):
    """Invalidate caches when a slot is saved or deleted."""
    invalidate_subscription(instance.subscription_id)


@receiver([post_save, post_delete], sender=SessionOccurrence)
def invalidate_occurrence_cache(sender, instance, **kwargs):
    """Invalidate caches when a session is saved or deleted."""
    invalidate_subscription(instance.subscription_id)
