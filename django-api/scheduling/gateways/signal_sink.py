"""Notification sink that fans events out as a Django signal.

Email, SMS or push delivery connect receivers to ``scheduling_event``.
"""

import logging

from django.dispatch import Signal

from scheduling.gateways.interfaces import NotificationEvent, NotificationSink

logger = logging.getLogger(__name__)

# Sent with ``event=NotificationEvent``.
scheduling_event = Signal()


class SignalNotificationSink(NotificationSink):
    def notify(self, event: NotificationEvent) -> None:
        logger.info(
            "%s for subscription %s%s",
            event.type.value,
            event.subscription_id,
            f" (fee {event.fee_amount})" if event.fee_amount is not None else "",
        )
        scheduling_event.send(sender=type(self), event=event)
