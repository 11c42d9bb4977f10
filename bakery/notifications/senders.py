"""
Delivery backends for queued notifications.

The active backend is named by the ``NOTIFICATION_SENDER`` setting as a
dotted path. A backend is a class with ``send(notification)`` that raises
on failure.
"""
import logging

from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


class SendError(Exception):
    pass


class LogSender:
    """Writes the message to the log instead of contacting a gateway"""

    def send(self, notification):
        if not notification.recipient:
            raise SendError('Notification has no recipient')
        logger.info(
            f"[{notification.type}] to {notification.recipient}: "
            f"{notification.subject or notification.message[:60]}"
        )


def get_sender():
    return import_string(settings.NOTIFICATION_SENDER)()
