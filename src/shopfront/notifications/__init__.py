"""Email/SMS notifications sent in the background."""

from shopfront.notifications.courier import CourierService, normalize_phone_number
from shopfront.notifications.dispatcher import NotificationDispatcher

__all__ = ["CourierService", "NotificationDispatcher", "normalize_phone_number"]
