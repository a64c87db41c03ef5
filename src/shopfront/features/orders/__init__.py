"""Order placement, lookup and status tracking."""

from shopfront.features.orders.notifications import OrderNotifier
from shopfront.features.orders.service import OrderService

__all__ = ["OrderNotifier", "OrderService"]
