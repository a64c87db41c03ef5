"""Order placed notifications: customer SMS and admin email."""

import logging

from shopfront.database.models import Customer, Order
from shopfront.notifications import CourierService, NotificationDispatcher

logger = logging.getLogger(__name__)


def short_order_id(order_id: str) -> str:
    """First 8 and last 4 characters of an order id, e.g. ``1b4e28ba...f6a2``."""
    return f"{order_id[:8]}...{order_id[-4:]}"


def format_item_lines(order: Order, currency: str) -> list[str]:
    lines = []
    for item in order.items:
        name = item.product.name if item.product else str(item.product_id)
        lines.append(
            f"- {name} x{item.quantity} @ {currency}{item.price:.2f} "
            f"= {currency}{item.price * item.quantity:.2f}"
        )
    return lines


def build_customer_sms(order: Order, customer: Customer, currency: str) -> str:
    items = "\n".join(format_item_lines(order, currency))
    return (
        "New order has been Received!\n\n"
        "Order Details:\n"
        f"- Order ID: {short_order_id(str(order.id))}\n"
        f"- Name: {customer.name}\n"
        f"- Phone: {customer.phone}\n"
        f"- Total Amount: {currency}{order.total:.2f}\n\n"
        f"Order Items:\n{items}\n"
    )


def build_admin_email(order: Order, customer: Customer, currency: str) -> tuple[str, str]:
    """Return ``(subject, body)`` for the admin new-order email."""
    order_ref = short_order_id(str(order.id))
    items = "\n".join(format_item_lines(order, currency))
    subject = f"New Order Placed - Order #{order_ref}"
    body = (
        "New order has been placed!\n\n"
        "Order Details:\n"
        f"- Order ID: {order_ref}\n"
        f"- Customer Name: {customer.name}\n"
        f"- Customer Email: {customer.email}\n"
        f"- Customer Phone: {customer.phone}\n"
        f"- Total Amount: {currency}{order.total:.2f}\n\n"
        f"Order Items:\n{items}\n\n"
        "Please process this order as soon as possible.\n"
    )
    return subject, body


class OrderNotifier:
    """
    Sends the two independent order-placed notifications through a dispatcher.

    Neither send blocks the request, and a failure in one does not affect
    the other.
    """

    def __init__(
        self,
        courier: CourierService,
        dispatcher: NotificationDispatcher,
        admin_email: str,
        currency: str = "Ksh",
    ):
        self.courier = courier
        self.dispatcher = dispatcher
        self.admin_email = admin_email
        self.currency = currency

    def order_placed(self, order: Order, customer: Customer) -> None:
        sms = build_customer_sms(order, customer, self.currency)
        subject, body = build_admin_email(order, customer, self.currency)

        self.dispatcher.submit("customer_sms", self.courier.send_sms, customer.phone, sms)
        self.dispatcher.submit(
            "admin_email", self.courier.send_email, self.admin_email, subject, body
        )
        logger.debug("Order notifications queued", extra={"order_id": str(order.id)})
