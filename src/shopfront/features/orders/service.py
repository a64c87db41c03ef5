"""Business logic for placing and tracking orders."""

import logging
from datetime import UTC, datetime
from uuid import UUID, uuid4

from shopfront.database import SupabaseQueryBuilder
from shopfront.database.models import Customer, Order, OrderStatus, Tables
from shopfront.features.orders.exceptions import (
    CustomerNotFoundError,
    InsufficientStockError,
    InvalidOrderStatusError,
    OrderNotFoundError,
    ProductNotFoundError,
    StockUpdateError,
)
from shopfront.features.orders.notifications import OrderNotifier
from shopfront.features.orders.validators import OrderCreateRequest

logger = logging.getLogger(__name__)


class OrderService:
    """Service for order placement, lookup and status changes."""

    def create_order(
        self,
        db: SupabaseQueryBuilder,
        data: OrderCreateRequest,
        notifier: OrderNotifier | None = None,
    ) -> Order:
        """
        Place an order.

        Every line is validated before any stock is written: a missing product
        or a quantity (summed over repeated lines for the same product) above
        the product's stock aborts the order with stock untouched. Stock is
        then written back per product as ``stock - quantity``, read-then-write
        with no row lock, so concurrent orders for the same product can
        oversell. The order header and its lines are inserted afterwards,
        each line copying the product's current price.

        Args:
            db: Database query builder
            data: Validated request body
            notifier: Sends the customer SMS and admin email in the background

        Returns:
            The created order with customer and lines

        Raises:
            CustomerNotFoundError: If the customer does not exist
            ProductNotFoundError: If any product does not exist
            InsufficientStockError: If any product lacks stock
            StockUpdateError: If a stock write affected no row
        """
        customer_record = db.get_by_id(Tables.CUSTOMERS, data.customer_id)
        if not customer_record:
            raise CustomerNotFoundError(f"Customer not found: {data.customer_id}")
        customer = Customer.model_validate(customer_record)

        # Validation pass
        products: dict[str, dict] = {}
        quantities: dict[str, int] = {}
        for item in data.items:
            product_id = str(item.product_id)
            if product_id not in products:
                product = db.get_by_id(Tables.PRODUCTS, product_id)
                if not product:
                    raise ProductNotFoundError(f"Product not found: {product_id}")
                products[product_id] = product
            quantities[product_id] = quantities.get(product_id, 0) + item.quantity

            if products[product_id]["stock"] < quantities[product_id]:
                raise InsufficientStockError(products[product_id]["name"])

        # Decrement pass
        now = datetime.now(UTC).isoformat()
        for product_id, quantity in quantities.items():
            product = products[product_id]
            updated = db.update_record(
                Tables.PRODUCTS,
                product_id,
                {"stock": product["stock"] - quantity, "updated_at": now},
            )
            if not updated:
                raise StockUpdateError(f"Failed to update stock for product: {product['name']}")
            products[product_id] = updated

        order_id = str(uuid4())
        lines = [
            {
                "id": str(uuid4()),
                "order_id": order_id,
                "product_id": str(item.product_id),
                "quantity": item.quantity,
                "price": float(products[str(item.product_id)]["price"]),
            }
            for item in data.items
        ]
        total = round(sum(line["price"] * line["quantity"] for line in lines), 2)

        header = db.insert_record(
            Tables.ORDERS,
            {
                "id": order_id,
                "customer_id": str(customer.id),
                "status": OrderStatus.PENDING.value,
                "total": total,
                "created_at": now,
                "updated_at": now,
            },
        )
        if not header:
            raise RuntimeError("Order insert returned no row")
        db.insert_records(Tables.ORDER_ITEMS, lines)

        order = Order.model_validate(
            {
                **header,
                "customer": customer,
                "items": [
                    {**line, "product": products[line["product_id"]]} for line in lines
                ],
            }
        )

        logger.info(
            f"Order {order_id} placed",
            extra={"order_id": order_id, "customer_id": str(customer.id), "total": total},
        )

        if notifier is not None:
            notifier.order_placed(order, customer)

        return order

    def get_order(self, db: SupabaseQueryBuilder, order_id: UUID) -> Order:
        """
        Fetch an order with its customer and lines; each line embeds its
        product and the product's category.

        Raises:
            OrderNotFoundError: If the order does not exist
        """
        header = db.get_by_id(Tables.ORDERS, order_id)
        if not header:
            raise OrderNotFoundError(f"Order not found: {order_id}")
        return self._assemble(db, header)

    def list_customer_orders(self, db: SupabaseQueryBuilder, customer_id: UUID) -> list[Order]:
        """
        All orders for a customer, newest first.

        Raises:
            CustomerNotFoundError: If the customer does not exist
        """
        if not db.get_by_id(Tables.CUSTOMERS, customer_id):
            raise CustomerNotFoundError(f"Customer not found: {customer_id}")

        headers = db.list_records(
            Tables.ORDERS,
            filters={"customer_id": str(customer_id)},
            order_by="created_at",
            order_desc=True,
        )
        return [self._assemble(db, header) for header in headers]

    def update_status(self, db: SupabaseQueryBuilder, order_id: UUID, status: str) -> Order:
        """
        Change an order's status.

        Raises:
            InvalidOrderStatusError: If ``status`` is not an ``OrderStatus`` value
            OrderNotFoundError: If the order does not exist
        """
        try:
            new_status = OrderStatus(status)
        except ValueError as e:
            allowed = ", ".join(s.value for s in OrderStatus)
            raise InvalidOrderStatusError(
                f"Invalid status: {status}. Must be one of: {allowed}"
            ) from e

        if not db.get_by_id(Tables.ORDERS, order_id, columns="id"):
            raise OrderNotFoundError(f"Order not found: {order_id}")

        db.update_record(
            Tables.ORDERS,
            order_id,
            {"status": new_status.value, "updated_at": datetime.now(UTC).isoformat()},
        )
        logger.info(
            f"Order {order_id} status changed to {new_status.value}",
            extra={"order_id": str(order_id), "status": new_status.value},
        )
        return self.get_order(db, order_id)

    def _assemble(self, db: SupabaseQueryBuilder, header: dict) -> Order:
        customer = db.get_by_id(Tables.CUSTOMERS, header["customer_id"])
        lines = db.list_records(Tables.ORDER_ITEMS, filters={"order_id": str(header["id"])})

        categories: dict[str, dict | None] = {}
        items = []
        for line in lines:
            product = db.get_by_id(Tables.PRODUCTS, line["product_id"])
            if product:
                category_id = str(product["category_id"])
                if category_id not in categories:
                    categories[category_id] = db.get_by_id(Tables.CATEGORIES, category_id)
                product = {**product, "category": categories[category_id]}
            items.append({**line, "product": product})

        return Order.model_validate({**header, "customer": customer, "items": items})
