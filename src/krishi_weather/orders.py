import html
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List

from krishi_weather.exceptions import EmptyCartError, OrderNotFoundError
from krishi_weather.models import CartItem, Order, OrderStatus
from krishi_weather.storage import StorageBackend

logger = logging.getLogger("krishi_weather.orders")

STATUS_FLOW = [
    OrderStatus.PROCESSING,
    OrderStatus.DISPATCHED,
    OrderStatus.IN_TRANSIT,
    OrderStatus.DELIVERED,
]

ESTIMATED_DELIVERY: Dict[OrderStatus, str] = {
    OrderStatus.PROCESSING: "3-4 days",
    OrderStatus.DISPATCHED: "2-3 days",
    OrderStatus.IN_TRANSIT: "1-2 days",
    OrderStatus.DELIVERED: "Delivered",
}


class Cart:
    """Shopping cart persisted under a single storage key"""

    KEY = "cart"

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    def get(self) -> List[CartItem]:
        return [CartItem(**item) for item in self.storage.get_json(self.KEY) or []]

    def put(self, items: List[CartItem]) -> None:
        self.storage.set_json(self.KEY, [item.model_dump(mode="json") for item in items])

    def clear(self) -> None:
        self.storage.delete(self.KEY)

    def add(self, item: CartItem) -> List[CartItem]:
        """Add an item, merging quantities when the listing is already in the cart"""
        items = self.get()
        for i, existing in enumerate(items):
            if existing.id == item.id:
                items[i] = existing.model_copy(update={"quantity": existing.quantity + item.quantity})
                break
        else:
            items.append(item)
        self.put(items)
        return items

    def remove(self, item_id: str) -> List[CartItem]:
        items = [item for item in self.get() if item.id != item_id]
        self.put(items)
        return items

    def update_quantity(self, item_id: str, quantity: int) -> List[CartItem]:
        """Set an item's quantity; anything below 1 removes it"""
        if quantity < 1:
            return self.remove(item_id)
        items = [
            item.model_copy(update={"quantity": quantity}) if item.id == item_id else item for item in self.get()
        ]
        self.put(items)
        return items

    def total(self) -> float:
        return sum(item.subtotal for item in self.get())


class OrderBook:
    """Placed orders, newest first"""

    KEY = "orders"

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    def get(self) -> List[Order]:
        return [Order(**order) for order in self.storage.get_json(self.KEY) or []]

    def put(self, orders: List[Order]) -> None:
        self.storage.set_json(self.KEY, [order.model_dump(mode="json") for order in orders])

    def clear(self) -> None:
        self.storage.delete(self.KEY)

    def find(self, order_id: str) -> Order:
        for order in self.get():
            if order.id == order_id:
                return order
        raise OrderNotFoundError(f"Order {order_id} not found")

    def checkout(self, cart: Cart) -> Order:
        """Turn the cart into a new Processing order and empty the cart"""
        items = cart.get()
        if not items:
            raise EmptyCartError("Cart is empty")

        order = Order(
            id=f"ORD-{uuid.uuid4().hex[:12].upper()}",
            items=items,
            total=sum(item.subtotal for item in items),
            status=OrderStatus.PROCESSING,
            date=datetime.now(timezone.utc),
        )
        self.put([order] + self.get())
        cart.clear()
        logger.info(f"Placed order {order.id} with {len(items)} items, total {order.total:.2f}")
        return order

    def advance(self, order_id: str) -> Order:
        """Move an order one step along the status flow, stopping at Delivered"""
        orders = self.get()
        for i, order in enumerate(orders):
            if order.id == order_id:
                index = STATUS_FLOW.index(order.status)
                next_status = STATUS_FLOW[min(index + 1, len(STATUS_FLOW) - 1)]
                orders[i] = order.model_copy(update={"status": next_status})
                self.put(orders)
                logger.info(f"Order {order_id}: {order.status.value} -> {next_status.value}")
                return orders[i]
        raise OrderNotFoundError(f"Order {order_id} not found")


def estimated_delivery(status: OrderStatus) -> str:
    return ESTIMATED_DELIVERY[status]


def render_invoice(order: Order) -> str:
    """Render a standalone HTML invoice for an order"""
    rows = "\n".join(
        f"""        <tr>
          <td>{html.escape(item.crop_name)}</td>
          <td>{item.quantity} {html.escape(item.unit)}</td>
          <td>&#8377;{item.price:.2f}</td>
          <td>&#8377;{item.subtotal:.2f}</td>
        </tr>"""
        for item in order.items
    )
    return f"""<!DOCTYPE html>
<html>
<head>
  <title>Invoice - {html.escape(order.id)}</title>
  <style>
    body {{ font-family: Arial, sans-serif; padding: 40px; }}
    .header {{ text-align: center; margin-bottom: 30px; }}
    table {{ width: 100%; border-collapse: collapse; }}
    th, td {{ padding: 12px; text-align: left; border-bottom: 1px solid #ddd; }}
    .total {{ font-size: 18px; font-weight: bold; text-align: right; margin-top: 20px; }}
  </style>
</head>
<body>
  <div class="header">
    <h1>Krishi AI</h1>
    <h2>INVOICE</h2>
  </div>
  <p><strong>Order ID:</strong> {html.escape(order.id)}</p>
  <p><strong>Date:</strong> {order.date.strftime("%Y-%m-%d %H:%M")}</p>
  <p><strong>Status:</strong> {order.status.value}</p>
  <table>
    <thead>
      <tr><th>Item</th><th>Quantity</th><th>Price</th><th>Total</th></tr>
    </thead>
    <tbody>
{rows}
    </tbody>
  </table>
  <div class="total">Total: &#8377;{order.total:.2f}</div>
</body>
</html>
"""
