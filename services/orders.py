"""
Order lifecycle: request validation and the translation between wire schemas
and the order store.
"""

import math

from typing import Iterable, List, Optional

from pydantic import ValidationError as SchemaError

from core.config import settings
from core.exceptions import StorageError, ValidationError
from core.logging import get_logger
from models.order import Order, OrderStatus
from repositories.orders import OrderStore
from schemas.order import OrderCreate, OrderOut, OrderPage, OrderStatistics

log = get_logger(__name__)


def normalize_page(page: Optional[int], page_size: Optional[int]) -> tuple[int, int]:
    """Clamp paging input: page below 1 becomes 1, a size outside [1, MAX_PAGE_SIZE] becomes the default."""
    if page is None or page < 1:
        page = 1
    if page_size is None or page_size < 1 or page_size > settings.MAX_PAGE_SIZE:
        page_size = settings.DEFAULT_PAGE_SIZE
    return page, page_size


class OrderService:
    def __init__(self, store: OrderStore, strict_decode: Optional[bool] = None):
        self.store = store
        self.strict_decode = settings.STRICT_ROW_DECODE if strict_decode is None else strict_decode

    def create_order(self, request: OrderCreate) -> OrderOut:
        customer_id = request.customer_id.strip()
        if not customer_id:
            raise ValidationError("customer ID is required")
        if not request.items:
            raise ValidationError("order must contain at least one item")
        for item in request.items:
            if item.quantity <= 0:
                raise ValidationError(f"quantity must be greater than 0 for game {item.game_name}")
            if not math.isfinite(item.price):
                raise ValidationError(f"price must be a finite number for game {item.game_name}")
            if item.price < 0:
                raise ValidationError(f"price cannot be negative for game {item.game_name}")

        order = self.store.create(customer_id, request.items)
        log.info(
            "Created order %s for customer %s: %d item(s), total %s",
            order.id, order.customer_id, len(order.items), order.total_price,
        )
        return self._decode(order)

    def get_order(self, order_id: str) -> OrderOut:
        return self._decode(self.store.get(order_id))

    def list_orders(self, page: Optional[int] = None, page_size: Optional[int] = None) -> OrderPage:
        page, page_size = normalize_page(page, page_size)
        orders, total = self.store.list_all(limit=page_size, offset=(page - 1) * page_size)
        return OrderPage(orders=self._decode_many(orders), total=total, page=page, page_size=page_size)

    def list_orders_by_customer(self, customer_id: str) -> List[OrderOut]:
        if not customer_id or not customer_id.strip():
            raise ValidationError("customer ID is required")
        return self._decode_many(self.store.list_by_customer(customer_id))

    def update_order_status(self, order_id: str, status: str) -> OrderOut:
        # Flat membership check; any status may follow any other
        if status not in OrderStatus.values():
            raise ValidationError(
                f"invalid status: {status} (expected one of {', '.join(OrderStatus.values())})"
            )
        order = self.store.update_status(order_id, status)
        log.info("Order %s status set to %s", order_id, status)
        return self._decode(order)

    def delete_order(self, order_id: str) -> None:
        self.store.delete(order_id)
        log.info("Deleted order %s", order_id)

    def get_statistics(self) -> OrderStatistics:
        total, revenue, counts = self.store.statistics()
        status_counts = {status: 0 for status in OrderStatus.values()}
        status_counts.update(counts)
        return OrderStatistics(
            total_orders=total,
            total_revenue=float(revenue),
            status_counts=status_counts,
        )

    def _decode(self, order: Order) -> OrderOut:
        try:
            return OrderOut.model_validate(order)
        except SchemaError as exc:
            raise StorageError(f"stored order {order.id} could not be read: {exc.error_count()} invalid field(s)") from exc

    def _decode_many(self, orders: Iterable[Order]) -> List[OrderOut]:
        """Convert stored rows, skipping (and logging) rows that fail to decode unless strict."""
        decoded = []
        for order in orders:
            try:
                decoded.append(OrderOut.model_validate(order))
            except SchemaError as exc:
                if self.strict_decode:
                    raise StorageError(f"stored order {order.id} could not be read") from exc
                log.warning("Skipping order %s that failed to decode: %s", order.id, exc)
        return decoded
