"""Persistence for orders and their line items."""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Sequence, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from core.config import settings
from core.exceptions import NotFoundError, StorageError, ValidationError
from core.logging import get_logger
from models.order import (
    CENT,
    MAX_AMOUNT,
    MAX_INTEGER,
    MAX_STRING_LENGTH,
    Order,
    OrderStatus,
    new_id,
    utcnow,
)
from models.order_item import OrderItem
from schemas.order import OrderItemIn

log = get_logger(__name__)


def _to_decimal(value: float | int | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _to_cents(value: float | int | Decimal) -> Decimal:
    return _to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _check_item(item: OrderItemIn) -> None:
    if not item.game_name or len(item.game_name) > MAX_STRING_LENGTH:
        raise ValidationError(f"game name must be 1-{MAX_STRING_LENGTH} characters")
    if not 0 <= item.game_id <= MAX_INTEGER:
        raise ValidationError(f"game ID out of range for game {item.game_name}")
    if not 1 <= item.quantity <= MAX_INTEGER:
        raise ValidationError(f"quantity must be greater than 0 for game {item.game_name}")
    if not math.isfinite(item.price):
        raise ValidationError(f"price must be a finite number for game {item.game_name}")
    if item.price < 0:
        raise ValidationError(f"price cannot be negative for game {item.game_name}")


class OrderStore:
    """Order and order item storage on top of a SQLAlchemy session.

    The session is owned by the caller (one per request). Only ``create``
    writes more than one row and it does so in a single transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, customer_id: str, items: Sequence[OrderItemIn]) -> Order:
        """Persist a new order with all of its items atomically.

        Args:
            customer_id: Purchaser identifier
            items: Line items; each needs game_id, game_name, price, quantity

        Returns:
            The stored order with ids, subtotals, total and timestamps filled in

        Raises:
            ValidationError: items empty, an item out of range, or a total
                that does not fit the money columns
            StorageError: the transaction failed; nothing was persisted
        """
        if not customer_id or len(customer_id) > MAX_STRING_LENGTH:
            raise ValidationError(f"customer ID must be 1-{MAX_STRING_LENGTH} characters")
        if not items:
            raise ValidationError("order must contain at least one item")
        for item in items:
            _check_item(item)

        now = utcnow()
        order = Order(
            id=new_id(),
            customer_id=customer_id,
            status=OrderStatus.PENDING.value,
            order_date=now,
            created_at=now,
            updated_at=now,
        )

        total = Decimal("0.00")
        for position, item in enumerate(items):
            # Rounded to the column scale so the response matches what is stored
            price = _to_cents(item.price)
            subtotal = price * item.quantity
            total += subtotal
            order.items.append(
                OrderItem(
                    id=new_id(),
                    position=position,
                    game_id=item.game_id,
                    game_name=item.game_name,
                    price=price,
                    quantity=item.quantity,
                    subtotal=subtotal,
                )
            )
        if total > MAX_AMOUNT:
            raise ValidationError(f"order total {total} exceeds the maximum of {MAX_AMOUNT}")
        order.total_price = total

        try:
            self.db.add(order)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            log.error("Order create for customer %s rolled back: %s", customer_id, exc)
            raise StorageError(f"failed to create order: {exc.__class__.__name__}") from exc

        return order

    def get(self, order_id: str) -> Order:
        stmt = select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
        try:
            order = self.db.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError("failed to get order") from exc
        if order is None:
            raise NotFoundError(order_id)
        return order

    def list_by_customer(self, customer_id: str) -> List[Order]:
        stmt = (
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.customer_id == customer_id)
            .order_by(Order.order_date.desc(), Order.id.desc())
        )
        try:
            return list(self.db.execute(stmt).scalars().all())
        except SQLAlchemyError as exc:
            raise StorageError("failed to query orders") from exc

    def list_all(self, limit: int, offset: int) -> Tuple[List[Order], int]:
        """Return one page of orders, newest first, and the count of all orders."""
        if offset < 0:
            raise ValidationError("offset cannot be negative")
        limit = max(1, min(limit, settings.MAX_PAGE_SIZE))

        stmt = (
            select(Order)
            .options(selectinload(Order.items))
            .order_by(Order.order_date.desc(), Order.id.desc())
            .limit(limit)
            .offset(offset)
        )
        try:
            total = self.db.execute(select(func.count()).select_from(Order)).scalar_one()
            orders = list(self.db.execute(stmt).scalars().all())
        except SQLAlchemyError as exc:
            raise StorageError("failed to query orders") from exc
        return orders, total

    def update_status(self, order_id: str, status: str) -> Order:
        stmt = (
            update(Order)
            .where(Order.id == order_id)
            .values(status=status, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            if result.rowcount == 0:
                self.db.rollback()
                raise NotFoundError(order_id)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError("failed to update order status") from exc

        # Identity map may hold a stale copy from an earlier read in this session
        self.db.expire_all()
        return self.get(order_id)

    def delete(self, order_id: str) -> None:
        # order_items rows go with it through ON DELETE CASCADE
        stmt = delete(Order).where(Order.id == order_id).execution_options(synchronize_session=False)
        try:
            result = self.db.execute(stmt)
            if result.rowcount == 0:
                self.db.rollback()
                raise NotFoundError(order_id)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError("failed to delete order") from exc

    def statistics(self) -> Tuple[int, Decimal, Dict[str, int]]:
        """Aggregate order count, delivered revenue and per-status counts in SQL."""
        revenue_stmt = select(func.coalesce(func.sum(Order.total_price), 0)).where(
            Order.status == OrderStatus.DELIVERED.value
        )
        counts_stmt = select(Order.status, func.count()).group_by(Order.status)
        try:
            total = self.db.execute(select(func.count()).select_from(Order)).scalar_one()
            revenue = self.db.execute(revenue_stmt).scalar_one()
            counts = {status: count for status, count in self.db.execute(counts_stmt).all()}
        except SQLAlchemyError as exc:
            raise StorageError("failed to compute order statistics") from exc
        return total, _to_decimal(revenue), counts
