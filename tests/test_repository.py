from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import select, update

from core.config import settings
from core.exceptions import NotFoundError, StorageError, ValidationError
from models.order import Order, OrderStatus
from schemas.order import OrderItemIn


def _age(db, order_id, when):
    db.execute(update(Order).where(Order.id == order_id).values(order_date=when))
    db.commit()


class TestCreate:
    def test_computes_subtotals_and_total(self, store, make_items):
        order = store.create("customer123", make_items((1, "Test Game 1", 29.99, 2), (2, "Test Game 2", 39.99, 1)))

        assert order.total_price == Decimal("99.97")
        assert [item.subtotal for item in order.items] == [Decimal("59.98"), Decimal("39.99")]
        assert order.status == OrderStatus.PENDING.value
        assert order.order_date == order.created_at == order.updated_at

    def test_generates_ids_and_links_items(self, store, make_items):
        order = store.create("c1", make_items((1, "A", 5, 1), (2, "B", 6, 1)))

        ids = {order.id} | {item.id for item in order.items}
        assert len(ids) == 3
        assert all(item.order_id == order.id for item in order.items)
        assert [item.position for item in order.items] == [0, 1]

    def test_free_items_allowed(self, store, make_items):
        order = store.create("c1", make_items((1, "Free Game", 0, 3)))
        assert order.total_price == Decimal("0")

    def test_empty_items_rejected_before_write(self, store, row_counts):
        with pytest.raises(ValidationError):
            store.create("c1", [])
        assert row_counts() == (0, 0)

    @pytest.mark.parametrize("quantity,price", [(0, 10), (-1, 10), (1, -0.01)])
    def test_invalid_item_rejected_before_write(self, store, make_items, row_counts, quantity, price):
        items = make_items((1, "Good", 10, 1), (2, "Bad", price, quantity))
        with pytest.raises(ValidationError, match="Bad"):
            store.create("c1", items)
        assert row_counts() == (0, 0)

    def _collide_next_item_id(self, db, store, make_items, monkeypatch):
        """Make the next create reuse an existing item id so its item insert fails."""
        existing = store.create("c0", make_items((1, "Existing", 1, 1)))
        taken = existing.items[0].id
        db.expunge_all()
        ids = iter(["11111111-1111-1111-1111-111111111111", taken])
        monkeypatch.setattr("repositories.orders.new_id", lambda: next(ids))

    def test_failed_item_insert_rolls_back_order_row(self, db, store, make_items, monkeypatch, row_counts):
        """The order row is flushed first; a failing item insert must take it down too."""
        self._collide_next_item_id(db, store, make_items, monkeypatch)
        with pytest.raises(StorageError):
            store.create("c1", make_items((2, "Clash", 10, 1)))
        assert row_counts() == (1, 1)
        with pytest.raises(NotFoundError):
            store.get("11111111-1111-1111-1111-111111111111")

    def test_session_usable_after_rollback(self, db, store, make_items, monkeypatch):
        self._collide_next_item_id(db, store, make_items, monkeypatch)
        with pytest.raises(StorageError):
            store.create("c1", make_items((2, "Clash", 10, 1)))
        monkeypatch.undo()

        order = store.create("c1", make_items((1, "G", 10, 1)))
        assert store.get(order.id).id == order.id

    def test_price_rounded_to_cents(self, store, make_items):
        order = store.create("c1", make_items((1, "Odd", 10.005, 3)))

        assert order.items[0].price == Decimal("10.01")
        assert order.items[0].subtotal == Decimal("30.03")
        assert order.total_price == Decimal("30.03")
        stored = store.get(order.id)
        assert stored.total_price == Decimal("30.03")
        assert stored.items[0].price == Decimal("10.01")

    @pytest.mark.parametrize("price", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_price_rejected_before_write(self, store, row_counts, price):
        items = [OrderItemIn.model_construct(game_id=1, game_name="Weird", price=price, quantity=1)]
        with pytest.raises(ValidationError, match="finite"):
            store.create("c1", items)
        assert row_counts() == (0, 0)

    @pytest.mark.parametrize(
        "fields",
        [
            {"game_id": 2**70},
            {"game_id": -1},
            {"quantity": 2**31},
            {"game_name": ""},
            {"game_name": "x" * 256},
        ],
    )
    def test_out_of_range_item_rejected_before_write(self, store, row_counts, fields):
        values = {"game_id": 1, "game_name": "G", "price": 10, "quantity": 1, **fields}
        with pytest.raises(ValidationError):
            store.create("c1", [OrderItemIn.model_construct(**values)])
        assert row_counts() == (0, 0)

    def test_total_over_column_limit_rejected(self, store, make_items, row_counts):
        with pytest.raises(ValidationError, match="exceeds"):
            store.create("c1", make_items((1, "Pricey", 99999999.99, 2)))
        assert row_counts() == (0, 0)

    def test_overlong_customer_id_rejected(self, store, make_items, row_counts):
        with pytest.raises(ValidationError):
            store.create("x" * 256, make_items((1, "G", 1, 1)))
        assert row_counts() == (0, 0)


class TestRead:
    def test_get_returns_items(self, store, make_items):
        created = store.create("c1", make_items((1, "A", 1, 1), (2, "B", 2, 1), (3, "C", 3, 1)))

        order = store.get(created.id)
        assert [item.game_name for item in order.items] == ["A", "B", "C"]

    def test_get_missing(self, store):
        with pytest.raises(NotFoundError):
            store.get("00000000-0000-0000-0000-000000000000")

    def test_list_by_customer_filters_and_sorts(self, db, store, make_items):
        old = store.create("c1", make_items((1, "A", 1, 1)))
        new = store.create("c1", make_items((2, "B", 1, 1)))
        store.create("c10", make_items((3, "C", 1, 1)))
        _age(db, old.id, datetime(2020, 1, 1))

        orders = store.list_by_customer("c1")
        assert [order.id for order in orders] == [new.id, old.id]
        assert all(order.items for order in orders)

    def test_list_by_unknown_customer_is_empty(self, store, make_items):
        store.create("c1", make_items((1, "A", 1, 1)))
        assert store.list_by_customer("nobody") == []

    def test_list_all_pages_are_disjoint(self, store, make_items):
        created = {store.create(f"c{i}", make_items((i, "G", 1, 1))).id for i in range(5)}

        first, total = store.list_all(limit=2, offset=0)
        second, _ = store.list_all(limit=2, offset=2)
        third, _ = store.list_all(limit=2, offset=4)

        seen = [order.id for order in first + second + third]
        assert total == 5
        assert len(seen) == len(set(seen)) == 5
        assert set(seen) == created

    def test_list_all_newest_first(self, db, store, make_items):
        a = store.create("c1", make_items((1, "A", 1, 1)))
        b = store.create("c2", make_items((2, "B", 1, 1)))
        _age(db, a.id, datetime(2021, 1, 1))
        _age(db, b.id, datetime(2022, 1, 1))

        orders, _ = store.list_all(limit=10, offset=0)
        assert [order.id for order in orders] == [b.id, a.id]

    def test_list_all_clamps_limit(self, monkeypatch, store, make_items):
        monkeypatch.setattr(settings, "MAX_PAGE_SIZE", 2)
        for i in range(3):
            store.create("c1", make_items((i, "G", 1, 1)))

        orders, total = store.list_all(limit=1000, offset=0)
        assert len(orders) == 2
        assert total == 3

    def test_list_all_rejects_negative_offset(self, store):
        with pytest.raises(ValidationError):
            store.list_all(limit=10, offset=-1)


class TestMutations:
    def test_update_status_refreshes_updated_at(self, db, store, make_items):
        order = store.create("c1", make_items((1, "A", 1, 1)))
        before = order.updated_at

        updated = store.update_status(order.id, OrderStatus.SHIPPED.value)

        assert updated.status == "shipped"
        assert updated.updated_at >= before
        assert db.execute(select(Order.status).where(Order.id == order.id)).scalar_one() == "shipped"

    def test_update_status_missing(self, store):
        with pytest.raises(NotFoundError):
            store.update_status("missing", OrderStatus.SHIPPED.value)

    def test_delete_removes_items(self, store, make_items, row_counts):
        keep = store.create("c1", make_items((1, "A", 1, 1)))
        gone = store.create("c1", make_items((2, "B", 1, 2), (3, "C", 1, 1)))

        store.delete(gone.id)

        assert row_counts() == (1, 1)
        with pytest.raises(NotFoundError):
            store.get(gone.id)
        assert store.get(keep.id).id == keep.id

    def test_delete_missing(self, store):
        with pytest.raises(NotFoundError):
            store.delete("missing")


class TestStatistics:
    def test_empty(self, store):
        assert store.statistics() == (0, Decimal("0"), {})

    def test_aggregates(self, store, make_items):
        delivered = store.create("c1", make_items((1, "A", 10, 2)))
        also_delivered = store.create("c2", make_items((2, "B", 5.5, 1)))
        store.create("c3", make_items((3, "C", 100, 1)))
        store.update_status(delivered.id, "delivered")
        store.update_status(also_delivered.id, "delivered")

        total, revenue, counts = store.statistics()

        assert total == 3
        assert revenue == Decimal("25.50")
        assert counts == {"delivered": 2, "pending": 1}
