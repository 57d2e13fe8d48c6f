import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

import models  # noqa: F401
from main import app
from core.db import Base, create_db_engine, get_db
from models.order import Order
from models.order_item import OrderItem
from repositories.orders import OrderStore
from schemas.order import OrderItemIn
from services.orders import OrderService


@pytest.fixture()
def engine():
    """Fresh in-memory SQLite database (foreign keys on) per test."""
    test_engine = create_db_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture()
def db(engine):
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def store(db):
    return OrderStore(db)


@pytest.fixture()
def service(store):
    return OrderService(store, strict_decode=False)


@pytest.fixture()
def make_items():
    """Build OrderItemIn lists from (game_id, game_name, price, quantity) tuples."""
    def _make(*rows):
        return [
            OrderItemIn(game_id=game_id, game_name=name, price=price, quantity=quantity)
            for game_id, name, price, quantity in rows
        ]
    return _make


@pytest.fixture()
def row_counts(db):
    """Return (orders, order_items) row counts straight from the database."""
    def _counts():
        orders = db.execute(select(func.count()).select_from(Order)).scalar_one()
        items = db.execute(select(func.count()).select_from(OrderItem)).scalar_one()
        return orders, items
    return _counts
