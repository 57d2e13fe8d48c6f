from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

from core.config import settings


class Base(DeclarativeBase):
    pass


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine for ``database_url``.

    SQLite gets foreign key enforcement switched on for every connection so
    ``ON DELETE CASCADE`` on ``order_items`` behaves the same as on PostgreSQL.
    """
    if database_url.startswith("sqlite"):
        # For SQLite, use StaticPool for in-memory databases and enable foreign keys
        db_engine = create_engine(
            database_url,
            echo=echo,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool if ":memory:" in database_url else None,
        )

        @event.listens_for(db_engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return db_engine

    # For PostgreSQL and other databases
    return create_engine(
        database_url,
        echo=echo,
        future=True,
        pool_pre_ping=True,
    )


engine = create_db_engine(settings.DATABASE_URL, echo=settings.SQLALCHEMY_ECHO)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(bind: Engine = engine) -> None:
    """Create the order tables and their indexes if they do not exist."""
    import models  # noqa: F401  registers mapped classes on Base.metadata

    Base.metadata.create_all(bind=bind)


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

