"""Engine and session factory construction."""

from __future__ import annotations

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import sessionmaker

from sales_dashboard.core.config import get_settings


def build_engine(database_url: str, *, echo: bool = False, **engine_kwargs: object) -> Engine:
    """Create an engine; SQLite connections get foreign keys and real transactions.

    pysqlite neither emits ``BEGIN`` before a ``SAVEPOINT`` nor lets SQLAlchemy
    control transaction start, so a released savepoint would commit on its own.
    The driver is switched to autocommit and ``BEGIN`` is emitted explicitly.
    """

    connect_args: dict[str, object] = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    engine = create_engine(database_url, echo=echo, connect_args=connect_args, future=True, **engine_kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _configure_sqlite_connection)
        event.listen(engine, "begin", _begin_sqlite_transaction)
    return engine


def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_sqlite_transaction(connection) -> None:
    connection.exec_driver_sql("BEGIN")


_settings = get_settings()
engine = build_engine(_settings.database_url, echo=_settings.database_echo)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
