"""Async engine construction

SQLite has no row locks and drops FOR UPDATE from the emitted SQL. Engines
for SQLite therefore open every transaction with BEGIN IMMEDIATE, which
takes the database write lock before the first read, so invoice mutations
serialize there the same way SELECT ... FOR UPDATE serializes them on
Postgres.
"""

import logging
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

logger = logging.getLogger(__name__)

# Seconds a connection waits for the SQLite write lock before failing
SQLITE_BUSY_TIMEOUT_SECONDS = 30


def is_sqlite(db_uri: str) -> bool:
    return db_uri.startswith("sqlite")


def enable_immediate_transactions(engine: AsyncEngine):
    """Emit BEGIN IMMEDIATE instead of the driver's deferred BEGIN"""

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_database_engine(db_uri: str, **kwargs) -> AsyncEngine:
    """
    Create the async engine for a database URI

    Args:
        db_uri: SQLAlchemy URI (sqlite+aiosqlite or postgresql+asyncpg)
        **kwargs: Extra create_async_engine arguments

    Returns:
        AsyncEngine with write serialization enabled on SQLite
    """
    kwargs.setdefault("echo", False)
    kwargs.setdefault("future", True)

    if not is_sqlite(db_uri):
        return create_async_engine(db_uri, **kwargs)

    connect_args = dict(kwargs.pop("connect_args", {}) or {})
    connect_args.setdefault("timeout", SQLITE_BUSY_TIMEOUT_SECONDS)
    engine = create_async_engine(db_uri, connect_args=connect_args, **kwargs)
    enable_immediate_transactions(engine)
    logger.debug(f"SQLite engine for {db_uri} opens transactions with BEGIN IMMEDIATE")
    return engine
