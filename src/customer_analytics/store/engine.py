"""Engine lifecycle and error translation for the relational store.

The store handle is a SQLAlchemy Engine created by ``open_store`` and passed
explicitly to every read and write. Raw SQLAlchemy errors, and the pandas
errors that wrap them when a read goes through ``pd.read_sql``, are translated
into the package's StoreError hierarchy here.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import pandas as pd
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError, NoSuchModuleError, SQLAlchemyError

from customer_analytics.exceptions import ConfigError, QueryError, StoreConnectionError

logger = logging.getLogger(__name__)


@contextmanager
def open_store(database_url: str, *, echo: bool = False) -> Iterator[Engine]:
    """Create an engine, check connectivity, and dispose it on exit.

    Args:
        database_url: SQLAlchemy database URL.
        echo: Log every emitted statement (SQLAlchemy's own logger).

    Yields:
        A connected Engine.

    Raises:
        ConfigError: If the URL cannot be parsed.
        StoreConnectionError: If the driver is missing or the store is unreachable.

    Examples:
        >>> with open_store("sqlite://") as engine:
        ...     engine.dialect.name
        'sqlite'
    """
    try:
        engine = create_engine(database_url, echo=echo)
    except NoSuchModuleError as e:
        raise StoreConnectionError(f"No driver available for {database_url!r}: {e}") from e
    except ArgumentError as e:
        raise ConfigError(f"Invalid database URL {database_url!r}: {e}") from e
    except ImportError as e:
        # known dialect whose DBAPI package is not installed, e.g. pymysql
        raise StoreConnectionError(f"No driver available for {database_url!r}: {e}") from e

    safe_url = engine.url.render_as_string(hide_password=True)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        engine.dispose()
        raise StoreConnectionError(f"Could not connect to {safe_url}: {e}") from e

    logger.info("Connected to %s", safe_url)
    try:
        yield engine
    finally:
        engine.dispose()
        logger.debug("Disposed engine for %s", safe_url)


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Re-raise store errors raised inside the block as QueryError.

    Newer pandas releases re-raise SQLAlchemy errors from ``pd.read_sql`` as
    ``pandas.errors.DatabaseError``, so both are caught.
    """
    try:
        yield
    except (SQLAlchemyError, pd.errors.DatabaseError) as e:
        logger.error("Store operation failed while %s: %s", action, e)
        raise QueryError(f"Error {action}: {e}") from e
