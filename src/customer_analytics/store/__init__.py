"""Relational store access.

This module owns everything that talks to the database:

- **engine**: ``open_store`` builds and disposes the SQLAlchemy Engine that is
  passed to every other function.
- **schema**: source and report table definitions, plus DDL helpers.
- **reader**: the event, price and channel queries.
- **writer**: transactional materialization of the report tables.

Example:
    >>> from customer_analytics.store import open_store, fetch_customer_events
    >>>
    >>> with open_store("sqlite:///customer_analytics.db") as engine:
    ...     events = fetch_customer_events(engine, "2020-04-01 00:00:00", 6)
"""

from customer_analytics.store.engine import open_store
from customer_analytics.store.reader import (
    fetch_content_prices,
    fetch_customer_channels,
    fetch_customer_events,
)
from customer_analytics.store.schema import ensure_output_schema, ensure_source_schema
from customer_analytics.store.writer import (
    write_above_average,
    write_quantiles,
    write_top_customers,
)

__all__ = [
    "ensure_output_schema",
    "ensure_source_schema",
    "fetch_content_prices",
    "fetch_customer_channels",
    "fetch_customer_events",
    "open_store",
    "write_above_average",
    "write_quantiles",
    "write_top_customers",
]
