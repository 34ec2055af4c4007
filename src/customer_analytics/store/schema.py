"""Table definitions for the source data and the report tables.

Source tables hold the raw customers, contents, prices and events. Output
tables hold the reports produced by an analysis run. The top-customers table
is dated, so its definition is built per run by ``top_customers_table``.
"""

from __future__ import annotations

import logging

from sqlalchemy import Column, DateTime, Float, Integer, MetaData, String, Table
from sqlalchemy.engine import Engine

from customer_analytics.store.engine import store_errors

logger = logging.getLogger(__name__)

source_metadata = MetaData()
output_metadata = MetaData()

customer = Table(
    "customer",
    source_metadata,
    Column("customer_id", Integer, primary_key=True, autoincrement=False),
    Column("client_customer_id", String(32)),
    Column("insert_date", DateTime),
)

customer_channel = Table(
    "customer_channel",
    source_metadata,
    Column("customer_channel_id", Integer, primary_key=True, autoincrement=False),
    Column("customer_id", Integer, index=True),
    Column("channel_type_id", Integer),
    Column("channel_value", String(255)),
    Column("insert_date", DateTime),
)

content = Table(
    "content",
    source_metadata,
    Column("content_id", Integer, primary_key=True, autoincrement=False),
    Column("client_content_id", String(32)),
    Column("insert_date", DateTime),
)

content_price = Table(
    "content_price",
    source_metadata,
    Column("content_price_id", Integer, primary_key=True, autoincrement=False),
    Column("content_id", Integer, index=True),
    Column("price", Float),
    Column("currency", String(3)),
    Column("insert_date", DateTime),
)

customer_event = Table(
    "customer_event",
    source_metadata,
    Column("event_id", Integer, primary_key=True, autoincrement=False),
    Column("client_event_id", String(32)),
    Column("insert_date", DateTime),
)

customer_event_data = Table(
    "customer_event_data",
    source_metadata,
    Column("event_data_id", Integer, primary_key=True, autoincrement=False),
    Column("event_id", Integer),
    Column("content_id", Integer),
    Column("customer_id", Integer),
    Column("event_type_id", Integer),
    Column("event_date", DateTime, index=True),
    Column("quantity", Integer),
    Column("insert_date", DateTime),
)

# Insert order respects the logical references between source tables
SOURCE_TABLES = [
    customer,
    customer_channel,
    content,
    content_price,
    customer_event,
    customer_event_data,
]


def _quantile_table(name: str) -> Table:
    return Table(
        name,
        output_metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("bucket", Integer, nullable=False),
        Column("quantile_range", String(50), nullable=False),
        Column("number_of_customers", Integer, nullable=False),
        Column("max_sales", Float),
    )


quantiles_by_rank = _quantile_table("quantiles_by_rank")
quantiles_by_sales = _quantile_table("quantiles_by_sales")

above_average_customers = Table(
    "above_average_customers",
    output_metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_id", Integer, nullable=False, unique=True),
    Column("total_sales", Float, nullable=False),
)


def top_customers_table(name: str) -> Table:
    """Return the definition of a dated top-customers table.

    Repeated calls with the same name return the same Table object. Each
    new name stays registered in ``output_metadata`` for the life of the
    process, which is one entry per run date for the CLI.
    """
    existing = output_metadata.tables.get(name)
    if existing is not None:
        return existing
    return Table(
        name,
        output_metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("customer_id", Integer, nullable=False, unique=True),
        Column("info", String(255)),
        Column("total_sales", Float, nullable=False),
    )


def ensure_source_schema(engine: Engine) -> None:
    """Create the source tables that do not exist yet."""
    with store_errors("creating source tables"):
        source_metadata.create_all(engine, checkfirst=True)
    logger.debug("Source schema ready")


def ensure_output_schema(engine: Engine, top_table_name: str) -> Table:
    """Create the report tables that do not exist yet.

    Returns:
        The top-customers Table for ``top_table_name``.
    """
    top = top_customers_table(top_table_name)
    tables = [top, quantiles_by_rank, quantiles_by_sales, above_average_customers]
    with store_errors("creating report tables"):
        output_metadata.create_all(engine, tables=tables, checkfirst=True)
    logger.debug("Report schema ready (top table %s)", top_table_name)
    return top
