"""Read queries against the source tables.

Each fetch returns pandas objects with fixed column names and dtypes so the
analysis can run without knowing which database produced them.
"""

from __future__ import annotations

import logging
from datetime import datetime

import pandas as pd
from sqlalchemy import DateTime, Table, bindparam, select, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.sql.elements import TextClause

from customer_analytics.constants import CONTENT_ID, CUSTOMER_ID, INFO, PRICE, QUANTITY
from customer_analytics.exceptions import ConfigError, DecodeError
from customer_analytics.store.engine import store_errors

logger = logging.getLogger(__name__)

# since is bound as DateTime so the dialect formats it like the stored values
EVENTS_QUERY = text(
    """
SELECT customer_id, content_id, quantity
FROM customer_event_data
WHERE event_date >= :since AND event_type_id = :event_type
ORDER BY event_data_id
"""
).bindparams(bindparam("since", type_=DateTime))

PRICES_QUERY = text("SELECT content_id, price FROM content_price ORDER BY content_price_id")

CHANNELS_QUERY = text(
    "SELECT customer_id, channel_value FROM customer_channel ORDER BY customer_channel_id"
)


def _read_frame(
    engine: Engine,
    query: TextClause,
    dtypes: dict[str, str],
    params: dict[str, object] | None = None,
) -> pd.DataFrame:
    with store_errors("running query"):
        with engine.connect() as conn:
            df = pd.read_sql(query, conn, params=params)
    try:
        return df.astype(dtypes)
    except (ValueError, TypeError) as e:
        raise DecodeError(f"Could not decode rows into {dtypes}: {e}") from e


def parse_since(since: str | datetime) -> datetime:
    """Normalize an event cut-off to a naive ``datetime``.

    Accepts anything ``pd.Timestamp`` parses, so ``2020-04-01 00:00:00`` and
    ``2020-04-01T00:00:00`` mean the same instant.

    Raises:
        ConfigError: If ``since`` is not a timestamp.
    """
    try:
        ts = pd.Timestamp(since)
    except (ValueError, TypeError) as e:
        raise ConfigError(f"Invalid events_since '{since}': {e}") from e
    if ts is pd.NaT:
        raise ConfigError(f"Invalid events_since '{since}'")
    return ts.to_pydatetime()


def fetch_customer_events(
    engine: Engine,
    since: str | datetime,
    event_type_id: int,
) -> pd.DataFrame:
    """Fetch purchase events dated on or after ``since``.

    Args:
        engine: Store handle.
        since: Lower bound on event_date; a datetime or any timestamp string
            such as ``YYYY-MM-DD HH:MM:SS``.
        event_type_id: Only events of this type are returned.

    Returns:
        DataFrame with columns customer_id, content_id, quantity (int64).

    Raises:
        ConfigError: If ``since`` is not a timestamp.
        QueryError: If the query fails.
        DecodeError: If a row contains NULL or non-integer values.
    """
    cutoff = parse_since(since)
    df = _read_frame(
        engine,
        EVENTS_QUERY,
        {CUSTOMER_ID: "int64", CONTENT_ID: "int64", QUANTITY: "int64"},
        params={"since": cutoff, "event_type": event_type_id},
    )
    logger.info("Fetched %d events since %s (type %d)", len(df), cutoff, event_type_id)
    return df


def fetch_content_prices(engine: Engine) -> pd.Series:
    """Fetch unit prices as a Series indexed by content_id.

    When a content has several price rows the last one wins.
    """
    df = _read_frame(engine, PRICES_QUERY, {CONTENT_ID: "int64", PRICE: "float64"})
    prices = df.drop_duplicates(CONTENT_ID, keep="last").set_index(CONTENT_ID)[PRICE]
    logger.info("Fetched %d content prices", len(prices))
    return prices


def fetch_customer_channels(engine: Engine) -> pd.Series:
    """Fetch channel values as a Series named ``info`` indexed by customer_id.

    When a customer has several channel rows the last one wins.
    """
    df = _read_frame(engine, CHANNELS_QUERY, {CUSTOMER_ID: "int64"})
    df["channel_value"] = df["channel_value"].fillna("").astype(str)
    channels = (
        df.drop_duplicates(CUSTOMER_ID, keep="last")
        .set_index(CUSTOMER_ID)["channel_value"]
        .rename(INFO)
    )
    logger.info("Fetched %d customer channels", len(channels))
    return channels


def fetch_persisted_ids(conn: Connection, table: Table) -> set[int]:
    """Return the customer ids currently stored in a report table."""
    with store_errors(f"reading {table.name}"):
        rows = conn.execute(select(table.c.customer_id)).scalars().all()
    return {int(r) for r in rows}
