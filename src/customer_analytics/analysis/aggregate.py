"""Reduce raw purchase events to one total-sales row per customer."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import pandas as pd

from customer_analytics.constants import (
    CONTENT_ID,
    CUSTOMER_ID,
    CUSTOMER_SALES_COLUMNS,
    EVENT_COLUMNS,
    INFO,
    PRICE,
    QUANTITY,
    TOTAL_SALES,
)
from customer_analytics.exceptions import DataQualityError

logger = logging.getLogger(__name__)


def _as_series(mapping: pd.Series | Mapping[int, object], name: str) -> pd.Series:
    if isinstance(mapping, pd.Series):
        return mapping.rename(name)
    return pd.Series(dict(mapping), name=name, dtype=object)


def require_columns(df: pd.DataFrame, columns: list[str], what: str) -> None:
    """Raise DataQualityError if ``df`` lacks any of ``columns``."""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise DataQualityError(f"{what} is missing required columns: {missing}")


def make_customer_sales(
    events: pd.DataFrame,
    channels: pd.Series | Mapping[int, str],
    prices: pd.Series | Mapping[int, float],
) -> pd.DataFrame:
    """Aggregate events into total sales per customer.

    Each event contributes ``price(content_id) * quantity`` to its customer.
    Events whose content has no known price are skipped entirely, so a
    customer whose events are all unpriced does not appear in the result.

    Args:
        events: DataFrame with customer_id, content_id and quantity columns.
        channels: customer_id -> channel info. Missing customers get "".
        prices: content_id -> unit price.

    Returns:
        DataFrame with columns customer_id, info, total_sales; one row per
        customer, ordered by customer_id.

    Raises:
        DataQualityError: If ``events`` lacks a required column.

    Examples:
        >>> events = pd.DataFrame(
        ...     {"customer_id": [1, 1, 2], "content_id": [10, 11, 10], "quantity": [2, 1, 3]}
        ... )
        >>> sales = make_customer_sales(events, {1: "a@b.c"}, {10: 5.0})
        >>> sales["total_sales"].tolist()
        [10.0, 15.0]
        >>> sales["info"].tolist()
        ['a@b.c', '']
    """
    require_columns(events, EVENT_COLUMNS, "events")
    try:
        events = events[EVENT_COLUMNS].astype({CUSTOMER_ID: "int64", CONTENT_ID: "int64"})
        price = _as_series(prices, PRICE).astype("float64")
        price.index = price.index.astype("int64")
    except (ValueError, TypeError) as e:
        raise DataQualityError(f"Events or prices have non-integer ids: {e}") from e
    info = _as_series(channels, INFO)

    priced = events.merge(
        price.rename_axis(CONTENT_ID).reset_index(),
        on=CONTENT_ID,
        how="inner",
    )
    skipped = len(events) - len(priced)
    if skipped:
        logger.debug("Skipped %d event(s) with unknown content price", skipped)

    priced[TOTAL_SALES] = priced[PRICE] * priced[QUANTITY]
    sales = (
        priced.groupby(CUSTOMER_ID, sort=True)[TOTAL_SALES]
        .sum()
        .astype("float64")
        .reset_index()
    )
    sales[INFO] = sales[CUSTOMER_ID].map(info).fillna("").astype(str)

    logger.info(
        "Aggregated %d priced event(s) into %d customer(s)", len(priced), len(sales)
    )
    return sales[CUSTOMER_SALES_COLUMNS]
