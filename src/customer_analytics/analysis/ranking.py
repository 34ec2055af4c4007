"""Rank customers by total sales and select the above-average spenders."""

from __future__ import annotations

import logging

import pandas as pd

from customer_analytics.analysis.aggregate import require_columns
from customer_analytics.constants import CUSTOMER_ID, RANK, TOTAL_SALES

logger = logging.getLogger(__name__)


def rank_customers(customer_sales: pd.DataFrame) -> pd.DataFrame:
    """Sort customers by total sales, highest first.

    Ties are broken by customer_id ascending so the ranking is reproducible.

    Args:
        customer_sales: Output of ``make_customer_sales``.

    Returns:
        A copy of the input ordered by rank, with a 0-based ``rank`` column
        and a fresh RangeIndex. Rank 0 is the highest spender.
    """
    require_columns(customer_sales, [CUSTOMER_ID, TOTAL_SALES], "customer sales")
    ranked = customer_sales.sort_values(
        [TOTAL_SALES, CUSTOMER_ID],
        ascending=[False, True],
        kind="mergesort",
    ).reset_index(drop=True)
    ranked[RANK] = range(len(ranked))
    return ranked


def above_average(customer_sales: pd.DataFrame) -> pd.DataFrame:
    """Return customers whose total sales strictly exceed the mean.

    Examples:
        >>> df = pd.DataFrame(
        ...     {"customer_id": [1, 2, 3, 4, 5], "total_sales": [100.0, 80.0, 80.0, 50.0, 10.0]}
        ... )
        >>> above_average(df)["total_sales"].tolist()
        [100.0, 80.0, 80.0]
    """
    require_columns(customer_sales, [CUSTOMER_ID, TOTAL_SALES], "customer sales")
    if customer_sales.empty:
        return customer_sales.copy()

    mean = customer_sales[TOTAL_SALES].mean()
    selected = customer_sales[customer_sales[TOTAL_SALES] > mean].copy()
    logger.info(
        "%d of %d customer(s) above average sales %.2f",
        len(selected),
        len(customer_sales),
        mean,
    )
    return selected
