"""Quantile breakdowns of the customer population.

Two independent bucketing schemes are provided:

- **By rank** (``quantiles_by_rank``): customers are split into equally sized
  groups by their position in the ranking. Labels carry the nominal
  percentile range of each group, not a sales range.
- **By sales** (``quantiles_by_sales``): the [min, max] sales interval is
  split into equal-width sub-ranges and customers are counted per sub-range.

Both return a DataFrame with columns bucket, quantile_range,
number_of_customers and max_sales.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from customer_analytics.analysis.aggregate import require_columns
from customer_analytics.constants import (
    BUCKET,
    MAX_SALES,
    NUMBER_OF_CUSTOMERS,
    QUANTILE_COLUMNS,
    QUANTILE_COUNT,
    QUANTILE_RANGE,
    RANK,
    TOP_FRACTION,
    TOTAL_SALES,
)

logger = logging.getLogger(__name__)


def _empty_quantiles() -> pd.DataFrame:
    return pd.DataFrame(
        {
            BUCKET: pd.Series(dtype="int64"),
            QUANTILE_RANGE: pd.Series(dtype=object),
            NUMBER_OF_CUSTOMERS: pd.Series(dtype="int64"),
            MAX_SALES: pd.Series(dtype="float64"),
        }
    )


def rank_bucket_size(n_customers: int, fraction: float = TOP_FRACTION) -> int:
    """Number of customers per rank bucket, never less than 1."""
    return max(1, int(fraction * n_customers))


def quantiles_by_rank(
    ranked: pd.DataFrame,
    quantile_count: int = QUANTILE_COUNT,
    fraction: float = TOP_FRACTION,
) -> pd.DataFrame:
    """Bucket ranked customers into equally sized rank groups.

    Bucket index is ``rank // bucket_size`` clamped to ``quantile_count - 1``,
    so the remainder of the integer division lands in the last bucket. When
    there are fewer customers than buckets each customer gets its own bucket.
    Only non-empty buckets are returned.

    Args:
        ranked: Output of ``rank_customers``.
        quantile_count: Number of buckets.
        fraction: Share of the population per bucket, also used for labels.

    Returns:
        Quantile DataFrame ordered by bucket, labelled like ``"0.0% - 2.5%"``.
    """
    require_columns(ranked, [RANK, TOTAL_SALES], "ranked customers")
    n = len(ranked)
    if n == 0:
        return _empty_quantiles()

    size = rank_bucket_size(n, fraction)
    index = np.minimum(ranked[RANK].to_numpy() // size, quantile_count - 1)

    stats = (
        ranked.assign(**{BUCKET: index})
        .groupby(BUCKET, sort=True)[TOTAL_SALES]
        .agg(["size", "max"])
        .reset_index()
    )
    step = fraction * 100
    result = pd.DataFrame(
        {
            BUCKET: stats[BUCKET].astype("int64"),
            QUANTILE_RANGE: [f"{b * step:.1f}% - {(b + 1) * step:.1f}%" for b in stats[BUCKET]],
            NUMBER_OF_CUSTOMERS: stats["size"].astype("int64"),
            MAX_SALES: stats["max"].astype("float64"),
        }
    )
    logger.info("Built %d rank bucket(s) of %d customer(s) each", len(result), size)
    return result[QUANTILE_COLUMNS]


def sales_bucket_edges(
    low: float,
    high: float,
    quantile_count: int = QUANTILE_COUNT,
) -> np.ndarray:
    """Return ``quantile_count + 1`` equally spaced edges from low to high.

    The last edge is exactly ``high`` so the maximum always has a bucket.
    """
    edges = low + (high - low) * np.arange(quantile_count + 1) / quantile_count
    edges[-1] = high
    return edges


def quantiles_by_sales(
    customer_sales: pd.DataFrame,
    quantile_count: int = QUANTILE_COUNT,
) -> pd.DataFrame:
    """Bucket customers into equal-width total-sales ranges.

    A customer belongs to the range where ``start < total_sales <= end``;
    the first range also includes its start, so the minimum is counted.
    All buckets are returned, empty ones with zero customers and a null
    max_sales. If every customer has the same total, a single bucket holds
    everyone.

    Args:
        customer_sales: DataFrame with a total_sales column.
        quantile_count: Number of ranges.

    Returns:
        Quantile DataFrame ordered by bucket, labelled like ``"0.00 - 25.00"``.
    """
    require_columns(customer_sales, [TOTAL_SALES], "customer sales")
    values = customer_sales[TOTAL_SALES].to_numpy(dtype="float64")
    if values.size == 0:
        return _empty_quantiles()

    low, high = float(values.min()), float(values.max())
    if high == low:
        logger.info("All customers have total sales %.2f; using a single bucket", low)
        return pd.DataFrame(
            {
                BUCKET: pd.Series([0], dtype="int64"),
                QUANTILE_RANGE: [f"{low:.2f} - {high:.2f}"],
                NUMBER_OF_CUSTOMERS: pd.Series([values.size], dtype="int64"),
                MAX_SALES: pd.Series([high], dtype="float64"),
            }
        )

    edges = sales_bucket_edges(low, high, quantile_count)
    # searchsorted(side="left") gives i with edges[i-1] < v <= edges[i]
    index = np.clip(np.searchsorted(edges, values, side="left") - 1, 0, quantile_count - 1)

    counts = np.bincount(index, minlength=quantile_count)
    maxima = pd.Series(values).groupby(index).max().reindex(range(quantile_count))

    result = pd.DataFrame(
        {
            BUCKET: np.arange(quantile_count, dtype="int64"),
            QUANTILE_RANGE: [
                f"{edges[i]:.2f} - {edges[i + 1]:.2f}" for i in range(quantile_count)
            ],
            NUMBER_OF_CUSTOMERS: counts.astype("int64"),
            MAX_SALES: maxima.to_numpy(dtype="float64"),
        }
    )
    logger.info(
        "Built %d sales bucket(s) over %.2f - %.2f", quantile_count, low, high
    )
    return result[QUANTILE_COLUMNS]
