"""Customer sales analysis.

Pure functions over pandas DataFrames; none of them touch the store.

- **aggregate**: events + prices + channels -> one total-sales row per customer.
- **ranking**: order customers by total sales; pick the above-average ones.
- **quantiles**: rank-based and sales-value-based bucket breakdowns.
- **reconcile**: top-set selection and the update/delete/insert plan used to
  sync a persisted table.

Example:
    >>> from customer_analytics.analysis import make_customer_sales, rank_customers
    >>> from customer_analytics.analysis import quantiles_by_rank
    >>>
    >>> sales = make_customer_sales(events_df, channels, prices)
    >>> ranked = rank_customers(sales)
    >>> buckets = quantiles_by_rank(ranked)
"""

from customer_analytics.analysis.aggregate import make_customer_sales
from customer_analytics.analysis.quantiles import quantiles_by_rank, quantiles_by_sales
from customer_analytics.analysis.ranking import above_average, rank_customers
from customer_analytics.analysis.reconcile import (
    ReconciliationPlan,
    plan_reconciliation,
    select_top_customers,
)

__all__ = [
    "ReconciliationPlan",
    "above_average",
    "make_customer_sales",
    "plan_reconciliation",
    "quantiles_by_rank",
    "quantiles_by_sales",
    "rank_customers",
    "select_top_customers",
]
