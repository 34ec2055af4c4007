"""Set reconciliation between a persisted report table and a fresh target.

The plan is computed from customer id sets alone, so it can be tested
without a store. ``customer_analytics.store.writer`` applies it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

import pandas as pd

from customer_analytics.analysis.aggregate import require_columns
from customer_analytics.constants import CUSTOMER_ID, RANK, TOP_FRACTION

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationPlan:
    """Changes that bring a persisted table in line with a target set.

    Attributes:
        to_update: Persisted and still targeted; totals are refreshed.
        to_delete: Persisted but no longer targeted.
        to_insert: Targeted but not yet persisted.
    """

    to_update: frozenset[int]
    to_delete: frozenset[int]
    to_insert: frozenset[int]

    @property
    def is_empty(self) -> bool:
        return not (self.to_update or self.to_delete or self.to_insert)

    def summary(self) -> str:
        return (
            f"{len(self.to_update)} update(s), {len(self.to_delete)} delete(s), "
            f"{len(self.to_insert)} insert(s)"
        )


def top_customer_count(n_customers: int, fraction: float = TOP_FRACTION) -> int:
    """Size of the top set: ``floor(fraction * n)``, at least 1 when n > 0."""
    if n_customers <= 0:
        return 0
    return max(1, int(fraction * n_customers))


def select_top_customers(ranked: pd.DataFrame, fraction: float = TOP_FRACTION) -> pd.DataFrame:
    """Return the customers ranked strictly below ``top_customer_count``.

    Examples:
        >>> ranked = pd.DataFrame({"customer_id": range(80), "rank": range(80)})
        >>> len(select_top_customers(ranked))
        2
    """
    require_columns(ranked, [CUSTOMER_ID, RANK], "ranked customers")
    count = top_customer_count(len(ranked), fraction)
    return ranked[ranked[RANK] < count].copy()


def plan_reconciliation(persisted: Iterable[int], target: Iterable[int]) -> ReconciliationPlan:
    """Partition ``persisted ∪ target`` into update, delete and insert sets.

    Examples:
        >>> plan = plan_reconciliation({1, 2, 3}, {2, 3, 4})
        >>> sorted(plan.to_update), sorted(plan.to_delete), sorted(plan.to_insert)
        ([2, 3], [1], [4])
    """
    p = frozenset(persisted)
    t = frozenset(target)
    plan = ReconciliationPlan(to_update=p & t, to_delete=p - t, to_insert=t - p)
    logger.debug("Reconciliation plan: %s", plan.summary())
    return plan
