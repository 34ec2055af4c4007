"""Materialize analysis results into the report tables.

Every public function runs in its own transaction: a failure rolls back that
table's changes and leaves tables written by earlier calls untouched.
"""

from __future__ import annotations

import logging

import pandas as pd
from sqlalchemy import Table, bindparam, delete, update
from sqlalchemy.engine import Connection, Engine

from customer_analytics.analysis.aggregate import require_columns
from customer_analytics.analysis.reconcile import ReconciliationPlan, plan_reconciliation
from customer_analytics.constants import CUSTOMER_ID, QUANTILE_COLUMNS, TOTAL_SALES
from customer_analytics.exceptions import DataQualityError
from customer_analytics.store.engine import store_errors
from customer_analytics.store.reader import fetch_persisted_ids

logger = logging.getLogger(__name__)


def frame_records(df: pd.DataFrame, columns: list[str]) -> list[dict[str, object]]:
    """Convert rows to plain Python dicts, with NaN turned into None."""
    subset = df[columns].astype(object)
    subset = subset.where(subset.notna(), None)
    return subset.to_dict("records")


def apply_reconciliation(
    conn: Connection,
    table: Table,
    plan: ReconciliationPlan,
    target: pd.DataFrame,
) -> None:
    """Execute a reconciliation plan against ``table`` on an open connection.

    Updates refresh total_sales; inserts copy every target column that the
    table also has.

    Raises:
        DataQualityError: If ``target`` has duplicate customer ids or lacks
            rows for ids in the plan.
    """
    require_columns(target, [CUSTOMER_ID, TOTAL_SALES], "reconciliation target")
    if target[CUSTOMER_ID].duplicated().any():
        raise DataQualityError(f"Duplicate customer ids in target for {table.name}")
    by_id = target.set_index(CUSTOMER_ID, drop=False)
    missing = (plan.to_update | plan.to_insert) - set(by_id.index)
    if missing:
        raise DataQualityError(f"Plan references customers absent from target: {sorted(missing)}")

    if plan.to_delete:
        conn.execute(delete(table).where(table.c.customer_id.in_(sorted(plan.to_delete))))

    if plan.to_update:
        stmt = (
            update(table)
            .where(table.c.customer_id == bindparam("b_customer_id"))
            .values(total_sales=bindparam("b_total_sales"))
        )
        conn.execute(
            stmt,
            [
                {"b_customer_id": cid, "b_total_sales": float(by_id.at[cid, TOTAL_SALES])}
                for cid in sorted(plan.to_update)
            ],
        )

    if plan.to_insert:
        columns = [c for c in by_id.columns if c in table.c and c != "id"]
        rows = by_id.loc[sorted(plan.to_insert)]
        conn.execute(table.insert(), frame_records(rows, columns))


def reconcile_table(engine: Engine, table: Table, target: pd.DataFrame) -> ReconciliationPlan:
    """Bring ``table`` in line with ``target`` in a single transaction."""
    require_columns(target, [CUSTOMER_ID, TOTAL_SALES], "reconciliation target")
    with store_errors(f"reconciling {table.name}"):
        with engine.begin() as conn:
            persisted = fetch_persisted_ids(conn, table)
            plan = plan_reconciliation(persisted, {int(c) for c in target[CUSTOMER_ID]})
            apply_reconciliation(conn, table, plan, target)
    logger.info("Reconciled %s: %s", table.name, plan.summary())
    return plan


def write_top_customers(engine: Engine, table: Table, top: pd.DataFrame) -> ReconciliationPlan:
    """Reconcile the dated top-customers table with the current top set."""
    return reconcile_table(engine, table, top)


def write_above_average(
    engine: Engine, table: Table, selected: pd.DataFrame
) -> ReconciliationPlan:
    """Reconcile the above-average table with the current selection."""
    return reconcile_table(engine, table, selected)


def write_quantiles(engine: Engine, table: Table, quantiles: pd.DataFrame) -> int:
    """Replace the contents of a quantile table.

    Returns:
        Number of rows written.
    """
    require_columns(quantiles, QUANTILE_COLUMNS, "quantiles")
    rows = frame_records(quantiles, QUANTILE_COLUMNS)
    with store_errors(f"writing {table.name}"):
        with engine.begin() as conn:
            conn.execute(delete(table))
            if rows:
                conn.execute(table.insert(), rows)
    logger.info("Wrote %d row(s) to %s", len(rows), table.name)
    return len(rows)
