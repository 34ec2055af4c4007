"""End-to-end customer analysis and its command-line entry point.

``analyze`` is the pure part: it turns events, channels and prices into every
report frame. ``run_customer_analysis`` wraps it with the store reads and the
report writes. ``main`` generates synthetic data, then runs the analysis once.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date

import pandas as pd
from sqlalchemy.engine import Engine

from customer_analytics.analysis import (
    ReconciliationPlan,
    above_average,
    make_customer_sales,
    quantiles_by_rank,
    quantiles_by_sales,
    rank_customers,
    select_top_customers,
)
from customer_analytics.config import AnalysisConfig, GenerationConfig
from customer_analytics.constants import TOP_FRACTION
from customer_analytics.exceptions import AnalyticsError
from customer_analytics.generation import seed_store
from customer_analytics.store import (
    ensure_output_schema,
    fetch_content_prices,
    fetch_customer_channels,
    fetch_customer_events,
    open_store,
    write_above_average,
    write_quantiles,
    write_top_customers,
)
from customer_analytics.store.schema import (
    above_average_customers,
    quantiles_by_rank as quantiles_by_rank_table,
    quantiles_by_sales as quantiles_by_sales_table,
)

logger = logging.getLogger(__name__)


@dataclass
class AnalysisReport:
    """Every frame produced by one analysis, before anything is persisted.

    Attributes:
        ranked: All customers with total sales, ordered by rank.
        top_customers: The top slice of ``ranked``.
        quantiles_by_rank: Rank-based bucket breakdown.
        quantiles_by_sales: Sales-value-based bucket breakdown.
        above_average: Customers with total sales above the mean.
    """

    ranked: pd.DataFrame
    top_customers: pd.DataFrame
    quantiles_by_rank: pd.DataFrame
    quantiles_by_sales: pd.DataFrame
    above_average: pd.DataFrame


@dataclass
class AnalysisResult:
    """Outcome of ``run_customer_analysis``."""

    report: AnalysisReport
    top_table: str
    top_plan: ReconciliationPlan
    above_average_plan: ReconciliationPlan


def analyze(
    events: pd.DataFrame,
    channels: pd.Series | Mapping[int, str],
    prices: pd.Series | Mapping[int, float],
    top_fraction: float = TOP_FRACTION,
) -> AnalysisReport:
    """Aggregate, rank and bucket customers without touching the store.

    ``top_fraction`` only sizes the top set; rank buckets are always 40
    groups of 2.5%.
    """
    sales = make_customer_sales(events, channels, prices)
    ranked = rank_customers(sales)
    return AnalysisReport(
        ranked=ranked,
        top_customers=select_top_customers(ranked, top_fraction),
        quantiles_by_rank=quantiles_by_rank(ranked),
        quantiles_by_sales=quantiles_by_sales(ranked),
        above_average=above_average(ranked),
    )


def run_customer_analysis(engine: Engine, config: AnalysisConfig) -> AnalysisResult:
    """Fetch source rows, analyze them, and materialize every report table.

    Phases run in order and the first failure aborts the run. Each report
    table is written in its own transaction, so a failure leaves earlier
    tables committed and the failing table unchanged.

    Args:
        engine: Store handle from ``open_store``.
        config: Analysis settings.

    Returns:
        AnalysisResult with the report frames and the reconciliation plans.

    Raises:
        StoreError: If a query or statement fails.
        DataQualityError: If fetched rows are unusable.
    """
    events = fetch_customer_events(engine, config.events_since, config.purchase_event_type)
    channels = fetch_customer_channels(engine)
    prices = fetch_content_prices(engine)

    report = analyze(events, channels, prices, config.top_fraction)
    logger.info("Ranked %d customer(s)", len(report.ranked))

    top_table = ensure_output_schema(engine, config.top_table)
    top_plan = write_top_customers(engine, top_table, report.top_customers)
    write_quantiles(engine, quantiles_by_rank_table, report.quantiles_by_rank)
    write_quantiles(engine, quantiles_by_sales_table, report.quantiles_by_sales)
    above_plan = write_above_average(engine, above_average_customers, report.above_average)

    return AnalysisResult(
        report=report,
        top_table=config.top_table,
        top_plan=top_plan,
        above_average_plan=above_plan,
    )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="customer-analytics",
        description="Generate synthetic e-commerce data and build the customer sales reports.",
    )
    p.add_argument(
        "--database-url",
        help="SQLAlchemy database URL (default: $CA_DATABASE_URL or a local SQLite file)",
    )
    p.add_argument(
        "--skip-generate",
        action="store_true",
        help="Analyze the existing source tables without generating new data",
    )
    p.add_argument(
        "--append",
        action="store_true",
        help="Append generated data instead of replacing the source tables",
    )
    p.add_argument("--seed", type=int, help="Seed for the synthetic data generator")
    p.add_argument(
        "--run-date",
        type=date.fromisoformat,
        help="Date (YYYY-MM-DD) used to name the top-customers table (default: today)",
    )
    p.add_argument("--quiet", action="store_true", help="Less logging")
    return p


def main(argv: Sequence[str] | None = None) -> int:
    """Run generation (unless skipped) and the analysis once.

    Returns:
        Process exit code: 0 on success, 1 on failure, 130 if interrupted.
    """
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        config = AnalysisConfig.from_env(database_url=args.database_url, run_date=args.run_date)
        with open_store(config.database_url) as engine:
            if not args.skip_generate:
                seed_store(
                    engine,
                    GenerationConfig(seed=args.seed),
                    mode="append" if args.append else "replace",
                )
            result = run_customer_analysis(engine, config)
    except AnalyticsError as e:
        logger.error("Customer analysis failed: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130

    logger.info(
        "Done: %d customer(s); %s %s; above average %s",
        len(result.report.ranked),
        result.top_table,
        result.top_plan.summary(),
        result.above_average_plan.summary(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
