"""Customer Analytics - sales aggregation and reporting over e-commerce events.

This package reads purchase events from a relational store, aggregates
spend per customer, and materializes reporting tables:

- **top_customers_<YYYYMMDD>**: the highest-spending 2.5% of customers,
  reconciled against the table's previous contents
- **quantiles_by_rank**: 40 equally sized rank groups
- **quantiles_by_sales**: 40 equal-width total-sales ranges
- **above_average_customers**: customers spending more than the mean

Module Structure:
    customer_analytics.analysis: Pure aggregation, ranking and bucketing
    customer_analytics.store: Engine lifecycle, schema, reads and writes
    customer_analytics.generation: Synthetic source data
    customer_analytics.pipeline: End-to-end run and CLI
    customer_analytics.config: AnalysisConfig and GenerationConfig

Quick Start:
    >>> from customer_analytics import AnalysisConfig, open_store, run_customer_analysis
    >>> from customer_analytics.generation import seed_store
    >>> from customer_analytics.config import GenerationConfig
    >>>
    >>> config = AnalysisConfig.from_env(database_url="sqlite:///customer_analytics.db")
    >>> with open_store(config.database_url) as engine:
    ...     seed_store(engine, GenerationConfig(seed=42))
    ...     result = run_customer_analysis(engine, config)
    >>> print(result.report.quantiles_by_rank.head())
"""

__version__ = "0.1.0"

from customer_analytics.config import AnalysisConfig
from customer_analytics.exceptions import (
    AnalyticsError,
    ConfigError,
    DataQualityError,
    StoreError,
)
from customer_analytics.pipeline import run_customer_analysis
from customer_analytics.store import open_store

__all__ = [
    "AnalysisConfig",
    "AnalyticsError",
    "ConfigError",
    "DataQualityError",
    "StoreError",
    "__version__",
    "open_store",
    "run_customer_analysis",
]
