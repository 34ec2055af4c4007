"""Smoke tests for the end-to-end analysis run and the CLI."""

import os
from datetime import date

import pandas as pd
import pytest
from sqlalchemy import inspect, select
from sqlalchemy.engine import Engine

from customer_analytics.analysis.reconcile import top_customer_count
from customer_analytics.config import AnalysisConfig, GenerationConfig
from customer_analytics.exceptions import ConfigError
from customer_analytics.generation import seed_store
from customer_analytics.pipeline import analyze, main, run_customer_analysis
from customer_analytics.store import open_store
from customer_analytics.store.schema import (
    above_average_customers,
    quantiles_by_rank,
    quantiles_by_sales,
    top_customers_table,
)


def _rows(engine: Engine, table) -> pd.DataFrame:
    with engine.connect() as conn:
        return pd.read_sql(select(table).order_by(table.c.id), conn)


@pytest.fixture
def seeded_engine(engine: Engine) -> Engine:
    seed_store(engine, GenerationConfig(n_customers=200, n_contents=20, n_events=2000, seed=7))
    return engine


def test_imports() -> None:
    """Test that the public package surface imports."""
    import customer_analytics
    from customer_analytics import AnalysisConfig, open_store, run_customer_analysis  # noqa: F401

    assert customer_analytics.__version__


def test_analyze_example() -> None:
    """Five customers with sales [100, 80, 80, 50, 10] on a content priced 10."""
    events = pd.DataFrame(
        {
            "customer_id": [1, 2, 3, 4, 5],
            "content_id": [9, 9, 9, 9, 9],
            "quantity": [10, 8, 8, 5, 1],
        }
    )

    report = analyze(events, {1: "a@x.com"}, {9: 10.0})

    assert report.ranked["customer_id"].tolist() == [1, 2, 3, 4, 5]
    assert set(report.above_average["customer_id"]) == {1, 2, 3}
    assert report.top_customers["customer_id"].tolist() == [1]
    assert report.quantiles_by_rank["number_of_customers"].sum() == 5
    assert report.quantiles_by_sales["number_of_customers"].sum() == 5


def test_top_fraction_leaves_rank_buckets_unchanged() -> None:
    """A larger top set does not resize or relabel the 40 rank buckets."""
    events = pd.DataFrame(
        {
            "customer_id": range(1, 106),
            "content_id": [1] * 105,
            "quantity": range(1, 106),
        }
    )

    default = analyze(events, {}, {1: 2.0})
    wider = analyze(events, {}, {1: 2.0}, top_fraction=0.1)

    assert len(wider.top_customers) == 10
    assert len(default.top_customers) == 2
    pd.testing.assert_frame_equal(wider.quantiles_by_rank, default.quantiles_by_rank)
    assert len(wider.quantiles_by_rank) == 40
    assert wider.quantiles_by_rank["quantile_range"].iloc[-1] == "97.5% - 100.0%"


def test_run_materializes_every_table(seeded_engine: Engine) -> None:
    config = AnalysisConfig(database_url="unused", run_date=date(2024, 1, 2))

    result = run_customer_analysis(seeded_engine, config)
    report = result.report

    assert result.top_table == "top_customers_20240102"
    assert result.top_plan.to_insert == set(report.top_customers["customer_id"])

    top = _rows(seeded_engine, top_customers_table(result.top_table))
    assert sorted(top["customer_id"]) == sorted(report.top_customers["customer_id"])
    assert len(top) == top_customer_count(len(report.ranked))

    by_rank = _rows(seeded_engine, quantiles_by_rank)
    by_sales = _rows(seeded_engine, quantiles_by_sales)
    assert by_rank["number_of_customers"].sum() == len(report.ranked)
    assert by_sales["number_of_customers"].sum() == len(report.ranked)
    assert len(by_sales) == 40

    above = _rows(seeded_engine, above_average_customers)
    assert set(above["customer_id"]) == set(report.above_average["customer_id"])


def test_second_run_only_updates(seeded_engine: Engine) -> None:
    """Re-running over unchanged sources updates rows in place."""
    config = AnalysisConfig(database_url="unused", run_date=date(2024, 1, 3))

    first = run_customer_analysis(seeded_engine, config)
    second = run_customer_analysis(seeded_engine, config)

    assert second.top_plan.to_update == first.top_plan.to_insert
    assert not second.top_plan.to_insert
    assert not second.top_plan.to_delete
    assert not second.above_average_plan.to_insert
    assert not second.above_average_plan.to_delete
    by_rank = _rows(seeded_engine, quantiles_by_rank)
    assert by_rank["number_of_customers"].sum() == len(second.report.ranked)


def test_run_without_purchases(engine: Engine) -> None:
    """An empty source store still produces empty report tables."""
    config = AnalysisConfig(database_url="unused", run_date=date(2024, 1, 4))

    result = run_customer_analysis(engine, config)

    assert result.report.ranked.empty
    assert _rows(engine, quantiles_by_rank).empty
    assert _rows(engine, top_customers_table(result.top_table)).empty


def test_main_end_to_end(database_url: str) -> None:
    code = main(["--database-url", database_url, "--seed", "3", "--run-date", "2024-01-02", "--quiet"])

    assert code == 0
    with open_store(database_url) as engine:
        assert "top_customers_20240102" in inspect(engine).get_table_names()


def test_main_skip_generate_on_empty_store(database_url: str) -> None:
    """Without generated data the source tables are missing and the run fails."""
    code = main(["--database-url", database_url, "--skip-generate", "--quiet"])

    assert code == 1


def test_main_bad_url() -> None:
    assert main(["--database-url", "not a database url", "--quiet"]) == 1


def test_main_missing_driver(monkeypatch: pytest.MonkeyPatch) -> None:
    """A dialect whose driver package is absent fails cleanly."""

    def missing_driver(*args, **kwargs):
        raise ModuleNotFoundError("No module named 'psycopg'")

    monkeypatch.setattr("customer_analytics.store.engine.create_engine", missing_driver)

    assert main(["--database-url", "postgresql://u@localhost/db", "--quiet"]) == 1


def test_main_interrupted(database_url: str, monkeypatch: pytest.MonkeyPatch) -> None:
    def interrupt(engine, config):
        raise KeyboardInterrupt

    monkeypatch.setattr("customer_analytics.pipeline.run_customer_analysis", interrupt)

    assert main(["--database-url", database_url, "--skip-generate", "--quiet"]) == 130


class TestAnalysisConfig:
    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CA_DATABASE_URL", "sqlite:///env.db")
        monkeypatch.setenv("CA_PURCHASE_EVENT_TYPE", "5")

        config = AnalysisConfig.from_env()

        assert config.database_url == "sqlite:///env.db"
        assert config.purchase_event_type == 5

    def test_overrides_win(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CA_DATABASE_URL", "sqlite:///env.db")

        config = AnalysisConfig.from_env(database_url="sqlite://", run_date=None)

        assert config.database_url == "sqlite://"

    def test_bad_event_type(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CA_PURCHASE_EVENT_TYPE", "purchase")

        with pytest.raises(ConfigError):
            AnalysisConfig.from_env()

    @pytest.mark.parametrize("since", ["2020-04-01T00:00:00", "2020-04-01", "2020/04/01 00:00"])
    def test_events_since_normalized(self, since: str) -> None:
        config = AnalysisConfig(events_since=since)

        assert config.events_since == "2020-04-01 00:00:00"

    def test_top_table_name(self) -> None:
        config = AnalysisConfig(run_date=date(2023, 12, 31))

        assert config.top_table == "top_customers_20231231"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"top_fraction": 0},
            {"top_fraction": 1.5},
            {"top_table_prefix": "top customers"},
            {"events_since": "not a date"},
            {"events_since": ""},
        ],
    )
    def test_invalid(self, kwargs: dict) -> None:
        with pytest.raises(ConfigError):
            AnalysisConfig(**kwargs)


@pytest.mark.live
@pytest.mark.skipif(
    not os.environ.get("CA_LIVE_DATABASE_URL"),
    reason="CA_LIVE_DATABASE_URL not set",
)
def test_live_database() -> None:
    """Run the analysis against a real database without generating data."""
    config = AnalysisConfig(database_url=os.environ["CA_LIVE_DATABASE_URL"])

    with open_store(config.database_url) as engine:
        result = run_customer_analysis(engine, config)

    assert result.report.quantiles_by_rank["number_of_customers"].sum() == len(
        result.report.ranked
    )
