"""Shared fixtures for the customer analytics tests."""

from collections.abc import Generator
from datetime import datetime
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
from sqlalchemy.engine import Engine

from customer_analytics.store import ensure_source_schema, open_store
from customer_analytics.store.schema import (
    content_price,
    customer_channel,
    customer_event_data,
)


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """SQLite URL of a fresh database file."""
    return f"sqlite:///{tmp_path / 'analytics.db'}"


@pytest.fixture
def engine(database_url: str) -> Generator[Engine, None, None]:
    """Open store with the source schema in place."""
    with open_store(database_url) as eng:
        ensure_source_schema(eng)
        yield eng


@pytest.fixture
def random_events() -> tuple[pd.DataFrame, dict[int, float], dict[int, str]]:
    """Random events over 300 customers, with some contents left unpriced."""
    rng = np.random.default_rng(1234)
    events = pd.DataFrame(
        {
            "customer_id": rng.integers(1, 301, 3000),
            "content_id": rng.integers(1, 61, 3000),
            "quantity": rng.integers(1, 7, 3000),
        }
    )
    # contents 51..60 have no price
    prices = {cid: float(rng.random() * 1000) for cid in range(1, 51)}
    channels = {cid: f"customer{cid}@example.com" for cid in range(1, 301, 2)}
    return events, prices, channels


def insert_source_rows(
    engine: Engine,
    events: list[tuple[int, int, int, int, datetime]],
    prices: list[tuple[int, float]],
    channels: list[tuple[int, str | None]],
) -> None:
    """Insert raw source rows.

    events: (customer_id, content_id, quantity, event_type_id, event_date)
    prices: (content_id, price)
    channels: (customer_id, channel_value)
    """
    with engine.begin() as conn:
        if events:
            conn.execute(
                customer_event_data.insert(),
                [
                    {
                        "event_data_id": i,
                        "event_id": i,
                        "customer_id": cust,
                        "content_id": cont,
                        "quantity": qty,
                        "event_type_id": etype,
                        "event_date": when,
                        "insert_date": when,
                    }
                    for i, (cust, cont, qty, etype, when) in enumerate(events, start=1)
                ],
            )
        if prices:
            conn.execute(
                content_price.insert(),
                [
                    {"content_price_id": i, "content_id": cid, "price": p, "currency": "USD"}
                    for i, (cid, p) in enumerate(prices, start=1)
                ],
            )
        if channels:
            conn.execute(
                customer_channel.insert(),
                [
                    {
                        "customer_channel_id": i,
                        "customer_id": cid,
                        "channel_type_id": 1,
                        "channel_value": value,
                    }
                    for i, (cid, value) in enumerate(channels, start=1)
                ],
            )


@pytest.fixture
def insert_rows():
    """Expose ``insert_source_rows`` to tests."""
    return insert_source_rows
