"""Synthetic customers, contents, prices and events.

The generator builds all six source tables as DataFrames in memory, then
``seed_store`` writes them in a single transaction. Values that need to look
realistic (emails, phone numbers, zip codes, client ids) come from Faker;
everything numeric is drawn from a numpy Generator so a seed reproduces the
whole dataset.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from faker import Faker
from sqlalchemy import delete, func, select
from sqlalchemy.engine import Engine

from customer_analytics.config import GenerationConfig
from customer_analytics.store.engine import store_errors
from customer_analytics.store.schema import (
    SOURCE_TABLES,
    content,
    content_price,
    customer,
    customer_channel,
    customer_event,
    customer_event_data,
    ensure_source_schema,
)
from customer_analytics.store.writer import frame_records

logger = logging.getLogger(__name__)

# channel_type_id -> kind of contact value stored for the customer
CHANNEL_TYPES = {
    1: "email",
    2: "phone",
    3: "zip",
    4: "digits8",
    5: "digits13",
}


@dataclass(frozen=True)
class IdOffsets:
    """Largest ids already present; generated ids start right after them."""

    customer: int = 0
    content: int = 0
    event: int = 0


@dataclass
class SyntheticDataset:
    """One DataFrame per source table, columns named after the table columns."""

    customers: pd.DataFrame
    channels: pd.DataFrame
    contents: pd.DataFrame
    prices: pd.DataFrame
    events: pd.DataFrame
    event_data: pd.DataFrame

    def frames(self) -> list[tuple[str, pd.DataFrame]]:
        """Pairs of (table name, frame) in insert order."""
        return [
            (customer.name, self.customers),
            (customer_channel.name, self.channels),
            (content.name, self.contents),
            (content_price.name, self.prices),
            (customer_event.name, self.events),
            (customer_event_data.name, self.event_data),
        ]


def random_timestamps(rng: np.random.Generator, year: int, size: int) -> pd.Series:
    """Random timestamps within ``year``; days are limited to 1..28."""
    if size == 0:
        return pd.Series([], dtype="datetime64[ns]")
    parts = pd.DataFrame(
        {
            "year": np.full(size, year),
            "month": rng.integers(1, 13, size),
            "day": rng.integers(1, 29, size),
            "hour": rng.integers(0, 24, size),
            "minute": rng.integers(0, 60, size),
            "second": rng.integers(0, 60, size),
        }
    )
    return pd.to_datetime(parts)


def weighted_event_types(
    rng: np.random.Generator,
    weights: tuple[float, ...],
    size: int,
) -> np.ndarray:
    """Draw event type ids 1..len(weights) with the given relative weights."""
    p = np.asarray(weights, dtype="float64")
    return rng.choice(np.arange(1, len(p) + 1), size=size, p=p / p.sum())


def channel_value(fake: Faker, channel_type: int) -> str:
    kind = CHANNEL_TYPES[channel_type]
    if kind == "email":
        return fake.email()
    if kind == "phone":
        return fake.phone_number()
    if kind == "zip":
        return fake.postcode()
    if kind == "digits8":
        return fake.numerify("#" * 8)
    return fake.numerify("#" * 13)


def generate_dataset(
    config: GenerationConfig,
    offsets: IdOffsets = IdOffsets(),
) -> SyntheticDataset:
    """Build a synthetic dataset for every source table.

    Args:
        config: Sizes, price range, event type weights and seed.
        offsets: Existing maximum ids; new ids start after them.

    Returns:
        SyntheticDataset whose events only reference the generated customers
        and contents.

    Examples:
        >>> ds = generate_dataset(GenerationConfig(n_customers=5, n_contents=2, n_events=10, seed=1))
        >>> len(ds.customers), len(ds.prices), len(ds.event_data)
        (5, 2, 10)
    """
    rng = np.random.default_rng(config.seed)
    fake = Faker()
    if config.seed is not None:
        fake.seed_instance(config.seed)

    # Customers and their single contact channel
    customer_ids = np.arange(1, config.n_customers + 1) + offsets.customer
    customer_dates = random_timestamps(rng, config.year, config.n_customers)
    channel_types = rng.integers(1, len(CHANNEL_TYPES) + 1, config.n_customers)
    customers = pd.DataFrame(
        {
            "customer_id": customer_ids,
            "client_customer_id": [fake.numerify("######") for _ in customer_ids],
            "insert_date": customer_dates,
        }
    )
    channels = pd.DataFrame(
        {
            "customer_channel_id": customer_ids,
            "customer_id": customer_ids,
            "channel_type_id": channel_types,
            "channel_value": [channel_value(fake, int(t)) for t in channel_types],
            "insert_date": customer_dates,
        }
    )

    # Contents and one price per content
    content_ids = np.arange(1, config.n_contents + 1) + offsets.content
    content_dates = random_timestamps(rng, config.year, config.n_contents)
    contents = pd.DataFrame(
        {
            "content_id": content_ids,
            "client_content_id": [fake.numerify("########") for _ in content_ids],
            "insert_date": content_dates,
        }
    )
    prices = pd.DataFrame(
        {
            "content_price_id": content_ids,
            "content_id": content_ids,
            "price": rng.random(config.n_contents) * config.max_price,
            "currency": config.currency,
            "insert_date": content_dates,
        }
    )

    # Events pick a random customer and content each
    event_ids = np.arange(1, config.n_events + 1) + offsets.event
    event_dates = random_timestamps(rng, config.year, config.n_events)
    events = pd.DataFrame(
        {
            "event_id": event_ids,
            "client_event_id": [fake.numerify("#" * 10) for _ in event_ids],
            "insert_date": event_dates,
        }
    )
    event_data = pd.DataFrame(
        {
            "event_data_id": event_ids,
            "event_id": event_ids,
            "content_id": rng.choice(content_ids, config.n_events),
            "customer_id": rng.choice(customer_ids, config.n_events),
            "event_type_id": weighted_event_types(rng, config.event_type_weights, config.n_events),
            "event_date": event_dates,
            "quantity": rng.integers(1, 7, config.n_events),
            "insert_date": event_dates,
        }
    )

    logger.info(
        "Generated %d customer(s), %d content(s), %d event(s)",
        len(customers),
        len(contents),
        len(event_data),
    )
    return SyntheticDataset(
        customers=customers,
        channels=channels,
        contents=contents,
        prices=prices,
        events=events,
        event_data=event_data,
    )


def read_id_offsets(engine: Engine) -> IdOffsets:
    """Return the current maximum customer, content and event ids."""
    with store_errors("reading id offsets"):
        with engine.connect() as conn:
            max_customer = conn.execute(select(func.max(customer.c.customer_id))).scalar()
            max_content = conn.execute(select(func.max(content.c.content_id))).scalar()
            max_event = conn.execute(select(func.max(customer_event.c.event_id))).scalar()
    return IdOffsets(
        customer=int(max_customer or 0),
        content=int(max_content or 0),
        event=int(max_event or 0),
    )


def seed_store(
    engine: Engine,
    config: GenerationConfig,
    *,
    mode: str = "replace",
) -> SyntheticDataset:
    """Generate a dataset and write it to the source tables.

    Args:
        engine: Store handle.
        config: Generator settings.
        mode: "replace" (default) clears the source tables first;
            "append" keeps existing rows and generates ids after them.

    Returns:
        The dataset that was written.

    Raises:
        ValueError: If mode is not "replace" or "append".
        QueryError: If any statement fails; nothing is written in that case.
    """
    if mode not in ("replace", "append"):
        raise ValueError(f"Invalid mode '{mode}'. Must be 'replace' or 'append'.")

    ensure_source_schema(engine)
    offsets = read_id_offsets(engine) if mode == "append" else IdOffsets()
    dataset = generate_dataset(config, offsets)

    tables = {t.name: t for t in SOURCE_TABLES}
    with store_errors("seeding source tables"):
        with engine.begin() as conn:
            if mode == "replace":
                for table in reversed(SOURCE_TABLES):
                    conn.execute(delete(table))
            for name, frame in dataset.frames():
                if frame.empty:
                    continue
                conn.execute(tables[name].insert(), frame_records(frame, list(frame.columns)))
                logger.debug("Inserted %d row(s) into %s", len(frame), name)

    logger.info("Seeded source tables (%s mode)", mode)
    return dataset
