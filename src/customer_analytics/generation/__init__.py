"""Synthetic source data.

Example:
    >>> from customer_analytics.config import GenerationConfig
    >>> from customer_analytics.generation import seed_store
    >>> from customer_analytics.store import open_store
    >>>
    >>> with open_store("sqlite:///customer_analytics.db") as engine:
    ...     dataset = seed_store(engine, GenerationConfig(seed=42))
"""

from customer_analytics.generation.synthetic import (
    IdOffsets,
    SyntheticDataset,
    generate_dataset,
    seed_store,
)

__all__ = ["IdOffsets", "SyntheticDataset", "generate_dataset", "seed_store"]
