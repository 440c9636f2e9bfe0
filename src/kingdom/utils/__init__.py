"""Utility functions for the kingdom engine."""

from kingdom.utils.rng import FixedRandomSource, SeededRandomSource, generate_seed

__all__ = [
    "FixedRandomSource",
    "SeededRandomSource",
    "generate_seed",
]
