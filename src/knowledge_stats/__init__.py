# ABOUTME: Groups the idempotent attempt aggregator, backfill replay, and read-model rollups.
# ABOUTME: Re-exports the aggregator and the strongest/weakest category helpers.

from .aggregator import StatsAggregator, get_strongest_category, get_weakest_category, strength_level
from .backfill import BackfillResult, backfill_analytics

__all__ = [
    "StatsAggregator",
    "get_strongest_category",
    "get_weakest_category",
    "strength_level",
    "BackfillResult",
    "backfill_analytics",
]
