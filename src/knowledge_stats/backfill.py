# ABOUTME: Replays stored quiz attempts through the aggregator to rebuild running statistics.
# ABOUTME: Safe to rerun; attempts already folded in are counted and skipped.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from src.common.errors import StoreError
from src.common.stores import AttemptStore

from .aggregator import StatsAggregator

logger = logging.getLogger(__name__)


@dataclass
class BackfillResult:
    total_attempts: int = 0
    processed: int = 0
    already_processed: int = 0
    errors: int = 0
    error_details: List[Dict[str, str]] = field(default_factory=list)


def backfill_analytics(
    aggregator: StatsAggregator,
    attempts: AttemptStore,
    restaurant_id: Optional[str] = None,
    dry_run: bool = False,
    batch_size: int = 50,
) -> BackfillResult:
    """
    Fold every stored attempt (optionally for one restaurant) into analytics.

    Store failures on individual attempts are recorded in the result and the
    replay continues; rerunning picks up whatever failed.
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")

    all_attempts = attempts.list_attempts(restaurant_id=restaurant_id)
    result = BackfillResult(total_attempts=len(all_attempts))
    logger.info("Backfilling %d attempts%s", result.total_attempts, " (dry run)" if dry_run else "")

    for offset in range(0, len(all_attempts), batch_size):
        batch = all_attempts[offset : offset + batch_size]
        for attempt in batch:
            if dry_run:
                existing = aggregator.get_user_analytics(attempt.user_id, attempt.restaurant_id)
                if existing is not None and attempt.id in existing.processed_attempt_ids:
                    result.already_processed += 1
                else:
                    result.processed += 1
                continue
            try:
                applied = aggregator.record_attempt(attempt)
            except StoreError as exc:
                result.errors += 1
                result.error_details.append({"attempt_id": attempt.id, "error": str(exc)})
                logger.error("Failed to backfill attempt %s: %s", attempt.id, exc)
                continue
            if applied:
                result.processed += 1
            else:
                result.already_processed += 1
        logger.debug("Backfill progress: %d/%d", min(offset + batch_size, result.total_attempts), result.total_attempts)

    logger.info(
        "Backfill finished: processed=%d already_processed=%d errors=%d",
        result.processed,
        result.already_processed,
        result.errors,
    )
    return result
