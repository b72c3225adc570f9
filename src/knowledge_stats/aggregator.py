# ABOUTME: Folds quiz attempts into per-user, per-category running statistics.
# ABOUTME: Idempotent per attempt id, serialized per (user, restaurant), and invalidates cached rollups.

from __future__ import annotations

import copy
import logging
import threading
from collections import defaultdict
from datetime import datetime, timezone
from typing import Callable, DefaultDict, Optional, Tuple

from src.common.cache import TTLCache, restaurant_prefix
from src.common.errors import RecordNotFoundError
from src.common.schemas import CATEGORY_ORDER, KnowledgeCategory, QuizAttempt, UserKnowledgeAnalytics
from src.common.stores import AnalyticsStore, AttemptStore

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = KnowledgeCategory.FOOD


class StatsAggregator:
    """
    Owns UserKnowledgeAnalytics records.

    The store is the only state; the aggregator holds nothing but per-key locks.
    An update is built on a copy and persisted with one save, so a failed
    save leaves the stored record exactly as it was.
    """

    def __init__(
        self,
        store: AnalyticsStore,
        cache: Optional[TTLCache] = None,
        attempts: Optional[AttemptStore] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.store = store
        self.cache = cache
        self.attempts = attempts
        self._clock = clock
        self._locks: DefaultDict[Tuple[str, str], threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _lock_for(self, user_id: str, restaurant_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[(user_id, restaurant_id)]

    def record_attempt(self, attempt: QuizAttempt) -> bool:
        """
        Apply an attempt to its user's record. Returns False when the attempt
        id was already folded in (no mutation, no write).
        """
        with self._lock_for(attempt.user_id, attempt.restaurant_id):
            existing = self.store.find(attempt.user_id, attempt.restaurant_id)
            if existing is not None and attempt.id in existing.processed_attempt_ids:
                logger.debug("Attempt %s already processed for user %s", attempt.id, attempt.user_id)
                return False

            if existing is None:
                record = UserKnowledgeAnalytics(user_id=attempt.user_id, restaurant_id=attempt.restaurant_id)
            else:
                record = copy.deepcopy(existing)

            skipped = 0
            for answered in attempt.questions:
                if answered.knowledge_category is None:
                    skipped += 1
                    continue
                record.stats_for(answered.knowledge_category).record(answered.is_correct, attempt.attempt_date)
            if skipped:
                logger.debug("Attempt %s: skipped %d uncategorized questions", attempt.id, skipped)

            record.processed_attempt_ids.add(attempt.id)
            record.total_quizzes_completed += 1
            record.last_updated = self._clock()

            self.store.save(record)

        self.invalidate(attempt.restaurant_id)
        return True

    def record_attempt_by_id(self, attempt_id: str) -> bool:
        if self.attempts is None:
            raise RuntimeError("StatsAggregator was built without an attempt store")
        attempt = self.attempts.get_attempt(attempt_id)
        if attempt is None:
            raise RecordNotFoundError(f"Quiz attempt {attempt_id} not found")
        return self.record_attempt(attempt)

    def get_user_analytics(self, user_id: str, restaurant_id: str) -> Optional[UserKnowledgeAnalytics]:
        return self.store.find(user_id, restaurant_id)

    def reset_restaurant(self, restaurant_id: str) -> int:
        """Delete every analytics record for a restaurant. Destructive."""
        deleted = self.store.delete_for_restaurant(restaurant_id)
        with self._locks_guard:
            for key in [key for key in self._locks if key[1] == restaurant_id]:
                del self._locks[key]
        self.invalidate(restaurant_id)
        logger.info("Reset analytics for restaurant %s: %d records deleted", restaurant_id, deleted)
        return deleted

    def invalidate(self, restaurant_id: str) -> None:
        if self.cache is None:
            return
        removed = self.cache.delete_prefix(restaurant_prefix(restaurant_id))
        if removed:
            logger.debug("Invalidated %d cached views for restaurant %s", removed, restaurant_id)


def get_strongest_category(record: UserKnowledgeAnalytics) -> KnowledgeCategory:
    """Highest accuracy among categories with answers; food when there are none."""
    active = [c for c in CATEGORY_ORDER if record.stats_for(c).total_questions > 0]
    if not active:
        return DEFAULT_CATEGORY
    best = active[0]
    for category in active[1:]:
        if record.stats_for(category).accuracy > record.stats_for(best).accuracy:
            best = category
    return best


def get_weakest_category(record: UserKnowledgeAnalytics) -> KnowledgeCategory:
    """Lowest accuracy among categories with answers; untouched categories never count."""
    active = [c for c in CATEGORY_ORDER if record.stats_for(c).total_questions > 0]
    if not active:
        return DEFAULT_CATEGORY
    worst = active[0]
    for category in active[1:]:
        if record.stats_for(category).accuracy < record.stats_for(worst).accuracy:
            worst = category
    return worst


def strength_level(accuracy: float) -> str:
    if accuracy >= 80:
        return "strong"
    if accuracy >= 60:
        return "average"
    return "needs_work"
