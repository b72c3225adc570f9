# ABOUTME: Tests replaying stored attempts into analytics records.
# ABOUTME: Checks rerun safety, dry runs, restaurant filtering, and per-attempt error capture.

from datetime import datetime, timezone

import pytest

from src.common.errors import StoreError
from src.common.schemas import AnsweredQuestion, KnowledgeCategory, QuizAttempt
from src.common.stores import InMemoryAnalyticsStore, InMemoryAttemptStore
from src.knowledge_stats import StatsAggregator, backfill_analytics

WHEN = datetime(2024, 5, 1, tzinfo=timezone.utc)


def _attempt(attempt_id, user_id, restaurant_id="r1"):
    return QuizAttempt(
        attempt_id,
        user_id,
        restaurant_id,
        [AnsweredQuestion(f"{attempt_id}-q", KnowledgeCategory.FOOD, True)],
        WHEN,
    )


@pytest.fixture
def attempts():
    return InMemoryAttemptStore(
        [_attempt("a1", "u1"), _attempt("a2", "u1"), _attempt("a3", "u2"), _attempt("b1", "u9", "r2")]
    )


def test_backfill_is_safe_to_rerun(attempts):
    store = InMemoryAnalyticsStore()
    aggregator = StatsAggregator(store)

    first = backfill_analytics(aggregator, attempts, batch_size=2)
    second = backfill_analytics(aggregator, attempts)

    assert (first.total_attempts, first.processed, first.already_processed) == (4, 4, 0)
    assert (second.processed, second.already_processed) == (0, 4)
    assert store.find("u1", "r1").total_quizzes_completed == 2


def test_backfill_can_target_one_restaurant(attempts):
    store = InMemoryAnalyticsStore()
    result = backfill_analytics(StatsAggregator(store), attempts, restaurant_id="r2")
    assert result.total_attempts == 1
    assert store.list_for_restaurant("r1") == []


def test_dry_run_writes_nothing(attempts):
    store = InMemoryAnalyticsStore()
    aggregator = StatsAggregator(store)
    aggregator.record_attempt(attempts.get_attempt("a1"))

    result = backfill_analytics(aggregator, attempts, dry_run=True)

    assert result.processed == 3
    assert result.already_processed == 1
    assert store.find("u2", "r1") is None


class FlakyStore(InMemoryAnalyticsStore):
    def save(self, record):
        if record.user_id == "u2":
            raise StoreError("disk full")
        super().save(record)


def test_store_errors_are_collected_and_replay_continues(attempts):
    result = backfill_analytics(StatsAggregator(FlakyStore()), attempts)
    assert result.errors == 1
    assert result.processed == 3
    assert result.error_details == [{"attempt_id": "a3", "error": "disk full"}]


def test_batch_size_must_be_positive(attempts):
    with pytest.raises(ValueError):
        backfill_analytics(StatsAggregator(InMemoryAnalyticsStore()), attempts, batch_size=0)
