# ABOUTME: Serves period analytics, comparisons, forecasts, and cached rollups for a restaurant.
# ABOUTME: Reads raw attempts for history and aggregator records for current standing.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

import pandas as pd

from src.common.cache import TTLCache, analytics_key
from src.common.config import AnalyticsConfig
from src.common.schemas import CATEGORY_ORDER, KnowledgeCategory, QuizAttempt
from src.common.stores import AnalyticsStore, AttemptStore, QuestionStore
from src.knowledge_stats.rollups import (
    CategoryInsights,
    RecentActivity,
    RestaurantAnalytics,
    StaffKnowledgeProfile,
    build_staff_profile,
    summarize_category,
    summarize_restaurant,
)

from .forecast import ForecastInsight, assess_staff_risk, forecast_category, training_priorities
from .periods import comparison_windows, percent_change

QUESTION_COLUMNS = ["attempt_id", "user_id", "attempt_date", "category", "is_correct"]

TREND_BAND = 5.0


@dataclass
class CategoryPeriodStats:
    total_questions: int = 0
    average_accuracy: float = 0.0
    improvement: float = 0.0


@dataclass
class TimeRangeAnalytics:
    start_date: datetime
    end_date: datetime
    total_questions: int = 0
    average_accuracy: float = 0.0
    staff_participation: int = 0
    category_breakdown: Dict[KnowledgeCategory, CategoryPeriodStats] = field(
        default_factory=lambda: {category: CategoryPeriodStats() for category in CATEGORY_ORDER}
    )


@dataclass
class Improvement:
    overall: float
    by_category: Dict[KnowledgeCategory, float]


@dataclass
class Benchmarks:
    top_performer_threshold: float = 85.0
    improvement_goals: Dict[KnowledgeCategory, float] = field(
        default_factory=lambda: {
            KnowledgeCategory.FOOD: 80.0,
            KnowledgeCategory.BEVERAGE: 75.0,
            KnowledgeCategory.WINE: 70.0,
            KnowledgeCategory.PROCEDURES: 85.0,
        }
    )


@dataclass
class ComparativeAnalytics:
    restaurant_id: str
    timeframe: str
    current_period: TimeRangeAnalytics
    previous_period: TimeRangeAnalytics
    improvement: Improvement
    benchmarks: Benchmarks = field(default_factory=Benchmarks)


def question_frame(attempts: List[QuizAttempt]) -> pd.DataFrame:
    """Explode attempts into one row per answered question."""
    rows = [
        {
            "attempt_id": attempt.id,
            "user_id": attempt.user_id,
            "attempt_date": attempt.attempt_date,
            "category": answered.knowledge_category.value if answered.knowledge_category else None,
            "is_correct": bool(answered.is_correct),
        }
        for attempt in attempts
        for answered in attempt.questions
    ]
    return pd.DataFrame(rows, columns=QUESTION_COLUMNS)


def category_accuracy(frame: pd.DataFrame) -> Dict[KnowledgeCategory, Tuple[int, float]]:
    """Per-category (question count, accuracy %) for the categorized rows of a question frame."""
    result = {category: (0, 0.0) for category in CATEGORY_ORDER}
    categorized = frame.dropna(subset=["category"])
    if categorized.empty:
        return result
    grouped = categorized.groupby("category")["is_correct"].agg(["count", "sum"])
    for value, row in grouped.iterrows():
        count = int(row["count"])
        result[KnowledgeCategory(value)] = (count, float(row["sum"]) / count * 100 if count else 0.0)
    return result


def _direction(delta: float) -> str:
    if delta > TREND_BAND:
        return "improving"
    if delta < -TREND_BAND:
        return "declining"
    return "stable"


class TrendEngine:
    """
    Historical and forward-looking analytics for one restaurant at a time.

    Period analytics come from raw attempts because running records keep no
    history. Rollups that are expensive to rebuild go through the cache when
    one is supplied; the aggregator invalidates them on every write.
    """

    def __init__(
        self,
        attempts: AttemptStore,
        analytics: AnalyticsStore,
        cache: Optional[TTLCache] = None,
        questions: Optional[QuestionStore] = None,
        config: Optional[AnalyticsConfig] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.attempts = attempts
        self.analytics = analytics
        self.cache = cache
        self.questions = questions
        self.config = config or AnalyticsConfig()
        self._clock = clock

    def _cached(self, key: str, ttl: float, compute_fn):
        if self.cache is None:
            return compute_fn()
        return self.cache.get_or_compute(key, ttl, compute_fn)

    def _restaurant_questions(self, restaurant_id: str):
        return self.questions.list_questions(restaurant_id) if self.questions is not None else []

    def _windows(self) -> Tuple[Tuple[datetime, datetime], Tuple[datetime, datetime]]:
        now = self._clock()
        window = timedelta(days=self.config.trend_window_days)
        recent = (now - window, now)
        prior = (now - 2 * window, now - window - timedelta(microseconds=1))
        return recent, prior

    def get_time_range_analytics(self, restaurant_id: str, start: datetime, end: datetime) -> TimeRangeAnalytics:
        attempts = self.attempts.list_attempts(restaurant_id=restaurant_id, start=start, end=end)
        result = TimeRangeAnalytics(start_date=start, end_date=end)
        if not attempts:
            return result

        frame = question_frame(attempts)
        total = len(frame)
        correct = int(frame["is_correct"].sum()) if total else 0

        result.total_questions = total
        result.average_accuracy = correct / total * 100 if total else 0.0
        result.staff_participation = len({attempt.user_id for attempt in attempts})
        for category, (count, accuracy) in category_accuracy(frame).items():
            result.category_breakdown[category] = CategoryPeriodStats(total_questions=count, average_accuracy=accuracy)
        return result

    def get_comparative_analytics(self, restaurant_id: str, timeframe: str) -> ComparativeAnalytics:
        windows = comparison_windows(timeframe, self._clock())
        current = self.get_time_range_analytics(restaurant_id, windows.current_start, windows.current_end)
        previous = self.get_time_range_analytics(restaurant_id, windows.previous_start, windows.previous_end)

        by_category = {}
        for category in CATEGORY_ORDER:
            change = percent_change(
                current.category_breakdown[category].average_accuracy,
                previous.category_breakdown[category].average_accuracy,
            )
            by_category[category] = change
            current.category_breakdown[category].improvement = change

        return ComparativeAnalytics(
            restaurant_id=restaurant_id,
            timeframe=timeframe.strip().lower(),
            current_period=current,
            previous_period=previous,
            improvement=Improvement(
                overall=percent_change(current.average_accuracy, previous.average_accuracy),
                by_category=by_category,
            ),
        )

    def _recent_category_windows(self, restaurant_id: str):
        recent_range, prior_range = self._windows()
        recent = self.get_time_range_analytics(restaurant_id, *recent_range)
        prior = self.get_time_range_analytics(restaurant_id, *prior_range)
        return recent, prior

    def get_restaurant_analytics(self, restaurant_id: str) -> RestaurantAnalytics:
        def compute() -> RestaurantAnalytics:
            records = self.analytics.list_for_restaurant(restaurant_id)
            recent, prior = self._recent_category_windows(restaurant_id)
            trends = {
                category: percent_change(
                    recent.category_breakdown[category].average_accuracy,
                    prior.category_breakdown[category].average_accuracy,
                )
                for category in CATEGORY_ORDER
            }
            return summarize_restaurant(
                restaurant_id,
                records,
                questions=self._restaurant_questions(restaurant_id),
                improvement_trends=trends,
                top_limit=self.config.top_performers_limit,
                support_limit=self.config.support_limit,
                now=self._clock(),
            )

        return self._cached(analytics_key(restaurant_id, "restaurant"), self.config.restaurant_ttl_seconds, compute)

    def get_category_analytics(self, restaurant_id: str, category: KnowledgeCategory) -> CategoryInsights:
        def compute() -> CategoryInsights:
            records = self.analytics.list_for_restaurant(restaurant_id)
            recent, prior = self._recent_category_windows(restaurant_id)
            recent_stats = recent.category_breakdown[category]
            prior_stats = prior.category_breakdown[category]
            trend = 0.0
            if recent_stats.total_questions and prior_stats.total_questions:
                trend = recent_stats.average_accuracy - prior_stats.average_accuracy
            return summarize_category(
                restaurant_id,
                category,
                records,
                questions=self._restaurant_questions(restaurant_id),
                last_30_days_accuracy=recent_stats.average_accuracy,
                accuracy_trend=trend,
                now=self._clock(),
            )

        key = analytics_key(restaurant_id, "category", {"category": category.value})
        return self._cached(key, self.config.category_ttl_seconds, compute)

    def get_predictive_insights(self, restaurant_id: str) -> ForecastInsight:
        records = self.analytics.list_for_restaurant(restaurant_id)

        forecasts = {}
        for category in CATEGORY_ORDER:
            insights = self.get_category_analytics(restaurant_id, category)
            forecasts[category] = forecast_category(
                insights.average_accuracy,
                insights.accuracy_trend,
                insights.total_staff_participating,
            )

        return ForecastInsight(
            restaurant_id=restaurant_id,
            staff_at_risk=assess_staff_risk(records),
            category_forecasts=forecasts,
            training_priorities=training_priorities(records),
        )

    def get_staff_profile(self, user_id: str, restaurant_id: str) -> Optional[StaffKnowledgeProfile]:
        record = self.analytics.find(user_id, restaurant_id)
        if record is None:
            return None

        (recent_start, recent_end), (prior_start, prior_end) = self._windows()
        history = [
            a
            for a in self.attempts.list_attempts(restaurant_id=restaurant_id, start=prior_start, end=recent_end)
            if a.user_id == user_id
        ]
        frame = question_frame(history)
        recent_frame = frame[frame["attempt_date"] >= recent_start]
        prior_frame = frame[frame["attempt_date"] <= prior_end]

        recent_by_category = category_accuracy(recent_frame)
        prior_by_category = category_accuracy(prior_frame)
        trends = {}
        for category in CATEGORY_ORDER:
            recent_count, recent_accuracy = recent_by_category[category]
            prior_count, prior_accuracy = prior_by_category[category]
            delta = recent_accuracy - prior_accuracy if recent_count and prior_count else 0.0
            trends[category] = _direction(delta)

        accuracy_change = 0.0
        if len(recent_frame) and len(prior_frame):
            accuracy_change = (recent_frame["is_correct"].mean() - prior_frame["is_correct"].mean()) * 100
        most_active = KnowledgeCategory.FOOD
        busiest = 0
        for category in CATEGORY_ORDER:
            if recent_by_category[category][0] > busiest:
                most_active, busiest = category, recent_by_category[category][0]

        recent = RecentActivity(
            accuracy_change=float(accuracy_change),
            questions_answered=int(len(recent_frame)),
            most_active_category=most_active,
        )
        return build_staff_profile(record, category_trends=trends, recent=recent)
