# ABOUTME: Builds restaurant-wide, per-category, and per-staff read models from analytics records.
# ABOUTME: Pure functions; trend inputs computed from attempt history are passed in by the caller.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from src.common.schemas import CATEGORY_ORDER, KnowledgeCategory, Question, UserKnowledgeAnalytics

from .aggregator import get_strongest_category, get_weakest_category, strength_level

SUPPORT_THRESHOLD = 70.0


@dataclass
class CategoryPerformance:
    total_questions: int = 0
    average_accuracy: float = 0.0
    staff_participation: float = 0.0  # percent of staff with answers in the category
    improvement_trend: float = 0.0  # percent change, last window vs the one before


@dataclass
class QuestionDistribution:
    total_questions: int = 0
    ai_generated: int = 0
    manually_created: int = 0


@dataclass
class StaffSummary:
    user_id: str
    overall_accuracy: float
    category: KnowledgeCategory


@dataclass
class RestaurantAnalytics:
    restaurant_id: str
    total_staff: int
    total_questions_answered: int
    overall_accuracy: float
    category_performance: Dict[KnowledgeCategory, CategoryPerformance]
    top_performers: List[StaffSummary]
    staff_needing_support: List[StaffSummary]
    question_distribution: Dict[KnowledgeCategory, QuestionDistribution]
    last_updated: Optional[datetime] = None


@dataclass
class StaffPerformanceLevels:
    strong: int = 0
    average: int = 0
    needs_work: int = 0


@dataclass
class CategoryInsights:
    category: KnowledgeCategory
    restaurant_id: str
    average_accuracy: float
    total_questions: int
    total_staff_participating: int
    last_30_days_accuracy: float
    accuracy_trend: float  # percentage points, last window minus the one before
    staff_performance_levels: StaffPerformanceLevels
    question_stats: QuestionDistribution
    training_recommendations: List[str]
    last_updated: Optional[datetime] = None


@dataclass
class CategoryProfile:
    accuracy: float
    questions_answered: int
    last_attempt: Optional[datetime]
    trend: str
    strength_level: str


@dataclass
class Recommendation:
    category: KnowledgeCategory
    suggestion: str
    priority: str


@dataclass
class RecentActivity:
    accuracy_change: float = 0.0
    questions_answered: int = 0
    most_active_category: KnowledgeCategory = KnowledgeCategory.FOOD


@dataclass
class StaffKnowledgeProfile:
    user_id: str
    restaurant_id: str
    overall_accuracy: float
    total_questions_answered: int
    category_performance: Dict[KnowledgeCategory, CategoryProfile]
    recommendations: List[Recommendation] = field(default_factory=list)
    last_30_days: RecentActivity = field(default_factory=RecentActivity)


def _label(category: KnowledgeCategory) -> str:
    return category.display_name.lower()


def _mean(values: Sequence[float]) -> float:
    return float(np.mean(values)) if len(values) else 0.0


def question_distribution(questions: Sequence[Question]) -> Dict[KnowledgeCategory, QuestionDistribution]:
    distribution = {category: QuestionDistribution() for category in CATEGORY_ORDER}
    for question in questions:
        if question.knowledge_category is None:
            continue
        bucket = distribution[question.knowledge_category]
        bucket.total_questions += 1
        if question.created_by == "ai":
            bucket.ai_generated += 1
        elif question.created_by == "manual":
            bucket.manually_created += 1
    return distribution


def empty_restaurant_analytics(restaurant_id: str, now: Optional[datetime] = None) -> RestaurantAnalytics:
    return RestaurantAnalytics(
        restaurant_id=restaurant_id,
        total_staff=0,
        total_questions_answered=0,
        overall_accuracy=0.0,
        category_performance={category: CategoryPerformance() for category in CATEGORY_ORDER},
        top_performers=[],
        staff_needing_support=[],
        question_distribution={category: QuestionDistribution() for category in CATEGORY_ORDER},
        last_updated=now,
    )


def summarize_restaurant(
    restaurant_id: str,
    records: Sequence[UserKnowledgeAnalytics],
    questions: Sequence[Question] = (),
    improvement_trends: Optional[Mapping[KnowledgeCategory, float]] = None,
    top_limit: int = 5,
    support_limit: int = 5,
    now: Optional[datetime] = None,
) -> RestaurantAnalytics:
    if not records:
        return empty_restaurant_analytics(restaurant_id, now)

    trends = improvement_trends or {}
    total_staff = len(records)
    total_answered = sum(r.total_questions_answered for r in records)
    overall = (
        sum(r.overall_accuracy * r.total_questions_answered for r in records) / total_answered
        if total_answered
        else 0.0
    )

    performance: Dict[KnowledgeCategory, CategoryPerformance] = {}
    for category in CATEGORY_ORDER:
        with_data = [r.stats_for(category) for r in records if r.stats_for(category).total_questions > 0]
        performance[category] = CategoryPerformance(
            total_questions=sum(s.total_questions for s in with_data),
            average_accuracy=_mean([s.accuracy for s in with_data]),
            staff_participation=len(with_data) / total_staff * 100,
            improvement_trend=trends.get(category, 0.0),
        )

    ranked = sorted(records, key=lambda r: (-r.overall_accuracy, r.user_id))
    top_performers = [
        StaffSummary(r.user_id, r.overall_accuracy, get_strongest_category(r)) for r in ranked[:top_limit]
    ]
    struggling = sorted(
        (r for r in records if r.overall_accuracy < SUPPORT_THRESHOLD),
        key=lambda r: (r.overall_accuracy, r.user_id),
    )
    needing_support = [
        StaffSummary(r.user_id, r.overall_accuracy, get_weakest_category(r)) for r in struggling[:support_limit]
    ]

    return RestaurantAnalytics(
        restaurant_id=restaurant_id,
        total_staff=total_staff,
        total_questions_answered=total_answered,
        overall_accuracy=overall,
        category_performance=performance,
        top_performers=top_performers,
        staff_needing_support=needing_support,
        question_distribution=question_distribution(questions),
        last_updated=now,
    )


def category_training_recommendations(
    category: KnowledgeCategory, average_accuracy: float, levels: StaffPerformanceLevels
) -> List[str]:
    recommendations = []
    if average_accuracy < SUPPORT_THRESHOLD:
        recommendations.append(f"Team-wide training needed for {_label(category)}")
    if levels.needs_work > levels.strong:
        recommendations.append(f"Focus on fundamentals in {_label(category)}")
    if levels.strong > 0:
        recommendations.append(f"Leverage high-performers as mentors for {_label(category)}")
    return recommendations


def summarize_category(
    restaurant_id: str,
    category: KnowledgeCategory,
    records: Sequence[UserKnowledgeAnalytics],
    questions: Sequence[Question] = (),
    last_30_days_accuracy: float = 0.0,
    accuracy_trend: float = 0.0,
    now: Optional[datetime] = None,
) -> CategoryInsights:
    participating = [r.stats_for(category) for r in records if r.stats_for(category).total_questions > 0]
    average = _mean([s.accuracy for s in participating])

    levels = StaffPerformanceLevels(
        strong=sum(1 for s in participating if s.accuracy >= 80),
        average=sum(1 for s in participating if 60 <= s.accuracy < 80),
        needs_work=sum(1 for s in participating if s.accuracy < 60),
    )

    return CategoryInsights(
        category=category,
        restaurant_id=restaurant_id,
        average_accuracy=average,
        total_questions=sum(s.total_questions for s in participating),
        total_staff_participating=len(participating),
        last_30_days_accuracy=last_30_days_accuracy,
        accuracy_trend=accuracy_trend,
        staff_performance_levels=levels,
        question_stats=question_distribution([q for q in questions if q.knowledge_category == category])[category],
        training_recommendations=category_training_recommendations(category, average, levels),
        last_updated=now,
    )


def staff_recommendations(performance: Mapping[KnowledgeCategory, CategoryProfile]) -> List[Recommendation]:
    recommendations = []
    for category, profile in performance.items():
        if profile.strength_level == "needs_work":
            recommendations.append(
                Recommendation(category, f"Focus on improving {_label(category)} through additional practice", "high")
            )
        elif profile.strength_level == "average" and profile.trend == "declining":
            recommendations.append(
                Recommendation(category, f"Review recent {_label(category)} materials to maintain performance", "medium")
            )
    return recommendations


def build_staff_profile(
    record: UserKnowledgeAnalytics,
    category_trends: Optional[Mapping[KnowledgeCategory, str]] = None,
    recent: Optional[RecentActivity] = None,
) -> StaffKnowledgeProfile:
    trends = category_trends or {}
    performance = {}
    for category in CATEGORY_ORDER:
        stats = record.stats_for(category)
        performance[category] = CategoryProfile(
            accuracy=stats.accuracy,
            questions_answered=stats.total_questions,
            last_attempt=stats.last_attempt_date,
            trend=trends.get(category, "stable"),
            strength_level=strength_level(stats.accuracy),
        )

    return StaffKnowledgeProfile(
        user_id=record.user_id,
        restaurant_id=record.restaurant_id,
        overall_accuracy=record.overall_accuracy,
        total_questions_answered=record.total_questions_answered,
        category_performance=performance,
        recommendations=staff_recommendations(performance),
        last_30_days=recent or RecentActivity(),
    )
