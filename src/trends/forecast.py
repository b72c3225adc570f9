# ABOUTME: Flags at-risk staff, projects category accuracy, and ranks training priorities.
# ABOUTME: Simple fixed-threshold heuristics; coaching copy depends on these exact cut-offs.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np

from src.common.schemas import CATEGORY_ORDER, KnowledgeCategory, UserKnowledgeAnalytics


class RiskThresholds:
    AT_RISK_ACCURACY = 70.0
    HIGH_RISK_ACCURACY = 50.0
    HIGH_RISK_VOLUME_ACCURACY = 60.0
    HIGH_RISK_MIN_QUESTIONS = 20
    DECLINE_ACCURACY = 60.0
    DECLINE_MIN_QUESTIONS = 5
    DECLINE_MIN_CATEGORIES = 2
    WEAK_ACCURACY = 65.0
    WEAK_MIN_QUESTIONS = 3
    ONE_ON_ONE_ACCURACY = 60.0
    LOW_PARTICIPATION_QUESTIONS = 10


class ForecastThresholds:
    TREND_DAMPING = 0.3
    TREND_BAND = 5.0
    BASE_CONFIDENCE = 60.0
    CONFIDENCE_PER_STAFF = 2.0
    MAX_CONFIDENCE = 90.0


class PriorityThresholds:
    STAFF_ACCURACY = 70.0
    HIGH_AVERAGE = 60.0
    HIGH_SHARE = 50.0
    MEDIUM_AVERAGE = 75.0
    MEDIUM_SHARE = 25.0


CATEGORY_ACTIONS = {
    KnowledgeCategory.FOOD: "Review menu items and ingredient knowledge",
    KnowledgeCategory.BEVERAGE: "Practice drink preparation and cocktail recipes",
    KnowledgeCategory.WINE: "Study wine varieties and pairing recommendations",
    KnowledgeCategory.PROCEDURES: "Review SOPs and safety protocols",
}

_PRIORITY_RANK = {"high": 3, "medium": 2, "low": 1}


@dataclass
class StaffRisk:
    user_id: str
    risk_level: str
    overall_accuracy: float
    categories: List[KnowledgeCategory]
    recommended_actions: List[str]


@dataclass
class CategoryForecast:
    predicted_30_day_accuracy: float
    confidence: float
    trend_direction: str
    trend: float = 0.0


@dataclass
class TrainingPriority:
    category: KnowledgeCategory
    priority: str
    estimated_impact: int
    average_accuracy: float


@dataclass
class ForecastInsight:
    restaurant_id: str
    staff_at_risk: List[StaffRisk] = field(default_factory=list)
    category_forecasts: Dict[KnowledgeCategory, CategoryForecast] = field(default_factory=dict)
    training_priorities: List[TrainingPriority] = field(default_factory=list)


def has_decline_pattern(record: UserKnowledgeAnalytics) -> bool:
    declining = [
        category
        for category in CATEGORY_ORDER
        if record.stats_for(category).accuracy < RiskThresholds.DECLINE_ACCURACY
        and record.stats_for(category).total_questions > RiskThresholds.DECLINE_MIN_QUESTIONS
    ]
    return len(declining) >= RiskThresholds.DECLINE_MIN_CATEGORIES


def weak_categories(record: UserKnowledgeAnalytics) -> List[KnowledgeCategory]:
    return [
        category
        for category in CATEGORY_ORDER
        if record.stats_for(category).accuracy < RiskThresholds.WEAK_ACCURACY
        and record.stats_for(category).total_questions > RiskThresholds.WEAK_MIN_QUESTIONS
    ]


def risk_level(record: UserKnowledgeAnalytics) -> str:
    accuracy = record.overall_accuracy
    total = record.total_questions_answered
    if accuracy < RiskThresholds.HIGH_RISK_ACCURACY or (
        accuracy < RiskThresholds.HIGH_RISK_VOLUME_ACCURACY and total > RiskThresholds.HIGH_RISK_MIN_QUESTIONS
    ):
        return "high"
    if accuracy < RiskThresholds.AT_RISK_ACCURACY or has_decline_pattern(record):
        return "medium"
    return "low"


def is_at_risk(record: UserKnowledgeAnalytics) -> bool:
    return record.overall_accuracy < RiskThresholds.AT_RISK_ACCURACY or has_decline_pattern(record)


def recommended_actions(record: UserKnowledgeAnalytics, weak: Sequence[KnowledgeCategory]) -> List[str]:
    actions = []
    if record.overall_accuracy < RiskThresholds.ONE_ON_ONE_ACCURACY:
        actions.append("Schedule immediate one-on-one training session")
    actions.extend(CATEGORY_ACTIONS[category] for category in weak)
    if record.total_questions_answered < RiskThresholds.LOW_PARTICIPATION_QUESTIONS:
        actions.append("Encourage more frequent quiz participation")
    return actions


def assess_staff_risk(records: Sequence[UserKnowledgeAnalytics]) -> List[StaffRisk]:
    at_risk = []
    for record in records:
        if not is_at_risk(record):
            continue
        weak = weak_categories(record)
        at_risk.append(
            StaffRisk(
                user_id=record.user_id,
                risk_level=risk_level(record),
                overall_accuracy=record.overall_accuracy,
                categories=weak,
                recommended_actions=recommended_actions(record, weak),
            )
        )
    return at_risk


def forecast_category(current_accuracy: float, trend: float, participating_staff: int) -> CategoryForecast:
    """
    Naive linear projection: current + trend * 0.3, clamped to [0, 100].

    trend is the recent accuracy delta in percentage points; beyond +/-5 it is
    labelled improving/declining.
    """
    predicted = float(np.clip(current_accuracy + trend * ForecastThresholds.TREND_DAMPING, 0.0, 100.0))
    if trend > ForecastThresholds.TREND_BAND:
        direction = "improving"
    elif trend < -ForecastThresholds.TREND_BAND:
        direction = "declining"
    else:
        direction = "stable"
    confidence = min(
        ForecastThresholds.MAX_CONFIDENCE,
        ForecastThresholds.BASE_CONFIDENCE + participating_staff * ForecastThresholds.CONFIDENCE_PER_STAFF,
    )
    return CategoryForecast(
        predicted_30_day_accuracy=predicted,
        confidence=confidence,
        trend_direction=direction,
        trend=trend,
    )


def training_priorities(records: Sequence[UserKnowledgeAnalytics]) -> List[TrainingPriority]:
    priorities = []
    for category in CATEGORY_ORDER:
        with_data = [r.stats_for(category) for r in records if r.stats_for(category).total_questions > 0]
        if not with_data:
            continue

        average = float(np.mean([s.accuracy for s in with_data]))
        below = sum(1 for s in with_data if s.accuracy < PriorityThresholds.STAFF_ACCURACY)
        share_below = below / len(with_data) * 100

        if average < PriorityThresholds.HIGH_AVERAGE or share_below > PriorityThresholds.HIGH_SHARE:
            priority = "high"
        elif average < PriorityThresholds.MEDIUM_AVERAGE or share_below > PriorityThresholds.MEDIUM_SHARE:
            priority = "medium"
        else:
            priority = "low"

        priorities.append(
            TrainingPriority(
                category=category,
                priority=priority,
                estimated_impact=int(round(share_below)),
                average_accuracy=average,
            )
        )

    # sorted() is stable, so equal keys keep declaration order.
    return sorted(
        priorities,
        key=lambda p: (-_PRIORITY_RANK[p.priority], -p.estimated_impact, p.average_accuracy),
    )
