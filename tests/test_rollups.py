# ABOUTME: Tests restaurant, category, and staff read models built from analytics records.
# ABOUTME: Focuses on ranking, limits, and recommendation wording.

from src.common.schemas import KnowledgeCategory, Question, UserKnowledgeAnalytics
from src.knowledge_stats.rollups import (
    StaffPerformanceLevels,
    build_staff_profile,
    category_training_recommendations,
    question_distribution,
    summarize_category,
    summarize_restaurant,
)

FOOD = KnowledgeCategory.FOOD
BEVERAGE = KnowledgeCategory.BEVERAGE
WINE = KnowledgeCategory.WINE
PROCEDURES = KnowledgeCategory.PROCEDURES


def _record(user_id, **counts):
    record = UserKnowledgeAnalytics(user_id=user_id, restaurant_id="r1")
    for name, (correct, total) in counts.items():
        stats = record.stats_for(KnowledgeCategory(name))
        stats.correct_answers = correct
        stats.total_questions = total
    return record


def test_empty_restaurant_has_zeroed_shape():
    summary = summarize_restaurant("r1", [])
    assert summary.total_staff == 0
    assert summary.top_performers == []
    assert set(summary.category_performance) == set(KnowledgeCategory)


def test_top_performers_and_support_lists_respect_limits():
    records = [
        _record("a", food=(9, 10)),
        _record("b", food=(9, 10)),
        _record("c", food=(5, 10), wine=(1, 10)),
        _record("d", food=(6, 10)),
        _record("e", food=(10, 10)),
    ]

    summary = summarize_restaurant("r1", records, top_limit=3, support_limit=1)

    assert [s.user_id for s in summary.top_performers] == ["e", "a", "b"]
    assert summary.top_performers[0].category == FOOD
    assert [s.user_id for s in summary.staff_needing_support] == ["c"]
    assert summary.staff_needing_support[0].category == WINE
    assert summary.category_performance[WINE].staff_participation == 20.0
    assert summary.category_performance[FOOD].total_questions == 50


def test_question_distribution_counts_by_creator():
    questions = [
        Question("1", "r1", "a", knowledge_category=FOOD, created_by="ai"),
        Question("2", "r1", "b", knowledge_category=FOOD, created_by="manual"),
        Question("3", "r1", "c", knowledge_category=None),
        Question("4", "r1", "d", knowledge_category=PROCEDURES, created_by="import"),
    ]
    distribution = question_distribution(questions)
    assert distribution[FOOD].total_questions == 2
    assert distribution[FOOD].ai_generated == 1
    assert distribution[FOOD].manually_created == 1
    assert distribution[PROCEDURES].total_questions == 1
    assert distribution[PROCEDURES].manually_created == 0


def test_category_recommendations():
    weak = category_training_recommendations(BEVERAGE, 55.0, StaffPerformanceLevels(strong=0, average=1, needs_work=2))
    assert weak == [
        "Team-wide training needed for beverage knowledge",
        "Focus on fundamentals in beverage knowledge",
    ]
    strong = category_training_recommendations(WINE, 90.0, StaffPerformanceLevels(strong=2))
    assert strong == ["Leverage high-performers as mentors for wine knowledge"]


def test_summarize_category_ignores_non_participants():
    records = [_record("a", wine=(9, 10)), _record("b", wine=(5, 10)), _record("c", food=(1, 1))]
    insights = summarize_category("r1", WINE, records)
    assert insights.total_staff_participating == 2
    assert insights.average_accuracy == 70.0
    assert insights.staff_performance_levels == StaffPerformanceLevels(strong=1, average=0, needs_work=1)


def test_staff_profile_flags_declining_average_category():
    record = _record("a", food=(7, 10), wine=(9, 10), beverage=(8, 10), procedures=(9, 10))
    profile = build_staff_profile(record, category_trends={FOOD: "declining"})

    assert profile.category_performance[FOOD].strength_level == "average"
    assert profile.category_performance[WINE].trend == "stable"
    assert len(profile.recommendations) == 1
    assert profile.recommendations[0].priority == "medium"
    assert profile.recommendations[0].suggestion == "Review recent food knowledge materials to maintain performance"
