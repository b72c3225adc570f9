# ABOUTME: Defines canonical data structures shared by the tagging, stats and trend engines.
# ABOUTME: Centralizes knowledge categories, attempt inputs, and running-statistics records.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Set


class KnowledgeCategory(str, Enum):
    """Closed set of knowledge domains. Declaration order is the tie-break order."""

    FOOD = "food"
    BEVERAGE = "beverage"
    WINE = "wine"
    PROCEDURES = "procedures"

    @property
    def display_name(self) -> str:
        return f"{self.value.capitalize()} Knowledge"


CATEGORY_ORDER: List[KnowledgeCategory] = list(KnowledgeCategory)


@dataclass(frozen=True)
class TaggingContext:
    """Optional hints supplied by the question-management collaborator."""

    menu_categories: List[str] = field(default_factory=list)
    sop_category_name: Optional[str] = None
    existing_categories: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ClassificationResult:
    category: KnowledgeCategory
    confidence: float
    reasoning: str
    scores: Dict[KnowledgeCategory, float] = field(default_factory=dict)

    @property
    def needs_review(self) -> bool:
        return self.confidence <= 0.6


@dataclass(frozen=True)
class AnsweredQuestion:
    question_id: str
    knowledge_category: Optional[KnowledgeCategory]
    is_correct: bool


@dataclass(frozen=True)
class QuizAttempt:
    """One completed quiz submission. Consumed read-only."""

    id: str
    user_id: str
    restaurant_id: str
    questions: List[AnsweredQuestion]
    attempt_date: datetime


@dataclass(frozen=True)
class Question:
    question_id: str
    restaurant_id: str
    question_text: str
    categories: List[str] = field(default_factory=list)
    knowledge_category: Optional[KnowledgeCategory] = None
    created_by: str = "manual"


@dataclass(frozen=True)
class CategoryAssignment:
    """Category update written back to the question store."""

    knowledge_category: KnowledgeCategory
    confidence: float
    assigned_by: str
    assigned_at: datetime


@dataclass
class CategoryStats:
    total_questions: int = 0
    correct_answers: int = 0
    last_attempt_date: Optional[datetime] = None

    @property
    def accuracy(self) -> float:
        # Derived from the counts on every read so it cannot drift.
        if self.total_questions == 0:
            return 0.0
        return self.correct_answers / self.total_questions * 100

    @property
    def incorrect_answers(self) -> int:
        return self.total_questions - self.correct_answers

    def record(self, is_correct: bool, attempt_date: datetime) -> None:
        self.total_questions += 1
        if is_correct:
            self.correct_answers += 1
        if self.last_attempt_date is None or attempt_date > self.last_attempt_date:
            self.last_attempt_date = attempt_date


def _empty_category_stats() -> Dict[KnowledgeCategory, CategoryStats]:
    return {category: CategoryStats() for category in CATEGORY_ORDER}


@dataclass
class UserKnowledgeAnalytics:
    """Running per-category statistics for one user in one restaurant."""

    user_id: str
    restaurant_id: str
    categories: Dict[KnowledgeCategory, CategoryStats] = field(default_factory=_empty_category_stats)
    processed_attempt_ids: Set[str] = field(default_factory=set)
    total_quizzes_completed: int = 0
    last_updated: Optional[datetime] = None

    def stats_for(self, category: KnowledgeCategory) -> CategoryStats:
        return self.categories[category]

    @property
    def total_questions_answered(self) -> int:
        return sum(stats.total_questions for stats in self.categories.values())

    @property
    def overall_accuracy(self) -> float:
        """Question-count weighted average of the per-category accuracies."""
        total = self.total_questions_answered
        if total == 0:
            return 0.0
        weighted = sum(stats.accuracy * stats.total_questions for stats in self.categories.values())
        return weighted / total
