# ABOUTME: Makes the shared common package importable across engines.
# ABOUTME: Re-exports schema types and the cache for convenience.

from .schemas import (
    AnsweredQuestion,
    ClassificationResult,
    KnowledgeCategory,
    Question,
    QuizAttempt,
    TaggingContext,
    UserKnowledgeAnalytics,
)
from .cache import TTLCache

__all__ = [
    "AnsweredQuestion",
    "ClassificationResult",
    "KnowledgeCategory",
    "Question",
    "QuizAttempt",
    "TaggingContext",
    "UserKnowledgeAnalytics",
    "TTLCache",
]
