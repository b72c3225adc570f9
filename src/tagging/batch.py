# ABOUTME: Applies the classifier to many questions and audits existing category assignments.
# ABOUTME: Writes corrected assignments back through the question-store collaborator.

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from src.common.schemas import (
    CATEGORY_ORDER,
    CategoryAssignment,
    ClassificationResult,
    KnowledgeCategory,
    Question,
    TaggingContext,
)
from src.common.stores import QuestionStore

from .classifier import classify

logger = logging.getLogger(__name__)


@dataclass
class TaggingValidation:
    is_valid: bool
    confidence: float
    suggestions: List[str] = field(default_factory=list)


@dataclass
class RetagSummary:
    examined: int = 0
    changed: int = 0
    changes: List[Dict[str, str]] = field(default_factory=list)
    distribution: Dict[KnowledgeCategory, int] = field(default_factory=dict)


def batch_tag_questions(
    questions: Iterable[Question], context: Optional[TaggingContext] = None
) -> Dict[str, ClassificationResult]:
    """Classify each question, using its own tags as the existing-category hint."""
    base = context or TaggingContext()
    results: Dict[str, ClassificationResult] = {}
    for question in questions:
        question_context = replace(base, existing_categories=list(question.categories))
        results[question.question_id] = classify(question.question_text, question_context)
    return results


def validate_tagging(question_text: str, assigned_category: KnowledgeCategory) -> TaggingValidation:
    auto = classify(question_text)
    is_valid = auto.category == assigned_category
    suggestions = []
    if not is_valid:
        suggestions.append(f"Classifier suggests {auto.category.value} instead of {assigned_category.value}")
    return TaggingValidation(is_valid=is_valid, confidence=auto.confidence, suggestions=suggestions)


def retag_questions(
    store: QuestionStore,
    restaurant_id: str,
    categories: Optional[Iterable[KnowledgeCategory]] = None,
    dry_run: bool = False,
    now: Optional[datetime] = None,
) -> RetagSummary:
    """
    Re-classify stored questions and write back every changed category.

    When categories is given, only questions currently tagged with one of
    them are examined (e.g. re-check beverage and wine questions that may be
    dishes cooked with wine).
    """
    assigned_at = now or datetime.now(timezone.utc)
    if categories is None:
        questions = store.list_questions(restaurant_id)
    else:
        questions = [q for category in categories for q in store.list_questions(restaurant_id, category)]

    summary = RetagSummary()
    for question in questions:
        summary.examined += 1
        result = classify(question.question_text, TaggingContext(existing_categories=list(question.categories)))
        if result.category == question.knowledge_category:
            continue

        summary.changed += 1
        summary.changes.append(
            {
                "question_id": question.question_id,
                "from": question.knowledge_category.value if question.knowledge_category else "",
                "to": result.category.value,
            }
        )
        logger.debug(
            "Question %s: %s -> %s (%s)",
            question.question_id,
            question.knowledge_category,
            result.category.value,
            result.reasoning,
        )
        if not dry_run:
            store.update_category(
                question.question_id,
                CategoryAssignment(
                    knowledge_category=result.category,
                    confidence=result.confidence,
                    assigned_by="ai",
                    assigned_at=assigned_at,
                ),
            )

    counts = Counter(q.knowledge_category for q in store.list_questions(restaurant_id))
    summary.distribution = {category: counts.get(category, 0) for category in CATEGORY_ORDER}
    logger.info(
        "Re-tagged restaurant %s: %d examined, %d changed%s",
        restaurant_id,
        summary.examined,
        summary.changed,
        " (dry run)" if dry_run else "",
    )
    return summary
