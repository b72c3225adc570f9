# ABOUTME: Classifies free-text quiz questions into one of the four knowledge categories.
# ABOUTME: Weighted keyword scoring, ordered override rules, context boosts, and margin-based confidence.

from __future__ import annotations

from typing import Dict, Optional

from src.common.schemas import CATEGORY_ORDER, ClassificationResult, KnowledgeCategory, TaggingContext

from .keywords import (
    BEVERAGE_PREPARATION_PHRASES,
    CATEGORY_KEYWORDS,
    COCKTAIL_PHRASES,
    FOOD_PREPARATION_PHRASES,
    MENU_BEVERAGE_TERMS,
    MENU_WINE_TERMS,
    PRIMARY_WEIGHT,
    SECONDARY_WEIGHT,
    SOP_PROCEDURE_TERMS,
    STRONG_FOOD_INDICATORS,
    WINE_AS_INGREDIENT_PHRASES,
    WINE_PAIRING_PHRASES,
)

MAX_CONFIDENCE = 0.95
HIGH_CONFIDENCE = 0.8
MODERATE_CONFIDENCE = 0.6

Scores = Dict[KnowledgeCategory, float]


def classify(question_text: str, context: Optional[TaggingContext] = None) -> ClassificationResult:
    """
    Assign a knowledge category to a question.

    Steps:
    - Score keyword hits per category (primary x2, secondary x1).
    - Apply override rules for pairing, cocktail and food-with-wine phrasing.
    - Apply context boosts from menu, SOP and existing tag hints.
    - Normalize by the max score and pick the winner (declaration order on ties).

    Empty text scores zero everywhere and falls back to food with zero confidence.
    """
    text = (question_text or "").lower()

    scores = keyword_scores(text)
    apply_overrides(scores, text)
    if context is not None:
        apply_context_boosts(scores, context)
    normalized = normalize_scores(scores)

    top_score = max(normalized.values())
    winner = next(category for category in CATEGORY_ORDER if normalized[category] == top_score)
    second = sorted(normalized.values(), reverse=True)[1]

    confidence = min(MAX_CONFIDENCE, (top_score - second) / top_score) if top_score > 0 else 0.0

    return ClassificationResult(
        category=winner,
        confidence=confidence,
        reasoning=describe(winner, confidence),
        scores=normalized,
    )


def keyword_scores(text: str) -> Scores:
    scores: Scores = {category: 0.0 for category in CATEGORY_ORDER}
    for category, keywords in CATEGORY_KEYWORDS.items():
        scores[category] += PRIMARY_WEIGHT * sum(1 for kw in keywords.primary if kw in text)
        scores[category] += SECONDARY_WEIGHT * sum(1 for kw in keywords.secondary if kw in text)
    return scores


def _contains_any(text: str, phrases) -> bool:
    return any(phrase in text for phrase in phrases)


def apply_overrides(scores: Scores, text: str) -> None:
    if _contains_any(text, WINE_PAIRING_PHRASES):
        scores[KnowledgeCategory.WINE] += 4
        return

    if _contains_any(text, COCKTAIL_PHRASES):
        scores[KnowledgeCategory.BEVERAGE] += 4
        return

    wine_as_ingredient = _contains_any(text, WINE_AS_INGREDIENT_PHRASES)
    if wine_as_ingredient or _contains_any(text, STRONG_FOOD_INDICATORS):
        scores[KnowledgeCategory.FOOD] += 3
        if wine_as_ingredient:
            # An incidental wine mention should not steal a dish question.
            scores[KnowledgeCategory.WINE] = max(0.0, scores[KnowledgeCategory.WINE] - 2)

    if _contains_any(text, FOOD_PREPARATION_PHRASES) and not _contains_any(text, BEVERAGE_PREPARATION_PHRASES):
        scores[KnowledgeCategory.FOOD] += 2


def apply_context_boosts(scores: Scores, context: TaggingContext) -> None:
    if context.menu_categories:
        menu_text = " ".join(context.menu_categories).lower()
        if _contains_any(menu_text, MENU_WINE_TERMS):
            scores[KnowledgeCategory.WINE] += 2
        elif _contains_any(menu_text, MENU_BEVERAGE_TERMS):
            scores[KnowledgeCategory.BEVERAGE] += 1
        else:
            # Menu items default to food.
            scores[KnowledgeCategory.FOOD] += 1

    if context.sop_category_name:
        if _contains_any(context.sop_category_name.lower(), SOP_PROCEDURE_TERMS):
            scores[KnowledgeCategory.PROCEDURES] += 2

    if context.existing_categories:
        existing_text = " ".join(context.existing_categories).lower()
        if "wine" in existing_text:
            scores[KnowledgeCategory.WINE] += 0.5
        if "coffee" in existing_text or "drink" in existing_text:
            scores[KnowledgeCategory.BEVERAGE] += 0.5


def normalize_scores(scores: Scores) -> Scores:
    """Divide by the max score. Keeps ranking; the result is not a distribution."""
    max_score = max(scores.values())
    if max_score <= 0:
        return dict(scores)
    return {category: score / max_score for category, score in scores.items()}


def confidence_band(confidence: float) -> str:
    if confidence > HIGH_CONFIDENCE:
        return "high"
    if confidence > MODERATE_CONFIDENCE:
        return "moderate"
    return "low"


def describe(category: KnowledgeCategory, confidence: float) -> str:
    band = confidence_band(confidence)
    reasoning = f"Categorized as {category.display_name} with {band} confidence"
    if band == "low":
        reasoning += " - may need manual review"
    return reasoning
