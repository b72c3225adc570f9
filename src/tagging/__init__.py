# ABOUTME: Groups the keyword-heuristic question classifier and its batch helpers.
# ABOUTME: Re-exports classify plus batch tagging, validation, and re-tagging.

from .classifier import classify
from .batch import batch_tag_questions, retag_questions, validate_tagging

__all__ = [
    "classify",
    "batch_tag_questions",
    "retag_questions",
    "validate_tagging",
]
