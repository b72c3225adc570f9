# ABOUTME: Converts attempts, questions, and read models to and from JSON-friendly dicts.
# ABOUTME: Used by the CLI to load fixtures and emit machine-readable reports.

import json
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .schemas import AnsweredQuestion, KnowledgeCategory, Question, QuizAttempt


def parse_category(value: Optional[str]) -> Optional[KnowledgeCategory]:
    """Accept 'wine' as well as the legacy 'wine-knowledge' spelling."""
    if value is None or value == "":
        return None
    normalized = str(value).strip().lower()
    if normalized.endswith("-knowledge"):
        normalized = normalized[: -len("-knowledge")]
    try:
        return KnowledgeCategory(normalized)
    except ValueError as exc:
        raise ValueError(f"Unknown knowledge category '{value}'") from exc


def parse_datetime(value: Any) -> datetime:
    """Parse an ISO timestamp; values without an offset are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def attempt_from_dict(data: Dict[str, Any]) -> QuizAttempt:
    questions = [
        AnsweredQuestion(
            question_id=str(q.get("questionId", q.get("question_id", ""))),
            knowledge_category=parse_category(q.get("knowledgeCategory", q.get("knowledge_category"))),
            is_correct=bool(q.get("isCorrect", q.get("is_correct", False))),
        )
        for q in data.get("questions", [])
    ]
    return QuizAttempt(
        id=str(data["id"]),
        user_id=str(data.get("userId", data.get("user_id"))),
        restaurant_id=str(data.get("restaurantId", data.get("restaurant_id"))),
        questions=questions,
        attempt_date=parse_datetime(data.get("attemptDate", data.get("attempt_date"))),
    )


def question_from_dict(data: Dict[str, Any]) -> Question:
    return Question(
        question_id=str(data.get("questionId", data.get("question_id", data.get("id")))),
        restaurant_id=str(data.get("restaurantId", data.get("restaurant_id"))),
        question_text=data.get("questionText", data.get("question_text", "")),
        categories=list(data.get("categories") or []),
        knowledge_category=parse_category(data.get("knowledgeCategory", data.get("knowledge_category"))),
        created_by=data.get("createdBy", data.get("created_by", "manual")),
    )


def load_attempts(path: Path) -> List[QuizAttempt]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("attempts", [])
    return [attempt_from_dict(item) for item in payload]


def to_jsonable(value: Any) -> Any:
    """Recursively convert dataclasses, enums, sets and datetimes for json.dumps."""
    if is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {to_jsonable(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(to_jsonable(v) for v in value)
    return value
