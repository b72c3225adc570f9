# ABOUTME: Tests JSON loading of attempts and questions plus report serialization.
# ABOUTME: Accepts both camelCase exports and snake_case fixtures.

import json
from datetime import datetime, timezone

import pytest

from src.common.schemas import KnowledgeCategory, UserKnowledgeAnalytics
from src.common.serialization import (
    attempt_from_dict,
    load_attempts,
    parse_category,
    parse_datetime,
    question_from_dict,
    to_jsonable,
)


def test_parse_category_accepts_legacy_suffix():
    assert parse_category("wine-knowledge") == KnowledgeCategory.WINE
    assert parse_category(" Food ") == KnowledgeCategory.FOOD
    assert parse_category(None) is None
    with pytest.raises(ValueError):
        parse_category("dessert")


def test_attempt_from_camel_case_export():
    attempt = attempt_from_dict(
        {
            "id": "a1",
            "userId": "u1",
            "restaurantId": "r1",
            "attemptDate": "2024-06-01T10:00:00Z",
            "questions": [
                {"questionId": "q1", "knowledgeCategory": "food-knowledge", "isCorrect": True},
                {"questionId": "q2", "isCorrect": False},
            ],
        }
    )
    assert attempt.attempt_date == datetime(2024, 6, 1, 10, tzinfo=timezone.utc)
    assert attempt.questions[0].knowledge_category == KnowledgeCategory.FOOD
    assert attempt.questions[1].knowledge_category is None


def test_question_from_snake_case():
    question = question_from_dict(
        {"question_id": "q1", "restaurant_id": "r1", "question_text": "Which wine?", "created_by": "ai"}
    )
    assert question.created_by == "ai"
    assert question.categories == []


def test_load_attempts_accepts_wrapped_list(tmp_path):
    path = tmp_path / "attempts.json"
    payload = {
        "attempts": [
            {"id": "a1", "user_id": "u1", "restaurant_id": "r1", "attempt_date": "2024-06-01T00:00:00+00:00", "questions": []}
        ]
    }
    path.write_text(json.dumps(payload), encoding="utf-8")
    assert [a.id for a in load_attempts(path)] == ["a1"]


def test_to_jsonable_handles_records():
    record = UserKnowledgeAnalytics("u1", "r1", processed_attempt_ids={"b", "a"})
    data = to_jsonable(record)
    assert data["processed_attempt_ids"] == ["a", "b"]
    assert set(data["categories"]) == {"food", "beverage", "wine", "procedures"}
    json.dumps(data)


def test_offsetless_timestamps_are_read_as_utc():
    attempt = attempt_from_dict(
        {"id": "a1", "userId": "u1", "restaurantId": "r1", "attemptDate": "2024-06-10T09:00:00", "questions": []}
    )
    assert attempt.attempt_date == datetime(2024, 6, 10, 9, tzinfo=timezone.utc)
    assert parse_datetime(datetime(2024, 6, 10, 9)).tzinfo == timezone.utc


def test_explicit_offsets_are_kept():
    parsed = parse_datetime("2024-06-10T09:00:00+02:00")
    assert parsed.utcoffset().total_seconds() == 7200
