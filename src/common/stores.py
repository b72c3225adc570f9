# ABOUTME: Declares the storage collaborators the engines consume (questions, attempts, analytics).
# ABOUTME: Ships thread-safe in-memory implementations for tests, the CLI, and embedding hosts.

from __future__ import annotations

import copy
import threading
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from .errors import RecordNotFoundError
from .schemas import CategoryAssignment, KnowledgeCategory, Question, QuizAttempt, UserKnowledgeAnalytics


class QuestionStore(Protocol):
    def get_question(self, question_id: str) -> Optional[Question]:
        ...

    def list_questions(self, restaurant_id: str, category: Optional[KnowledgeCategory] = None) -> List[Question]:
        ...

    def update_category(self, question_id: str, assignment: CategoryAssignment) -> None:
        ...


class AttemptStore(Protocol):
    def get_attempt(self, attempt_id: str) -> Optional[QuizAttempt]:
        ...

    def list_attempts(
        self,
        restaurant_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[QuizAttempt]:
        ...


class AnalyticsStore(Protocol):
    def find(self, user_id: str, restaurant_id: str) -> Optional[UserKnowledgeAnalytics]:
        ...

    def save(self, record: UserKnowledgeAnalytics) -> None:
        """Atomically create or replace the record for its (user_id, restaurant_id)."""
        ...

    def list_for_restaurant(self, restaurant_id: str) -> List[UserKnowledgeAnalytics]:
        ...

    def delete_for_restaurant(self, restaurant_id: str) -> int:
        ...


class InMemoryQuestionStore:
    def __init__(self, questions: Iterable[Question] = ()):
        self._questions: Dict[str, Question] = {q.question_id: q for q in questions}
        self.assignments: Dict[str, CategoryAssignment] = {}
        self._lock = threading.Lock()

    def add(self, question: Question) -> None:
        with self._lock:
            self._questions[question.question_id] = question

    def get_question(self, question_id: str) -> Optional[Question]:
        with self._lock:
            return self._questions.get(question_id)

    def list_questions(self, restaurant_id: str, category: Optional[KnowledgeCategory] = None) -> List[Question]:
        with self._lock:
            return [
                q
                for q in self._questions.values()
                if q.restaurant_id == restaurant_id and (category is None or q.knowledge_category == category)
            ]

    def update_category(self, question_id: str, assignment: CategoryAssignment) -> None:
        with self._lock:
            question = self._questions.get(question_id)
            if question is None:
                raise RecordNotFoundError(f"Question {question_id} not found")
            self._questions[question_id] = Question(
                question_id=question.question_id,
                restaurant_id=question.restaurant_id,
                question_text=question.question_text,
                categories=list(question.categories),
                knowledge_category=assignment.knowledge_category,
                created_by=question.created_by,
            )
            self.assignments[question_id] = assignment


class InMemoryAttemptStore:
    def __init__(self, attempts: Iterable[QuizAttempt] = ()):
        self._attempts: Dict[str, QuizAttempt] = {}
        self._lock = threading.Lock()
        for attempt in attempts:
            self.add(attempt)

    def add(self, attempt: QuizAttempt) -> None:
        with self._lock:
            self._attempts[attempt.id] = attempt

    def get_attempt(self, attempt_id: str) -> Optional[QuizAttempt]:
        with self._lock:
            return self._attempts.get(attempt_id)

    def list_attempts(
        self,
        restaurant_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[QuizAttempt]:
        with self._lock:
            attempts = list(self._attempts.values())
        selected = [
            a
            for a in attempts
            if (restaurant_id is None or a.restaurant_id == restaurant_id)
            and (start is None or a.attempt_date >= start)
            and (end is None or a.attempt_date <= end)
        ]
        return sorted(selected, key=lambda a: (a.attempt_date, a.id))


class InMemoryAnalyticsStore:
    """Keeps private copies so callers never mutate stored state in place."""

    def __init__(self) -> None:
        self._records: Dict[Tuple[str, str], UserKnowledgeAnalytics] = {}
        self._lock = threading.Lock()

    def find(self, user_id: str, restaurant_id: str) -> Optional[UserKnowledgeAnalytics]:
        with self._lock:
            record = self._records.get((user_id, restaurant_id))
            return copy.deepcopy(record) if record is not None else None

    def save(self, record: UserKnowledgeAnalytics) -> None:
        snapshot = copy.deepcopy(record)
        with self._lock:
            self._records[(record.user_id, record.restaurant_id)] = snapshot

    def list_for_restaurant(self, restaurant_id: str) -> List[UserKnowledgeAnalytics]:
        with self._lock:
            records = [r for (_, rid), r in self._records.items() if rid == restaurant_id]
            return [copy.deepcopy(r) for r in sorted(records, key=lambda r: r.user_id)]

    def delete_for_restaurant(self, restaurant_id: str) -> int:
        with self._lock:
            doomed = [key for key in self._records if key[1] == restaurant_id]
            for key in doomed:
                del self._records[key]
        return len(doomed)
