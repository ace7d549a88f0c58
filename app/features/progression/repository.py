from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from app.common.errors import PersistenceError
from app.common.utils import coerce_list, format_timestamp, parse_timestamp
from app.db.repository import SupabaseRepository
from app.features.progression.schemas import EnrollmentSnapshot, QuizAttemptSchema


def enrollment_from_row(row: Dict[str, Any]) -> EnrollmentSnapshot:
    return EnrollmentSnapshot(
        id=str(row.get("id")),
        user_id=str(row.get("user_id")),
        course_id=str(row.get("course_id")),
        progress=int(row.get("progress") or 0),
        progress_array=coerce_list(row.get("progress_array")),
        completed_modules_count=int(row.get("completed_modules_count") or 0),
        passed_quizzes=coerce_list(row.get("passed_quizzes")),
        completed_at=parse_timestamp(row.get("completed_at")),
    )


def attempt_from_row(row: Dict[str, Any]) -> QuizAttemptSchema:
    answers = row.get("answers") or {}
    return QuizAttemptSchema(
        id=str(row["id"]) if row.get("id") is not None else None,
        user_id=str(row.get("user_id")),
        quiz_id=str(row.get("quiz_id")),
        score_percentage=float(row.get("score_percentage") or 0),
        passed=bool(row.get("passed")),
        attempt_number=int(row.get("attempt_number") or 1),
        answers={str(k): str(v) for k, v in answers.items()} if isinstance(answers, dict) else {},
        created_at=parse_timestamp(row.get("created_at")),
    )


class EnrollmentRepository(SupabaseRepository):
    """Whole-snapshot reads and writes of ``certifree_enrollments``."""

    logger = logging.getLogger("progression.repository")

    _TABLE = "certifree_enrollments"

    async def get(self, user_id: str, course_id: str) -> Optional[EnrollmentSnapshot]:
        client = await self._client()
        resp = await self._execute(
            client.table(self._TABLE).select("*").eq("user_id", user_id).eq("course_id", course_id).limit(1),
            op="enrollments.get",
        )
        row = self._first(resp)
        return enrollment_from_row(row) if row else None

    async def create(self, user_id: str, course_id: str) -> EnrollmentSnapshot:
        client = await self._client()
        payload = {
            "user_id": user_id,
            "course_id": course_id,
            "progress": 0,
            "progress_array": [],
            "completed_modules_count": 0,
            "passed_quizzes": [],
            "completed_at": None,
        }
        resp = await self._execute(client.table(self._TABLE).insert(payload), op="enrollments.insert")
        row = self._first(resp)
        if not row:
            raise PersistenceError("enrollment insert returned no row", user_id=user_id, course_id=course_id)
        return enrollment_from_row(row)

    async def save(self, snapshot: EnrollmentSnapshot) -> EnrollmentSnapshot:
        """Write every mutable field of the snapshot and return the stored row."""
        client = await self._client()
        payload = {
            "progress": snapshot.progress,
            "progress_array": list(snapshot.progress_array),
            "completed_modules_count": snapshot.completed_modules_count,
            "passed_quizzes": list(snapshot.passed_quizzes),
            "completed_at": format_timestamp(snapshot.completed_at) if snapshot.completed_at else None,
        }
        resp = await self._execute(
            client.table(self._TABLE).update(payload).eq("id", snapshot.id),
            op="enrollments.update",
        )
        row = self._first(resp)
        if not row:
            raise PersistenceError("enrollment update matched no row", enrollment_id=snapshot.id)
        return enrollment_from_row(row)


class QuizAttemptRepository(SupabaseRepository):
    """Append-only access to ``certifree_quiz_attempts``."""

    logger = logging.getLogger("progression.repository")

    _TABLE = "certifree_quiz_attempts"

    async def list_for_quiz(self, user_id: str, quiz_id: str) -> List[QuizAttemptSchema]:
        client = await self._client()
        resp = await self._execute(
            client.table(self._TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("quiz_id", quiz_id)
            .order("attempt_number"),
            op="quiz_attempts.by_quiz",
        )
        return [attempt_from_row(r) for r in self._rows(resp)]

    async def count_for_quiz(self, user_id: str, quiz_id: str) -> int:
        return len(await self.list_for_quiz(user_id, quiz_id))

    async def insert(self, attempt: QuizAttemptSchema) -> QuizAttemptSchema:
        client = await self._client()
        payload = attempt.model_dump(mode="json", exclude={"id", "created_at"})
        resp = await self._execute(client.table(self._TABLE).insert(payload), op="quiz_attempts.insert")
        row = self._first(resp)
        if not row:
            raise PersistenceError("quiz attempt insert returned no row", quiz_id=attempt.quiz_id)
        return attempt_from_row(row)


enrollment_repository = EnrollmentRepository()
quiz_attempt_repository = QuizAttemptRepository()

__all__ = [
    "enrollment_repository",
    "quiz_attempt_repository",
    "EnrollmentRepository",
    "QuizAttemptRepository",
    "enrollment_from_row",
    "attempt_from_row",
]
