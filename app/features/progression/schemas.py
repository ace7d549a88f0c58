from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.features.certificates.schemas import CertificateEligibility


class EnrollmentSnapshot(BaseModel):
	"""Progression state of one (user, course) pair.

	Immutable: transitions build a new snapshot with ``model_copy(update=...)``.
	``progress_array`` holds completed lesson orders, ``passed_quizzes`` quiz ids;
	both are kept sorted and de-duplicated.
	"""

	model_config = ConfigDict(frozen=True)

	id: str
	user_id: str
	course_id: str
	progress: int = Field(default=0, ge=0, le=100)
	progress_array: Tuple[int, ...] = ()
	completed_modules_count: int = Field(default=0, ge=0)
	passed_quizzes: Tuple[str, ...] = ()
	completed_at: Optional[datetime] = None

	@field_validator("progress_array", mode="before")
	@classmethod
	def _normalise_orders(cls, value):
		return tuple(sorted({int(v) for v in (value or [])}))

	@field_validator("passed_quizzes", mode="before")
	@classmethod
	def _normalise_quiz_ids(cls, value):
		return tuple(sorted({str(v) for v in (value or [])}))

	def has_lesson(self, order: int) -> bool:
		return order in self.progress_array

	def has_passed(self, quiz_id: str) -> bool:
		return quiz_id in self.passed_quizzes


class QuizAttemptSchema(BaseModel):
	model_config = ConfigDict(frozen=True)

	id: Optional[str] = None
	user_id: str
	quiz_id: str
	score_percentage: float
	passed: bool
	attempt_number: int = Field(ge=1)
	answers: Dict[str, str] = Field(default_factory=dict)
	created_at: Optional[datetime] = None


class QuestionResult(BaseModel):
	question_id: str
	correct: bool
	submitted: Optional[str] = None
	explanation: Optional[str] = None


class GradeResult(BaseModel):
	quiz_id: str
	correct_count: int
	total_questions: int
	score_percentage: float
	pass_percentage: float
	passed: bool
	question_results: List[QuestionResult] = Field(default_factory=list)


class LockState(BaseModel):
	modules: Dict[str, bool] = Field(default_factory=dict)
	module_quizzes: Dict[str, bool] = Field(default_factory=dict)
	final_quiz: Optional[bool] = None


class ModuleState(BaseModel):
	module_id: str
	order: int
	locked: bool
	lesson_progress: int
	completed: bool
	quiz_id: Optional[str] = None
	quiz_locked: Optional[bool] = None
	quiz_passed: bool = True


class CourseProgressState(BaseModel):
	enrollment: EnrollmentSnapshot
	progress: int
	modules: List[ModuleState] = Field(default_factory=list)
	locks: LockState
	certificate: CertificateEligibility


# --- Requests / responses --------------------------------------------------

class LessonCompletionRequest(BaseModel):
	completed: bool = True


class QuizSubmissionRequest(BaseModel):
	answers: Dict[str, str] = Field(default_factory=dict)

	@field_validator("answers", mode="before")
	@classmethod
	def _stringify(cls, value):
		if not isinstance(value, dict):
			raise ValueError("answers must be an object keyed by question id")
		def _text(v):
			if v is None:
				return ""
			if isinstance(v, bool):
				return "true" if v else "false"
			return str(v)

		return {str(k): _text(v) for k, v in value.items()}


class QuizSubmissionResult(BaseModel):
	attempt: QuizAttemptSchema
	grade: GradeResult
	enrollment: EnrollmentSnapshot
