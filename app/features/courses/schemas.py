from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from app.common.errors import InvalidCourseGraphError


class QuizType(str, Enum):
	module_quiz = "module_quiz"
	final_quiz = "final_quiz"


class QuestionType(str, Enum):
	multiple_choice = "multiple_choice"
	true_false = "true_false"
	short_answer = "short_answer"


class _Frozen(BaseModel):
	model_config = ConfigDict(frozen=True, use_enum_values=False)


class CourseSchema(_Frozen):
	id: str
	title: str
	description: str = ""
	duration: Optional[str] = None


class ModuleSchema(_Frozen):
	id: str
	course_id: str
	title: str
	description: str = ""
	order: int = Field(ge=1)


class LessonSchema(_Frozen):
	id: str
	module_id: str
	title: str
	content: str = ""
	order: int


class QuizSchema(_Frozen):
	id: str
	course_id: str
	module_id: Optional[str] = None
	title: str
	description: str = ""
	type: QuizType
	pass_percentage: float = Field(default=80, ge=0, le=100)

	@model_validator(mode="after")
	def ensure_binding(self) -> "QuizSchema":
		if self.type == QuizType.module_quiz and not self.module_id:
			raise ValueError("module_quiz requires module_id")
		return self


class QuizQuestionSchema(_Frozen):
	id: str
	quiz_id: str
	question_text: str
	question_type: QuestionType
	options: List[str] = Field(default_factory=list)
	correct_answer: str
	explanation: Optional[str] = None
	order: int = 0


class CourseGraph(_Frozen):
	"""Read-only Module/Lesson/Quiz/Question graph of one course.

	Built once per request from freshly fetched rows. The validator enforces the
	structural invariants the progression rules rely on, so lock, grading and
	progress code never has to second-guess the graph.
	"""

	course: CourseSchema
	modules: List[ModuleSchema] = Field(default_factory=list)
	lessons: List[LessonSchema] = Field(default_factory=list)
	quizzes: List[QuizSchema] = Field(default_factory=list)
	questions: List[QuizQuestionSchema] = Field(default_factory=list)

	@model_validator(mode="after")
	def ensure_invariants(self) -> "CourseGraph":
		orders = sorted(m.order for m in self.modules)
		if orders != list(range(1, len(orders) + 1)):
			raise ValueError(f"module orders must be contiguous from 1, got {orders}")
		module_ids = {m.id for m in self.modules}
		lesson_orders = [lesson.order for lesson in self.lessons]
		if len(lesson_orders) != len(set(lesson_orders)):
			raise ValueError("lesson order values must be unique across the course")
		for lesson in self.lessons:
			if lesson.module_id not in module_ids:
				raise ValueError(f"lesson {lesson.id} references unknown module {lesson.module_id}")
		finals = [q for q in self.quizzes if q.type == QuizType.final_quiz]
		if len(finals) > 1:
			raise ValueError("a course can define at most one final quiz")
		bound = [q.module_id for q in self.quizzes if q.type == QuizType.module_quiz]
		if len(bound) != len(set(bound)):
			raise ValueError("a module can own at most one quiz")
		for module_id in bound:
			if module_id not in module_ids:
				raise ValueError(f"module quiz references unknown module {module_id}")
		return self

	@classmethod
	def build(cls, **data: Any) -> "CourseGraph":
		try:
			return cls(**data)
		except ValidationError as exc:
			course = data.get("course")
			course_id = course.id if isinstance(course, CourseSchema) else (course or {}).get("id")
			raise InvalidCourseGraphError(str(exc), course_id=course_id) from exc

	# --- lookups ---------------------------------------------------------

	def ordered_modules(self) -> List[ModuleSchema]:
		return sorted(self.modules, key=lambda m: m.order)

	def module(self, module_id: str) -> Optional[ModuleSchema]:
		return next((m for m in self.modules if m.id == module_id), None)

	def module_at(self, order: int) -> Optional[ModuleSchema]:
		return next((m for m in self.modules if m.order == order), None)

	def lesson(self, lesson_id: str) -> Optional[LessonSchema]:
		return next((lesson for lesson in self.lessons if lesson.id == lesson_id), None)

	def lessons_for(self, module_id: str) -> List[LessonSchema]:
		return sorted((lesson for lesson in self.lessons if lesson.module_id == module_id), key=lambda lesson: lesson.order)

	def quiz(self, quiz_id: str) -> Optional[QuizSchema]:
		return next((q for q in self.quizzes if q.id == quiz_id), None)

	def module_quiz(self, module_id: str) -> Optional[QuizSchema]:
		return next(
			(q for q in self.quizzes if q.type == QuizType.module_quiz and q.module_id == module_id),
			None,
		)

	@property
	def final_quiz(self) -> Optional[QuizSchema]:
		return next((q for q in self.quizzes if q.type == QuizType.final_quiz), None)

	def questions_for(self, quiz_id: str) -> List[QuizQuestionSchema]:
		return sorted((q for q in self.questions if q.quiz_id == quiz_id), key=lambda q: q.order)


# --- Learner facing outline (no answers) ---------------------------------

class OutlineQuestion(BaseModel):
	id: str
	question_text: str
	question_type: QuestionType
	options: List[str] = Field(default_factory=list)
	order: int = 0


class OutlineQuiz(BaseModel):
	id: str
	title: str
	description: str = ""
	type: QuizType
	pass_percentage: float
	questions: List[OutlineQuestion] = Field(default_factory=list)


class OutlineModule(BaseModel):
	id: str
	title: str
	description: str = ""
	order: int
	lessons: List[LessonSchema] = Field(default_factory=list)
	quiz: Optional[OutlineQuiz] = None


class CourseOutline(BaseModel):
	course: CourseSchema
	modules: List[OutlineModule] = Field(default_factory=list)
	final_quiz: Optional[OutlineQuiz] = None
	totals: Dict[str, int] = Field(default_factory=dict)
