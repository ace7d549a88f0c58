from sqlalchemy import Column, String, Text, Integer, Float, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.sql import func
import uuid
from app.db.base import Base


class Course(Base):
    __tablename__ = "certifree_courses"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Course(id={self.id}, title={self.title})>"


class CourseModule(Base):
    __tablename__ = "certifree_modules"
    __table_args__ = (
        UniqueConstraint("course_id", "order", name="uq_certifree_modules_course_order"),
        CheckConstraint('"order" >= 1', name="ck_certifree_modules_order_positive"),
    )
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id = Column(UUID(as_uuid=True), ForeignKey("certifree_courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    order = Column(Integer, nullable=False)

    def __repr__(self):
        return f"<CourseModule(id={self.id}, course_id={self.course_id}, order={self.order})>"


class Lesson(Base):
    __tablename__ = "certifree_lessons"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    module_id = Column(UUID(as_uuid=True), ForeignKey("certifree_modules.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)
    # Unique across the whole course; enforced when the graph is loaded.
    order = Column(Integer, nullable=False)

    def __repr__(self):
        return f"<Lesson(id={self.id}, module_id={self.module_id}, order={self.order})>"


class Quiz(Base):
    __tablename__ = "certifree_quizzes"
    __table_args__ = (
        CheckConstraint("type in ('module_quiz', 'final_quiz')", name="ck_certifree_quizzes_type"),
        CheckConstraint("pass_percentage >= 0 and pass_percentage <= 100", name="ck_certifree_quizzes_pass_pct"),
    )
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id = Column(UUID(as_uuid=True), ForeignKey("certifree_courses.id", ondelete="CASCADE"), nullable=False, index=True)
    module_id = Column(UUID(as_uuid=True), ForeignKey("certifree_modules.id", ondelete="CASCADE"), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False, default="module_quiz")
    pass_percentage = Column(Float, nullable=False, default=80)

    def __repr__(self):
        return f"<Quiz(id={self.id}, type={self.type}, module_id={self.module_id})>"


class QuizQuestion(Base):
    __tablename__ = "certifree_quiz_questions"
    __table_args__ = (
        CheckConstraint(
            "question_type in ('multiple_choice', 'true_false', 'short_answer')",
            name="ck_certifree_quiz_questions_type",
        ),
    )
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    quiz_id = Column(UUID(as_uuid=True), ForeignKey("certifree_quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    question_type = Column(String(20), nullable=False, default="multiple_choice")
    options = Column(JSONB, nullable=True)
    correct_answer = Column(Text, nullable=False)
    explanation = Column(Text, nullable=True)
    order = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<QuizQuestion(id={self.id}, quiz_id={self.quiz_id})>"
