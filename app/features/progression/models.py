from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB, ARRAY
from sqlalchemy.sql import func
import uuid
from app.db.base import Base


class Enrollment(Base):
    __tablename__ = "certifree_enrollments"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_certifree_enrollments_user_course"),
        CheckConstraint("progress >= 0 and progress <= 100", name="ck_certifree_enrollments_progress"),
    )
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)  # auth.users, managed by Supabase
    course_id = Column(UUID(as_uuid=True), ForeignKey("certifree_courses.id", ondelete="CASCADE"), nullable=False)
    progress = Column(Integer, nullable=False, default=0, server_default="0")
    progress_array = Column(ARRAY(Integer), nullable=False, server_default="{}")
    completed_modules_count = Column(Integer, nullable=False, default=0, server_default="0")
    passed_quizzes = Column(ARRAY(String), nullable=False, server_default="{}")
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Enrollment(user_id={self.user_id}, course_id={self.course_id}, progress={self.progress})>"


class QuizAttempt(Base):
    __tablename__ = "certifree_quiz_attempts"
    __table_args__ = (
        UniqueConstraint("user_id", "quiz_id", "attempt_number", name="uq_certifree_quiz_attempts_number"),
    )
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    quiz_id = Column(UUID(as_uuid=True), ForeignKey("certifree_quizzes.id", ondelete="CASCADE"), nullable=False)
    score_percentage = Column(Float, nullable=False)
    passed = Column(Boolean, nullable=False)
    attempt_number = Column(Integer, nullable=False)
    answers = Column(JSONB, nullable=False, server_default="{}")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<QuizAttempt(user_id={self.user_id}, quiz_id={self.quiz_id}, attempt={self.attempt_number})>"
