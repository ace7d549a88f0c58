# Import all models here so Alembic can discover them
from app.db.base import Base

# Courses first (referenced by every other table)
from app.features.courses.models import Course, CourseModule, Lesson, Quiz, QuizQuestion
from app.features.progression.models import Enrollment, QuizAttempt
from app.features.certificates.models import Certificate

# This ensures all models are registered with SQLAlchemy
__all__ = [
	"Base",
	"Course",
	"CourseModule",
	"Lesson",
	"Quiz",
	"QuizQuestion",
	"Enrollment",
	"QuizAttempt",
	"Certificate",
]
