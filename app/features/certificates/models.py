from sqlalchemy import Column, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
import uuid
from app.db.base import Base


class Certificate(Base):
    __tablename__ = "certifree_certificates"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_certifree_certificates_user_course"),
    )
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    course_id = Column(UUID(as_uuid=True), ForeignKey("certifree_courses.id", ondelete="CASCADE"), nullable=False)
    storage_path = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Certificate(user_id={self.user_id}, course_id={self.course_id})>"
