"""create certifree course, progression and certificate tables

Revision ID: c3f1a7d2e9b4
Revises:
Create Date: 2026-10-17 09:30:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'c3f1a7d2e9b4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'certifree_courses',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('duration', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )

    op.create_table(
        'certifree_modules',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('course_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('certifree_courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.UniqueConstraint('course_id', 'order', name='uq_certifree_modules_course_order'),
        sa.CheckConstraint('"order" >= 1', name='ck_certifree_modules_order_positive'),
    )
    op.create_index('ix_certifree_modules_course_id', 'certifree_modules', ['course_id'], unique=False)

    op.create_table(
        'certifree_lessons',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('module_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('certifree_modules.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False),
    )
    op.create_index('ix_certifree_lessons_module_id', 'certifree_lessons', ['module_id'], unique=False)

    op.create_table(
        'certifree_quizzes',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('course_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('certifree_courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('module_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('certifree_modules.id', ondelete='CASCADE'), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('pass_percentage', sa.Float(), nullable=False),
        sa.CheckConstraint("type in ('module_quiz', 'final_quiz')", name='ck_certifree_quizzes_type'),
        sa.CheckConstraint('pass_percentage >= 0 and pass_percentage <= 100', name='ck_certifree_quizzes_pass_pct'),
    )
    op.create_index('ix_certifree_quizzes_course_id', 'certifree_quizzes', ['course_id'], unique=False)

    op.create_table(
        'certifree_quiz_questions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('quiz_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('certifree_quizzes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('question_type', sa.String(length=20), nullable=False),
        sa.Column('options', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('correct_answer', sa.Text(), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "question_type in ('multiple_choice', 'true_false', 'short_answer')",
            name='ck_certifree_quiz_questions_type',
        ),
    )
    op.create_index('ix_certifree_quiz_questions_quiz_id', 'certifree_quiz_questions', ['quiz_id'], unique=False)

    op.create_table(
        'certifree_enrollments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('course_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('certifree_courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('progress', sa.Integer(), server_default='0', nullable=False),
        sa.Column('progress_array', postgresql.ARRAY(sa.Integer()), server_default='{}', nullable=False),
        sa.Column('completed_modules_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('passed_quizzes', postgresql.ARRAY(sa.String()), server_default='{}', nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('user_id', 'course_id', name='uq_certifree_enrollments_user_course'),
        sa.CheckConstraint('progress >= 0 and progress <= 100', name='ck_certifree_enrollments_progress'),
    )
    op.create_index('ix_certifree_enrollments_user_id', 'certifree_enrollments', ['user_id'], unique=False)

    op.create_table(
        'certifree_quiz_attempts',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('quiz_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('certifree_quizzes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('score_percentage', sa.Float(), nullable=False),
        sa.Column('passed', sa.Boolean(), nullable=False),
        sa.Column('attempt_number', sa.Integer(), nullable=False),
        sa.Column('answers', postgresql.JSONB(astext_type=sa.Text()), server_default='{}', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('user_id', 'quiz_id', 'attempt_number', name='uq_certifree_quiz_attempts_number'),
    )
    op.create_index('ix_certifree_quiz_attempts_user_id', 'certifree_quiz_attempts', ['user_id'], unique=False)

    op.create_table(
        'certifree_certificates',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('course_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('certifree_courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('storage_path', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('user_id', 'course_id', name='uq_certifree_certificates_user_course'),
    )
    op.create_index('ix_certifree_certificates_user_id', 'certifree_certificates', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_certifree_certificates_user_id', table_name='certifree_certificates')
    op.drop_table('certifree_certificates')
    op.drop_index('ix_certifree_quiz_attempts_user_id', table_name='certifree_quiz_attempts')
    op.drop_table('certifree_quiz_attempts')
    op.drop_index('ix_certifree_enrollments_user_id', table_name='certifree_enrollments')
    op.drop_table('certifree_enrollments')
    op.drop_index('ix_certifree_quiz_questions_quiz_id', table_name='certifree_quiz_questions')
    op.drop_table('certifree_quiz_questions')
    op.drop_index('ix_certifree_quizzes_course_id', table_name='certifree_quizzes')
    op.drop_table('certifree_quizzes')
    op.drop_index('ix_certifree_lessons_module_id', table_name='certifree_lessons')
    op.drop_table('certifree_lessons')
    op.drop_index('ix_certifree_modules_course_id', table_name='certifree_modules')
    op.drop_table('certifree_modules')
    op.drop_table('certifree_courses')
