"""initial_schema

Revision ID: 3f1c9a2b7d40
Revises:
Create Date: 2026-10-19 14:05:12.418306

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2b7d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table('sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_jti', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_activity', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE')
    )
    op.create_index('ix_sessions_id', 'sessions', ['id'])
    op.create_index('ix_sessions_token_jti', 'sessions', ['token_jti'], unique=True)

    op.create_table('categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('name_bn', sa.String(100), nullable=False),
        sa.Column('icon', sa.String(50), nullable=False),
        sa.Column('color', sa.String(50), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index('ix_categories_id', 'categories', ['id'])

    op.create_table('exams',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('total_marks', sa.Integer(), nullable=False),
        sa.Column('passing_marks', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL')
    )
    op.create_index('ix_exams_id', 'exams', ['id'])

    op.create_table('questions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('exam_id', sa.Integer(), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('option_a', sa.Text(), nullable=False),
        sa.Column('option_b', sa.Text(), nullable=False),
        sa.Column('option_c', sa.Text(), nullable=False),
        sa.Column('option_d', sa.Text(), nullable=False),
        sa.Column('correct_answer', sa.Integer(), nullable=False),
        sa.Column('marks', sa.Integer(), nullable=False),
        sa.Column('order_number', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['exam_id'], ['exams.id'], ondelete='CASCADE')
    )
    op.create_index('ix_questions_id', 'questions', ['id'])
    op.create_index('ix_questions_exam_id', 'questions', ['exam_id'])

    op.create_table('exam_attempts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('exam_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('total_marks', sa.Integer(), nullable=False),
        sa.Column('question_count', sa.Integer(), nullable=False),
        sa.Column('answered_count', sa.Integer(), nullable=False),
        sa.Column('correct_count', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['exam_id'], ['exams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE')
    )
    op.create_index('ix_exam_attempts_id', 'exam_attempts', ['id'])
    op.create_index('ix_exam_attempts_exam_id', 'exam_attempts', ['exam_id'])
    op.create_index('ix_exam_attempts_user_id', 'exam_attempts', ['user_id'])

    op.create_table('user_answers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('attempt_id', sa.Integer(), nullable=False),
        sa.Column('question_id', sa.Integer(), nullable=False),
        sa.Column('selected_answer', sa.Integer(), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False),
        sa.Column('marks_obtained', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['attempt_id'], ['exam_attempts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['question_id'], ['questions.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('attempt_id', 'question_id', name='uq_attempt_question')
    )
    op.create_index('ix_user_answers_id', 'user_answers', ['id'])
    op.create_index('ix_user_answers_attempt_id', 'user_answers', ['attempt_id'])

    op.create_table('archived_exams',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('exam_code', sa.String(255), nullable=False),
        sa.Column('exam_title', sa.Text(), nullable=False),
        sa.Column('exam_date', sa.String(50), nullable=False),
        sa.Column('total_questions', sa.Integer(), nullable=False),
        sa.Column('questions_with_images', sa.Integer(), nullable=False),
        sa.Column('explanations_found', sa.Integer(), nullable=False),
        sa.Column('explanations_missing', sa.Integer(), nullable=False),
        sa.Column('categories_json', sa.Text(), nullable=True),
        sa.Column('category_stats_json', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_archived_exams_id', 'archived_exams', ['id'])
    op.create_index('ix_archived_exams_exam_code', 'archived_exams', ['exam_code'], unique=True)

    op.create_table('archived_questions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('archived_exam_id', sa.Integer(), nullable=False),
        sa.Column('question_number', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(255), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('correct_answer', sa.Integer(), nullable=False),
        sa.Column('explain_id', sa.String(64), nullable=True),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('options_json', sa.Text(), nullable=False),
        sa.Column('question_images_json', sa.Text(), nullable=True),
        sa.Column('explanation_images_json', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['archived_exam_id'], ['archived_exams.id'], ondelete='CASCADE')
    )
    op.create_index('ix_archived_questions_id', 'archived_questions', ['id'])
    op.create_index('ix_archived_questions_archived_exam_id', 'archived_questions', ['archived_exam_id'])

    op.create_table('practice_answers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('archived_exam_id', sa.Integer(), nullable=False),
        sa.Column('archived_question_id', sa.Integer(), nullable=False),
        sa.Column('selected_answer', sa.Integer(), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False),
        sa.Column('time_spent_seconds', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['archived_exam_id'], ['archived_exams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['archived_question_id'], ['archived_questions.id'], ondelete='CASCADE')
    )
    op.create_index('ix_practice_answers_id', 'practice_answers', ['id'])
    op.create_index('ix_practice_answers_user_id', 'practice_answers', ['user_id'])
    op.create_index('ix_practice_answers_archived_exam_id', 'practice_answers', ['archived_exam_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('practice_answers')
    op.drop_table('archived_questions')
    op.drop_table('archived_exams')
    op.drop_table('user_answers')
    op.drop_table('exam_attempts')
    op.drop_table('questions')
    op.drop_table('exams')
    op.drop_table('categories')
    op.drop_table('sessions')
    op.drop_table('users')
