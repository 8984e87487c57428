"""Initial schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:30:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261018_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


role_enum = sa.Enum("student", "tutor", "admin", name="role_enum", native_enum=False)
tutoring_status_enum = sa.Enum(
    "unconfirmed",
    "confirmed",
    "canceled",
    "completed",
    name="tutoring_status_enum",
    native_enum=False,
)
notification_type_enum = sa.Enum(
    "TUTORING_REQUEST",
    "TUTORING_CONFIRMED",
    "TUTORING_REJECTED",
    "TUTORING_CANCELED",
    "TUTORING_COMPLETED",
    "TUTORING_UPDATED",
    "reminder_1day",
    "reminder_30min",
    name="notification_type_enum",
    native_enum=False,
)


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _int_id_col() -> sa.Column:
    return sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    op.create_table(
        "users",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("role", role_enum, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)

    op.create_table(
        "subjects",
        _int_id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.UniqueConstraint("name", name="uq_subjects_name"),
    )

    op.create_table(
        "topics",
        _int_id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("subject_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.ForeignKeyConstraint(["subject_id"], ["subjects.id"], name="fk_topics_subject_id_subjects", ondelete="CASCADE"),
        sa.UniqueConstraint("subject_id", "name", name="uq_topics_subject_id_name"),
    )
    op.create_index("ix_topics_subject_id", "topics", ["subject_id"], unique=False)

    op.create_table(
        "tutorings",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tutor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("subject_id", sa.Integer(), nullable=False),
        sa.Column("topic_id", sa.Integer(), nullable=True),
        sa.Column("meeting_date", sa.Date(), nullable=False),
        sa.Column("meeting_time", sa.Time(), nullable=False),
        sa.Column("status", tutoring_status_enum, nullable=False),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("canceled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.String(length=512), nullable=True),
        sa.Column("reminder_1day_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reminder_30min_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"], name="fk_tutorings_student_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tutor_id"], ["users.id"], name="fk_tutorings_tutor_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["subject_id"],
            ["subjects.id"],
            name="fk_tutorings_subject_id_subjects",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(["topic_id"], ["topics.id"], name="fk_tutorings_topic_id_topics", ondelete="SET NULL"),
    )
    op.create_index("ix_tutorings_student_id", "tutorings", ["student_id"], unique=False)
    op.create_index("ix_tutorings_subject_id", "tutorings", ["subject_id"], unique=False)
    op.create_index("ix_tutorings_tutor_id_status", "tutorings", ["tutor_id", "status"], unique=False)
    op.create_index(
        "ix_tutorings_schedule",
        "tutorings",
        ["tutor_id", "meeting_date", "meeting_time", "status"],
        unique=False,
    )
    op.create_index(
        "uq_tutorings_confirmed_slot",
        "tutorings",
        ["tutor_id", "meeting_date", "meeting_time"],
        unique=True,
        postgresql_where=sa.text("status = 'confirmed'"),
    )

    op.create_table(
        "notifications",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", notification_type_enum, nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_notifications_user_id_users", ondelete="CASCADE"),
    )
    op.create_index("ix_notifications_user_id_is_read", "notifications", ["user_id", "is_read"], unique=False)

    op.create_table(
        "session_feedback",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("tutoring_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tutor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("rating", sa.SmallInteger(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column("is_tutor_observation", sa.Boolean(), nullable=False),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_session_feedback_rating_range"),
        sa.ForeignKeyConstraint(
            ["tutoring_id"],
            ["tutorings.id"],
            name="fk_session_feedback_tutoring_id_tutorings",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["users.id"],
            name="fk_session_feedback_student_id_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(["tutor_id"], ["users.id"], name="fk_session_feedback_tutor_id_users", ondelete="CASCADE"),
        sa.UniqueConstraint("tutoring_id", "is_tutor_observation", name="uq_session_feedback_tutoring_id"),
    )
    op.create_index("ix_session_feedback_student_id", "session_feedback", ["student_id"], unique=False)
    op.create_index("ix_session_feedback_tutor_id", "session_feedback", ["tutor_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_session_feedback_tutor_id", table_name="session_feedback")
    op.drop_index("ix_session_feedback_student_id", table_name="session_feedback")
    op.drop_table("session_feedback")

    op.drop_index("ix_notifications_user_id_is_read", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("uq_tutorings_confirmed_slot", table_name="tutorings")
    op.drop_index("ix_tutorings_schedule", table_name="tutorings")
    op.drop_index("ix_tutorings_tutor_id_status", table_name="tutorings")
    op.drop_index("ix_tutorings_subject_id", table_name="tutorings")
    op.drop_index("ix_tutorings_student_id", table_name="tutorings")
    op.drop_table("tutorings")

    op.drop_index("ix_topics_subject_id", table_name="topics")
    op.drop_table("topics")
    op.drop_table("subjects")

    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
