"""video modules, checkpoints and progress

Revision ID: 0004
Revises: 0003
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0004"
down_revision = "0003"
branch_labels = None
depends_on = None


def upgrade() -> None:
    option_letter = postgresql.ENUM(name="optionletter", create_type=False)

    op.create_table(
        "video_modules",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("video_url", sa.Text(), nullable=False),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column(
            "difficulty",
            sa.Enum("beginner", "intermediate", "advanced", name="videodifficulty"),
            nullable=False,
            server_default="beginner",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        "video_checkpoints",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("video_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("video_modules.id"), nullable=False),
        sa.Column("pause_time", sa.Integer(), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("option_a", sa.Text(), nullable=False),
        sa.Column("option_b", sa.Text(), nullable=False),
        sa.Column("option_c", sa.Text(), nullable=True),
        sa.Column("option_d", sa.Text(), nullable=True),
        sa.Column("correct_answer", option_letter, nullable=False),
        sa.Column("incorrect_feedback", sa.Text(), nullable=False),
        sa.Column("correct_feedback", sa.Text(), nullable=True),
        sa.Column("hint_text", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_video_checkpoints_video_id", "video_checkpoints", ["video_id"], unique=False)

    op.create_table(
        "video_progress",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("video_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("video_modules.id"), nullable=False),
        sa.Column("current_time", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("quiz_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_quiz_questions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("credits_awarded", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("last_watched_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("user_id", "video_id", name="uq_video_progress_user_video"),
    )
    op.create_index("ix_video_progress_user_id", "video_progress", ["user_id"], unique=False)
    op.create_index("ix_video_progress_video_id", "video_progress", ["video_id"], unique=False)

    op.create_table(
        "video_checkpoint_answers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("video_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("video_modules.id"), nullable=False),
        sa.Column(
            "checkpoint_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("video_checkpoints.id"), nullable=False
        ),
        sa.Column("selected_answer", option_letter, nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("attempt_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_video_checkpoint_answers_user_id", "video_checkpoint_answers", ["user_id"], unique=False)
    op.create_index("ix_video_checkpoint_answers_video_id", "video_checkpoint_answers", ["video_id"], unique=False)
    op.create_index(
        "ix_video_checkpoint_answers_checkpoint_id", "video_checkpoint_answers", ["checkpoint_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_video_checkpoint_answers_checkpoint_id", table_name="video_checkpoint_answers")
    op.drop_index("ix_video_checkpoint_answers_video_id", table_name="video_checkpoint_answers")
    op.drop_index("ix_video_checkpoint_answers_user_id", table_name="video_checkpoint_answers")
    op.drop_table("video_checkpoint_answers")
    op.drop_index("ix_video_progress_video_id", table_name="video_progress")
    op.drop_index("ix_video_progress_user_id", table_name="video_progress")
    op.drop_table("video_progress")
    op.drop_index("ix_video_checkpoints_video_id", table_name="video_checkpoints")
    op.drop_table("video_checkpoints")
    op.drop_table("video_modules")
    op.execute("DROP TYPE IF EXISTS videodifficulty")
