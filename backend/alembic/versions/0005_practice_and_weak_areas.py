"""practice scenarios, tutor messages and weak areas

Revision ID: 0005
Revises: 0004
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0005"
down_revision = "0004"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "practice_scenarios",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("scenario", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column(
            "difficulty",
            postgresql.ENUM(name="questiondifficulty", create_type=False),
            nullable=False,
            server_default="medium",
        ),
        sa.Column("target_weak_area", sa.String(length=255), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("credits_earned", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_practice_scenarios_user_id", "practice_scenarios", ["user_id"], unique=False)

    op.create_table(
        "practice_messages",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "scenario_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("practice_scenarios.id"), nullable=False
        ),
        sa.Column("role", sa.Enum("user", "assistant", name="messagerole"), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_practice_messages_scenario_id", "practice_messages", ["scenario_id"], unique=False)

    op.create_table(
        "user_weak_areas",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("incorrect_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_practiced_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("user_id", "category", name="uq_user_weak_areas_user_category"),
    )
    op.create_index("ix_user_weak_areas_user_id", "user_weak_areas", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_user_weak_areas_user_id", table_name="user_weak_areas")
    op.drop_table("user_weak_areas")
    op.drop_index("ix_practice_messages_scenario_id", table_name="practice_messages")
    op.drop_table("practice_messages")
    op.drop_index("ix_practice_scenarios_user_id", table_name="practice_scenarios")
    op.drop_table("practice_scenarios")
    op.execute("DROP TYPE IF EXISTS messagerole")
