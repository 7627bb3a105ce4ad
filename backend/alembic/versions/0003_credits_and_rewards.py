"""credit ledger and rewards

Revision ID: 0003
Revises: 0002
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0003"
down_revision = "0002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "credit_transactions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("type", sa.Enum("earned", "spent", "bonus", name="credittransactiontype"), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("related_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_credit_transactions_user_id", "credit_transactions", ["user_id"], unique=False)
    op.create_index("ix_credit_transactions_type", "credit_transactions", ["type"], unique=False)
    op.create_index("ix_credit_transactions_related_id", "credit_transactions", ["related_id"], unique=False)

    op.create_table(
        "rewards",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "category",
            sa.Enum(
                "parking",
                "exam_seating",
                "facilities_booking",
                "quiz_time",
                "participation_points",
                "skillsfuture",
                "culturepass",
                "cdc_voucher",
                name="rewardcategory",
            ),
            nullable=False,
        ),
        sa.Column("credit_cost", sa.Integer(), nullable=False),
        sa.Column("icon", sa.String(length=50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("credit_cost > 0", name="ck_rewards_credit_cost_positive"),
    )
    op.create_index("ix_rewards_category", "rewards", ["category"], unique=False)

    op.create_table(
        "reward_redemptions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reward_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("rewards.id"), nullable=False),
        sa.Column("credits_cost", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "completed", "cancelled", "rejected", "expired", name="redemptionstatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_reward_redemptions_user_id", "reward_redemptions", ["user_id"], unique=False)
    op.create_index("ix_reward_redemptions_reward_id", "reward_redemptions", ["reward_id"], unique=False)
    op.create_index("ix_reward_redemptions_status", "reward_redemptions", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_reward_redemptions_status", table_name="reward_redemptions")
    op.drop_index("ix_reward_redemptions_reward_id", table_name="reward_redemptions")
    op.drop_index("ix_reward_redemptions_user_id", table_name="reward_redemptions")
    op.drop_table("reward_redemptions")
    op.drop_index("ix_rewards_category", table_name="rewards")
    op.drop_table("rewards")
    op.drop_index("ix_credit_transactions_related_id", table_name="credit_transactions")
    op.drop_index("ix_credit_transactions_type", table_name="credit_transactions")
    op.drop_index("ix_credit_transactions_user_id", table_name="credit_transactions")
    op.drop_table("credit_transactions")
    op.execute("DROP TYPE IF EXISTS redemptionstatus")
    op.execute("DROP TYPE IF EXISTS rewardcategory")
    op.execute("DROP TYPE IF EXISTS credittransactiontype")
