"""
Subscriptions log + episode read model.

- Create `subscriptions` (append-only, BIGINT PK, current-row index).
- Create `episodes` (UUID PK, unique `(series_id, "order")`).
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# Revision identifiers, used by Alembic.
revision = "20250301_01_subscriptions_and_episodes"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    subscription_plan = sa.Enum("weekly", "monthly", name="subscription_plan")
    subscription_status = sa.Enum("active", "canceled", "trial", "expired", name="subscription_status")
    episode_status = sa.Enum("draft", "published", "archived", name="episode_status")

    # --- subscriptions ---
    op.create_table(
        "subscriptions",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("plan", subscription_plan, nullable=False),
        sa.Column("status", subscription_status, nullable=False, server_default=sa.text("'active'")),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("renews_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("auto_renew", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("renews_at > start_date", name="ck_subscriptions_renews_after_start"),
        sa.CheckConstraint("amount >= 0", name="ck_subscriptions_amount_non_negative"),
        sa.PrimaryKeyConstraint("id", name="pk_subscriptions"),
    )
    op.create_index("ix_subscriptions_user_id", "subscriptions", ["user_id"], unique=False)
    op.create_index("ix_subscriptions_status", "subscriptions", ["status"], unique=False)
    op.create_index("ix_subscriptions_start_date", "subscriptions", ["start_date"], unique=False)
    op.create_index(
        "ix_subscriptions_user_current",
        "subscriptions",
        ["user_id", sa.text("start_date DESC"), sa.text("id DESC")],
        unique=False,
    )

    # --- episodes ---
    op.create_table(
        "episodes",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("series_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("status", episode_status, nullable=False, server_default=sa.text("'published'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('"order" >= 1', name="ck_episodes_order_positive"),
        sa.PrimaryKeyConstraint("id", name="pk_episodes"),
        sa.UniqueConstraint("series_id", "order", name="uq_episodes_series_order"),
    )
    op.create_index("ix_episodes_series_id", "episodes", ["series_id"], unique=False)
    op.create_index("ix_episodes_status", "episodes", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_episodes_status", table_name="episodes")
    op.drop_index("ix_episodes_series_id", table_name="episodes")
    op.drop_table("episodes")

    op.drop_index("ix_subscriptions_user_current", table_name="subscriptions")
    op.drop_index("ix_subscriptions_start_date", table_name="subscriptions")
    op.drop_index("ix_subscriptions_status", table_name="subscriptions")
    op.drop_index("ix_subscriptions_user_id", table_name="subscriptions")
    op.drop_table("subscriptions")

    sa.Enum(name="episode_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="subscription_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="subscription_plan").drop(op.get_bind(), checkfirst=True)
