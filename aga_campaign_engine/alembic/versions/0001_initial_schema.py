"""campaigns, leads, runs, metrics, profiles and prompt overrides

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "campaigns",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_auth_id", sa.String(255), nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("source", sa.String(50), nullable=False),
        sa.Column("lead_count", sa.Integer(), nullable=True),
        sa.Column("personalization_strategy", sa.String(100), nullable=True),
        sa.Column("custom_prompt", sa.Text(), nullable=True),
        sa.Column("instantly_campaign_id", sa.String(255), nullable=True),
        sa.Column("completed_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("webhook_payload", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    # Not unique: duplicate names are rejected by the submission flow only
    op.create_index("ix_campaigns_owner_name", "campaigns", ["user_auth_id", "name"])

    op.create_table(
        "campaign_leads",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "campaign_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("campaigns.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("lead_data", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("apollo_cache", sa.JSON(), nullable=True),
        sa.Column("csv_cache", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "aga_runs_progress",
        sa.Column("run_id", sa.String(36), primary_key=True),
        sa.Column("status", sa.String(100), nullable=False, server_default="In Queue"),
        sa.Column("lead_count", sa.Integer(), nullable=True),
        sa.Column("source", sa.String(50), nullable=True),
        sa.Column("campaign_name", sa.String(255), nullable=True, index=True),
        sa.Column("user_auth_id", sa.String(255), nullable=False, index=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(), index=True),
    )

    op.create_table(
        "client_metrics",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_auth_id", sa.String(255), nullable=False, index=True),
        sa.Column("run_id", sa.String(36), nullable=True, index=True),
        sa.Column("num_personalized_leads", sa.String(50), nullable=True),
        sa.Column("hours_saved", sa.String(50), nullable=True),
        sa.Column("money_saved", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("is_power_user", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "prompt_overrides",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("prompt_task", sa.Text(), nullable=True),
        sa.Column("prompt_guidelines", sa.Text(), nullable=True),
        sa.Column("prompt_example", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("prompt_overrides")
    op.drop_table("profiles")
    op.drop_table("client_metrics")
    op.drop_table("aga_runs_progress")
    op.drop_table("campaign_leads")
    op.drop_index("ix_campaigns_owner_name", table_name="campaigns")
    op.drop_table("campaigns")
