"""create_fundability_tables

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "3f1a9c2e7b10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "fundability_assessments",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("catalog_version", sa.String(20), nullable=False),
        sa.Column("industry", sa.String(100), nullable=True),
        sa.Column("status", sa.String(20), server_default="in_progress", nullable=False),
        sa.Column("completion_percentage", sa.Integer, server_default="0", nullable=False),
        sa.Column("overall_score", sa.Integer, nullable=True),
        sa.Column("grade", sa.String(3), nullable=True),
        sa.Column("overall", postgresql.JSONB, nullable=True),
        sa.Column("category_scores", postgresql.JSONB, server_default="[]", nullable=False),
        sa.Column("recommendations", postgresql.JSONB, server_default="[]", nullable=False),
        sa.Column("scored_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_fundability_assessments_owner_id", "fundability_assessments", ["owner_id"])
    op.create_index(
        "ix_fundability_assessments_owner_status",
        "fundability_assessments",
        ["owner_id", "status"],
    )

    op.create_table(
        "assessment_responses",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("assessment_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("criterion_id", sa.String(100), nullable=False),
        sa.Column("value", postgresql.JSONB, nullable=False),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["assessment_id"], ["fundability_assessments.id"], ondelete="CASCADE"
        ),
        sa.UniqueConstraint(
            "assessment_id", "criterion_id", name="uq_assessment_responses_criterion"
        ),
    )
    op.create_index(
        "ix_assessment_responses_assessment_id", "assessment_responses", ["assessment_id"]
    )

    op.create_table(
        "score_history",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("recorded_on", sa.Date, nullable=False),
        sa.Column("assessment_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("overall_score", sa.Integer, nullable=False),
        sa.Column("grade", sa.String(3), nullable=False),
        sa.Column("category_percentages", postgresql.JSONB, server_default="{}", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["assessment_id"], ["fundability_assessments.id"], ondelete="SET NULL"
        ),
        sa.UniqueConstraint("owner_id", "recorded_on", name="uq_score_history_owner_day"),
    )
    op.create_index("ix_score_history_owner_id", "score_history", ["owner_id"])

    op.create_table(
        "lender_opportunities",
        sa.Column("id", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("product_type", sa.String(50), nullable=False),
        sa.Column("min_credit_score", sa.Integer, server_default="0", nullable=False),
        sa.Column("min_annual_revenue", sa.Numeric(19, 4), server_default="0", nullable=False),
        sa.Column("min_time_in_business_months", sa.Integer, server_default="0", nullable=False),
        sa.Column("allowed_industries", postgresql.JSONB, server_default="[]", nullable=False),
        sa.Column("excluded_industries", postgresql.JSONB, server_default="[]", nullable=False),
        sa.Column("requires_personal_guarantee", sa.Boolean, server_default="false", nullable=False),
        sa.Column("min_amount", sa.Numeric(19, 4), nullable=True),
        sa.Column("max_amount", sa.Numeric(19, 4), nullable=True),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("application_url", sa.String(500), nullable=True),
        sa.Column("is_active", sa.Boolean, server_default="true", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_lender_opportunities_kind", "lender_opportunities", ["kind"])


def downgrade() -> None:
    op.drop_index("ix_lender_opportunities_kind", table_name="lender_opportunities")
    op.drop_table("lender_opportunities")
    op.drop_index("ix_score_history_owner_id", table_name="score_history")
    op.drop_table("score_history")
    op.drop_index("ix_assessment_responses_assessment_id", table_name="assessment_responses")
    op.drop_table("assessment_responses")
    op.drop_index("ix_fundability_assessments_owner_status", table_name="fundability_assessments")
    op.drop_index("ix_fundability_assessments_owner_id", table_name="fundability_assessments")
    op.drop_table("fundability_assessments")
