"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-02-20 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- profiles ---
    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("stage", sa.String(64), nullable=True),
        sa.Column("date_of_birth", sa.String(32), nullable=True),
        sa.Column("onboarding_complete", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_profiles_id", "profiles", ["id"])
    op.create_index("ix_profiles_user_id", "profiles", ["user_id"], unique=True)

    # --- daily_logs ---
    op.create_table(
        "daily_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("symptoms_json", sa.JSON(), nullable=True),
        sa.Column("mood", sa.Integer(), nullable=True, comment="1-5"),
        sa.Column("sleep_hours", sa.Float(), nullable=True),
        sa.Column(
            "sleep_quality", sa.String(16), nullable=True,
            comment='"terrible" | "poor" | "good" | "great"',
        ),
        sa.Column("disruptions", sa.Integer(), nullable=True),
        sa.Column("context_tags", sa.JSON(), nullable=True),
        sa.Column("logged_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_daily_logs_id", "daily_logs", ["id"])
    op.create_index("ix_daily_logs_user_id", "daily_logs", ["user_id"])
    op.create_index("ix_daily_logs_date", "daily_logs", ["date"])

    # --- computed_scores ---
    op.create_table(
        "computed_scores",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("readiness", sa.Integer(), nullable=False, comment="5-99"),
        sa.Column("sleep_score", sa.Float(), nullable=False, comment="10-100"),
        sa.Column("mood_score", sa.Float(), nullable=False, comment="10-100"),
        sa.Column("symptom_score", sa.Float(), nullable=False, comment="10-100"),
        sa.Column("stressor_score", sa.Float(), nullable=False, comment="10-100"),
        sa.Column("streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("recommendation", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "date", name="uq_computed_score_user_date"),
    )
    op.create_index("ix_computed_scores_id", "computed_scores", ["id"])
    op.create_index("ix_computed_scores_user_id", "computed_scores", ["user_id"])
    op.create_index("ix_computed_scores_date", "computed_scores", ["date"])

    # --- benchmark_aggregates ---
    op.create_table(
        "benchmark_aggregates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("cohort_key", sa.String(128), nullable=False),
        sa.Column("symptom", sa.String(128), nullable=False),
        sa.Column("prevalence_pct", sa.Float(), nullable=False),
        sa.Column("avg_frequency", sa.Float(), nullable=False),
        sa.Column("avg_severity", sa.Float(), nullable=False),
        sa.Column("p25_frequency", sa.Float(), nullable=False),
        sa.Column("p50_frequency", sa.Float(), nullable=False),
        sa.Column("p75_frequency", sa.Float(), nullable=False),
        sa.Column("sample_size", sa.Integer(), nullable=False),
        sa.Column("computed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("cohort_key", "symptom", name="uq_benchmark_cohort_symptom"),
    )
    op.create_index("ix_benchmark_aggregates_id", "benchmark_aggregates", ["id"])
    op.create_index("ix_benchmark_aggregates_cohort_key", "benchmark_aggregates", ["cohort_key"])

    # --- user_correlations ---
    op.create_table(
        "user_correlations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("factor_a", sa.String(128), nullable=False),
        sa.Column("factor_b", sa.String(128), nullable=False),
        sa.Column("direction", sa.String(16), nullable=False, comment='"positive" | "negative"'),
        sa.Column("confidence", sa.Float(), nullable=True),
        sa.Column("effect_size_pct", sa.Float(), nullable=True),
        sa.Column("occurrences", sa.Integer(), nullable=True),
        sa.Column("lag_days", sa.Integer(), nullable=True),
        sa.Column("computed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_correlations_id", "user_correlations", ["id"])
    op.create_index("ix_user_correlations_user_id", "user_correlations", ["user_id"])


def downgrade() -> None:
    op.drop_table("user_correlations")
    op.drop_table("benchmark_aggregates")
    op.drop_table("computed_scores")
    op.drop_table("daily_logs")
    op.drop_table("profiles")
