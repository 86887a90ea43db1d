"""Readiness schema: users, athlete_profiles, daily_metrics, activities, athlete_readiness.

Revision ID: 001
Revises:
Create Date: 2024-06-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "athlete_profiles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("strava_firstname", sa.String(128), nullable=True),
        sa.Column("strava_lastname", sa.String(128), nullable=True),
        sa.Column("strava_weight_kg", sa.Float(), nullable=True),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("weight_kg", sa.Float(), nullable=True),
        sa.Column("max_heart_rate", sa.Integer(), nullable=True),
        sa.Column("resting_heart_rate", sa.Integer(), nullable=True),
        sa.Column("sex", sa.String(50), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_athlete_profiles_user_id", "athlete_profiles", ["user_id"], unique=True)

    op.create_table(
        "daily_metrics",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("source", sa.String(50), nullable=True),
        sa.Column("heart_rate_variability", sa.Integer(), nullable=True),
        sa.Column("resting_heart_rate", sa.Integer(), nullable=True),
        sa.Column("sleep_duration_seconds", sa.Integer(), nullable=True),
        sa.Column("sleep_quality_score", sa.Integer(), nullable=True),
        sa.Column("raw", sa.JSON(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_metrics_user_date"),
    )
    op.create_index("ix_daily_metrics_user_id", "daily_metrics", ["user_id"], unique=False)
    op.create_index("ix_daily_metrics_date", "daily_metrics", ["date"], unique=False)

    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("activity_id", sa.String(255), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("name", sa.String(512), nullable=True),
        sa.Column("sport_type", sa.String(64), nullable=True),
        sa.Column("moving_time_sec", sa.Integer(), nullable=True),
        sa.Column("distance_m", sa.Float(), nullable=True),
        sa.Column("suffer_score", sa.Float(), nullable=True),
        sa.Column("start_lat", sa.Float(), nullable=True),
        sa.Column("start_lon", sa.Float(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "activity_id", name="uq_activities_user_activity_id"),
        sa.CheckConstraint("suffer_score IS NULL OR suffer_score >= 0", name="ck_activities_suffer_score_non_negative"),
    )
    op.create_index("ix_activities_user_id", "activities", ["user_id"], unique=False)
    op.create_index("ix_activities_start_date", "activities", ["start_date"], unique=False)

    op.create_table(
        "athlete_readiness",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("readiness_score", sa.Integer(), nullable=True),
        sa.Column("injury_risk", sa.String(50), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("recommendation", sa.Text(), nullable=True),
        sa.Column("audio_url", sa.Text(), nullable=True),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "date", name="uq_athlete_readiness_user_date"),
    )
    op.create_index("ix_athlete_readiness_user_id", "athlete_readiness", ["user_id"], unique=False)
    op.create_index("ix_athlete_readiness_date", "athlete_readiness", ["date"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_athlete_readiness_date", table_name="athlete_readiness")
    op.drop_index("ix_athlete_readiness_user_id", table_name="athlete_readiness")
    op.drop_table("athlete_readiness")
    op.drop_index("ix_activities_start_date", table_name="activities")
    op.drop_index("ix_activities_user_id", table_name="activities")
    op.drop_table("activities")
    op.drop_index("ix_daily_metrics_date", table_name="daily_metrics")
    op.drop_index("ix_daily_metrics_user_id", table_name="daily_metrics")
    op.drop_table("daily_metrics")
    op.drop_index("ix_athlete_profiles_user_id", table_name="athlete_profiles")
    op.drop_table("athlete_profiles")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
