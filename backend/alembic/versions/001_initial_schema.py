"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("timezone", sa.String(50), nullable=True, server_default="America/New_York"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_id", "users", ["id"], unique=False)

    # Daily Metrics table
    op.create_table(
        "daily_metrics",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("steps_target", sa.Integer(), nullable=False, server_default="8000"),
        sa.Column("steps_actual", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("water_oz_target", sa.Integer(), nullable=False, server_default="80"),
        sa.Column("water_oz_actual", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sleep_hr_target", sa.Float(), nullable=False, server_default="8.0"),
        sa.Column("sleep_hr_actual", sa.Float(), nullable=False, server_default="0"),
        sa.Column("mood_checkins_target", sa.Integer(), nullable=False, server_default="7"),
        sa.Column("mood_checkins_actual", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_daily_metrics_user_id_users"),
        sa.PrimaryKeyConstraint("id", name="pk_daily_metrics"),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_metrics_user_date"),
    )
    op.create_index("ix_daily_metrics_date", "daily_metrics", ["date"], unique=False)
    op.create_index("ix_daily_metrics_id", "daily_metrics", ["id"], unique=False)
    op.create_index("ix_daily_metrics_user_id", "daily_metrics", ["user_id"], unique=False)

    # Program Progress table
    op.create_table(
        "program_progress",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("current_week", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("current_phase", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("week_extensions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_assessment_date", sa.Date(), nullable=True),
        sa.Column("active_targets", sa.JSON(), nullable=True),
        sa.Column("progression_decisions", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint(
            "week_extensions >= 0 AND week_extensions <= 5",
            name="ck_program_progress_week_extensions_range",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_program_progress_user_id_users"),
        sa.PrimaryKeyConstraint("id", name="pk_program_progress"),
    )
    op.create_index("ix_program_progress_id", "program_progress", ["id"], unique=False)
    op.create_index("ix_program_progress_user_id", "program_progress", ["user_id"], unique=True)

    # Weekly Targets table
    op.create_table(
        "weekly_targets",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("steps", sa.Integer(), nullable=False),
        sa.Column("water_oz", sa.Integer(), nullable=False),
        sa.Column("sleep_hr", sa.Float(), nullable=False),
        sa.Column("focus", sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_weekly_targets_user_id_users"),
        sa.PrimaryKeyConstraint("id", name="pk_weekly_targets"),
        sa.UniqueConstraint("user_id", "week_number", name="uq_weekly_targets_user_week"),
    )
    op.create_index("ix_weekly_targets_id", "weekly_targets", ["id"], unique=False)
    op.create_index("ix_weekly_targets_user_id", "weekly_targets", ["user_id"], unique=False)

    # Weekly Assessments table
    op.create_table(
        "weekly_assessments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("phase_number", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("steps_achievement_avg", sa.Float(), nullable=True),
        sa.Column("water_achievement_avg", sa.Float(), nullable=True),
        sa.Column("sleep_achievement_avg", sa.Float(), nullable=True),
        sa.Column("mood_achievement_avg", sa.Float(), nullable=True),
        sa.Column("overall_achievement_avg", sa.Float(), nullable=True),
        sa.Column("overall_grade", sa.String(20), nullable=True),
        sa.Column("strongest_pillar", sa.String(20), nullable=True),
        sa.Column("weakest_pillar", sa.String(20), nullable=True),
        sa.Column("consistency_days", sa.Integer(), nullable=True),
        sa.Column("total_tracking_days", sa.Integer(), nullable=True),
        sa.Column("consistency_rate", sa.Float(), nullable=True),
        sa.Column("current_streak", sa.Integer(), nullable=True),
        sa.Column("longest_streak", sa.Integer(), nullable=True),
        sa.Column("weekend_consistency", sa.Float(), nullable=True),
        sa.Column("progression_recommendation", sa.String(10), nullable=False),
        sa.Column("confidence", sa.Integer(), nullable=True),
        sa.Column("decision_reasoning", sa.JSON(), nullable=True),
        sa.Column("risk_factors", sa.JSON(), nullable=True),
        sa.Column("opportunities", sa.JSON(), nullable=True),
        sa.Column("target_modifications", sa.JSON(), nullable=True),
        sa.Column("user_decision", sa.String(30), nullable=True),
        sa.Column("targets_at_assessment", sa.JSON(), nullable=True),
        sa.Column("schema_version", sa.Integer(), nullable=True, server_default="1"),
        sa.Column("assessed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint(
            "consistency_days <= total_tracking_days",
            name="ck_weekly_assessments_consistency_le_tracking",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_weekly_assessments_user_id_users"),
        sa.PrimaryKeyConstraint("id", name="pk_weekly_assessments"),
        sa.UniqueConstraint("user_id", "week_number", name="uq_weekly_assessments_user_week"),
    )
    op.create_index("ix_weekly_assessments_id", "weekly_assessments", ["id"], unique=False)
    op.create_index("ix_weekly_assessments_user_id", "weekly_assessments", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_weekly_assessments_user_id", table_name="weekly_assessments")
    op.drop_index("ix_weekly_assessments_id", table_name="weekly_assessments")
    op.drop_table("weekly_assessments")

    op.drop_index("ix_weekly_targets_user_id", table_name="weekly_targets")
    op.drop_index("ix_weekly_targets_id", table_name="weekly_targets")
    op.drop_table("weekly_targets")

    op.drop_index("ix_program_progress_user_id", table_name="program_progress")
    op.drop_index("ix_program_progress_id", table_name="program_progress")
    op.drop_table("program_progress")

    op.drop_index("ix_daily_metrics_user_id", table_name="daily_metrics")
    op.drop_index("ix_daily_metrics_id", table_name="daily_metrics")
    op.drop_index("ix_daily_metrics_date", table_name="daily_metrics")
    op.drop_table("daily_metrics")

    op.drop_index("ix_users_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
