"""Initial schema for the read-model projection tables."""

from __future__ import annotations
from typing import Union, Sequence

from alembic import op
import sqlalchemy as sa
from app.models.types import JSONType

# revision identifiers, used by Alembic.
revision: str = "0001_initial_projection_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _projection_columns() -> list[sa.Column]:
    return [
        sa.Column("last_applied_event_id", sa.String(length=128), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create projection tables for runs, challenges, clubs and users."""
    op.create_table(
        "performance",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("instance_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("runner_name", sa.String(length=255), nullable=True),
        sa.Column("run_date", sa.Date(), nullable=False),
        sa.Column("actual_run_date", sa.Date(), nullable=True),
        sa.Column("distance_km", sa.Float(), nullable=False),
        sa.Column("time_minutes", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("change_log", JSONType(), nullable=True),
        *_projection_columns(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_performance")),
    )
    op.create_index("ix_performance_instance", "performance", ["instance_id"], unique=False)
    op.create_index("ix_performance_user_run_date", "performance", ["user_id", "run_date"], unique=False)

    op.create_table(
        "performance_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_type", sa.String(length=128), nullable=False),
        sa.Column("performance_id", sa.String(length=36), nullable=False),
        sa.Column("instance_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("runner_name", sa.String(length=255), nullable=True),
        sa.Column("run_date", sa.Date(), nullable=True),
        sa.Column("actual_run_date", sa.Date(), nullable=True),
        sa.Column("distance_km", sa.Float(), nullable=True),
        sa.Column("time_minutes", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=True),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("change_log", JSONType(), nullable=True),
        sa.Column("event_payload", JSONType(), nullable=False),
        *_projection_columns(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_performance_log")),
        sa.UniqueConstraint("last_applied_event_id", name="uq_performance_log_event_id"),
    )
    op.create_index("ix_performance_log_performance", "performance_log", ["performance_id"], unique=False)
    op.create_index("ix_performance_log_user", "performance_log", ["user_id"], unique=False)

    op.create_table(
        "challenge_template",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("days", sa.Integer(), nullable=False),
        sa.Column("required_distances_km", JSONType(), nullable=False),
        sa.Column("full_distance_total_km", sa.Float(), nullable=False),
        sa.Column("half_distance_total_km", sa.Float(), nullable=False),
        sa.Column("theme_key", sa.String(length=64), nullable=False),
        *_projection_columns(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_challenge_template")),
    )

    op.create_table(
        "challenge_instance",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("template_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("variant", sa.String(length=8), nullable=False),
        sa.Column("theme_key", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_completed_km", sa.Float(), nullable=True),
        sa.Column("succeeded", sa.Boolean(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_projection_columns(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_challenge_instance")),
    )
    op.create_index("ix_challenge_instance_user", "challenge_instance", ["user_id"], unique=False)
    op.create_index("ix_challenge_instance_template", "challenge_instance", ["template_id"], unique=False)

    op.create_table(
        "club",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("invite_token", sa.String(length=255), nullable=False),
        sa.Column("logo_url", sa.String(length=1024), nullable=True),
        sa.Column("welcome_text", JSONType(), nullable=True),
        sa.Column("short_description", JSONType(), nullable=True),
        *_projection_columns(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_club")),
    )
    op.create_index("ix_club_invite_token", "club", ["invite_token"], unique=False)

    op.create_table(
        "club_membership",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("club_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("user_name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        *_projection_columns(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_club_membership")),
    )
    op.create_index("ix_club_membership_club", "club_membership", ["club_id"], unique=False)
    op.create_index("ix_club_membership_club_user", "club_membership", ["club_id", "user_id"], unique=False)

    op.create_table(
        "user",
        sa.Column("id", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        *_projection_columns(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_user")),
    )


def downgrade() -> None:
    """Drop all projection tables."""
    op.drop_table("user")
    op.drop_index("ix_club_membership_club_user", table_name="club_membership")
    op.drop_index("ix_club_membership_club", table_name="club_membership")
    op.drop_table("club_membership")
    op.drop_index("ix_club_invite_token", table_name="club")
    op.drop_table("club")
    op.drop_index("ix_challenge_instance_template", table_name="challenge_instance")
    op.drop_index("ix_challenge_instance_user", table_name="challenge_instance")
    op.drop_table("challenge_instance")
    op.drop_table("challenge_template")
    op.drop_index("ix_performance_log_user", table_name="performance_log")
    op.drop_index("ix_performance_log_performance", table_name="performance_log")
    op.drop_table("performance_log")
    op.drop_index("ix_performance_user_run_date", table_name="performance")
    op.drop_index("ix_performance_instance", table_name="performance")
    op.drop_table("performance")
