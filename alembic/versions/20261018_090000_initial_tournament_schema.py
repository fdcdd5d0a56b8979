"""Initial tournament schema: users, events, teams, matches, judging, adjustments, outbox

Revision ID: 7a1e0c4b9d21
Revises:
Create Date: 2026-10-18 09:00:00.000000+00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers, used by Alembic.
revision: str = "7a1e0c4b9d21"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _log_columns():
    return [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
    ]


def _log_audit_columns():
    return [
        sa.Column("admin_id", sa.String(length=64), nullable=False),
        sa.Column("admin_name", sa.String(length=255), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.CheckConstraint("role IN ('admin', 'moderator', 'judge')", name="ck_users_role"),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("total_rounds", sa.Integer(), nullable=False),
        sa.Column("current_round", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("scoring_criteria", sa.JSON(), nullable=True),
        sa.Column("round_schedules", sa.JSON(), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("status IN ('draft', 'active', 'completed')", name="ck_events_status"),
    )

    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("school", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_teams_event", "teams", ["event_id"], unique=False)

    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("team_a_id", sa.Integer(), sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("team_b_id", sa.Integer(), sa.ForeignKey("teams.id"), nullable=True),
        sa.Column("moderator_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", sa.String(length=40), nullable=False),
        sa.Column("winner_id", sa.Integer(), sa.ForeignKey("teams.id"), nullable=True),
        sa.Column("room", sa.String(length=100), nullable=True),
        sa.Column("scheduled_time", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("team_a_id IS NOT NULL", name="ck_matches_team_a_present"),
        sa.CheckConstraint(
            "team_b_id IS NULL OR team_b_id != team_a_id",
            name="ck_matches_distinct_teams",
        ),
    )
    op.create_index("idx_matches_event_round", "matches", ["event_id", "round_number"], unique=False)
    op.create_index("idx_matches_status", "matches", ["status"], unique=False)

    op.create_table(
        "match_assignments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("judge_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("judge_number", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("match_id", "judge_id", name="uq_match_assignment_judge"),
    )

    op.create_table(
        "scores",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("judge_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("criteria_scores", sa.JSON(), nullable=False),
        sa.Column("comment_scores", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_submitted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("match_id", "judge_id", "team_id", name="uq_score_match_judge_team"),
    )
    op.create_index("idx_scores_match_submitted", "scores", ["match_id", "is_submitted"], unique=False)

    op.create_table(
        "vote_logs",
        *_log_columns(),
        sa.Column("adjustment", sa.Float(), nullable=False),
        *_log_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_vote_logs_event", "vote_logs", ["event_id", "created_at"], unique=False)

    op.create_table(
        "win_logs",
        *_log_columns(),
        sa.Column("wins_adj", sa.Integer(), nullable=False),
        sa.Column("losses_adj", sa.Integer(), nullable=False),
        sa.Column("ties_adj", sa.Integer(), nullable=False),
        *_log_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_win_logs_event", "win_logs", ["event_id", "created_at"], unique=False)

    op.create_table(
        "score_diff_logs",
        *_log_columns(),
        sa.Column("adjustment", sa.Float(), nullable=False),
        *_log_audit_columns(),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_score_diff_logs_event", "score_diff_logs", ["event_id", "created_at"], unique=False)

    op.create_table(
        "outbox_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("kind", sa.String(length=50), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("processed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_outbox_status", "outbox_events", ["status", "id"], unique=False)


def downgrade() -> None:
    op.drop_index("idx_outbox_status", table_name="outbox_events")
    op.drop_table("outbox_events")
    op.drop_index("idx_score_diff_logs_event", table_name="score_diff_logs")
    op.drop_table("score_diff_logs")
    op.drop_index("idx_win_logs_event", table_name="win_logs")
    op.drop_table("win_logs")
    op.drop_index("idx_vote_logs_event", table_name="vote_logs")
    op.drop_table("vote_logs")
    op.drop_index("idx_scores_match_submitted", table_name="scores")
    op.drop_table("scores")
    op.drop_table("match_assignments")
    op.drop_index("idx_matches_status", table_name="matches")
    op.drop_index("idx_matches_event_round", table_name="matches")
    op.drop_table("matches")
    op.drop_index("idx_teams_event", table_name="teams")
    op.drop_table("teams")
    op.drop_table("events")
    op.drop_table("users")
