"""
SQLAlchemy ORM models for Ethos.

This module defines all database tables and their relationships.
The schema is built around the match lifecycle: an event owns teams and
matches, judges are bound to matches through assignments, and each judge
records one score per team per match.

Key design decisions:
- A match with team_b_id NULL is a bye match (auto-completed, winner = team A)
- Scores are unique per (match, judge, team) and frozen once submitted
- Structured fields (rubric, criteria scores) are stored as JSON
- Adjustment logs are append-only and hard-deleted to revert
- Post-commit side effects go through the outbox_events table

Tables:
- users: Admins, moderators and judges
- events: Tournaments with rubric and round schedule
- teams: Teams competing in an event
- matches: All matches, including byes
- match_assignments: Judges bound to a match, ordered by judge_number
- scores: Per (match, judge, team) score records
- vote_logs / win_logs / score_diff_logs: Admin adjustments
- outbox_events: Pending post-commit events (MatchCompleted)
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utc_now() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =============================================================================
# Constants
# =============================================================================

USER_ROLES: tuple[str, ...] = ("admin", "moderator", "judge")

EVENT_STATUSES: tuple[str, ...] = ("draft", "active", "completed")


def _in_clause(column: str, values: tuple[str, ...]) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# =============================================================================
# Users
# =============================================================================

class User(Base):
    """
    A person acting in the tournament.

    Identity issuance (OAuth, sessions) lives outside this core; the
    record only carries what permission checks need.
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)  # 'admin', 'moderator', 'judge'
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        CheckConstraint(_in_clause("role", USER_ROLES), name="ck_users_role"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


# =============================================================================
# Event Models
# =============================================================================

class Event(Base):
    """
    A tournament.

    scoring_criteria holds the rubric (see ethos.scoring.rubric):
        {"criteria": {"clarity": {"maxScore": 5, "description": "..."}},
         "commentQuestionsCount": 3, "commentMaxScore": 20}

    round_schedules maps round number (as string) to {"startTime": ISO-8601}
    and only supplies a default scheduled time for new matches.
    """
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    total_rounds: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    current_round: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")

    scoring_criteria: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    round_schedules: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    created_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    teams: Mapped[list["Team"]] = relationship(back_populates="event", cascade="all, delete-orphan")
    matches: Mapped[list["Match"]] = relationship(back_populates="event", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(_in_clause("status", EVENT_STATUSES), name="ck_events_status"),
    )

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name='{self.name}', status='{self.status}')>"


class Team(Base):
    """A team competing in one event."""
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    school: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    event: Mapped["Event"] = relationship(back_populates="teams")

    __table_args__ = (
        Index("idx_teams_event", "event_id"),
    )

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, name='{self.name}')>"


# =============================================================================
# Match Models
# =============================================================================

class Match(Base):
    """
    A single pairing in a round, or a bye.

    Status lifecycle (see ethos.match_statuses):
    - 'draft': created, not started
    - 'moderator_period_1': judges may begin scoring
    - 'judge_question_<k>': judge k's question window
    - 'final_scoring': every window has closed
    - 'completed': terminal, winner decided

    Bye matches have team_b_id NULL, are created directly in 'completed'
    with winner_id = team_a_id, and never carry scores.
    """
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    round_number: Mapped[int] = mapped_column(Integer, nullable=False)

    team_a_id: Mapped[int] = mapped_column(ForeignKey("teams.id"), nullable=False)
    team_b_id: Mapped[Optional[int]] = mapped_column(ForeignKey("teams.id"), nullable=True)
    moderator_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    status: Mapped[str] = mapped_column(String(40), nullable=False, default="draft")
    winner_id: Mapped[Optional[int]] = mapped_column(ForeignKey("teams.id"), nullable=True)

    # Scheduling metadata (not used by the lifecycle)
    room: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    scheduled_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    event: Mapped["Event"] = relationship(back_populates="matches")
    team_a: Mapped["Team"] = relationship(foreign_keys=[team_a_id])
    team_b: Mapped[Optional["Team"]] = relationship(foreign_keys=[team_b_id])
    winner: Mapped[Optional["Team"]] = relationship(foreign_keys=[winner_id])
    moderator: Mapped[Optional["User"]] = relationship(foreign_keys=[moderator_id])
    assignments: Mapped[list["MatchAssignment"]] = relationship(
        back_populates="match",
        cascade="all, delete-orphan",
        order_by="MatchAssignment.judge_number",
    )
    scores: Mapped[list["Score"]] = relationship(back_populates="match", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("team_a_id IS NOT NULL", name="ck_matches_team_a_present"),
        CheckConstraint(
            "team_b_id IS NULL OR team_b_id != team_a_id",
            name="ck_matches_distinct_teams",
        ),
        Index("idx_matches_event_round", "event_id", "round_number"),
        Index("idx_matches_status", "status"),
    )

    @property
    def is_bye(self) -> bool:
        return self.team_b_id is None

    @property
    def team_ids(self) -> tuple[int, ...]:
        if self.team_b_id is None:
            return (self.team_a_id,)
        return (self.team_a_id, self.team_b_id)

    def __repr__(self) -> str:
        return (
            f"<Match(id={self.id}, round={self.round_number}, "
            f"{self.team_a_id} vs {self.team_b_id}, status='{self.status}')>"
        )


class MatchAssignment(Base):
    """
    A judge bound to a match.

    judge_number is the judge's 1-based position; it decides which
    judge_question status is that judge's scoring window. Positions stay
    contiguous: removals renumber, replacements inherit the slot.
    """
    __tablename__ = "match_assignments"

    id: Mapped[int] = mapped_column(primary_key=True)
    match_id: Mapped[int] = mapped_column(ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    judge_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    judge_number: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    match: Mapped["Match"] = relationship(back_populates="assignments")
    judge: Mapped["User"] = relationship()

    __table_args__ = (
        UniqueConstraint("match_id", "judge_id", name="uq_match_assignment_judge"),
    )

    def __repr__(self) -> str:
        return f"<MatchAssignment(match={self.match_id}, judge={self.judge_id}, number={self.judge_number})>"


class Score(Base):
    """
    One judge's score for one team in one match.

    criteria_scores: {criterion name: points}
    comment_scores: [points per judge question, in order]

    Mutable only while is_submitted is False and the match is in a
    judge-scoreable status.
    """
    __tablename__ = "scores"

    id: Mapped[int] = mapped_column(primary_key=True)
    match_id: Mapped[int] = mapped_column(ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    judge_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id"), nullable=False)

    criteria_scores: Mapped[dict[str, float]] = mapped_column(JSON, nullable=False, default=dict)
    comment_scores: Mapped[list[float]] = mapped_column(JSON, nullable=False, default=list)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    is_submitted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, onupdate=utc_now)

    match: Mapped["Match"] = relationship(back_populates="scores")

    __table_args__ = (
        UniqueConstraint("match_id", "judge_id", "team_id", name="uq_score_match_judge_team"),
        Index("idx_scores_match_submitted", "match_id", "is_submitted"),
    )

    def __repr__(self) -> str:
        return (
            f"<Score(id={self.id}, match={self.match_id}, judge={self.judge_id}, "
            f"team={self.team_id}, submitted={self.is_submitted})>"
        )


# =============================================================================
# Adjustment Logs
# =============================================================================

class VoteLog(Base):
    """Admin adjustment to a team's judge-vote total."""
    __tablename__ = "vote_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    adjustment: Mapped[float] = mapped_column(Float, nullable=False)
    admin_id: Mapped[str] = mapped_column(String(64), nullable=False)
    admin_name: Mapped[str] = mapped_column(String(255), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    __table_args__ = (
        Index("idx_vote_logs_event", "event_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<VoteLog(team={self.team_id}, adjustment={self.adjustment})>"


class WinLog(Base):
    """Admin adjustment to a team's win/loss/tie record."""
    __tablename__ = "win_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    wins_adj: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    losses_adj: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ties_adj: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    admin_id: Mapped[str] = mapped_column(String(64), nullable=False)
    admin_name: Mapped[str] = mapped_column(String(255), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    __table_args__ = (
        Index("idx_win_logs_event", "event_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<WinLog(team={self.team_id}, {self.wins_adj}-{self.losses_adj}-{self.ties_adj})>"
        )


class ScoreDiffLog(Base):
    """Admin (or bye compensation) adjustment to a team's score differential."""
    __tablename__ = "score_diff_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    adjustment: Mapped[float] = mapped_column(Float, nullable=False)
    admin_id: Mapped[str] = mapped_column(String(64), nullable=False)
    admin_name: Mapped[str] = mapped_column(String(255), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        Index("idx_score_diff_logs_event", "event_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ScoreDiffLog(team={self.team_id}, adjustment={self.adjustment})>"


# =============================================================================
# Outbox
# =============================================================================

class OutboxEvent(Base):
    """
    A side effect recorded inside the triggering transaction and handled
    after commit (see ethos.tasks.outbox).
    """
    __tablename__ = "outbox_events"

    id: Mapped[int] = mapped_column(primary_key=True)
    kind: Mapped[str] = mapped_column(String(50), nullable=False)  # e.g. 'match_completed'
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_outbox_status", "status", "id"),
    )

    def __repr__(self) -> str:
        return f"<OutboxEvent(id={self.id}, kind='{self.kind}', status='{self.status}')>"
