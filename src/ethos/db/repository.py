"""
Per-request data access for the tournament core.

Services never build queries themselves; they go through a
``TournamentRepository`` bound to the caller's session. The repository
only flushes. Committing (or rolling back) is the caller's job, which is
what lets a route handler or a script treat a whole service call as one
unit of work.
"""

from __future__ import annotations

from typing import Iterable, Optional, TypeVar

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ethos.db.models import (
    Event,
    Match,
    MatchAssignment,
    Score,
    ScoreDiffLog,
    Team,
    User,
    VoteLog,
    WinLog,
)
from ethos.errors import NotFound
from ethos.match_statuses import COMPLETED

T = TypeVar("T")


class TournamentRepository:
    """Queries the services need, bound to one session."""

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------

    def add(self, obj: T) -> T:
        self.session.add(obj)
        return obj

    def delete(self, obj) -> None:
        self.session.delete(obj)

    def flush(self) -> None:
        self.session.flush()

    def _require(self, model: type[T], entity_id: int, label: str) -> T:
        obj = self.session.get(model, entity_id)
        if obj is None:
            raise NotFound(f"{label} {entity_id} not found")
        return obj

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_user(self, user_id: int) -> User:
        return self._require(User, user_id, "User")

    def find_user(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_event(self, event_id: int) -> Event:
        return self._require(Event, event_id, "Event")

    def get_team(self, team_id: int) -> Team:
        return self._require(Team, team_id, "Team")

    def get_match(self, match_id: int) -> Match:
        return self._require(Match, match_id, "Match")

    def get_score(self, score_id: int) -> Score:
        return self._require(Score, score_id, "Score")

    # ------------------------------------------------------------------
    # Teams and matches
    # ------------------------------------------------------------------

    def list_teams(self, event_id: int) -> list[Team]:
        stmt = select(Team).where(Team.event_id == event_id).order_by(Team.id)
        return list(self.session.scalars(stmt))

    def count_teams(self, event_id: int) -> int:
        stmt = select(func.count(Team.id)).where(Team.event_id == event_id)
        return self.session.scalar(stmt) or 0

    def list_matches(
        self,
        event_id: int,
        round_number: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list[Match]:
        stmt = select(Match).where(Match.event_id == event_id)
        if round_number is not None:
            stmt = stmt.where(Match.round_number == round_number)
        if status is not None:
            stmt = stmt.where(Match.status == status)
        stmt = stmt.order_by(Match.round_number, Match.id)
        return list(self.session.scalars(stmt))

    def list_bye_matches(self, event_id: int) -> list[Match]:
        stmt = (
            select(Match)
            .where(Match.event_id == event_id, Match.team_b_id.is_(None))
            .order_by(Match.round_number)
        )
        return list(self.session.scalars(stmt))

    def find_bye_for_round(self, event_id: int, round_number: int) -> Optional[Match]:
        stmt = select(Match).where(
            Match.event_id == event_id,
            Match.round_number == round_number,
            Match.team_b_id.is_(None),
        )
        return self.session.scalars(stmt).first()

    def find_bye_for_team(self, event_id: int, team_id: int) -> Optional[Match]:
        stmt = select(Match).where(
            Match.event_id == event_id,
            Match.team_a_id == team_id,
            Match.team_b_id.is_(None),
        )
        return self.session.scalars(stmt).first()

    def list_team_matches(
        self,
        event_id: int,
        team_id: int,
        completed_only: bool = False,
        include_byes: bool = True,
        exclude_match_id: Optional[int] = None,
    ) -> list[Match]:
        stmt = select(Match).where(
            Match.event_id == event_id,
            or_(Match.team_a_id == team_id, Match.team_b_id == team_id),
        )
        if completed_only:
            stmt = stmt.where(Match.status == COMPLETED.value)
        if not include_byes:
            stmt = stmt.where(Match.team_b_id.is_not(None))
        if exclude_match_id is not None:
            stmt = stmt.where(Match.id != exclude_match_id)
        stmt = stmt.order_by(Match.round_number, Match.id)
        return list(self.session.scalars(stmt))

    def find_pairing(
        self,
        event_id: int,
        round_number: int,
        team_ids: Iterable[int],
    ) -> Optional[Match]:
        """First regular match in the round involving any of ``team_ids``."""
        ids = list(team_ids)
        stmt = select(Match).where(
            Match.event_id == event_id,
            Match.round_number == round_number,
            Match.team_b_id.is_not(None),
            or_(Match.team_a_id.in_(ids), Match.team_b_id.in_(ids)),
        )
        return self.session.scalars(stmt).first()

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    def list_assignments(self, match_id: int) -> list[MatchAssignment]:
        stmt = (
            select(MatchAssignment)
            .where(MatchAssignment.match_id == match_id)
            .order_by(MatchAssignment.judge_number, MatchAssignment.id)
        )
        return list(self.session.scalars(stmt))

    def get_assignment(self, match_id: int, judge_id: int) -> Optional[MatchAssignment]:
        stmt = select(MatchAssignment).where(
            MatchAssignment.match_id == match_id,
            MatchAssignment.judge_id == judge_id,
        )
        return self.session.scalars(stmt).first()

    def find_conflicting_judge_match(
        self,
        event_id: int,
        round_number: int,
        judge_id: int,
        exclude_match_id: int,
    ) -> Optional[Match]:
        """Another non-completed match in the same round that already has this judge."""
        stmt = (
            select(Match)
            .join(MatchAssignment, MatchAssignment.match_id == Match.id)
            .where(
                Match.event_id == event_id,
                Match.round_number == round_number,
                Match.id != exclude_match_id,
                Match.status != COMPLETED.value,
                MatchAssignment.judge_id == judge_id,
            )
        )
        return self.session.scalars(stmt).first()

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    def list_scores(
        self,
        match_id: int,
        judge_id: Optional[int] = None,
        submitted: Optional[bool] = None,
    ) -> list[Score]:
        stmt = select(Score).where(Score.match_id == match_id)
        if judge_id is not None:
            stmt = stmt.where(Score.judge_id == judge_id)
        if submitted is not None:
            stmt = stmt.where(Score.is_submitted.is_(submitted))
        stmt = stmt.order_by(Score.judge_id, Score.team_id)
        return list(self.session.scalars(stmt))

    def find_score(self, match_id: int, judge_id: int, team_id: int) -> Optional[Score]:
        stmt = select(Score).where(
            Score.match_id == match_id,
            Score.judge_id == judge_id,
            Score.team_id == team_id,
        )
        return self.session.scalars(stmt).first()

    def delete_scores(self, match_id: int, judge_id: int) -> int:
        scores = self.list_scores(match_id, judge_id=judge_id)
        for score in scores:
            self.session.delete(score)
        return len(scores)

    # ------------------------------------------------------------------
    # Adjustment logs
    # ------------------------------------------------------------------

    def list_logs(self, model, event_id: int, team_id: Optional[int] = None) -> list:
        stmt = select(model).where(model.event_id == event_id)
        if team_id is not None:
            stmt = stmt.where(model.team_id == team_id)
        stmt = stmt.order_by(model.created_at.desc(), model.id.desc())
        return list(self.session.scalars(stmt))

    def find_log(self, model, event_id: int, team_id: int, reason: str, admin_id: str):
        stmt = select(model).where(
            model.event_id == event_id,
            model.team_id == team_id,
            model.reason == reason,
            model.admin_id == admin_id,
        )
        return self.session.scalars(stmt).first()

    def get_log(self, model, event_id: int, log_id: int):
        obj = self.session.get(model, log_id)
        if obj is None or obj.event_id != event_id:
            raise NotFound(f"Adjustment log {log_id} not found for event {event_id}")
        return obj


LOG_MODELS = {
    "vote": VoteLog,
    "win": WinLog,
    "score-diff": ScoreDiffLog,
}
