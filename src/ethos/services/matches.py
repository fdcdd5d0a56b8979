"""
Match State Machine and match creation.

Status moves along the event's status table (see ethos.match_statuses):

    draft -> moderator_period_1 -> judge_question_1..Q -> final_scoring -> completed

Rules enforced by ``advance``:

- Only the bound moderator or an admin may move a match.
- The bound moderator may step to the next status or jump to completed.
  Admins may move anywhere, backwards included, for recovery.
- Reaching completed requires every assigned judge to have submitted
  both teams (bye matches always pass), then computes the winner and
  records a MatchCompleted outbox event.
- Leaving completed clears the winner of a regular match.
- After every transition, judges whose window the match has moved past
  have their unsubmitted scores force-submitted. A failure there is
  logged and does not undo the transition.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from ethos.db.models import Match
from ethos.db.repository import TournamentRepository
from ethos.errors import Conflict, PreconditionFailed, ValidationFailed
from ethos.match_statuses import COMPLETED, DRAFT, MatchStatus, StatusTable
from ethos.permissions import Action, Actor, Role, authorize
from ethos.scoring.rubric import status_table_for
from ethos.scoring.schedule import default_start_time
from ethos.services.byes import ByeCompensationEngine
from ethos.services.completion import finalize_match, validate_completion
from ethos.services.scores import ScoreStore

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    """Outcome of a status change."""

    match_id: int
    previous_status: str
    new_status: str
    completed: bool = False
    winner_id: Optional[int] = None
    # judge_id -> number of scores force-submitted
    auto_submitted: dict[int, int] = field(default_factory=dict)

    def summary(self) -> str:
        forced = sum(self.auto_submitted.values())
        return (
            f"match {self.match_id}: {self.previous_status} -> {self.new_status}"
            f" ({forced} scores auto-submitted)"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "match_id": self.match_id,
            "previous_status": self.previous_status,
            "new_status": self.new_status,
            "completed": self.completed,
            "winner_id": self.winner_id,
            "auto_submitted": {str(k): v for k, v in self.auto_submitted.items()},
        }


class MatchService:
    """Match lifecycle operations."""

    def __init__(self, session: Session):
        self.session = session
        self.repo = TournamentRepository(session)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_match(
        self,
        event_id: int,
        round_number: int,
        team_a_id: int,
        team_b_id: Optional[int],
        actor: Actor,
        moderator_id: Optional[int] = None,
        room: Optional[str] = None,
        scheduled_time: Optional[datetime] = None,
    ) -> Match:
        """
        Create a draft match, or the round's bye when ``team_b_id`` is None.
        """
        authorize(actor, Action.MANAGE_EVENT)
        if team_b_id is None:
            if moderator_id is not None or room is not None or scheduled_time is not None:
                raise ValidationFailed("A bye match takes no moderator, room or scheduled time")
            return ByeCompensationEngine(self.session).create_or_update_bye(
                event_id, round_number, team_a_id, actor,
            )

        event = self.repo.get_event(event_id)
        if event.is_completed:
            raise PreconditionFailed("Cannot add matches to a completed event")
        if round_number < 1 or round_number > event.total_rounds:
            raise ValidationFailed(
                f"Round number must be between 1 and {event.total_rounds}, got {round_number}"
            )
        if team_a_id == team_b_id:
            raise ValidationFailed("A team cannot play against itself")

        for team_id in (team_a_id, team_b_id):
            team = self.repo.get_team(team_id)
            if team.event_id != event_id:
                raise ValidationFailed(f"Team {team_id} does not belong to event {event_id}")

        clash = self.repo.find_pairing(event_id, round_number, [team_a_id, team_b_id])
        if clash is not None:
            if {clash.team_a_id, clash.team_b_id} == {team_a_id, team_b_id}:
                raise Conflict(
                    f"These teams already play each other in round {round_number}",
                    code="DUPLICATE_MATCH",
                )
            raise Conflict(
                f"A team is already scheduled in round {round_number} (match {clash.id})",
                code="TEAM_ALREADY_SCHEDULED",
            )
        for team_id in (team_a_id, team_b_id):
            bye = self.repo.find_bye_for_team(event_id, team_id)
            if bye is not None and bye.round_number == round_number:
                raise Conflict(f"Team {team_id} has the bye in round {round_number}")

        if moderator_id is not None:
            moderator = self.repo.get_user(moderator_id)
            if moderator.role not in (Role.MODERATOR.value, Role.ADMIN.value):
                raise ValidationFailed(f"User {moderator_id} cannot moderate matches")

        match = self.repo.add(Match(
            event_id=event_id,
            round_number=round_number,
            team_a_id=team_a_id,
            team_b_id=team_b_id,
            moderator_id=moderator_id,
            status=DRAFT.value,
            room=room,
            scheduled_time=scheduled_time or default_start_time(event, round_number),
        ))
        self.repo.flush()
        logger.info(
            "Created match %s: event %s round %s, team %s vs team %s",
            match.id, event_id, round_number, team_a_id, team_b_id,
        )
        return match

    def list_matches(self, event_id: int, round_number: Optional[int] = None) -> list[Match]:
        self.repo.get_event(event_id)
        return self.repo.list_matches(event_id, round_number=round_number)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _table(self, match: Match) -> StatusTable:
        return status_table_for(match.event)

    def _current(self, table: StatusTable, match: Match) -> Optional[MatchStatus]:
        # A match can hold a status outside the table if Q was lowered later
        return table.parse(match.status) if match.status in table else None

    def allowed_targets(self, match: Match, actor: Actor) -> list[MatchStatus]:
        """Statuses ``actor`` may move ``match`` to from where it is now."""
        table = self._table(match)
        current = self._current(table, match)
        if actor.is_admin:
            return [s for s in table if s != current]
        if current is None or current == COMPLETED:
            return []
        targets = []
        following = table.next_status(current)
        if following is not None:
            targets.append(following)
        if COMPLETED not in targets:
            targets.append(COMPLETED)
        return targets

    def status_options(self, match_id: int, actor: Actor) -> list[dict[str, Any]]:
        """Every status in the table with whether ``actor`` may pick it."""
        match = self.repo.get_match(match_id)
        authorize(actor, Action.ADVANCE_MATCH, match)
        table = self._table(match)
        allowed = set(self.allowed_targets(match, actor))
        return [
            {
                "value": status.value,
                "label": status.label,
                "current": status.value == match.status,
                "allowed": status in allowed,
            }
            for status in table
        ]

    def advance(self, match_id: int, new_status: str, actor: Actor) -> TransitionResult:
        """Move ``match_id`` to ``new_status``."""
        match = self.repo.get_match(match_id)
        authorize(actor, Action.ADVANCE_MATCH, match)
        if match.event.is_completed:
            raise PreconditionFailed("Cannot change matches in a completed event")

        table = self._table(match)
        target = table.parse(new_status)
        previous = match.status

        if not actor.is_admin and target not in self.allowed_targets(match, actor):
            current = self._current(table, match)
            following = table.next_status(current) if current is not None else None
            hint = f" Next status is {following.label}." if following is not None else ""
            raise ValidationFailed(
                f"Cannot move match from {previous} to {target.value}.{hint}",
                code="INVALID_TRANSITION",
            )

        result = TransitionResult(match_id=match.id, previous_status=previous, new_status=target.value)
        if target.value == previous:
            return result

        if target == COMPLETED:
            validate_completion(self.repo, match)
            outcome = finalize_match(self.repo, match)
            result.completed = True
            result.winner_id = outcome.winner_id
        else:
            if previous == COMPLETED.value and not match.is_bye:
                match.winner_id = None
            match.status = target.value
            self.repo.flush()

        logger.info("Match %s status %s -> %s by user %s", match.id, previous, target.value, actor.id)
        result.auto_submitted = self.auto_submit_passed_windows(match, table, target)
        return result

    def auto_submit_passed_windows(
        self,
        match: Match,
        table: StatusTable,
        status: MatchStatus,
    ) -> dict[int, int]:
        """
        Force-submit the unsubmitted scores of every judge whose window
        ``status`` has moved past. Errors are logged, never raised.
        """
        submitted: dict[int, int] = {}
        if match.is_bye:
            return submitted
        try:
            store = ScoreStore(self.session)
            for assignment in self.repo.list_assignments(match.id):
                if not table.is_window_closed(status, assignment.judge_number):
                    continue
                count = store.force_submit_judge(match.id, assignment.judge_id)
                if count:
                    submitted[assignment.judge_id] = count
                    logger.info(
                        "Auto-submitted %s scores for judge %s (position %s) on match %s",
                        count, assignment.judge_id, assignment.judge_number, match.id,
                    )
        except Exception:
            logger.exception("Auto-submission failed for match %s at %s", match.id, status.value)
        return submitted
