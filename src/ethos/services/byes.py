"""
Bye Compensation Engine.

When an event has an odd number of teams, one team sits out each round.
It gets a bye match (team_b_id NULL, status completed, winner = the team)
plus two automatic adjustment logs attributed to the system identity:

- a ScoreDiffLog worth the team's average differential over its other
  completed matches, floored at +3.0 (+3.0 when it has none yet),
  reason "Bye match in round N"
- a WinLog of 1-0-0, created once and never rewritten

``recalculate_all`` is idempotent: the diff log is only rewritten when the
value moves by more than the configured tolerance and the win log is only
created when absent. It runs after every match completion (through the
outbox) and when an admin asks for it.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal, Optional

from sqlalchemy.orm import Session

from ethos.config import settings
from ethos.db.models import Match, ScoreDiffLog, WinLog
from ethos.db.repository import TournamentRepository
from ethos.errors import Conflict, PreconditionFailed, ValidationFailed
from ethos.match_statuses import COMPLETED
from ethos.permissions import Action, Actor, authorize
from ethos.scoring.outcome import calculate_outcome
from ethos.scoring.schedule import default_start_time

logger = logging.getLogger(__name__)

DifferentialMethod = Literal["default", "average"]


def bye_reason(round_number: int) -> str:
    return f"Bye match in round {round_number}"


@dataclass(frozen=True)
class ByeDifferential:
    """Differential awarded to a bye team and how it was derived."""

    team_id: int
    value: float
    method: DifferentialMethod
    match_count: int
    average: Optional[float] = None

    @property
    def explanation(self) -> str:
        floor = settings.bye_default_differential
        if self.match_count == 0:
            return f"No completed matches yet; default differential of +{floor:.1f} applied"
        if self.method == "average":
            return (
                f"Average differential of {self.average:+.2f} across "
                f"{self.match_count} completed match(es)"
            )
        return (
            f"Average differential of {self.average:+.2f} across {self.match_count} "
            f"completed match(es) does not exceed +{floor:.1f}; default of +{floor:.1f} applied"
        )


@dataclass
class ByeRecalculation:
    """Counts from one recalculate_all pass."""

    event_id: int
    byes: int = 0
    diff_logs_created: int = 0
    diff_logs_updated: int = 0
    diff_logs_unchanged: int = 0
    win_logs_created: int = 0
    differentials: dict[int, float] = field(default_factory=dict)

    def summary(self) -> str:
        return (
            f"{self.byes} byes: diff logs {self.diff_logs_created} created, "
            f"{self.diff_logs_updated} updated, {self.diff_logs_unchanged} unchanged; "
            f"win logs {self.win_logs_created} created"
        )

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "byes": self.byes,
            "diff_logs_created": self.diff_logs_created,
            "diff_logs_updated": self.diff_logs_updated,
            "diff_logs_unchanged": self.diff_logs_unchanged,
            "win_logs_created": self.win_logs_created,
        }


class ByeCompensationEngine:
    """Bye match management and the automatic logs that go with it."""

    def __init__(self, session: Session):
        self.repo = TournamentRepository(session)

    # ------------------------------------------------------------------
    # Differential
    # ------------------------------------------------------------------

    def calculate_differential(
        self,
        event_id: int,
        team_id: int,
        exclude_match_id: Optional[int] = None,
    ) -> ByeDifferential:
        """Average signed differential over the team's other completed matches, floored."""
        floor = settings.bye_default_differential
        matches = self.repo.list_team_matches(
            event_id,
            team_id,
            completed_only=True,
            include_byes=False,
            exclude_match_id=exclude_match_id,
        )
        if not matches:
            return ByeDifferential(team_id=team_id, value=floor, method="default", match_count=0)

        diffs = []
        for match in matches:
            judge_ids = [a.judge_id for a in self.repo.list_assignments(match.id)]
            outcome = calculate_outcome(match, self.repo.list_scores(match.id), judge_ids)
            diffs.append(outcome.differential(team_id))

        average = float(sum(diffs, Decimal("0")) / len(diffs))
        if average > floor:
            return ByeDifferential(
                team_id=team_id,
                value=average,
                method="average",
                match_count=len(diffs),
                average=average,
            )
        return ByeDifferential(
            team_id=team_id,
            value=floor,
            method="default",
            match_count=len(diffs),
            average=average,
        )

    # ------------------------------------------------------------------
    # Recalculation
    # ------------------------------------------------------------------

    def recalculate_all(self, event_id: int) -> ByeRecalculation:
        """Refresh the automatic logs for every bye match in the event."""
        self.repo.get_event(event_id)
        result = ByeRecalculation(event_id=event_id)

        for bye in self.repo.list_bye_matches(event_id):
            team_id = bye.team_a_id
            reason = bye_reason(bye.round_number)
            differential = self.calculate_differential(event_id, team_id, exclude_match_id=bye.id)
            result.byes += 1
            result.differentials[team_id] = differential.value

            diff_log = self.repo.find_log(
                ScoreDiffLog, event_id, team_id, reason, settings.system_admin_id
            )
            if diff_log is None:
                self.repo.add(self._system_log(
                    ScoreDiffLog, event_id, team_id, reason, adjustment=differential.value,
                ))
                result.diff_logs_created += 1
            elif abs(diff_log.adjustment - differential.value) > settings.bye_update_tolerance:
                logger.info(
                    "Bye differential for team %s round %s: %.2f -> %.2f",
                    team_id, bye.round_number, diff_log.adjustment, differential.value,
                )
                diff_log.adjustment = differential.value
                result.diff_logs_updated += 1
            else:
                result.diff_logs_unchanged += 1

            win_log = self.repo.find_log(WinLog, event_id, team_id, reason, settings.system_admin_id)
            if win_log is None:
                self.repo.add(self._system_log(
                    WinLog, event_id, team_id, reason, wins_adj=1, losses_adj=0, ties_adj=0,
                ))
                result.win_logs_created += 1

        self.repo.flush()
        logger.info("Bye recalculation for event %s: %s", event_id, result.summary())
        return result

    def _system_log(self, model, event_id: int, team_id: int, reason: str, **values):
        return model(
            event_id=event_id,
            team_id=team_id,
            admin_id=settings.system_admin_id,
            admin_name=settings.system_admin_name,
            reason=reason,
            **values,
        )

    def remove_automatic_logs(self, event_id: int, team_id: int, round_number: int) -> int:
        """Delete the system-attributed logs a team received for a round's bye."""
        removed = 0
        reason = bye_reason(round_number)
        for model in (ScoreDiffLog, WinLog):
            log = self.repo.find_log(model, event_id, team_id, reason, settings.system_admin_id)
            if log is not None:
                self.repo.delete(log)
                removed += 1
        return removed

    # ------------------------------------------------------------------
    # Bye matches
    # ------------------------------------------------------------------

    def create_or_update_bye(
        self,
        event_id: int,
        round_number: int,
        team_id: int,
        actor: Actor,
    ) -> Match:
        """
        Give ``team_id`` the bye for ``round_number``.

        Replaces the round's existing bye team if there is one. Raises
        ValidationFailed for an even team count or a bad round, Conflict
        when the team already has a bye elsewhere or already plays in the
        round.
        """
        authorize(actor, Action.MANAGE_EVENT)
        event = self.repo.get_event(event_id)
        if event.is_completed:
            raise PreconditionFailed("Cannot modify a completed event")

        team = self.repo.get_team(team_id)
        if team.event_id != event_id:
            raise ValidationFailed(f"Team {team_id} does not belong to event {event_id}")

        team_count = self.repo.count_teams(event_id)
        if team_count % 2 == 0:
            raise ValidationFailed(
                f"Bye teams are only needed when an event has an odd number of teams; "
                f"this event has an even number of teams ({team_count})",
                code="EVEN_TEAM_COUNT",
            )
        if round_number < 1 or round_number > event.total_rounds:
            raise ValidationFailed(
                f"Round number must be between 1 and {event.total_rounds}, got {round_number}"
            )

        existing = self.repo.find_bye_for_team(event_id, team_id)
        if existing is not None and existing.round_number != round_number:
            raise Conflict(
                f"Team {team.name} already has a bye in round {existing.round_number}",
                code="DUPLICATE_BYE",
            )
        if self.repo.find_pairing(event_id, round_number, [team_id]) is not None:
            raise Conflict(f"Team {team.name} already has a match in round {round_number}")

        bye = self.repo.find_bye_for_round(event_id, round_number)
        if bye is None:
            bye = self.repo.add(Match(
                event_id=event_id,
                round_number=round_number,
                team_a_id=team_id,
                team_b_id=None,
                status=COMPLETED.value,
                winner_id=team_id,
                scheduled_time=default_start_time(event, round_number),
            ))
            logger.info("Created bye for team %s in event %s round %s", team_id, event_id, round_number)
        elif bye.team_a_id != team_id:
            previous = bye.team_a_id
            self.remove_automatic_logs(event_id, previous, round_number)
            bye.team_a_id = team_id
            bye.winner_id = team_id
            logger.info(
                "Moved bye in event %s round %s from team %s to team %s",
                event_id, round_number, previous, team_id,
            )

        self.repo.flush()
        self.recalculate_all(event_id)
        return bye

    def get_bye_teams(self, event_id: int) -> list[dict]:
        """Per bye round: team, differential, method and explanation."""
        self.repo.get_event(event_id)
        rows = []
        for bye in self.repo.list_bye_matches(event_id):
            team = self.repo.get_team(bye.team_a_id)
            differential = self.calculate_differential(event_id, team.id, exclude_match_id=bye.id)
            rows.append({
                "round_number": bye.round_number,
                "match_id": bye.id,
                "team": {"id": team.id, "name": team.name, "school": team.school},
                "score_differential": round(differential.value, 2),
                "method": differential.method,
                "match_count": differential.match_count,
                "explanation": differential.explanation,
            })
        return rows
