"""
Adjustment Ledger: admin corrections layered on computed results.

Three append-only logs, each tied to (event, team) and carrying the
admin's identity and a free-text reason:

- vote logs: +/- judge votes
- win logs: +/- wins, losses, ties
- score-diff logs: +/- score differential

Deleting a log is a hard delete; its effect simply disappears from the
standings. The bye engine writes into the win and score-diff logs under
the system identity.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from ethos.db.models import ScoreDiffLog, VoteLog, WinLog
from ethos.db.repository import LOG_MODELS, TournamentRepository
from ethos.errors import PreconditionFailed, ValidationFailed
from ethos.permissions import Action, Actor, authorize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoteAdjustment:
    team_id: int
    adjustment: float
    reason: Optional[str] = None


@dataclass(frozen=True)
class WinAdjustment:
    team_id: int
    wins: int = 0
    losses: int = 0
    ties: int = 0
    reason: Optional[str] = None


@dataclass(frozen=True)
class ScoreDiffAdjustment:
    team_id: int
    adjustment: float
    reason: Optional[str] = None


def _model_for(kind: str):
    try:
        return LOG_MODELS[kind]
    except KeyError:
        raise ValidationFailed(
            f"Unknown adjustment kind '{kind}'. Must be one of: {', '.join(LOG_MODELS)}"
        ) from None


class AdjustmentLedger:
    """Apply, list and revert adjustment logs."""

    def __init__(self, session: Session):
        self.repo = TournamentRepository(session)

    def _open_event(self, event_id: int, actor: Actor):
        authorize(actor, Action.MANAGE_EVENT)
        event = self.repo.get_event(event_id)
        if event.is_completed:
            raise PreconditionFailed("Cannot adjust a completed event")
        return event

    def _check_team(self, event_id: int, team_id: int) -> None:
        team = self.repo.get_team(team_id)
        if team.event_id != event_id:
            raise ValidationFailed(f"Team {team_id} does not belong to event {event_id}")

    @staticmethod
    def _check_amount(value: float, label: str) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ValidationFailed(f"{label} must be a finite number")
        if value == 0:
            raise ValidationFailed(f"{label} must not be zero")

    @staticmethod
    def _require_items(items: Sequence) -> None:
        if not items:
            raise ValidationFailed("At least one adjustment is required")

    def _stamp(self, log, actor: Actor):
        log.admin_id = str(actor.id)
        log.admin_name = actor.name or f"User {actor.id}"
        return self.repo.add(log)

    # ------------------------------------------------------------------
    # Apply
    # ------------------------------------------------------------------

    def apply_vote_adjustments(
        self, event_id: int, items: Sequence[VoteAdjustment], actor: Actor,
    ) -> list[VoteLog]:
        self._open_event(event_id, actor)
        self._require_items(items)
        for item in items:
            self._check_team(event_id, item.team_id)
            self._check_amount(item.adjustment, "Vote adjustment")

        logs = [
            self._stamp(VoteLog(
                event_id=event_id,
                team_id=item.team_id,
                adjustment=float(item.adjustment),
                reason=item.reason,
            ), actor)
            for item in items
        ]
        self.repo.flush()
        logger.info("Applied %s vote adjustments to event %s", len(logs), event_id)
        return logs

    def apply_win_adjustments(
        self, event_id: int, items: Sequence[WinAdjustment], actor: Actor,
    ) -> list[WinLog]:
        self._open_event(event_id, actor)
        self._require_items(items)
        for item in items:
            self._check_team(event_id, item.team_id)
            if item.wins == 0 and item.losses == 0 and item.ties == 0:
                raise ValidationFailed("Win adjustment must change at least one of wins, losses or ties")

        logs = [
            self._stamp(WinLog(
                event_id=event_id,
                team_id=item.team_id,
                wins_adj=item.wins,
                losses_adj=item.losses,
                ties_adj=item.ties,
                reason=item.reason,
            ), actor)
            for item in items
        ]
        self.repo.flush()
        logger.info("Applied %s win adjustments to event %s", len(logs), event_id)
        return logs

    def apply_score_diff_adjustments(
        self, event_id: int, items: Sequence[ScoreDiffAdjustment], actor: Actor,
    ) -> list[ScoreDiffLog]:
        self._open_event(event_id, actor)
        self._require_items(items)
        for item in items:
            self._check_team(event_id, item.team_id)
            self._check_amount(item.adjustment, "Score differential adjustment")

        logs = [
            self._stamp(ScoreDiffLog(
                event_id=event_id,
                team_id=item.team_id,
                adjustment=float(item.adjustment),
                reason=item.reason,
            ), actor)
            for item in items
        ]
        self.repo.flush()
        logger.info("Applied %s score-diff adjustments to event %s", len(logs), event_id)
        return logs

    # ------------------------------------------------------------------
    # List / revert
    # ------------------------------------------------------------------

    def list_logs(self, kind: str, event_id: int, actor: Actor, team_id: Optional[int] = None) -> list:
        """Newest first."""
        authorize(actor, Action.MANAGE_EVENT)
        model = _model_for(kind)
        self.repo.get_event(event_id)
        return self.repo.list_logs(model, event_id, team_id=team_id)

    def delete_log(self, kind: str, event_id: int, log_id: int, actor: Actor) -> None:
        model = _model_for(kind)
        self._open_event(event_id, actor)
        log = self.repo.get_log(model, event_id, log_id)
        self.repo.delete(log)
        self.repo.flush()
        logger.info("Deleted %s log %s from event %s", kind, log_id, event_id)
