"""
Assignment Ledger: which judges sit on a match, and in what order.

judge_number is each judge's 1-based position and decides their scoring
window (see ethos.match_statuses). Positions stay contiguous:
``assign`` appends, ``replace`` hands the old judge's slot to the new one,
``remove`` renumbers whoever is left.

None of these commit. The caller's transaction makes a replace (drop the
old assignment, wipe its scores, add the new one) all-or-nothing; every
check runs before the first write.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ethos.db.models import Match, MatchAssignment
from ethos.db.repository import TournamentRepository
from ethos.errors import Conflict, NotFound, PreconditionFailed, ValidationFailed
from ethos.match_statuses import COMPLETED
from ethos.permissions import Action, Actor, Role, authorize

logger = logging.getLogger(__name__)


class AssignmentLedger:
    """Judge assignment operations for matches."""

    def __init__(self, session: Session):
        self.repo = TournamentRepository(session)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _load_match(self, match_id: int, actor: Actor, force: bool) -> Match:
        match = self.repo.get_match(match_id)
        authorize(actor, Action.MANAGE_ASSIGNMENTS, match)
        if match.is_bye:
            raise PreconditionFailed("Bye matches do not have judges")
        if match.status == COMPLETED.value and not force:
            raise PreconditionFailed(
                "Cannot change judges on a completed match",
                code="MATCH_COMPLETED",
            )
        return match

    def _require_judge(self, judge_id: int):
        user = self.repo.get_user(judge_id)
        if user.role != Role.JUDGE.value:
            raise ValidationFailed(f"User {judge_id} is not a judge")
        if not user.is_active:
            raise ValidationFailed(f"Judge {user.full_name} is not active")
        return user

    def check_schedule_conflict(self, match: Match, judge_id: int) -> None:
        """Conflict if the judge already sits on another open match in this round."""
        clash = self.repo.find_conflicting_judge_match(
            match.event_id, match.round_number, judge_id, exclude_match_id=match.id,
        )
        if clash is not None:
            raise Conflict(
                f"Judge is already assigned to match {clash.id} in round {match.round_number}",
                code="SCHEDULE_CONFLICT",
                details={"conflicting_match_id": clash.id},
            )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def assign(self, match_id: int, judge_id: int, actor: Actor, force: bool = False) -> MatchAssignment:
        """Append a judge at the next position."""
        match = self._load_match(match_id, actor, force)
        judge = self._require_judge(judge_id)

        assignments = self.repo.list_assignments(match.id)
        if any(a.judge_id == judge_id for a in assignments):
            raise Conflict(f"Judge {judge.full_name} is already assigned to this match")

        next_number = max((a.judge_number for a in assignments), default=0) + 1
        assignment = MatchAssignment(judge_id=judge_id, judge_number=next_number)
        match.assignments.append(assignment)
        self.repo.flush()
        logger.info("Assigned judge %s to match %s as judge %s", judge_id, match.id, next_number)
        return assignment

    def replace(
        self,
        match_id: int,
        old_judge_id: Optional[int],
        new_judge_id: int,
        actor: Actor,
        remove_scores: bool = True,
        force: bool = False,
    ) -> MatchAssignment:
        """
        Swap ``old_judge_id`` for ``new_judge_id``, keeping the old position.

        With ``old_judge_id`` None this is a plain assign (after the
        schedule conflict check).
        """
        match = self._load_match(match_id, actor, force)
        self._require_judge(new_judge_id)
        self.check_schedule_conflict(match, new_judge_id)

        if old_judge_id is None:
            return self.assign(match_id, new_judge_id, actor, force=force)

        if old_judge_id == new_judge_id:
            raise ValidationFailed("New judge must differ from the judge being replaced")
        old = self.repo.get_assignment(match.id, old_judge_id)
        if old is None:
            raise NotFound(f"Judge {old_judge_id} is not assigned to match {match.id}")
        if self.repo.get_assignment(match.id, new_judge_id) is not None:
            raise Conflict(f"Judge {new_judge_id} is already assigned to this match")

        position = old.judge_number
        removed = self.repo.delete_scores(match.id, old_judge_id) if remove_scores else 0
        match.assignments.remove(old)
        self.repo.flush()

        assignment = MatchAssignment(judge_id=new_judge_id, judge_number=position)
        match.assignments.append(assignment)
        self.repo.flush()
        logger.info(
            "Replaced judge %s with %s on match %s (position %s, %s scores removed)",
            old_judge_id, new_judge_id, match.id, position, removed,
        )
        return assignment

    def remove(
        self,
        match_id: int,
        judge_id: int,
        actor: Actor,
        remove_scores: bool = True,
        force: bool = False,
    ) -> int:
        """
        Drop a judge and renumber the rest. Returns how many scores were deleted.

        The last judge on a match can never be removed.
        """
        match = self._load_match(match_id, actor, force)
        assignments = self.repo.list_assignments(match.id)
        target = next((a for a in assignments if a.judge_id == judge_id), None)
        if target is None:
            raise NotFound(f"Judge {judge_id} is not assigned to match {match.id}")
        if len(assignments) <= 1:
            raise PreconditionFailed(
                "Cannot remove the last judge from a match",
                code="LAST_JUDGE",
            )

        removed = self.repo.delete_scores(match.id, judge_id) if remove_scores else 0
        match.assignments.remove(target)
        self.repo.flush()

        for number, assignment in enumerate(
            (a for a in assignments if a is not target), start=1
        ):
            assignment.judge_number = number
        self.repo.flush()

        logger.info("Removed judge %s from match %s (%s scores removed)", judge_id, match.id, removed)
        return removed

    def remove_judge_scores(self, match_id: int, judge_id: int, actor: Actor) -> int:
        """Admin wipe of every score a judge holds on a match."""
        match = self.repo.get_match(match_id)
        authorize(actor, Action.OVERRIDE, match)
        if self.repo.get_assignment(match.id, judge_id) is None:
            raise NotFound(f"Judge {judge_id} is not assigned to match {match.id}")
        if match.status == COMPLETED.value:
            raise PreconditionFailed("Cannot remove scores from a completed match")
        removed = self.repo.delete_scores(match.id, judge_id)
        self.repo.flush()
        logger.info("Wiped %s scores of judge %s on match %s", removed, judge_id, match.id)
        return removed

    def list_for_match(self, match_id: int) -> list[MatchAssignment]:
        self.repo.get_match(match_id)
        return self.repo.list_assignments(match_id)
