"""
Score Store: one score per (match, judge, team), editable until submitted.

A score can be written while the match is in a judge-scoreable status
(moderator_period_1 up to, not including, completed). Submission is a
batch per judge that must cover both teams; once the last assigned judge
submits, the match is finalized right here instead of waiting for the
moderator.

Window enforcement is off by default: any assigned judge may write in any
scoring status and windows only drive auto-submission. With
``enforce_judge_windows`` on, judge p may write during moderator_period_1
and their own window status only. Admins always bypass it.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from sqlalchemy.orm import Session

from ethos.config import settings
from ethos.db.models import Match, Score, utc_now
from ethos.db.repository import TournamentRepository
from ethos.errors import Forbidden, NotFound, PreconditionFailed, ValidationFailed
from ethos.match_statuses import COMPLETED
from ethos.permissions import Action, Actor, authorize, can
from ethos.scoring.rubric import Rubric, rubric_for
from ethos.services.completion import all_judges_submitted, finalize_match

logger = logging.getLogger(__name__)


@dataclass
class SubmitResult:
    """What a batch submission did."""

    match_id: int
    judge_id: int
    submitted_ids: list[int] = field(default_factory=list)
    match_completed: bool = False
    winner_id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "match_id": self.match_id,
            "judge_id": self.judge_id,
            "submitted_ids": self.submitted_ids,
            "match_completed": self.match_completed,
            "winner_id": self.winner_id,
        }


class ScoreStore:
    """Create, update, submit and delete judge scores."""

    def __init__(self, session: Session, enforce_windows: Optional[bool] = None):
        self.repo = TournamentRepository(session)
        self.enforce_windows = (
            settings.enforce_judge_windows if enforce_windows is None else enforce_windows
        )

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _scoreable_match(self, match_id: int) -> Match:
        match = self.repo.get_match(match_id)
        if match.is_bye:
            raise PreconditionFailed("Bye matches are not scored")
        return match

    def _check_writable(self, match: Match, judge_id: int, actor: Actor) -> Rubric:
        """Raise unless ``judge_id`` may write scores on ``match`` right now."""
        event = match.event
        if event.is_completed:
            raise PreconditionFailed("Cannot modify scores in a completed event")

        rubric = rubric_for(event)
        table = rubric.status_table
        if match.status not in table or not table.can_judges_score(match.status):
            raise PreconditionFailed(
                "Judges cannot score at this match stage",
                code="SCORING_CLOSED",
            )

        if self.enforce_windows and not actor.is_admin:
            assignment = self.repo.get_assignment(match.id, judge_id)
            if assignment is None or not table.can_judge_write(
                match.status, assignment.judge_number, enforce_windows=True,
            ):
                raise PreconditionFailed(
                    "It is not your scoring window",
                    code="OUTSIDE_WINDOW",
                )
        return rubric

    @staticmethod
    def _check_team(match: Match, team_id: int) -> None:
        if team_id not in match.team_ids:
            raise ValidationFailed(f"Team {team_id} does not belong to this match")

    @staticmethod
    def _check_unsubmitted(score: Score) -> None:
        if score.is_submitted:
            raise PreconditionFailed(
                "Cannot modify submitted score",
                code="SCORE_SUBMITTED",
            )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert(
        self,
        match_id: int,
        team_id: int,
        criteria_scores: dict[str, float],
        comment_scores: Sequence[float],
        actor: Actor,
        notes: Optional[str] = None,
    ) -> tuple[Score, bool]:
        """Create or update the actor's score for ``team_id``. Returns (score, created)."""
        match = self._scoreable_match(match_id)
        authorize(actor, Action.SCORE_MATCH, match)
        self._check_team(match, team_id)
        rubric = self._check_writable(match, actor.id, actor)
        rubric.validate_scores(criteria_scores, comment_scores)

        score = self.repo.find_score(match.id, actor.id, team_id)
        created = score is None
        if created:
            score = self.repo.add(Score(
                match_id=match.id,
                judge_id=actor.id,
                team_id=team_id,
                is_submitted=False,
            ))
        else:
            self._check_unsubmitted(score)

        score.criteria_scores = dict(criteria_scores)
        score.comment_scores = list(comment_scores)
        score.notes = notes
        self.repo.flush()
        logger.debug(
            "%s score %s (match %s, judge %s, team %s)",
            "Created" if created else "Updated", score.id, match.id, actor.id, team_id,
        )
        return score, created

    def update(
        self,
        score_id: int,
        actor: Actor,
        criteria_scores: Optional[dict[str, float]] = None,
        comment_scores: Optional[Sequence[float]] = None,
        notes: Optional[str] = None,
    ) -> Score:
        """Update a score by id; only its owner or an admin may."""
        score = self.repo.get_score(score_id)
        authorize(actor, Action.MODIFY_SCORE, score)
        self._check_unsubmitted(score)
        match = self._scoreable_match(score.match_id)
        rubric = self._check_writable(match, score.judge_id, actor)

        new_criteria = dict(criteria_scores) if criteria_scores is not None else dict(score.criteria_scores or {})
        new_comments = list(comment_scores) if comment_scores is not None else list(score.comment_scores or [])
        rubric.validate_scores(new_criteria, new_comments)

        score.criteria_scores = new_criteria
        score.comment_scores = new_comments
        if notes is not None:
            score.notes = notes
        self.repo.flush()
        return score

    def submit_batch(self, match_id: int, score_ids: Sequence[int], actor: Actor) -> SubmitResult:
        """
        Submit one judge's scores for both teams.

        When every assigned judge has now submitted both teams, the match
        is completed and its winner set.
        """
        match = self._scoreable_match(match_id)
        authorize(actor, Action.SCORE_MATCH, match)
        if match.status == COMPLETED.value:
            raise PreconditionFailed("Match is already completed", code="MATCH_COMPLETED")
        if not score_ids:
            raise ValidationFailed("No scores to submit")

        scores = [self.repo.get_score(score_id) for score_id in dict.fromkeys(score_ids)]
        judge_ids = {score.judge_id for score in scores}
        if len(judge_ids) != 1:
            raise ValidationFailed("Scores in one submission must belong to a single judge")
        judge_id = judge_ids.pop()
        if judge_id != actor.id and not actor.is_admin:
            raise Forbidden("You can only submit your own scores")

        for score in scores:
            if score.match_id != match.id:
                raise ValidationFailed(f"Score {score.id} does not belong to match {match.id}")
            if score.is_submitted:
                raise PreconditionFailed(
                    f"Score {score.id} has already been submitted",
                    code="SCORE_SUBMITTED",
                )

        if {score.team_id for score in scores} != set(match.team_ids):
            raise ValidationFailed(
                "Scores for both teams must be submitted together",
                code="INCOMPLETE_SUBMISSION",
            )

        now = utc_now()
        for score in scores:
            score.is_submitted = True
            score.submitted_at = now
        self.repo.flush()

        result = SubmitResult(
            match_id=match.id,
            judge_id=judge_id,
            submitted_ids=[score.id for score in scores],
        )
        logger.info("Judge %s submitted %s scores on match %s", judge_id, len(scores), match.id)

        # Re-check every judge rather than counting submissions
        if all_judges_submitted(self.repo, match):
            outcome = finalize_match(self.repo, match)
            result.match_completed = True
            result.winner_id = outcome.winner_id
        return result

    def delete(self, score_id: int, actor: Actor) -> None:
        score = self.repo.get_score(score_id)
        authorize(actor, Action.MODIFY_SCORE, score)
        self._check_unsubmitted(score)
        self.repo.delete(score)
        self.repo.flush()

    def force_submit_judge(self, match_id: int, judge_id: int) -> int:
        """Mark every unsubmitted score of a judge as submitted, without validation."""
        pending = self.repo.list_scores(match_id, judge_id=judge_id, submitted=False)
        now = utc_now()
        for score in pending:
            score.is_submitted = True
            score.submitted_at = now
        if pending:
            self.repo.flush()
        return len(pending)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_for_match(self, match_id: int, actor: Actor) -> list[Score]:
        """All scores for admins and the moderator; a judge sees only their own."""
        match = self.repo.get_match(match_id)
        if can(actor, Action.VIEW_ALL_SCORES, match):
            return self.repo.list_scores(match.id)
        if can(actor, Action.SCORE_MATCH, match):
            return self.repo.list_scores(match.id, judge_id=actor.id)
        raise Forbidden("You are not assigned to this match")

    def get(self, score_id: int, actor: Actor) -> Score:
        score = self.repo.get_score(score_id)
        match = self.repo.get_match(score.match_id)
        if score.judge_id != actor.id and not can(actor, Action.VIEW_ALL_SCORES, match):
            raise NotFound(f"Score {score_id} not found")
        return score
