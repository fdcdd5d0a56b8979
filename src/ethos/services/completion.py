"""
Completion validation and finalization shared by the state machine and
the score store.

Both paths that can reach ``completed`` (a moderator transition and the
last judge's batch submission) go through ``finalize_match`` so the
winner is computed exactly once and the MatchCompleted event is recorded
inside the same transaction.
"""

import logging
from dataclasses import dataclass

from ethos.db.models import Match
from ethos.db.repository import TournamentRepository
from ethos.errors import PreconditionFailed
from ethos.match_statuses import COMPLETED
from ethos.scoring.outcome import MatchOutcome, calculate_outcome
from ethos.tasks.outbox import MATCH_COMPLETED, record_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MissingScore:
    judge_id: int
    judge_name: str
    team_id: int
    team_name: str

    def describe(self) -> str:
        return f"Judge {self.judge_name} has not submitted scores for {self.team_name}"


def find_missing_scores(repo: TournamentRepository, match: Match) -> list[MissingScore]:
    """Every (judge, team) pair still lacking a submitted score."""
    if match.is_bye:
        return []

    submitted = {
        (score.judge_id, score.team_id)
        for score in repo.list_scores(match.id, submitted=True)
    }
    teams = [match.team_a, match.team_b]
    missing = []
    for assignment in repo.list_assignments(match.id):
        for team in teams:
            if (assignment.judge_id, team.id) not in submitted:
                missing.append(MissingScore(
                    judge_id=assignment.judge_id,
                    judge_name=assignment.judge.full_name,
                    team_id=team.id,
                    team_name=team.name,
                ))
    return missing


def validate_completion(repo: TournamentRepository, match: Match) -> None:
    """Raise PreconditionFailed naming the first judge/team still missing a submitted score."""
    if match.is_bye:
        return
    if not repo.list_assignments(match.id):
        raise PreconditionFailed(
            "Cannot complete match: no judges are assigned",
            code="INCOMPLETE_SCORES",
        )
    missing = find_missing_scores(repo, match)
    if missing:
        raise PreconditionFailed(
            f"Cannot complete match: {missing[0].describe()}",
            code="INCOMPLETE_SCORES",
            details={"missing": [m.describe() for m in missing]},
        )


def all_judges_submitted(repo: TournamentRepository, match: Match) -> bool:
    return bool(repo.list_assignments(match.id)) and not find_missing_scores(repo, match)


def finalize_match(repo: TournamentRepository, match: Match) -> MatchOutcome:
    """
    Put ``match`` in ``completed``, set its winner and record MatchCompleted.

    Callers have already validated completion.
    """
    judge_ids = [a.judge_id for a in repo.list_assignments(match.id)]
    outcome = calculate_outcome(match, repo.list_scores(match.id), judge_ids)

    match.status = COMPLETED.value
    match.winner_id = outcome.winner_id

    record_event(
        repo.session,
        MATCH_COMPLETED,
        {"event_id": match.event_id, "match_id": match.id},
    )
    repo.flush()

    totals = {team: str(total) for team, total in outcome.team_totals.items()}
    logger.info(
        "Match %s completed: winner=%s totals=%s",
        match.id, match.winner_id, totals,
    )
    return outcome
