"""
Outcome Calculator.

Aggregates submitted scores into per-team totals and a winner:

    judge total = sum(criteria scores) + round(mean(comment scores))
    team total  = sum of judge totals across every assigned judge

Only submitted scores count. A tie in team totals means no winner.
Arithmetic runs on Decimal with ROUND_HALF_UP so the comment average
rounds the same way every time (2.5 -> 3).
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from ethos.db.models import Match, Score

ZERO = Decimal("0")


def _dec(value) -> Decimal:
    return Decimal(str(value))


def score_total(criteria_scores: dict, comment_scores: list) -> Decimal:
    """Total for a single (judge, team) score record."""
    total = sum((_dec(v) for v in (criteria_scores or {}).values()), ZERO)
    comments = list(comment_scores or [])
    if comments:
        mean = sum((_dec(v) for v in comments), ZERO) / len(comments)
        total += mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return total


@dataclass
class MatchOutcome:
    """Totals for one match, built from its submitted scores."""

    match_id: int
    team_a_id: int
    team_b_id: Optional[int]
    # judge_id -> team_id -> total
    judge_totals: dict[int, dict[int, Decimal]] = field(default_factory=dict)

    @property
    def team_totals(self) -> dict[int, Decimal]:
        totals: dict[int, Decimal] = {self.team_a_id: ZERO}
        if self.team_b_id is not None:
            totals[self.team_b_id] = ZERO
        for per_team in self.judge_totals.values():
            for team_id, value in per_team.items():
                totals[team_id] = totals.get(team_id, ZERO) + value
        return totals

    @property
    def winner_id(self) -> Optional[int]:
        """Team with the strictly higher total; None on a tie or a bye."""
        if self.team_b_id is None:
            return self.team_a_id
        totals = self.team_totals
        a, b = totals[self.team_a_id], totals[self.team_b_id]
        if a > b:
            return self.team_a_id
        if b > a:
            return self.team_b_id
        return None

    def differential(self, team_id: int) -> Decimal:
        """That team's total minus the opponent's total."""
        if self.team_b_id is None:
            return ZERO
        totals = self.team_totals
        opponent = self.team_b_id if team_id == self.team_a_id else self.team_a_id
        return totals.get(team_id, ZERO) - totals.get(opponent, ZERO)

    def complete_judges(self) -> dict[int, dict[int, Decimal]]:
        """Judges who submitted scores for both teams."""
        teams = {self.team_a_id, self.team_b_id}
        return {
            judge_id: per_team
            for judge_id, per_team in self.judge_totals.items()
            if teams <= set(per_team)
        }

    def judge_votes(self, assigned_judges: int) -> dict[int, float]:
        """
        Votes per team: each judge's higher total earns one vote, equal
        totals split half a vote each.

        With exactly two assigned judges who both scored both teams, a
        virtual third judge holding their average breaks the deadlock.
        """
        votes = {self.team_a_id: 0.0}
        if self.team_b_id is None:
            return votes
        votes[self.team_b_id] = 0.0

        ballots = list(self.complete_judges().values())
        if assigned_judges == 2 and len(ballots) == 2:
            ballots.append({
                team_id: (ballots[0][team_id] + ballots[1][team_id]) / 2
                for team_id in (self.team_a_id, self.team_b_id)
            })

        for ballot in ballots:
            a, b = ballot[self.team_a_id], ballot[self.team_b_id]
            if a > b:
                votes[self.team_a_id] += 1
            elif b > a:
                votes[self.team_b_id] += 1
            else:
                votes[self.team_a_id] += 0.5
                votes[self.team_b_id] += 0.5
        return votes


def calculate_outcome(
    match: Match,
    scores: Iterable[Score],
    judge_ids: Optional[Iterable[int]] = None,
) -> MatchOutcome:
    """
    Build the outcome for ``match`` from ``scores``.

    Unsubmitted scores and scores for teams outside the match are ignored.
    When ``judge_ids`` is given, only those judges' scores count.
    """
    allowed_judges = set(judge_ids) if judge_ids is not None else None
    teams = set(match.team_ids)
    per_judge: dict[int, dict[int, Decimal]] = defaultdict(dict)

    for score in scores:
        if not score.is_submitted or score.team_id not in teams:
            continue
        if allowed_judges is not None and score.judge_id not in allowed_judges:
            continue
        per_judge[score.judge_id][score.team_id] = score_total(
            score.criteria_scores, score.comment_scores
        )

    return MatchOutcome(
        match_id=match.id,
        team_a_id=match.team_a_id,
        team_b_id=match.team_b_id,
        judge_totals=dict(per_judge),
    )
