"""
Team standings for an event.

Computed from completed regular matches, then layered with the admin
adjustment logs (which also carry the automatic bye compensation):

- judge votes: each judge's higher total is one vote for that team,
  equal totals split half a vote each (see MatchOutcome.judge_votes)
- match result: more votes wins, equal votes is a tie
- win points: wins + 0.5 * ties
- differential: sum of the team's per-match total differentials

Ranking is by win points, then votes, then differential.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from ethos.db.models import ScoreDiffLog, VoteLog, WinLog
from ethos.db.repository import TournamentRepository
from ethos.match_statuses import COMPLETED
from ethos.scoring.outcome import calculate_outcome


@dataclass
class TeamStanding:
    team_id: int
    team_name: str
    wins: int = 0
    losses: int = 0
    ties: int = 0
    votes: float = 0.0
    differential: float = 0.0
    matches_played: int = 0
    rank: int = 0

    @property
    def win_points(self) -> float:
        return self.wins + 0.5 * self.ties

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "team_id": self.team_id,
            "team_name": self.team_name,
            "wins": self.wins,
            "losses": self.losses,
            "ties": self.ties,
            "win_points": self.win_points,
            "votes": self.votes,
            "differential": round(self.differential, 2),
            "matches_played": self.matches_played,
        }


def compute_standings(session: Session, event_id: int) -> list[TeamStanding]:
    repo = TournamentRepository(session)
    repo.get_event(event_id)

    table = {
        team.id: TeamStanding(team_id=team.id, team_name=team.name)
        for team in repo.list_teams(event_id)
    }

    for match in repo.list_matches(event_id, status=COMPLETED.value):
        if match.is_bye:
            continue
        assignments = repo.list_assignments(match.id)
        outcome = calculate_outcome(
            match, repo.list_scores(match.id), [a.judge_id for a in assignments],
        )
        votes = outcome.judge_votes(len(assignments))
        a, b = match.team_a_id, match.team_b_id

        for team_id in (a, b):
            standing = table[team_id]
            standing.matches_played += 1
            standing.votes += votes[team_id]
            standing.differential += float(outcome.differential(team_id))

        if votes[a] > votes[b]:
            table[a].wins += 1
            table[b].losses += 1
        elif votes[b] > votes[a]:
            table[b].wins += 1
            table[a].losses += 1
        else:
            table[a].ties += 1
            table[b].ties += 1

    for log in repo.list_logs(WinLog, event_id):
        if log.team_id in table:
            table[log.team_id].wins += log.wins_adj
            table[log.team_id].losses += log.losses_adj
            table[log.team_id].ties += log.ties_adj
    for log in repo.list_logs(VoteLog, event_id):
        if log.team_id in table:
            table[log.team_id].votes += log.adjustment
    diff_adjustments: dict[int, Decimal] = {}
    for log in repo.list_logs(ScoreDiffLog, event_id):
        diff_adjustments[log.team_id] = diff_adjustments.get(log.team_id, Decimal("0")) + Decimal(str(log.adjustment))
    for team_id, adjustment in diff_adjustments.items():
        if team_id in table:
            table[team_id].differential += float(adjustment)

    ranked = sorted(table.values(), key=lambda s: (-s.win_points, -s.votes, -s.differential, s.team_name))
    for rank, standing in enumerate(ranked, start=1):
        standing.rank = rank
    return ranked
