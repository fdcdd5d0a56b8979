"""
Request bodies and response serialization.

Bodies accept camelCase keys (``teamId``) as well as snake_case.
Responses use the envelope ``{"success": true, "data": ..., "message": ...}``.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ethos.db.models import Match, MatchAssignment, Score
from ethos.match_statuses import display_name


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Matches
# =============================================================================

class CreateMatchRequest(RequestModel):
    round_number: int
    team_a_id: int
    team_b_id: Optional[int] = None
    moderator_id: Optional[int] = None
    room: Optional[str] = None
    scheduled_time: Optional[datetime] = None


class UpdateStatusRequest(RequestModel):
    status: str


# =============================================================================
# Judges
# =============================================================================

class AssignJudgeRequest(RequestModel):
    judge_id: int
    force: bool = False


class ReplaceJudgeRequest(RequestModel):
    new_judge_id: int
    old_judge_id: Optional[int] = None
    remove_scores: bool = True
    force: bool = False


# =============================================================================
# Scores
# =============================================================================

class ScoreRequest(RequestModel):
    team_id: int
    criteria_scores: dict[str, float] = Field(default_factory=dict)
    comment_scores: list[float] = Field(default_factory=list)
    notes: Optional[str] = None


class UpdateScoreRequest(RequestModel):
    criteria_scores: Optional[dict[str, float]] = None
    comment_scores: Optional[list[float]] = None
    notes: Optional[str] = None


class SubmitScoresRequest(RequestModel):
    score_ids: list[int]


# =============================================================================
# Byes and adjustments
# =============================================================================

class ByeTeamRequest(RequestModel):
    round_number: int
    team_id: int


class VoteAdjustmentItem(RequestModel):
    team_id: int
    adjustment: float
    reason: Optional[str] = None


class WinAdjustmentItem(RequestModel):
    team_id: int
    wins: int = 0
    losses: int = 0
    ties: int = 0
    reason: Optional[str] = None


class ScoreDiffAdjustmentItem(RequestModel):
    team_id: int
    adjustment: float
    reason: Optional[str] = None


class VoteAdjustmentsRequest(RequestModel):
    adjustments: list[VoteAdjustmentItem]


class WinAdjustmentsRequest(RequestModel):
    adjustments: list[WinAdjustmentItem]


class ScoreDiffAdjustmentsRequest(RequestModel):
    adjustments: list[ScoreDiffAdjustmentItem]


# =============================================================================
# Serialization
# =============================================================================

def ok(data: Any = None, message: str = "") -> dict[str, Any]:
    return {"success": True, "data": data, "message": message}


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def assignment_to_dict(assignment: MatchAssignment) -> dict[str, Any]:
    return {
        "judge_id": assignment.judge_id,
        "judge_number": assignment.judge_number,
        "judge_name": assignment.judge.full_name if assignment.judge else None,
    }


def match_to_dict(match: Match) -> dict[str, Any]:
    return {
        "id": match.id,
        "event_id": match.event_id,
        "round_number": match.round_number,
        "team_a_id": match.team_a_id,
        "team_b_id": match.team_b_id,
        "is_bye": match.is_bye,
        "moderator_id": match.moderator_id,
        "status": match.status,
        "status_label": display_name(match.status),
        "winner_id": match.winner_id,
        "room": match.room,
        "scheduled_time": _iso(match.scheduled_time),
        "judges": [assignment_to_dict(a) for a in match.assignments],
    }


def score_to_dict(score: Score) -> dict[str, Any]:
    return {
        "id": score.id,
        "match_id": score.match_id,
        "judge_id": score.judge_id,
        "team_id": score.team_id,
        "criteria_scores": score.criteria_scores,
        "comment_scores": score.comment_scores,
        "notes": score.notes,
        "is_submitted": score.is_submitted,
        "submitted_at": _iso(score.submitted_at),
    }


def log_to_dict(log) -> dict[str, Any]:
    data = {
        "id": log.id,
        "event_id": log.event_id,
        "team_id": log.team_id,
        "admin_id": log.admin_id,
        "admin_name": log.admin_name,
        "reason": log.reason,
        "created_at": _iso(log.created_at),
    }
    if hasattr(log, "wins_adj"):
        data.update(wins=log.wins_adj, losses=log.losses_adj, ties=log.ties_adj)
    else:
        data["adjustment"] = log.adjustment
    return data
