"""
Capability checks for the tournament core.

Every role decision goes through ``can(actor, action, resource)``, a pure
function over the actor and the resource it targets. Services call
``authorize`` which raises Forbidden; nothing else in the codebase
compares role strings.

Permission matrix:

    ADVANCE_MATCH       admin, the match's bound moderator
    MANAGE_ASSIGNMENTS  admin
    OVERRIDE            admin (wipe a judge's scores)
    SCORE_MATCH         admin, a judge assigned to the match
    MODIFY_SCORE        admin, the judge who owns the score
    VIEW_ALL_SCORES     admin, the match's bound moderator
    MANAGE_EVENT        admin (create matches, byes, adjustments)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ethos.errors import Forbidden


class Role(str, Enum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    JUDGE = "judge"


class Action(str, Enum):
    ADVANCE_MATCH = "advance_match"
    MANAGE_ASSIGNMENTS = "manage_assignments"
    OVERRIDE = "override"
    SCORE_MATCH = "score_match"
    MODIFY_SCORE = "modify_score"
    VIEW_ALL_SCORES = "view_all_scores"
    MANAGE_EVENT = "manage_event"


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing an operation."""

    id: int
    role: Role
    name: str = ""

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(id=user.id, role=Role(user.role), name=user.full_name)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def _is_bound_moderator(actor: Actor, match: Any) -> bool:
    return match is not None and match.moderator_id == actor.id


def _is_assigned_judge(actor: Actor, match: Any) -> bool:
    if match is None or actor.role is not Role.JUDGE:
        return False
    return any(a.judge_id == actor.id for a in match.assignments)


def can(actor: Actor, action: Action, resource: Optional[Any] = None) -> bool:
    """
    Whether ``actor`` may perform ``action`` on ``resource``.

    ``resource`` is a Match for match-scoped actions and a Score for
    MODIFY_SCORE.
    """
    if actor.is_admin:
        return True

    if action in (Action.ADVANCE_MATCH, Action.VIEW_ALL_SCORES):
        return _is_bound_moderator(actor, resource)
    if action is Action.SCORE_MATCH:
        return _is_assigned_judge(actor, resource)
    if action is Action.MODIFY_SCORE:
        return resource is not None and resource.judge_id == actor.id
    # MANAGE_ASSIGNMENTS, OVERRIDE, MANAGE_EVENT
    return False


_DENIAL_MESSAGES = {
    Action.ADVANCE_MATCH: "Only the match moderator or an admin can change match status",
    Action.MANAGE_ASSIGNMENTS: "Only admins can manage judge assignments",
    Action.OVERRIDE: "Only admins can perform this operation",
    Action.SCORE_MATCH: "You are not assigned as a judge for this match",
    Action.MODIFY_SCORE: "You can only modify your own scores",
    Action.VIEW_ALL_SCORES: "Only the match moderator or an admin can view all scores",
    Action.MANAGE_EVENT: "Admin access required",
}


def authorize(actor: Actor, action: Action, resource: Optional[Any] = None) -> None:
    """Raise Forbidden unless ``can(actor, action, resource)``."""
    if not can(actor, action, resource):
        raise Forbidden(_DENIAL_MESSAGES[action])
