"""Tests for the capability check."""

import pytest

from ethos.db.models import Match, MatchAssignment, Score
from ethos.errors import Forbidden
from ethos.permissions import Action, Actor, Role, authorize, can

ADMIN = Actor(id=1, role=Role.ADMIN, name="Ada Admin")
MODERATOR = Actor(id=2, role=Role.MODERATOR, name="Mo Derator")
OTHER_MODERATOR = Actor(id=3, role=Role.MODERATOR)
JUDGE = Actor(id=4, role=Role.JUDGE)
OTHER_JUDGE = Actor(id=5, role=Role.JUDGE)


def _match():
    match = Match(id=10, event_id=1, round_number=1, team_a_id=1, team_b_id=2, moderator_id=MODERATOR.id)
    match.assignments = [MatchAssignment(judge_id=JUDGE.id, judge_number=1)]
    return match


@pytest.mark.parametrize("action", list(Action))
def test_admin_can_do_everything(action):
    assert can(ADMIN, action, _match())


def test_bound_moderator_controls_only_their_match():
    match = _match()
    assert can(MODERATOR, Action.ADVANCE_MATCH, match)
    assert not can(MODERATOR, Action.MANAGE_ASSIGNMENTS, match)
    assert can(MODERATOR, Action.VIEW_ALL_SCORES, match)
    assert not can(OTHER_MODERATOR, Action.ADVANCE_MATCH, match)
    assert not can(MODERATOR, Action.OVERRIDE, match)
    assert not can(MODERATOR, Action.MANAGE_EVENT)


def test_judges_score_only_assigned_matches():
    match = _match()
    assert can(JUDGE, Action.SCORE_MATCH, match)
    assert not can(OTHER_JUDGE, Action.SCORE_MATCH, match)
    assert not can(JUDGE, Action.ADVANCE_MATCH, match)
    # A moderator is never a scoring judge
    assert not can(MODERATOR, Action.SCORE_MATCH, match)


def test_score_ownership():
    score = Score(match_id=10, judge_id=JUDGE.id, team_id=1)
    assert can(JUDGE, Action.MODIFY_SCORE, score)
    assert not can(OTHER_JUDGE, Action.MODIFY_SCORE, score)


def test_authorize_raises_forbidden():
    with pytest.raises(Forbidden) as exc_info:
        authorize(OTHER_JUDGE, Action.SCORE_MATCH, _match())
    assert exc_info.value.status_code == 403
    authorize(JUDGE, Action.SCORE_MATCH, _match())
