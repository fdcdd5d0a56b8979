"""Tests for the adjustment ledger."""

import pytest

from ethos.errors import Forbidden, NotFound, PreconditionFailed, ValidationFailed
from ethos.permissions import Actor
from ethos.services.adjustments import (
    AdjustmentLedger,
    ScoreDiffAdjustment,
    VoteAdjustment,
    WinAdjustment,
)


@pytest.fixture
def event_teams(make_event, make_teams):
    event = make_event()
    return event, make_teams(event, 3)


def test_vote_adjustments_are_stamped_with_the_admin(db_session, event_teams, admin_actor):
    event, teams = event_teams
    ledger = AdjustmentLedger(db_session)

    logs = ledger.apply_vote_adjustments(
        event.id,
        [VoteAdjustment(teams[0].id, 1.5, "Late judge"), VoteAdjustment(teams[1].id, -1)],
        admin_actor,
    )

    assert [log.adjustment for log in logs] == [1.5, -1.0]
    assert logs[0].admin_id == str(admin_actor.id)
    assert logs[0].admin_name == "Ada Tester"
    assert logs[0].reason == "Late judge"


def test_win_adjustments(db_session, event_teams, admin_actor):
    event, teams = event_teams
    ledger = AdjustmentLedger(db_session)

    (log,) = ledger.apply_win_adjustments(event.id, [WinAdjustment(teams[0].id, wins=1, losses=-1)], admin_actor)
    assert (log.wins_adj, log.losses_adj, log.ties_adj) == (1, -1, 0)

    with pytest.raises(ValidationFailed):
        ledger.apply_win_adjustments(event.id, [WinAdjustment(teams[0].id)], admin_actor)


@pytest.mark.parametrize("amount", [0, float("inf"), float("nan"), True])
def test_rejects_meaningless_amounts(db_session, event_teams, admin_actor, amount):
    event, teams = event_teams
    with pytest.raises(ValidationFailed):
        AdjustmentLedger(db_session).apply_score_diff_adjustments(
            event.id, [ScoreDiffAdjustment(teams[0].id, amount)], admin_actor,
        )


def test_rejects_foreign_teams_and_empty_batches(db_session, event_teams, admin_actor, make_event, make_teams):
    event, _ = event_teams
    stranger = make_teams(make_event(), 1)[0]
    ledger = AdjustmentLedger(db_session)

    with pytest.raises(ValidationFailed):
        ledger.apply_vote_adjustments(event.id, [VoteAdjustment(stranger.id, 1)], admin_actor)
    with pytest.raises(ValidationFailed):
        ledger.apply_vote_adjustments(event.id, [], admin_actor)


def test_admin_only(db_session, event_teams, make_user):
    event, teams = event_teams
    moderator = Actor.from_user(make_user("moderator"))
    ledger = AdjustmentLedger(db_session)

    with pytest.raises(Forbidden):
        ledger.apply_vote_adjustments(event.id, [VoteAdjustment(teams[0].id, 1)], moderator)
    with pytest.raises(Forbidden):
        ledger.list_logs("vote", event.id, moderator)


def test_completed_event_is_frozen(db_session, make_event, make_teams, admin_actor):
    event = make_event(status="completed")
    team = make_teams(event, 1)[0]

    with pytest.raises(PreconditionFailed):
        AdjustmentLedger(db_session).apply_vote_adjustments(event.id, [VoteAdjustment(team.id, 1)], admin_actor)


def test_list_and_delete(db_session, event_teams, admin_actor):
    event, teams = event_teams
    ledger = AdjustmentLedger(db_session)
    first, second = ledger.apply_score_diff_adjustments(
        event.id,
        [ScoreDiffAdjustment(teams[0].id, 2.5), ScoreDiffAdjustment(teams[1].id, -4)],
        admin_actor,
    )

    assert [log.id for log in ledger.list_logs("score-diff", event.id, admin_actor)] == [second.id, first.id]
    assert [log.id for log in ledger.list_logs("score-diff", event.id, admin_actor, team_id=teams[0].id)] == [first.id]

    ledger.delete_log("score-diff", event.id, first.id, admin_actor)
    assert [log.id for log in ledger.list_logs("score-diff", event.id, admin_actor)] == [second.id]

    with pytest.raises(NotFound):
        ledger.delete_log("score-diff", event.id, first.id, admin_actor)
    with pytest.raises(NotFound):
        ledger.delete_log("vote", event.id, second.id, admin_actor)
    with pytest.raises(ValidationFailed):
        ledger.list_logs("points", event.id, admin_actor)
