"""Tests for the score store."""

import pytest

from ethos.db.models import OutboxEvent
from ethos.errors import Forbidden, PreconditionFailed, ValidationFailed
from ethos.permissions import Actor
from ethos.services.scores import ScoreStore


@pytest.fixture
def scored_match(make_event, make_teams, make_user, make_match):
    event = make_event()
    team_a, team_b = make_teams(event, 2)
    moderator = make_user("moderator")
    judges = [make_user("judge") for _ in range(2)]
    match = make_match(event, team_a, team_b, status="moderator_period_1",
                       moderator=moderator, judges=judges)
    return match, team_a, team_b, moderator, judges


def test_upsert_creates_then_updates(db_session, scored_match):
    match, team_a, _, _, judges = scored_match
    store = ScoreStore(db_session)
    actor = Actor.from_user(judges[0])

    score, created = store.upsert(match.id, team_a.id, {"clarity": 7}, [12], actor)
    assert created
    assert score.is_submitted is False

    again, created = store.upsert(match.id, team_a.id, {"clarity": 8, "depth": 3}, [], actor, notes="better")
    assert not created
    assert again.id == score.id
    assert again.criteria_scores == {"clarity": 8, "depth": 3}
    assert again.notes == "better"


@pytest.mark.parametrize("status", ["draft", "completed"])
def test_scoring_closed_outside_scoring_statuses(db_session, scored_match, status):
    match, team_a, _, _, judges = scored_match
    match.status = status
    db_session.flush()

    with pytest.raises(PreconditionFailed) as exc_info:
        ScoreStore(db_session).upsert(match.id, team_a.id, {"clarity": 1}, [], Actor.from_user(judges[0]))
    assert exc_info.value.code == "SCORING_CLOSED"


def test_only_assigned_judges_and_admins_score(db_session, scored_match, make_user, admin_actor):
    match, team_a, _, moderator, _ = scored_match
    store = ScoreStore(db_session)

    with pytest.raises(Forbidden):
        store.upsert(match.id, team_a.id, {"clarity": 1}, [], Actor.from_user(make_user("judge")))
    with pytest.raises(Forbidden):
        store.upsert(match.id, team_a.id, {"clarity": 1}, [], Actor.from_user(moderator))

    score, created = store.upsert(match.id, team_a.id, {"clarity": 1}, [], admin_actor)
    assert created and score.judge_id == admin_actor.id


def test_rejects_foreign_team_and_bad_values(db_session, scored_match, make_teams):
    match, team_a, _, _, judges = scored_match
    store = ScoreStore(db_session)
    actor = Actor.from_user(judges[0])
    outsider = make_teams(match.event, 1)[0]

    with pytest.raises(ValidationFailed):
        store.upsert(match.id, outsider.id, {"clarity": 1}, [], actor)
    with pytest.raises(ValidationFailed):
        store.upsert(match.id, team_a.id, {"clarity": 11}, [], actor)
    with pytest.raises(ValidationFailed):
        store.upsert(match.id, team_a.id, {"charisma": 1}, [], actor)
    with pytest.raises(ValidationFailed):
        store.upsert(match.id, team_a.id, {"clarity": 1}, [1, 2, 3, 4], actor)


def test_submitted_scores_are_immutable(db_session, scored_match, make_score):
    match, team_a, _, _, judges = scored_match
    score = make_score(match, judges[0], team_a, submitted=True)
    store = ScoreStore(db_session)
    actor = Actor.from_user(judges[0])

    with pytest.raises(PreconditionFailed) as exc_info:
        store.upsert(match.id, team_a.id, {"clarity": 1}, [], actor)
    assert exc_info.value.code == "SCORE_SUBMITTED"
    with pytest.raises(PreconditionFailed):
        store.update(score.id, actor, criteria_scores={"clarity": 2})
    with pytest.raises(PreconditionFailed):
        store.delete(score.id, actor)


def test_update_and_delete_need_ownership(db_session, scored_match, make_score):
    match, team_a, _, _, judges = scored_match
    score = make_score(match, judges[0], team_a)
    store = ScoreStore(db_session)

    with pytest.raises(Forbidden):
        store.update(score.id, Actor.from_user(judges[1]), comment_scores=[5])

    updated = store.update(score.id, Actor.from_user(judges[0]), comment_scores=[5])
    assert updated.comment_scores == [5]
    assert updated.criteria_scores == {"clarity": 5, "depth": 5}

    with pytest.raises(Forbidden):
        store.delete(score.id, Actor.from_user(judges[1]))
    store.delete(score.id, Actor.from_user(judges[0]))
    assert store.list_for_match(match.id, Actor.from_user(judges[0])) == []


def test_window_enforcement(db_session, scored_match, admin_actor):
    match, team_a, _, _, judges = scored_match
    match.status = "judge_question_1"
    db_session.flush()
    second_judge = Actor.from_user(judges[1])

    with pytest.raises(PreconditionFailed) as exc_info:
        ScoreStore(db_session, enforce_windows=True).upsert(match.id, team_a.id, {"clarity": 1}, [], second_judge)
    assert exc_info.value.code == "OUTSIDE_WINDOW"

    ScoreStore(db_session, enforce_windows=True).upsert(
        match.id, team_a.id, {"clarity": 1}, [], Actor.from_user(judges[0]))
    ScoreStore(db_session, enforce_windows=True).upsert(match.id, team_a.id, {"clarity": 1}, [], admin_actor)
    # Advisory mode lets anyone assigned write
    _, created = ScoreStore(db_session, enforce_windows=False).upsert(
        match.id, team_a.id, {"clarity": 1}, [], second_judge)
    assert created


def test_submit_batch_requires_both_teams(db_session, scored_match, make_score):
    match, team_a, _, _, judges = scored_match
    score = make_score(match, judges[0], team_a)

    with pytest.raises(ValidationFailed) as exc_info:
        ScoreStore(db_session).submit_batch(match.id, [score.id], Actor.from_user(judges[0]))
    assert exc_info.value.code == "INCOMPLETE_SUBMISSION"


def test_submit_batch_rejects_other_judges_scores(db_session, scored_match, make_score):
    match, team_a, team_b, _, judges = scored_match
    ids = [make_score(match, judges[0], team).id for team in (team_a, team_b)]
    store = ScoreStore(db_session)

    with pytest.raises(Forbidden):
        store.submit_batch(match.id, ids, Actor.from_user(judges[1]))

    mixed = [ids[0], make_score(match, judges[1], team_b).id]
    with pytest.raises(ValidationFailed):
        store.submit_batch(match.id, mixed, Actor.from_user(judges[0]))


def test_last_submission_completes_match(db_session, scored_match, make_score):
    match, team_a, team_b, _, judges = scored_match
    store = ScoreStore(db_session)

    first = [
        make_score(match, judges[0], team_a, criteria={"clarity": 8, "depth": 8}).id,
        make_score(match, judges[0], team_b).id,
    ]
    result = store.submit_batch(match.id, first + first[:1], Actor.from_user(judges[0]))
    assert result.submitted_ids == first
    assert not result.match_completed
    assert match.status == "moderator_period_1"

    second = [
        make_score(match, judges[1], team_a, criteria={"clarity": 6, "depth": 6}).id,
        make_score(match, judges[1], team_b).id,
    ]
    result = store.submit_batch(match.id, second, Actor.from_user(judges[1]))

    assert result.match_completed
    assert result.winner_id == team_a.id
    assert match.status == "completed"
    assert match.winner_id == team_a.id
    events = db_session.query(OutboxEvent).all()
    assert [(e.kind, e.payload["match_id"]) for e in events] == [("match_completed", match.id)]

    with pytest.raises(PreconditionFailed):
        store.submit_batch(match.id, second, Actor.from_user(judges[1]))


def test_resubmitting_is_rejected(db_session, scored_match, make_score):
    match, team_a, team_b, _, judges = scored_match
    ids = [make_score(match, judges[0], team).id for team in (team_a, team_b)]
    store = ScoreStore(db_session)
    store.submit_batch(match.id, ids, Actor.from_user(judges[0]))

    with pytest.raises(PreconditionFailed) as exc_info:
        store.submit_batch(match.id, ids, Actor.from_user(judges[0]))
    assert exc_info.value.code == "SCORE_SUBMITTED"


def test_force_submit_judge(db_session, scored_match, make_score):
    match, team_a, team_b, _, judges = scored_match
    make_score(match, judges[0], team_a)
    make_score(match, judges[0], team_b, submitted=True)
    make_score(match, judges[1], team_a)

    assert ScoreStore(db_session).force_submit_judge(match.id, judges[0].id) == 1
    assert ScoreStore(db_session).force_submit_judge(match.id, judges[0].id) == 0


def test_list_visibility(db_session, scored_match, make_score, make_user):
    match, team_a, _, moderator, judges = scored_match
    make_score(match, judges[0], team_a)
    make_score(match, judges[1], team_a)
    store = ScoreStore(db_session)

    assert len(store.list_for_match(match.id, Actor.from_user(moderator))) == 2
    own = store.list_for_match(match.id, Actor.from_user(judges[0]))
    assert [s.judge_id for s in own] == [judges[0].id]
    with pytest.raises(Forbidden):
        store.list_for_match(match.id, Actor.from_user(make_user("judge")))
