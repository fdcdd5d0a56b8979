"""End-to-end API tests against an in-memory database."""

import pytest
from fastapi.testclient import TestClient

from ethos.db.models import ScoreDiffLog
from ethos.db.session import get_db
from ethos.tasks.handlers import build_default_registry
from ethos.tasks.outbox import OutboxDispatcher
from ethos.web.deps import get_outbox_dispatch
from ethos.web.main import app


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def override_dispatch():
        def dispatch():
            session = session_factory()
            try:
                return OutboxDispatcher(build_default_registry()).dispatch_pending(session)
            finally:
                session.close()

        return dispatch

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_outbox_dispatch] = override_dispatch
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def world(db_session, admin, make_user, make_event, make_teams):
    event = make_event()
    teams = make_teams(event, 3)
    moderator = make_user("moderator")
    judges = [make_user("judge") for _ in range(2)]
    db_session.commit()
    return {
        "event": event.id,
        "teams": [t.id for t in teams],
        "admin": admin.id,
        "moderator": moderator.id,
        "judges": [j.id for j in judges],
    }


def as_user(user_id: int) -> dict:
    return {"X-User-Id": str(user_id)}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["success"] is True


def test_requests_need_a_known_user(client, world):
    response = client.get(f"/events/{world['event']}/matches")
    assert response.status_code == 403
    assert response.json() == {
        "success": False,
        "message": "Authentication required",
        "error": "UNAUTHENTICATED",
    }

    response = client.get(f"/events/{world['event']}/matches", headers=as_user(9999))
    assert response.status_code == 403


def test_unknown_match_is_404(client, world):
    response = client.get("/matches/424242", headers=as_user(world["admin"]))
    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


def test_malformed_body_is_400(client, world):
    response = client.post(
        f"/events/{world['event']}/matches",
        json={"teamAId": "not a number"},
        headers=as_user(world["admin"]),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_FAILED"


def test_match_lifecycle(client, world, session_factory):
    event_id = world["event"]
    team_a, team_b, team_c = world["teams"]
    admin = as_user(world["admin"])
    moderator = as_user(world["moderator"])

    # Byes first: team C sits out round 1, team A sits out round 2
    for round_number, team_id in ((1, team_c), (2, team_a)):
        response = client.post(
            f"/events/{event_id}/bye-teams",
            json={"roundNumber": round_number, "teamId": team_id},
            headers=admin,
        )
        assert response.status_code == 200
        assert response.json()["data"]["match"]["is_bye"] is True

    response = client.post(
        f"/events/{event_id}/matches",
        json={"roundNumber": 1, "teamAId": team_a, "teamBId": team_b, "moderatorId": world["moderator"]},
        headers=admin,
    )
    assert response.status_code == 201
    match_id = response.json()["data"]["id"]
    assert response.json()["data"]["status"] == "draft"

    for number, judge_id in enumerate(world["judges"], start=1):
        response = client.post(f"/matches/{match_id}/judges", json={"judgeId": judge_id}, headers=admin)
        assert response.status_code == 201
        assert response.json()["data"]["judge_number"] == number

    response = client.post(f"/matches/{match_id}/judges", json={"judgeId": world["judges"][0]}, headers=admin)
    assert response.status_code == 409
    assert response.json()["success"] is False

    response = client.put(f"/matches/{match_id}/status", json={"status": "judge_question_9"}, headers=moderator)
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_STATUS"

    response = client.put(f"/matches/{match_id}/status", json={"status": "moderator_period_1"}, headers=moderator)
    assert response.status_code == 200
    assert response.json()["data"]["match"]["status_label"] == "Moderator Period 1"

    for judge_id in world["judges"]:
        judge = as_user(judge_id)
        score_ids = []
        for team_id, criteria in ((team_a, {"clarity": 10, "depth": 10}), (team_b, {"clarity": 5, "depth": 5})):
            response = client.post(
                f"/matches/{match_id}/scores",
                json={"teamId": team_id, "criteriaScores": criteria, "commentScores": []},
                headers=judge,
            )
            assert response.status_code == 201
            score_ids.append(response.json()["data"]["id"])

        response = client.post(
            f"/matches/{match_id}/scores",
            json={"teamId": team_b, "criteriaScores": {"clarity": 5, "depth": 5}},
            headers=judge,
        )
        assert response.status_code == 200

        own = client.get(f"/matches/{match_id}/scores", headers=judge).json()["data"]
        assert {s["judge_id"] for s in own} == {judge_id}

        response = client.post(f"/matches/{match_id}/scores/submit", json={"scoreIds": score_ids}, headers=judge)
        assert response.status_code == 200

    result = response.json()["data"]
    assert result["match_completed"] is True
    assert result["winner_id"] == team_a

    match = client.get(f"/matches/{match_id}", headers=admin).json()["data"]
    assert match["status"] == "completed"
    assert match["winner_id"] == team_a

    # The background dispatch reran bye compensation: A won by 20 points
    with session_factory() as session:
        (diff_log,) = session.query(ScoreDiffLog).filter_by(team_id=team_a).all()
        assert diff_log.adjustment == pytest.approx(20.0)

    standings = client.get(f"/events/{event_id}/standings", headers=admin).json()["data"]
    assert standings[0]["team_id"] == team_a
    assert standings[0]["wins"] == 2


def test_adjustments(client, world):
    event_id = world["event"]
    team_a = world["teams"][0]
    admin = as_user(world["admin"])

    response = client.post(
        f"/events/{event_id}/vote-adjustments",
        json={"adjustments": [{"teamId": team_a, "adjustment": 2, "reason": "Appeal upheld"}]},
        headers=as_user(world["moderator"]),
    )
    assert response.status_code == 403

    response = client.post(
        f"/events/{event_id}/vote-adjustments",
        json={"adjustments": [{"teamId": team_a, "adjustment": 2, "reason": "Appeal upheld"}]},
        headers=admin,
    )
    assert response.status_code == 201
    log_id = response.json()["data"][0]["id"]

    logs = client.get(f"/events/{event_id}/vote-logs", headers=admin).json()["data"]
    assert [log["id"] for log in logs] == [log_id]
    assert logs[0]["admin_id"] == str(world["admin"])

    response = client.delete(f"/events/{event_id}/vote-adjustments/{log_id}", headers=admin)
    assert response.status_code == 200
    assert client.get(f"/events/{event_id}/vote-logs", headers=admin).json()["data"] == []
