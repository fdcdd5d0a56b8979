"""
Pytest configuration and fixtures.

Every test gets its own in-memory SQLite database, plus factory
fixtures for the tournament entities the services work on.
"""

import itertools

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ethos.db.models import Base, Event, Match, MatchAssignment, Score, Team, User
from ethos.permissions import Actor

RUBRIC = {
    "criteria": {
        "clarity": {"maxScore": 10, "description": "Clear presentation"},
        "depth": {"maxScore": 10, "description": "Depth of analysis"},
    },
    "commentQuestionsCount": 3,
    "commentMaxScore": 20,
}


@pytest.fixture
def test_engine():
    """
    Fresh in-memory SQLite engine for one test.

    StaticPool keeps the single connection alive so the FastAPI test
    client (which runs handlers in a thread pool) sees the same database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(bind=test_engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


_emails = itertools.count(1)


@pytest.fixture
def make_user(db_session):
    def _make(role: str = "judge", first_name: str = None, last_name: str = "Tester", active: bool = True) -> User:
        n = next(_emails)
        user = User(
            email=f"{role}{n}@example.com",
            first_name=first_name or f"{role.title()}{n}",
            last_name=last_name,
            role=role,
            is_active=active,
        )
        db_session.add(user)
        db_session.flush()
        return user

    return _make


@pytest.fixture
def admin(make_user) -> User:
    return make_user("admin", first_name="Ada")


@pytest.fixture
def admin_actor(admin) -> Actor:
    return Actor.from_user(admin)


@pytest.fixture
def make_event(db_session):
    def _make(total_rounds: int = 3, rubric=RUBRIC, status: str = "active", **kwargs) -> Event:
        event = Event(
            name=kwargs.pop("name", "Regional Ethics Bowl"),
            total_rounds=total_rounds,
            status=status,
            scoring_criteria=rubric,
            **kwargs,
        )
        db_session.add(event)
        db_session.flush()
        return event

    return _make


@pytest.fixture
def make_teams(db_session):
    def _make(event: Event, count: int) -> list[Team]:
        teams = [Team(event_id=event.id, name=f"Team {chr(65 + i)}") for i in range(count)]
        db_session.add_all(teams)
        db_session.flush()
        return teams

    return _make


@pytest.fixture
def make_match(db_session):
    def _make(
        event: Event,
        team_a: Team,
        team_b: Team,
        round_number: int = 1,
        status: str = "draft",
        moderator: User = None,
        judges: list[User] = (),
    ) -> Match:
        match = Match(
            event_id=event.id,
            round_number=round_number,
            team_a_id=team_a.id,
            team_b_id=team_b.id if team_b is not None else None,
            status=status,
            moderator_id=moderator.id if moderator is not None else None,
        )
        db_session.add(match)
        db_session.flush()
        for number, judge in enumerate(judges, start=1):
            db_session.add(MatchAssignment(match_id=match.id, judge_id=judge.id, judge_number=number))
        db_session.flush()
        db_session.expire(match, ["assignments"])
        return match

    return _make


@pytest.fixture
def make_score(db_session):
    def _make(
        match: Match,
        judge: User,
        team: Team,
        criteria: dict = None,
        comments: list = None,
        submitted: bool = False,
    ) -> Score:
        score = Score(
            match_id=match.id,
            judge_id=judge.id,
            team_id=team.id,
            criteria_scores=criteria if criteria is not None else {"clarity": 5, "depth": 5},
            comment_scores=comments if comments is not None else [],
            is_submitted=submitted,
        )
        db_session.add(score)
        db_session.flush()
        return score

    return _make
