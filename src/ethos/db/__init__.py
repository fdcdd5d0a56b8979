"""
Database module for Ethos.

Provides SQLAlchemy ORM models, session management, and the repository
the services query through.

Usage:
    from ethos.db import get_session, TournamentRepository

    with get_session() as session:
        repo = TournamentRepository(session)
        match = repo.get_match(1)
"""

from ethos.db.models import (
    Base,
    Event,
    Match,
    MatchAssignment,
    OutboxEvent,
    Score,
    ScoreDiffLog,
    Team,
    User,
    VoteLog,
    WinLog,
)
from ethos.db.repository import TournamentRepository
from ethos.db.session import SessionLocal, get_engine, get_session

__all__ = [
    # Base
    "Base",
    # Models
    "User",
    "Event",
    "Team",
    "Match",
    "MatchAssignment",
    "Score",
    "VoteLog",
    "WinLog",
    "ScoreDiffLog",
    "OutboxEvent",
    # Data access
    "TournamentRepository",
    # Session
    "get_session",
    "get_engine",
    "SessionLocal",
]
