"""
Tournament core services.

Each service wraps a session through TournamentRepository and only
flushes; callers own the transaction.
"""

from ethos.services.adjustments import AdjustmentLedger
from ethos.services.assignments import AssignmentLedger
from ethos.services.byes import ByeCompensationEngine
from ethos.services.matches import MatchService
from ethos.services.scores import ScoreStore

__all__ = [
    "AdjustmentLedger",
    "AssignmentLedger",
    "ByeCompensationEngine",
    "MatchService",
    "ScoreStore",
]
