"""
Ethos - Ethics Bowl Tournament Engine

Administers multi-round ethics bowl / debate tournaments. The core is the
match lifecycle and scoring engine: a per-match state machine that gates
judge scoring, coordinates concurrent judges, auto-submits stale scoring
windows, picks winners, and compensates bye teams.

Main components:
- match_statuses: Q-parameterized match status table
- services.assignments: Judge assignment ledger
- services.scores: Score store (draft -> submitted lifecycle)
- services.matches: Match state machine
- scoring.outcome: Winner calculation from submitted scores
- services.byes: Bye compensation engine
- services.adjustments: Admin vote/win/score-diff adjustment logs
- tasks: Post-commit outbox dispatch
- web: FastAPI REST API
"""

__version__ = "1.0.0"
