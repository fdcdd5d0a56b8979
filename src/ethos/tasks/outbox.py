"""
Transactional outbox for post-commit side effects.

A service that completes a match calls ``record_event`` inside its own
transaction. After the caller commits, ``OutboxDispatcher`` picks up
pending rows and runs the registered handler for each one in its own
transaction. A failing handler is rolled back and the row is marked
``failed``; the match that produced the event is never touched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Literal, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ethos.db.models import OutboxEvent

logger = logging.getLogger(__name__)

MATCH_COMPLETED = "match_completed"

DispatchStatus = Literal["processed", "failed"]
EventHandler = Callable[[Session, dict[str, Any]], Optional[dict[str, Any]]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def record_event(session: Session, kind: str, payload: dict[str, Any]) -> OutboxEvent:
    """Add a pending outbox row to the caller's transaction."""
    event = OutboxEvent(kind=kind, payload=dict(payload), status="pending", attempts=0)
    session.add(event)
    return event


@dataclass(frozen=True)
class HandlerDefinition:
    """Registered outbox handler."""

    kind: str
    handler: EventHandler
    description: str = ""


class HandlerRegistry:
    """In-memory registry of handlers keyed by event kind."""

    def __init__(self) -> None:
        self._handlers: dict[str, HandlerDefinition] = {}

    def register(self, definition: HandlerDefinition) -> None:
        if definition.kind in self._handlers:
            raise ValueError(f"Handler already registered: {definition.kind}")
        self._handlers[definition.kind] = definition

    def get(self, kind: str) -> HandlerDefinition:
        try:
            return self._handlers[kind]
        except KeyError as exc:
            raise KeyError(f"Unknown outbox event kind: {kind}") from exc

    def kinds(self) -> list[str]:
        return list(self._handlers)


@dataclass
class DispatchResult:
    """Outcome of handling one outbox event."""

    event_id: int
    kind: str
    status: DispatchStatus
    started_at: datetime
    ended_at: datetime
    metrics: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def duration_s(self) -> float:
        return (self.ended_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "kind": self.kind,
            "status": self.status,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat(),
            "duration_s": self.duration_s,
            "metrics": self.metrics,
            "error": self.error,
        }


class OutboxDispatcher:
    """Runs pending outbox events through a HandlerRegistry."""

    def __init__(self, registry: HandlerRegistry):
        self.registry = registry

    def pending(self, session: Session, limit: Optional[int] = None) -> list[OutboxEvent]:
        stmt = (
            select(OutboxEvent)
            .where(OutboxEvent.status == "pending")
            .order_by(OutboxEvent.id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(session.scalars(stmt))

    def dispatch_pending(self, session: Session, limit: Optional[int] = None) -> list[DispatchResult]:
        """
        Handle up to ``limit`` pending events, committing after each one.

        Returns one DispatchResult per event attempted.
        """
        # Snapshot ids first; each event commits or rolls back on its own
        targets = [(event.id, event.kind, dict(event.payload or {})) for event in self.pending(session, limit)]
        results = []
        for event_id, kind, payload in targets:
            results.append(self._dispatch_one(session, event_id, kind, payload))
        return results

    def _dispatch_one(
        self,
        session: Session,
        event_id: int,
        kind: str,
        payload: dict[str, Any],
    ) -> DispatchResult:
        started_at = _utc_now()
        try:
            definition = self.registry.get(kind)
            metrics = definition.handler(session, payload) or {}
            event = session.get(OutboxEvent, event_id)
            event.status = "processed"
            event.attempts += 1
            event.processed_at = _utc_now()
            event.last_error = None
            session.commit()
        except Exception as exc:
            session.rollback()
            logger.exception("Outbox event %s (%s) failed", event_id, kind)
            event = session.get(OutboxEvent, event_id)
            if event is not None:
                event.status = "failed"
                event.attempts += 1
                event.last_error = f"{type(exc).__name__}: {exc}"
                session.commit()
            return DispatchResult(
                event_id=event_id,
                kind=kind,
                status="failed",
                started_at=started_at,
                ended_at=_utc_now(),
                error=str(exc),
            )

        return DispatchResult(
            event_id=event_id,
            kind=kind,
            status="processed",
            started_at=started_at,
            ended_at=_utc_now(),
            metrics=metrics,
        )

    def retry_failed(self, session: Session) -> int:
        """Move failed events back to pending. Returns how many were reset."""
        failed = list(session.scalars(select(OutboxEvent).where(OutboxEvent.status == "failed")))
        for event in failed:
            event.status = "pending"
        session.flush()
        return len(failed)
