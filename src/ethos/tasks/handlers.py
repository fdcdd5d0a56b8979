"""Default outbox handlers and the entry point used after a request commits."""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from ethos.config import settings
from ethos.db.session import get_session
from ethos.services.byes import ByeCompensationEngine
from ethos.tasks.outbox import (
    MATCH_COMPLETED,
    DispatchResult,
    HandlerDefinition,
    HandlerRegistry,
    OutboxDispatcher,
)

logger = logging.getLogger(__name__)


def handle_match_completed(session: Session, payload: dict[str, Any]) -> dict[str, Any]:
    """Recalculate bye compensation for the event the match belongs to."""
    event_id = payload["event_id"]
    result = ByeCompensationEngine(session).recalculate_all(event_id)
    return result.to_dict()


def build_default_registry() -> HandlerRegistry:
    registry = HandlerRegistry()
    registry.register(HandlerDefinition(
        kind=MATCH_COMPLETED,
        handler=handle_match_completed,
        description="Recalculate bye team differentials after a match completes",
    ))
    return registry


def dispatch_pending_events(limit: Optional[int] = None) -> list[DispatchResult]:
    """
    Drain pending outbox events in a fresh session.

    Runs as a FastAPI background task after the request commits, and from
    scripts/dispatch_outbox.py.
    """
    dispatcher = OutboxDispatcher(build_default_registry())
    with get_session() as session:
        results = dispatcher.dispatch_pending(session, limit or settings.outbox_batch_size)
    failed = [r for r in results if r.status == "failed"]
    if results:
        logger.info(
            "Dispatched %s outbox events (%s failed)", len(results), len(failed),
        )
    return results
