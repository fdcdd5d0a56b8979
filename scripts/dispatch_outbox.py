#!/usr/bin/env python3
"""
Drain pending outbox events (MatchCompleted -> bye recalculation).

The API dispatches after each commit; this script picks up anything left
behind, e.g. after a crash between commit and dispatch.

Usage:
    python scripts/dispatch_outbox.py
    python scripts/dispatch_outbox.py --retry-failed --limit 200
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ethos.db.session import get_session
from ethos.tasks.handlers import build_default_registry, dispatch_pending_events
from ethos.tasks.outbox import OutboxDispatcher


def main() -> int:
    parser = argparse.ArgumentParser(description="Dispatch pending outbox events")
    parser.add_argument("--limit", type=int, default=None, help="Max events to handle")
    parser.add_argument(
        "--retry-failed",
        action="store_true",
        help="Move failed events back to pending first",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.retry_failed:
        with get_session() as session:
            reset = OutboxDispatcher(build_default_registry()).retry_failed(session)
        print(f"Reset {reset} failed events to pending")

    results = dispatch_pending_events(limit=args.limit)
    failed = [r for r in results if r.status == "failed"]
    for result in results:
        line = f"  #{result.event_id} {result.kind}: {result.status} ({result.duration_s:.2f}s)"
        if result.error:
            line += f" - {result.error}"
        print(line)
    print(f"Dispatched {len(results)} events, {len(failed)} failed")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
