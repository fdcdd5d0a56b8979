#!/usr/bin/env python3
"""
Recalculate bye team score differentials for an event.

Same operation as PUT /events/{id}/bye-teams/recalculate, for use from
cron or after bulk data fixes.

Usage:
    python scripts/recalculate_byes.py --event-id 3
    python scripts/recalculate_byes.py --event-id 3 --show
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ethos.db.session import get_session
from ethos.errors import EthosError
from ethos.services.byes import ByeCompensationEngine

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Recalculate bye compensation for an event")
    parser.add_argument("--event-id", type=int, required=True)
    parser.add_argument("--show", action="store_true", help="Print each bye team afterwards")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        with get_session() as session:
            engine = ByeCompensationEngine(session)
            result = engine.recalculate_all(args.event_id)
            rows = engine.get_bye_teams(args.event_id) if args.show else []
    except EthosError as exc:
        logger.error("%s", exc.message)
        return 1

    print(result.summary())
    for row in rows:
        print(
            f"  Round {row['round_number']}: {row['team']['name']} "
            f"{row['score_differential']:+.2f} ({row['method']}) - {row['explanation']}"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
