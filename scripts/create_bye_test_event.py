#!/usr/bin/env python3
"""
Create a test event with 11 teams and 5 rounds to exercise bye handling.

Each round rotates the bye (team index = round - 1) and pairs the other
ten teams into five draft matches. Bye differentials start at +3.0 and
move to the team's average once its real matches complete.

Usage:
    python scripts/create_bye_test_event.py
    python scripts/create_bye_test_event.py --admin-email admin@example.com
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import select

from ethos.db.models import Event, Team, User
from ethos.db.session import get_session
from ethos.permissions import Actor
from ethos.services.byes import ByeCompensationEngine
from ethos.services.matches import MatchService

TEAM_NAMES = [
    "Alpha Team", "Beta Team", "Gamma Team", "Delta Team", "Epsilon Team",
    "Zeta Team", "Eta Team", "Theta Team", "Iota Team", "Kappa Team", "Lambda Team",
]

RUBRIC = {
    "criteria": {
        "Clarity": {"maxScore": 10},
        "Thoughtfulness": {"maxScore": 10},
        "Focus": {"maxScore": 10},
        "Avoidance of Fallacies": {"maxScore": 10},
        "Responsiveness": {"maxScore": 10},
    },
    "commentQuestionsCount": 3,
    "commentMaxScore": 20,
}

TOTAL_ROUNDS = 5


def main() -> int:
    parser = argparse.ArgumentParser(description="Create an 11-team bye test event")
    parser.add_argument("--admin-email", default=None, help="Admin to attribute the event to")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    with get_session() as session:
        stmt = select(User).where(User.role == "admin", User.is_active.is_(True))
        if args.admin_email:
            stmt = stmt.where(User.email == args.admin_email)
        admin = session.scalars(stmt.order_by(User.id)).first()
        if admin is None:
            print("No admin user found. Create one with scripts/create_user.py first.", file=sys.stderr)
            return 1
        actor = Actor.from_user(admin)

        event = Event(
            name="Bye Team Test Tournament (11 Teams)",
            description="Test event with 11 teams to verify bye team handling",
            total_rounds=TOTAL_ROUNDS,
            current_round=1,
            status="active",
            created_by=admin.id,
            scoring_criteria=RUBRIC,
        )
        session.add(event)
        session.flush()

        teams = []
        for i, name in enumerate(TEAM_NAMES):
            team = Team(event_id=event.id, name=name, school=f"School {chr(65 + i)}")
            session.add(team)
            teams.append(team)
        session.flush()

        matches = MatchService(session)
        byes = ByeCompensationEngine(session)
        for round_number in range(1, TOTAL_ROUNDS + 1):
            bye_index = (round_number - 1) % len(teams)
            byes.create_or_update_bye(event.id, round_number, teams[bye_index].id, actor)
            playing = [t for i, t in enumerate(teams) if i != bye_index]
            for slot in range(len(playing) // 2):
                matches.create_match(
                    event.id,
                    round_number,
                    playing[slot * 2].id,
                    playing[slot * 2 + 1].id,
                    actor,
                    room=f"Room {slot + 1}",
                )
            print(f"Round {round_number}: bye = {teams[bye_index].name}, {len(playing) // 2} matches")

        print(f"\nEvent created: id={event.id} ({len(teams)} teams, {TOTAL_ROUNDS} rounds)")
        for row in byes.get_bye_teams(event.id):
            print(f"  Round {row['round_number']}: {row['team']['name']} {row['score_differential']:+.1f} ({row['method']})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
