#!/usr/bin/env python3
"""Create or update an Ethos user (admin, moderator or judge)."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import select

from ethos.db.models import USER_ROLES, User
from ethos.db.session import get_session


def main() -> int:
    parser = argparse.ArgumentParser(description="Create or update a user")
    parser.add_argument("--email", required=True, help="User email (unique)")
    parser.add_argument("--first-name", required=True)
    parser.add_argument("--last-name", default="")
    parser.add_argument("--role", required=True, choices=USER_ROLES)
    parser.add_argument(
        "--inactive",
        action="store_true",
        help="Create/update user as inactive",
    )
    args = parser.parse_args()

    with get_session() as session:
        user = session.scalars(select(User).where(User.email == args.email)).first()
        created = user is None
        if created:
            user = User(email=args.email)
            session.add(user)
        user.first_name = args.first_name
        user.last_name = args.last_name
        user.role = args.role
        user.is_active = not args.inactive
        session.flush()
        print(
            f"User {'created' if created else 'updated'}: id={user.id}, "
            f"email={user.email}, role={user.role}, active={user.is_active}"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
