"""Request-scoped dependencies: database session, acting user, outbox dispatch."""

from typing import Callable, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from ethos.db.repository import TournamentRepository
from ethos.db.session import get_db
from ethos.errors import Forbidden
from ethos.permissions import Actor
from ethos.tasks.handlers import dispatch_pending_events


def current_actor(
    x_user_id: Optional[int] = Header(default=None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> Actor:
    """
    Resolve the acting user from the X-User-Id header.

    Identity is issued upstream (OAuth/JWT gateway); this layer only trusts
    the resolved user id it is handed.
    """
    if x_user_id is None:
        raise Forbidden("Authentication required", code="UNAUTHENTICATED")
    user = TournamentRepository(db).find_user(x_user_id)
    if user is None or not user.is_active:
        raise Forbidden("Unknown or inactive user", code="UNAUTHENTICATED")
    return Actor.from_user(user)


def get_outbox_dispatch() -> Callable[[], object]:
    """Callable run as a background task once a request has committed."""
    return dispatch_pending_events
