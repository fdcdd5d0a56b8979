"""Event standings endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ethos.db.session import get_db
from ethos.permissions import Actor
from ethos.scoring.standings import compute_standings
from ethos.web.deps import current_actor
from ethos.web.schemas import ok

router = APIRouter(tags=["standings"])


@router.get("/events/{event_id}/standings")
def get_standings(
    event_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    return ok([s.to_dict() for s in compute_standings(db, event_id)])
