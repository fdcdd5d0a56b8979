"""Match creation, listing and status transitions."""

from typing import Callable, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ethos.db.repository import TournamentRepository
from ethos.db.session import get_db
from ethos.permissions import Actor
from ethos.services.matches import MatchService
from ethos.web.deps import current_actor, get_outbox_dispatch
from ethos.web.schemas import CreateMatchRequest, UpdateStatusRequest, match_to_dict, ok

router = APIRouter(tags=["matches"])


@router.post("/events/{event_id}/matches", status_code=201)
def create_match(
    event_id: int,
    body: CreateMatchRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    match = MatchService(db).create_match(
        event_id,
        body.round_number,
        body.team_a_id,
        body.team_b_id,
        actor,
        moderator_id=body.moderator_id,
        room=body.room,
        scheduled_time=body.scheduled_time,
    )
    db.commit()
    message = "Bye match created" if match.is_bye else "Match created"
    return ok(match_to_dict(match), message)


@router.get("/events/{event_id}/matches")
def list_matches(
    event_id: int,
    round_number: Optional[int] = Query(default=None, alias="round"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    matches = MatchService(db).list_matches(event_id, round_number)
    return ok([match_to_dict(m) for m in matches])


@router.get("/matches/{match_id}")
def get_match(
    match_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    return ok(match_to_dict(TournamentRepository(db).get_match(match_id)))


@router.put("/matches/{match_id}/status")
def update_status(
    match_id: int,
    body: UpdateStatusRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
    dispatch: Callable = Depends(get_outbox_dispatch),
):
    result = MatchService(db).advance(match_id, body.status, actor)
    db.commit()
    if result.completed:
        background_tasks.add_task(dispatch)
    match = TournamentRepository(db).get_match(match_id)
    return ok(
        {"match": match_to_dict(match), "transition": result.to_dict()},
        f"Match status updated to {match_to_dict(match)['status_label']}",
    )


@router.get("/matches/{match_id}/status-options")
def status_options(
    match_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    return ok(MatchService(db).status_options(match_id, actor))
