"""Bye team endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ethos.db.session import get_db
from ethos.permissions import Action, Actor, authorize
from ethos.services.byes import ByeCompensationEngine
from ethos.web.deps import current_actor
from ethos.web.schemas import ByeTeamRequest, match_to_dict, ok

router = APIRouter(tags=["byes"])


@router.get("/events/{event_id}/bye-teams")
def get_bye_teams(
    event_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    return ok(ByeCompensationEngine(db).get_bye_teams(event_id))


@router.post("/events/{event_id}/bye-teams")
def create_bye_team(
    event_id: int,
    body: ByeTeamRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    bye = ByeCompensationEngine(db).create_or_update_bye(
        event_id, body.round_number, body.team_id, actor,
    )
    db.commit()
    return ok({"match": match_to_dict(bye)}, "Bye team created/updated successfully")


@router.put("/events/{event_id}/bye-teams/recalculate")
def recalculate_bye_teams(
    event_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    authorize(actor, Action.MANAGE_EVENT)
    engine = ByeCompensationEngine(db)
    result = engine.recalculate_all(event_id)
    db.commit()
    return ok(
        {"recalculation": result.to_dict(), "bye_teams": engine.get_bye_teams(event_id)},
        "Bye team score differentials recalculated successfully",
    )
