"""Score store endpoints."""

from typing import Callable

from fastapi import APIRouter, BackgroundTasks, Depends, Response
from sqlalchemy.orm import Session

from ethos.db.session import get_db
from ethos.errors import NotFound
from ethos.permissions import Actor
from ethos.services.scores import ScoreStore
from ethos.web.deps import current_actor, get_outbox_dispatch
from ethos.web.schemas import (
    ScoreRequest,
    SubmitScoresRequest,
    UpdateScoreRequest,
    ok,
    score_to_dict,
)

router = APIRouter(tags=["scores"])


@router.get("/matches/{match_id}/scores")
def list_scores(
    match_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    return ok([score_to_dict(s) for s in ScoreStore(db).list_for_match(match_id, actor)])


@router.post("/matches/{match_id}/scores")
def upsert_score(
    match_id: int,
    body: ScoreRequest,
    response: Response,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    score, created = ScoreStore(db).upsert(
        match_id,
        body.team_id,
        body.criteria_scores,
        body.comment_scores,
        actor,
        notes=body.notes,
    )
    db.commit()
    response.status_code = 201 if created else 200
    return ok(score_to_dict(score), "Score created" if created else "Score updated")


@router.post("/matches/{match_id}/scores/submit")
def submit_scores(
    match_id: int,
    body: SubmitScoresRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
    dispatch: Callable = Depends(get_outbox_dispatch),
):
    result = ScoreStore(db).submit_batch(match_id, body.score_ids, actor)
    db.commit()
    if result.match_completed:
        background_tasks.add_task(dispatch)
    message = "Scores submitted; match completed" if result.match_completed else "Scores submitted"
    return ok(result.to_dict(), message)


@router.put("/matches/{match_id}/scores/{score_id}")
def update_score(
    match_id: int,
    score_id: int,
    body: UpdateScoreRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    store = ScoreStore(db)
    _require_in_match(store, score_id, match_id, actor)
    score = store.update(
        score_id,
        actor,
        criteria_scores=body.criteria_scores,
        comment_scores=body.comment_scores,
        notes=body.notes,
    )
    db.commit()
    return ok(score_to_dict(score), "Score updated")


@router.delete("/matches/{match_id}/scores/{score_id}")
def delete_score(
    match_id: int,
    score_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    store = ScoreStore(db)
    _require_in_match(store, score_id, match_id, actor)
    store.delete(score_id, actor)
    db.commit()
    return ok(None, "Score deleted")


def _require_in_match(store: ScoreStore, score_id: int, match_id: int, actor: Actor) -> None:
    if store.get(score_id, actor).match_id != match_id:
        raise NotFound(f"Score {score_id} not found in match {match_id}")
