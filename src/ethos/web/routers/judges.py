"""Judge assignment endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ethos.db.session import get_db
from ethos.permissions import Actor
from ethos.services.assignments import AssignmentLedger
from ethos.web.deps import current_actor
from ethos.web.schemas import (
    AssignJudgeRequest,
    ReplaceJudgeRequest,
    assignment_to_dict,
    ok,
)

router = APIRouter(tags=["judges"])


@router.get("/matches/{match_id}/judges")
def list_judges(
    match_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    return ok([assignment_to_dict(a) for a in AssignmentLedger(db).list_for_match(match_id)])


@router.post("/matches/{match_id}/judges", status_code=201)
def assign_judge(
    match_id: int,
    body: AssignJudgeRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    assignment = AssignmentLedger(db).assign(match_id, body.judge_id, actor, force=body.force)
    db.commit()
    return ok(assignment_to_dict(assignment), "Judge assigned")


def _replace(match_id: int, old_judge_id: Optional[int], body: ReplaceJudgeRequest, db: Session, actor: Actor):
    assignment = AssignmentLedger(db).replace(
        match_id,
        old_judge_id,
        body.new_judge_id,
        actor,
        remove_scores=body.remove_scores,
        force=body.force,
    )
    db.commit()
    return ok(assignment_to_dict(assignment), "Judge replaced" if old_judge_id else "Judge assigned")


@router.put("/matches/{match_id}/judges")
def replace_judge(
    match_id: int,
    body: ReplaceJudgeRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    return _replace(match_id, body.old_judge_id, body, db, actor)


@router.put("/matches/{match_id}/judges/{old_judge_id}")
def replace_judge_by_path(
    match_id: int,
    old_judge_id: int,
    body: ReplaceJudgeRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    return _replace(match_id, old_judge_id, body, db, actor)


@router.delete("/matches/{match_id}/judges/{judge_id}")
def remove_judge(
    match_id: int,
    judge_id: int,
    remove_scores: bool = Query(default=True, alias="removeScores"),
    force: bool = Query(default=False),
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    removed = AssignmentLedger(db).remove(
        match_id, judge_id, actor, remove_scores=remove_scores, force=force,
    )
    db.commit()
    return ok({"removed_scores": removed}, "Judge removed")


@router.delete("/matches/{match_id}/judges/{judge_id}/scores")
def remove_judge_scores(
    match_id: int,
    judge_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    removed = AssignmentLedger(db).remove_judge_scores(match_id, judge_id, actor)
    db.commit()
    return ok({"removed_scores": removed}, f"Removed {removed} scores")
