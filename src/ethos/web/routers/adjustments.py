"""
Adjustment ledger endpoints.

POST /events/{id}/{kind}-adjustments applies a batch; GET
/events/{id}/{kind}-logs (or -adjustments) lists them newest first;
DELETE /events/{id}/{kind}-logs/{log_id} reverts one.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ethos.db.repository import LOG_MODELS
from ethos.db.session import get_db
from ethos.permissions import Actor
from ethos.services.adjustments import (
    AdjustmentLedger,
    ScoreDiffAdjustment,
    VoteAdjustment,
    WinAdjustment,
)
from ethos.web.deps import current_actor
from ethos.web.schemas import (
    ScoreDiffAdjustmentsRequest,
    VoteAdjustmentsRequest,
    WinAdjustmentsRequest,
    log_to_dict,
    ok,
)

router = APIRouter(tags=["adjustments"])


@router.post("/events/{event_id}/vote-adjustments", status_code=201)
def apply_vote_adjustments(
    event_id: int,
    body: VoteAdjustmentsRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    items = [VoteAdjustment(i.team_id, i.adjustment, i.reason) for i in body.adjustments]
    logs = AdjustmentLedger(db).apply_vote_adjustments(event_id, items, actor)
    db.commit()
    return ok([log_to_dict(log) for log in logs], f"Applied {len(logs)} vote adjustments")


@router.post("/events/{event_id}/win-adjustments", status_code=201)
def apply_win_adjustments(
    event_id: int,
    body: WinAdjustmentsRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    items = [WinAdjustment(i.team_id, i.wins, i.losses, i.ties, i.reason) for i in body.adjustments]
    logs = AdjustmentLedger(db).apply_win_adjustments(event_id, items, actor)
    db.commit()
    return ok([log_to_dict(log) for log in logs], f"Applied {len(logs)} win adjustments")


@router.post("/events/{event_id}/score-diff-adjustments", status_code=201)
def apply_score_diff_adjustments(
    event_id: int,
    body: ScoreDiffAdjustmentsRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(current_actor),
):
    items = [ScoreDiffAdjustment(i.team_id, i.adjustment, i.reason) for i in body.adjustments]
    logs = AdjustmentLedger(db).apply_score_diff_adjustments(event_id, items, actor)
    db.commit()
    return ok([log_to_dict(log) for log in logs], f"Applied {len(logs)} score differential adjustments")


def _list_route(kind: str):
    def list_logs(
        event_id: int,
        team_id: Optional[int] = Query(default=None, alias="teamId"),
        db: Session = Depends(get_db),
        actor: Actor = Depends(current_actor),
    ):
        logs = AdjustmentLedger(db).list_logs(kind, event_id, actor, team_id=team_id)
        return ok([log_to_dict(log) for log in logs])

    list_logs.__name__ = f"list_{kind.replace('-', '_')}_logs"
    return list_logs


def _delete_route(kind: str):
    def delete_log(
        event_id: int,
        log_id: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(current_actor),
    ):
        AdjustmentLedger(db).delete_log(kind, event_id, log_id, actor)
        db.commit()
        return ok(None, "Adjustment reverted")

    delete_log.__name__ = f"delete_{kind.replace('-', '_')}_log"
    return delete_log


for _kind in LOG_MODELS:
    router.add_api_route(f"/events/{{event_id}}/{_kind}-logs", _list_route(_kind), methods=["GET"])
    router.add_api_route(f"/events/{{event_id}}/{_kind}-adjustments", _list_route(_kind), methods=["GET"])
    router.add_api_route(
        f"/events/{{event_id}}/{_kind}-logs/{{log_id}}", _delete_route(_kind), methods=["DELETE"],
    )
    router.add_api_route(
        f"/events/{{event_id}}/{_kind}-adjustments/{{log_id}}", _delete_route(_kind), methods=["DELETE"],
    )
