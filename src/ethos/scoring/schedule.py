"""Per-round schedule parsed from an event's round_schedules JSON."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ethos.errors import ValidationFailed


class RoundSchedule(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_time: Optional[datetime] = Field(default=None, alias="startTime")


def parse_round_schedules(raw: Any) -> dict[int, RoundSchedule]:
    """
    Parse ``{"1": {"startTime": "2025-03-01T09:00:00"}, ...}``.

    Raises ValidationFailed when keys are not round numbers or entries are
    malformed.
    """
    if raw is None or raw == "":
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValidationFailed(f"Round schedule is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ValidationFailed("Round schedule must be a JSON object keyed by round number")

    schedules: dict[int, RoundSchedule] = {}
    for key, value in raw.items():
        try:
            round_number = int(key)
        except (TypeError, ValueError):
            raise ValidationFailed(f"Round schedule key '{key}' is not a round number") from None
        try:
            schedules[round_number] = RoundSchedule.model_validate(value or {})
        except ValidationError as exc:
            raise ValidationFailed(
                f"Malformed schedule for round {round_number}",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc
    return schedules


def default_start_time(event, round_number: int) -> Optional[datetime]:
    """Scheduled start for ``round_number``, naive UTC, or None."""
    schedule = parse_round_schedules(event.round_schedules).get(round_number)
    if schedule is None or schedule.start_time is None:
        return None
    start = schedule.start_time
    if start.tzinfo is not None:
        start = start.astimezone(timezone.utc).replace(tzinfo=None)
    return start
