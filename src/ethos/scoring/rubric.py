"""
Structured event rubric and score validation.

An event's ``scoring_criteria`` JSON is parsed into a ``Rubric`` at the
boundary so the rest of the core never touches the raw blob:

    {
        "criteria": {"clarity": {"maxScore": 10, "description": "..."}},
        "commentQuestionsCount": 3,
        "commentMaxScore": 20,
        "commentInstructions": "..."
    }

Older events stored a flat ``{"clarity": {"min": 0, "max": 10}}`` map or a
list of ``{"name": ..., "maxScore": ...}`` criteria; both are still accepted.
"""

from __future__ import annotations

import json
import math
from typing import Any, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ethos.config import settings
from ethos.errors import ValidationFailed
from ethos.match_statuses import MAX_JUDGE_QUESTIONS, StatusTable, status_table


class Criterion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    max_score: float = Field(alias="maxScore", ge=0)
    description: str = ""


class Rubric(BaseModel):
    """Criteria plus judge-question settings for one event."""

    model_config = ConfigDict(populate_by_name=True)

    criteria: dict[str, Criterion] = Field(default_factory=dict)
    comment_questions_count: int = Field(
        default_factory=lambda: settings.default_judge_questions,
        alias="commentQuestionsCount",
    )
    comment_max_score: float = Field(
        default_factory=lambda: settings.default_comment_max_score,
        alias="commentMaxScore",
        ge=0,
    )
    comment_instructions: str = Field(default="", alias="commentInstructions")

    @field_validator("comment_questions_count", mode="before")
    @classmethod
    def default_unset_question_count(cls, v: Any) -> Any:
        # 0 and null mean "not configured"
        if v is None or v == 0:
            return settings.default_judge_questions
        return v

    @field_validator("comment_questions_count")
    @classmethod
    def validate_question_count(cls, v: int) -> int:
        if v < 1 or v > MAX_JUDGE_QUESTIONS:
            raise ValueError(f"commentQuestionsCount must be between 1 and {MAX_JUDGE_QUESTIONS}")
        return v

    @classmethod
    def from_raw(cls, raw: Any) -> "Rubric":
        """Parse an event's stored scoring_criteria (dict, JSON string or None)."""
        if raw is None or raw == "":
            return cls()
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise ValidationFailed(f"Scoring criteria is not valid JSON: {exc}") from exc
        if not isinstance(raw, Mapping):
            raise ValidationFailed("Scoring criteria must be a JSON object")

        if "criteria" not in raw:
            raw = _from_legacy(raw)
        elif isinstance(raw["criteria"], list):
            raw = {**raw, "criteria": _criteria_from_list(raw["criteria"])}

        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise ValidationFailed(
                "Invalid scoring criteria",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc

    @property
    def status_table(self) -> StatusTable:
        return status_table(self.comment_questions_count)

    def validate_scores(
        self,
        criteria_scores: Mapping[str, Any],
        comment_scores: Sequence[Any],
    ) -> None:
        """
        Raise ValidationFailed for unknown criteria or out-of-range values.

        An empty rubric accepts any criterion name but still requires
        non-negative finite numbers.
        """
        for name, value in criteria_scores.items():
            _require_number(value, f"Score for '{name}'")
            if self.criteria:
                criterion = self.criteria.get(name)
                if criterion is None:
                    raise ValidationFailed(
                        f"Unknown criterion '{name}'. Must be one of: {', '.join(self.criteria)}"
                    )
                if value < 0 or value > criterion.max_score:
                    raise ValidationFailed(
                        f"Score for '{name}' must be between 0 and {_fmt(criterion.max_score)}"
                    )
            elif value < 0:
                raise ValidationFailed(f"Score for '{name}' must not be negative")

        if len(comment_scores) > self.comment_questions_count:
            raise ValidationFailed(
                f"At most {self.comment_questions_count} comment scores are allowed, "
                f"got {len(comment_scores)}"
            )
        for i, value in enumerate(comment_scores, start=1):
            _require_number(value, f"Comment score {i}")
            if value < 0 or value > self.comment_max_score:
                raise ValidationFailed(
                    f"Comment score {i} must be between 0 and {_fmt(self.comment_max_score)}"
                )


def _from_legacy(raw: Mapping[str, Any]) -> dict[str, Any]:
    converted: dict[str, Any] = {"criteria": {}}
    for key, value in raw.items():
        if isinstance(value, Mapping) and "max" in value:
            converted["criteria"][key] = {
                "maxScore": value["max"],
                "description": value.get("description", ""),
            }
        elif key in ("commentQuestionsCount", "commentMaxScore", "commentInstructions"):
            converted[key] = value
    return converted


def _criteria_from_list(items: Sequence[Any]) -> dict[str, Any]:
    """Convert a list of {"name": ..., "maxScore": ...} objects to the keyed form."""
    criteria: dict[str, Any] = {}
    for item in items:
        if not isinstance(item, Mapping) or "name" not in item:
            raise ValidationFailed("Each criterion in a list must be an object with a name")
        criteria[item["name"]] = {k: v for k, v in item.items() if k != "name"}
    return criteria


def _require_number(value: Any, label: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationFailed(f"{label} must be a number")
    if not math.isfinite(value):
        raise ValidationFailed(f"{label} must be a finite number")


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def rubric_for(event) -> Rubric:
    return Rubric.from_raw(event.scoring_criteria)


def status_table_for(event) -> StatusTable:
    return rubric_for(event).status_table
