"""Match status table, parameterized by the event's judge question count Q.

This module is the single source of truth for the match lifecycle:

    draft -> moderator_period_1 -> judge_question_1 .. judge_question_Q
          -> final_scoring -> completed

Statuses are a closed set of ``MatchStatus`` values produced by
``status_table(q)``; every predicate (can judges score, whose window is
open, whose window has closed) reads from that ordered table instead of
comparing strings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Optional

from ethos.errors import ValidationFailed

MAX_JUDGE_QUESTIONS = 10

_JUDGE_QUESTION_RE = re.compile(r"^judge_question_(\d+)$")


class StatusKind(str, Enum):
    DRAFT = "draft"
    MODERATOR_PERIOD = "moderator_period"
    JUDGE_QUESTION = "judge_question"
    FINAL_SCORING = "final_scoring"
    COMPLETED = "completed"


@dataclass(frozen=True)
class MatchStatus:
    """One step of the lifecycle. ``question`` is set only for judge questions."""

    kind: StatusKind
    question: Optional[int] = None

    @property
    def value(self) -> str:
        if self.kind is StatusKind.JUDGE_QUESTION:
            return f"judge_question_{self.question}"
        if self.kind is StatusKind.MODERATOR_PERIOD:
            return "moderator_period_1"
        return self.kind.value

    @property
    def label(self) -> str:
        if self.kind is StatusKind.JUDGE_QUESTION:
            return f"Judge Question {self.question}"
        if self.kind is StatusKind.MODERATOR_PERIOD:
            return "Moderator Period 1"
        return self.kind.value.replace("_", " ").title()

    def __str__(self) -> str:
        return self.value


DRAFT = MatchStatus(StatusKind.DRAFT)
MODERATOR_PERIOD_1 = MatchStatus(StatusKind.MODERATOR_PERIOD)
FINAL_SCORING = MatchStatus(StatusKind.FINAL_SCORING)
COMPLETED = MatchStatus(StatusKind.COMPLETED)


def judge_question(n: int) -> MatchStatus:
    return MatchStatus(StatusKind.JUDGE_QUESTION, n)


class StatusTable:
    """Ordered statuses for a given Q plus the judge-window predicates."""

    def __init__(self, judge_questions: int):
        if judge_questions < 1 or judge_questions > MAX_JUDGE_QUESTIONS:
            raise ValidationFailed(
                f"Judge question count must be between 1 and {MAX_JUDGE_QUESTIONS}, "
                f"got {judge_questions}"
            )
        self.judge_questions = judge_questions
        self.statuses: tuple[MatchStatus, ...] = (
            DRAFT,
            MODERATOR_PERIOD_1,
            *(judge_question(i) for i in range(1, judge_questions + 1)),
            FINAL_SCORING,
            COMPLETED,
        )
        self._index = {status.value: i for i, status in enumerate(self.statuses)}

    def __contains__(self, value: object) -> bool:
        if isinstance(value, MatchStatus):
            value = value.value
        return value in self._index

    def __iter__(self):
        return iter(self.statuses)

    def __len__(self) -> int:
        return len(self.statuses)

    @property
    def values(self) -> list[str]:
        return [s.value for s in self.statuses]

    def parse(self, value: str) -> MatchStatus:
        """Return the status for ``value`` or raise ValidationFailed."""
        try:
            return self.statuses[self._index[value]]
        except KeyError:
            raise ValidationFailed(
                f"Invalid status '{value}'. Must be one of: {', '.join(self.values)}",
                code="INVALID_STATUS",
            ) from None

    def index(self, status: MatchStatus | str) -> int:
        if isinstance(status, str):
            status = self.parse(status)
        return self._index[status.value]

    def next_status(self, status: MatchStatus | str) -> Optional[MatchStatus]:
        i = self.index(status)
        return self.statuses[i + 1] if i + 1 < len(self.statuses) else None

    def previous_status(self, status: MatchStatus | str) -> Optional[MatchStatus]:
        i = self.index(status)
        return self.statuses[i - 1] if i > 0 else None

    def can_judges_score(self, status: MatchStatus | str) -> bool:
        """Scoring is open from moderator_period_1 up to (not including) completed."""
        i = self.index(status)
        return self.index(MODERATOR_PERIOD_1) <= i < self.index(COMPLETED)

    def window_status(self, position: int) -> MatchStatus:
        """
        The status during which judge ``position`` holds primary write access.

        Judges beyond Q have no question of their own; their window is
        final_scoring.
        """
        if position < 1:
            raise ValueError(f"Judge position must be >= 1, got {position}")
        if position <= self.judge_questions:
            return judge_question(position)
        return FINAL_SCORING

    def is_judge_in_scoring_stage(self, status: MatchStatus | str, position: int) -> bool:
        if isinstance(status, str):
            status = self.parse(status)
        return status == self.window_status(position)

    def is_window_closed(self, status: MatchStatus | str, position: int) -> bool:
        """True once the match has advanced past judge ``position``'s window."""
        return self.index(status) > self.index(self.window_status(position))

    def can_judge_write(self, status: MatchStatus | str, position: int, enforce_windows: bool) -> bool:
        """
        Whether judge ``position`` may create/update scores in ``status``.

        Without enforcement any scoring status is open to every judge.
        With enforcement moderator_period_1 is open to all judges and every
        other status only to the judge whose window it is.
        """
        if not self.can_judges_score(status):
            return False
        if not enforce_windows:
            return True
        if isinstance(status, str):
            status = self.parse(status)
        return status == MODERATOR_PERIOD_1 or self.is_judge_in_scoring_stage(status, position)


@lru_cache(maxsize=None)
def status_table(judge_questions: int) -> StatusTable:
    return StatusTable(judge_questions)


def display_name(value: str) -> str:
    """Human label for a raw status value, tolerant of values outside any table."""
    match = _JUDGE_QUESTION_RE.match(value)
    if match:
        return f"Judge Question {match.group(1)}"
    for status in (DRAFT, MODERATOR_PERIOD_1, FINAL_SCORING, COMPLETED):
        if status.value == value:
            return status.label
    return value
