"""Tests for the Q-parameterized match status table."""

import pytest

from ethos.errors import ValidationFailed
from ethos.match_statuses import (
    COMPLETED,
    DRAFT,
    FINAL_SCORING,
    MODERATOR_PERIOD_1,
    StatusTable,
    display_name,
    judge_question,
    status_table,
)


def test_status_order_for_three_questions():
    assert status_table(3).values == [
        "draft",
        "moderator_period_1",
        "judge_question_1",
        "judge_question_2",
        "judge_question_3",
        "final_scoring",
        "completed",
    ]


@pytest.mark.parametrize("q", range(1, 11))
def test_valid_set_is_derived_from_question_count(q):
    table = status_table(q)
    assert len(table) == q + 4
    for value in table.values:
        assert table.parse(value).value == value

    with pytest.raises(ValidationFailed) as exc_info:
        table.parse(f"judge_question_{q + 1}")
    assert exc_info.value.code == "INVALID_STATUS"


@pytest.mark.parametrize("value", ["", "in_progress", "judge_question_0", "COMPLETED", "judge_1_1"])
def test_unknown_values_are_rejected(value):
    with pytest.raises(ValidationFailed):
        status_table(3).parse(value)


@pytest.mark.parametrize("q", [0, 11, -1])
def test_question_count_out_of_range(q):
    with pytest.raises(ValidationFailed):
        StatusTable(q)


def test_next_and_previous():
    table = status_table(2)
    assert table.next_status(DRAFT) == MODERATOR_PERIOD_1
    assert table.next_status("judge_question_2") == FINAL_SCORING
    assert table.next_status(COMPLETED) is None
    assert table.previous_status(DRAFT) is None
    assert table.previous_status("judge_question_1") == MODERATOR_PERIOD_1


def test_can_judges_score():
    table = status_table(3)
    assert not table.can_judges_score("draft")
    assert table.can_judges_score("moderator_period_1")
    assert table.can_judges_score("judge_question_2")
    assert table.can_judges_score("final_scoring")
    assert not table.can_judges_score("completed")


def test_window_status_per_position():
    table = status_table(3)
    assert table.window_status(1) == judge_question(1)
    assert table.window_status(3) == judge_question(3)
    # Judges beyond Q share the final scoring window
    assert table.window_status(4) == FINAL_SCORING
    with pytest.raises(ValueError):
        table.window_status(0)


def test_window_closes_only_after_the_judges_status():
    table = status_table(3)
    assert not table.is_window_closed("moderator_period_1", 1)
    assert not table.is_window_closed("judge_question_1", 1)
    assert table.is_window_closed("judge_question_2", 1)
    assert not table.is_window_closed("judge_question_2", 2)
    assert not table.is_window_closed("final_scoring", 4)
    assert table.is_window_closed("completed", 4)


def test_can_judge_write_with_and_without_enforcement():
    table = status_table(3)
    # Advisory: any scoring status is open to everyone
    assert table.can_judge_write("judge_question_1", 2, enforce_windows=False)
    assert not table.can_judge_write("draft", 1, enforce_windows=False)

    assert table.can_judge_write("moderator_period_1", 2, enforce_windows=True)
    assert table.can_judge_write("judge_question_2", 2, enforce_windows=True)
    assert not table.can_judge_write("judge_question_1", 2, enforce_windows=True)
    assert table.can_judge_write("final_scoring", 4, enforce_windows=True)
    assert not table.can_judge_write("final_scoring", 1, enforce_windows=True)
    assert not table.can_judge_write("completed", 1, enforce_windows=True)


def test_display_names():
    assert display_name("judge_question_7") == "Judge Question 7"
    assert display_name("moderator_period_1") == "Moderator Period 1"
    assert display_name("final_scoring") == "Final Scoring"
    assert display_name("completed") == "Completed"
    assert display_name("something_else") == "something_else"
    assert judge_question(2).label == "Judge Question 2"
