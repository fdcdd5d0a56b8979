"""Tests for rubric parsing and score validation."""

import json

import pytest

from ethos.errors import ValidationFailed
from ethos.scoring.rubric import Rubric

RUBRIC = {
    "criteria": {
        "clarity": {"maxScore": 10, "description": "Clear"},
        "depth": {"maxScore": 5},
    },
    "commentQuestionsCount": 2,
    "commentMaxScore": 20,
}


def test_empty_rubric_uses_defaults():
    rubric = Rubric.from_raw(None)
    assert rubric.criteria == {}
    assert rubric.comment_questions_count == 3
    assert rubric.comment_max_score == 20
    assert rubric.status_table.judge_questions == 3


@pytest.mark.parametrize("count", [0, None])
def test_unset_question_count_falls_back_to_default(count):
    rubric = Rubric.from_raw({"criteria": {"clarity": {"maxScore": 10}}, "commentQuestionsCount": count})
    assert rubric.comment_questions_count == 3
    assert rubric.status_table.judge_questions == 3


def test_parses_keyed_criteria_and_json_strings():
    rubric = Rubric.from_raw(json.dumps(RUBRIC))
    assert rubric.criteria["clarity"].max_score == 10
    assert rubric.criteria["depth"].description == ""
    assert rubric.comment_questions_count == 2
    assert rubric.status_table.values[-3] == "judge_question_2"


def test_legacy_min_max_map():
    rubric = Rubric.from_raw({"clarity": {"min": 0, "max": 7}, "focus": {"min": 0, "max": 3}})
    assert rubric.criteria["clarity"].max_score == 7
    assert rubric.criteria["focus"].max_score == 3
    assert rubric.comment_questions_count == 3


def test_list_of_named_criteria():
    rubric = Rubric.from_raw({
        "criteria": [{"name": "Clarity", "maxScore": 10}, {"name": "Focus", "maxScore": 8}],
        "commentQuestionsCount": 4,
    })
    assert set(rubric.criteria) == {"Clarity", "Focus"}
    assert rubric.comment_questions_count == 4


@pytest.mark.parametrize("raw", [
    "not json",
    ["a", "list"],
    {"criteria": {}, "commentQuestionsCount": -1},
    {"criteria": {}, "commentQuestionsCount": 11},
    {"criteria": {"clarity": {"maxScore": -1}}},
])
def test_malformed_rubrics_are_rejected(raw):
    with pytest.raises(ValidationFailed):
        Rubric.from_raw(raw)


def test_valid_scores_pass():
    rubric = Rubric.from_raw(RUBRIC)
    rubric.validate_scores({"clarity": 10, "depth": 0}, [20, 0])
    rubric.validate_scores({"clarity": 4.5}, [])


@pytest.mark.parametrize("criteria, comments", [
    ({"unknown": 1}, []),
    ({"clarity": 11}, []),
    ({"clarity": -1}, []),
    ({"clarity": True}, []),
    ({"clarity": float("nan")}, []),
    ({"clarity": 5}, [1, 2, 3]),
    ({"clarity": 5}, [21]),
    ({"clarity": 5}, ["ten"]),
])
def test_invalid_scores_are_rejected(criteria, comments):
    rubric = Rubric.from_raw(RUBRIC)
    with pytest.raises(ValidationFailed):
        rubric.validate_scores(criteria, comments)


def test_empty_rubric_accepts_any_criterion_name():
    rubric = Rubric.from_raw({})
    rubric.validate_scores({"anything": 42}, [1])
    with pytest.raises(ValidationFailed):
        rubric.validate_scores({"anything": -1}, [])
