"""Tests for transition guards and post-functions."""

from dataclasses import replace
from datetime import UTC, datetime

import pytest

from taskflow.application.services.guards import (
    GuardContext,
    enforce_guards,
    evaluate_guards,
    validate_guard_specs,
)
from taskflow.application.services.post_functions import (
    PostFunctionContext,
    collect_post_function_values,
    validate_post_function_specs,
)
from taskflow.domain.exceptions import GuardFailedException


@pytest.fixture
def task(make_task):
    return make_task()


def _with(transition, **changes):
    return replace(transition, **changes)


async def _reasons(env, task, transition, actor="u-member"):
    ctx = GuardContext(task=task, actor_id=actor, transition=transition, task_repo=env.task_repo)
    return await evaluate_guards(ctx)


async def test_required_fields_guard_names_missing_fields(env, task, workflow) -> None:
    transition = _with(
        workflow.transition_by_id("tr-start"),
        guards=[{"type": "required_fields", "fields": ["priority", "description", "title"]}],
    )
    reasons = await _reasons(env, task, transition)
    assert reasons == [
        {"guard": "required_fields", "message": "Required field(s) missing: priority, description"}
    ]


async def test_custom_fields_guard(env, make_task, workflow) -> None:
    task = make_task(custom_fields={"severity": "high", "build": "  "})
    transition = _with(
        workflow.transition_by_id("tr-start"),
        guards=[{"type": "custom_fields", "keys": ["severity", "build", "os"]}],
    )
    reasons = await _reasons(env, task, transition)
    assert reasons[0]["message"] == "Required custom field(s) missing: build, os"


async def test_no_open_subtasks_guard(env, task, make_task, workflow) -> None:
    transition = _with(
        workflow.transition_by_id("tr-start"), guards=[{"type": "no_open_subtasks"}]
    )
    assert await _reasons(env, task, transition) == []
    make_task(id="task-2", parent_id="task-1")
    reasons = await _reasons(env, task, transition)
    assert reasons == [{"guard": "no_open_subtasks", "message": "Task has 1 open subtask(s)"}]


async def test_actor_is_assignee_guard(env, make_task, workflow) -> None:
    task = make_task(assignee_id="u-member")
    transition = _with(
        workflow.transition_by_id("tr-start"), guards=[{"type": "actor_is_assignee"}]
    )
    assert await _reasons(env, task, transition, actor="u-member") == []
    assert len(await _reasons(env, task, transition, actor="u-admin")) == 1


async def test_unknown_stored_guard_fails_closed(env, task, workflow) -> None:
    transition = _with(workflow.transition_by_id("tr-start"), guards=[{"type": "retired"}])
    assert await _reasons(env, task, transition) == [
        {"guard": "retired", "message": "Unknown guard"}
    ]


async def test_enforce_guards_raises_all_reasons(env, task, workflow) -> None:
    ctx = GuardContext(
        task=task,
        actor_id="u-member",
        transition=workflow.transition_by_id("tr-submit"),
        task_repo=env.task_repo,
    )
    with pytest.raises(GuardFailedException) as exc_info:
        await enforce_guards(ctx)
    assert len(exc_info.value.reasons) == 2


def test_guard_spec_validation() -> None:
    assert validate_guard_specs([{"type": "assignee_required"}], "t") == []
    assert validate_guard_specs("nope", "t") == ["t: guards must be a list"]
    assert validate_guard_specs([{"no_type": 1}], "t") == [
        "t: guard #0 must be an object with a 'type'"
    ]
    problems = validate_guard_specs(
        [{"type": "assignee_required", "extra": True}, {"type": "required_fields", "fields": ["nope"]}],
        "t",
    )
    assert len(problems) == 2
    assert all(p.startswith("t: guard '") for p in problems)


def _collect(task, transition, actor="u-member"):
    return collect_post_function_values(
        PostFunctionContext(task=task, actor_id=actor, transition=transition)
    )


def test_post_functions_apply_in_order_later_wins(task, workflow) -> None:
    transition = _with(
        workflow.transition_by_id("tr-start"),
        post_functions=[
            {"type": "assign", "user_id": "u-other"},
            {"type": "set_field", "field": "priority", "value": "HIGH"},
            {"type": "assign", "to": "actor"},
            {"type": "notify", "recipients": ["u-other"]},
        ],
    )
    assert _collect(task, transition) == {"assignee_id": "u-member", "priority": "HIGH"}


def test_set_field_due_at_is_parsed_to_utc(task, workflow) -> None:
    transition = _with(
        workflow.transition_by_id("tr-start"),
        post_functions=[{"type": "set_field", "field": "due_at", "value": "2030-01-15T14:00:00+02:00"}],
    )
    assert _collect(task, transition) == {"due_at": datetime(2030, 1, 15, 12, 0, tzinfo=UTC)}


def test_clear_sprint(make_task, workflow) -> None:
    task = make_task(sprint_id="sprint-1")
    assert _collect(task, workflow.transition_by_id("tr-reopen")) == {"sprint_id": None}


def test_unknown_stored_post_function_is_skipped(task, workflow) -> None:
    transition = _with(workflow.transition_by_id("tr-start"), post_functions=[{"type": "gone"}])
    assert _collect(task, transition) == {}


def test_post_function_spec_validation() -> None:
    assert validate_post_function_specs([{"type": "assign", "to": "actor"}], "t") == []
    assert validate_post_function_specs([{"type": "clear_sprint"}], "t") == []
    # assign needs exactly one of user_id / to
    assert validate_post_function_specs([{"type": "assign"}], "t")
    assert validate_post_function_specs(
        [{"type": "assign", "to": "actor", "user_id": "u-1"}], "t"
    )
    assert validate_post_function_specs(
        [{"type": "set_field", "field": "due_at", "value": "next tuesday"}], "t"
    ) == ["t: post-function 'set_field' value for due_at is not an ISO-8601 datetime"]


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("priority", "HIGH"),
        ("priority", None),
        ("assignee_id", "u-2"),
        ("sprint_id", None),
        ("description", "Ready for QA"),
        ("due_at", "2030-01-15T12:00:00Z"),
        ("due_at", None),
    ],
)
def test_set_field_accepts_values_matching_the_column(field, value) -> None:
    spec = {"type": "set_field", "field": field, "value": value}
    assert validate_post_function_specs([spec], "t") == []


@pytest.mark.parametrize(
    ("field", "value", "message"),
    [
        ("priority", 5, "is not of type"),
        ("priority", "P" * 17, "is too long"),
        ("assignee_id", {"id": "u-2"}, "is not of type"),
        ("sprint_id", "", "''"),
        ("due_at", 20300115, "is not of type"),
        ("description", ["a", "b"], "is not of type"),
    ],
)
def test_set_field_rejects_values_the_column_cannot_hold(field, value, message) -> None:
    spec = {"type": "set_field", "field": field, "value": value}
    violations = validate_post_function_specs([spec], "t")
    assert len(violations) == 1
    assert violations[0].startswith("t: post-function 'set_field' ")
    assert message in violations[0]
