"""Tests for TaskService: creation, visibility, available transitions, history."""

import pytest

from taskflow.application.dtos.task import TaskCreate
from taskflow.application.dtos.template import TaskTemplateResult
from taskflow.domain.entities import StatusEntity, WorkflowEntity
from taskflow.domain.exceptions import (
    TaskNotFoundException,
    TemplateNotFoundException,
    ValidationException,
)
from taskflow.domain.value_objects import ByKey


def _single_status_workflow(workflow_id: str) -> WorkflowEntity:
    return WorkflowEntity(
        id=workflow_id,
        space_id="space-1",
        name="Intake",
        description=None,
        is_default=False,
        version=1,
        statuses=[
            StatusEntity(
                id=f"{workflow_id}-new",
                workflow_id=workflow_id,
                key="NEW",
                name="New",
                color=None,
                category="TODO",
                position=0,
                is_done=False,
                is_initial=True,
            )
        ],
        transitions=[],
    )


async def test_create_task_starts_at_default_workflow_initial_status(env) -> None:
    task = await env.service.create_task(
        "space-1", TaskCreate(title="  Ship it  "), "u-member"
    )
    assert task.workflow_id == "wf-1"
    assert task.status_id == "st-todo"
    assert task.version == 1
    assert task.title == "Ship it"
    assert task.created_by == "u-member"


async def test_create_task_uses_template_bound_workflow(env) -> None:
    """A template's workflow wins over the space default."""
    env.workflow_repo.workflows["wf-intake"] = _single_status_workflow("wf-intake")
    env.template_repo.templates["tpl-1"] = TaskTemplateResult(
        id="tpl-1",
        space_id="space-1",
        name="Bug",
        description=None,
        workflow_id="wf-intake",
    )
    task = await env.service.create_task(
        "space-1", TaskCreate(title="Crash on save", template_id="tpl-1"), "u-member"
    )
    assert task.workflow_id == "wf-intake"
    assert task.status_id == "wf-intake-new"


async def test_create_task_with_unknown_template(env) -> None:
    with pytest.raises(TemplateNotFoundException):
        await env.service.create_task(
            "space-1", TaskCreate(title="x", template_id="tpl-missing"), "u-member"
        )


async def test_create_task_without_any_workflow(env) -> None:
    """No template binding and no default workflow: the task has no status."""
    task = await env.service.create_task("space-2", TaskCreate(title="Loose"), "u-member")
    assert task.workflow_id is None
    assert task.status_id is None


async def test_create_task_rejects_blank_title_and_foreign_parent(env, make_task) -> None:
    make_task(id="task-other", space_id="space-2")
    with pytest.raises(ValidationException) as exc_info:
        await env.service.create_task(
            "space-1", TaskCreate(title="  ", parent_id="task-other"), "u-member"
        )
    assert len(exc_info.value.violations) == 2


async def test_get_task_hides_task_from_non_members(env, make_task) -> None:
    make_task()
    assert (await env.service.get_task("task-1", "u-member")).id == "task-1"
    with pytest.raises(TaskNotFoundException):
        await env.service.get_task("task-1", "u-stranger")


async def test_available_transitions_for_member(env, make_task) -> None:
    """Members see edges declared on TODO; the global CANCEL is admin-only."""
    make_task()
    options = await env.service.available_transitions("task-1", "u-member")
    assert [o.transition.id for o in options] == ["tr-start", "tr-skip"]
    assert [o.to_status_key for o in options] == ["IN_PROGRESS", "DONE"]
    assert all(o.blocked_by == [] for o in options)


async def test_available_transitions_for_admin_include_global(env, make_task) -> None:
    make_task()
    options = await env.service.available_transitions("task-1", "u-admin")
    assert [o.transition.id for o in options] == ["tr-start", "tr-skip", "tr-cancel"]


async def test_available_transitions_report_blocking_guards(env, make_task) -> None:
    make_task(status_id="st-doing")
    options = await env.service.available_transitions("task-1", "u-member")
    submit = next(o for o in options if o.transition.transition_key == "SUBMIT")
    assert [r["guard"] for r in submit.blocked_by] == [
        "assignee_required",
        "due_date_required",
    ]


async def test_available_transitions_omit_edges_user_may_not_take(env, make_task) -> None:
    make_task(status_id="st-review")
    member_keys = [
        o.transition.transition_key
        for o in await env.service.available_transitions("task-1", "u-member")
    ]
    approver_keys = [
        o.transition.transition_key
        for o in await env.service.available_transitions("task-1", "u-approver")
    ]
    assert "APPROVE" not in member_keys
    assert "APPROVE" in approver_keys


async def test_perform_transition_requires_visibility(env, make_task) -> None:
    """Users outside the space cannot move its tasks, even along unguarded edges."""
    make_task()
    with pytest.raises(TaskNotFoundException):
        await env.service.perform_transition("task-1", ByKey("START"), "u-stranger")
    assert env.task_repo.updates == 0


async def test_history_lists_transitions_oldest_first(env, make_task) -> None:
    make_task()
    await env.service.perform_transition("task-1", ByKey("START"), "u-member")
    await env.service.perform_transition("task-1", ByKey("CANCEL"), "u-admin")
    history = await env.service.history("task-1", "u-member")
    assert [h.transition_key for h in history] == ["START", "CANCEL"]
    assert history[1].transition_id == "tr-cancel"
