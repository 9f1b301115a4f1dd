"""In-memory fakes for engine and service unit tests (no database).

The fakes yield to the event loop on every read so concurrent requests
interleave, and FakeTaskRepo.update_status_if_version is a single
compare-and-set like the conditional UPDATE it stands in for.
"""

import asyncio
from dataclasses import replace
from types import SimpleNamespace

import pytest

from taskflow.application.dtos.audit import TaskAuditRecordResult
from taskflow.application.dtos.task import TaskResult
from taskflow.application.dtos.template import TaskTemplateResult
from taskflow.application.use_cases.tasks import TaskService, TransitionEngine
from taskflow.domain.entities import StatusEntity, TransitionEntity, WorkflowEntity

SPACE_ID = "space-1"


class FakeTaskRepo:
    def __init__(self) -> None:
        self.tasks: dict[str, TaskResult] = {}
        self.updates = 0

    def add(self, task: TaskResult) -> TaskResult:
        self.tasks[task.id] = task
        return task

    async def get_by_id(self, task_id: str) -> TaskResult | None:
        await asyncio.sleep(0)
        return self.tasks.get(task_id)

    async def create(self, space_id, data, *, workflow_id, status_id, created_by):
        await asyncio.sleep(0)
        task = TaskResult(
            id=f"task-{len(self.tasks) + 1}",
            space_id=space_id,
            template_id=data.template_id,
            workflow_id=workflow_id,
            status_id=status_id,
            version=1,
            title=data.title.strip(),
            description=data.description,
            assignee_id=data.assignee_id,
            priority=data.priority,
            due_at=data.due_at,
            sprint_id=data.sprint_id,
            parent_id=data.parent_id,
            custom_fields=dict(data.custom_fields),
            completed_at=None,
            created_by=created_by,
        )
        return self.add(task)

    async def update_status_if_version(
        self, task_id, *, expected_version, expected_status_id, values
    ):
        await asyncio.sleep(0)
        current = self.tasks.get(task_id)
        if (
            current is None
            or current.version != expected_version
            or current.status_id != expected_status_id
        ):
            return None
        updated = replace(current, version=current.version + 1, **values)
        self.tasks[task_id] = updated
        self.updates += 1
        return updated

    async def count_open_subtasks(self, task_id: str) -> int:
        return sum(
            1
            for t in self.tasks.values()
            if t.parent_id == task_id and t.completed_at is None
        )

    async def count_by_workflow(self, workflow_id: str) -> int:
        return sum(1 for t in self.tasks.values() if t.workflow_id == workflow_id)

    async def count_by_statuses(self, status_ids: list[str]) -> int:
        return sum(1 for t in self.tasks.values() if t.status_id in status_ids)


class FakeWorkflowRepo:
    def __init__(self, *workflows: WorkflowEntity) -> None:
        self.workflows = {w.id: w for w in workflows}
        self.removed_transition_ids: set[str] = set()

    async def get_by_id(self, workflow_id: str) -> WorkflowEntity | None:
        await asyncio.sleep(0)
        return self.workflows.get(workflow_id)

    async def get_default_for_space(self, space_id: str) -> WorkflowEntity | None:
        for workflow in self.workflows.values():
            if workflow.space_id == space_id and workflow.is_default:
                return workflow
        return None

    async def get_transition(self, workflow_id: str, transition_id: str):
        await asyncio.sleep(0)
        if transition_id in self.removed_transition_ids:
            return None
        workflow = self.workflows.get(workflow_id)
        return workflow.transition_by_id(transition_id) if workflow else None


class FakeTemplateRepo:
    def __init__(self, *templates: TaskTemplateResult) -> None:
        self.templates = {t.id: t for t in templates}

    async def get_by_id_and_space(self, template_id: str, space_id: str):
        template = self.templates.get(template_id)
        if template is None or template.space_id != space_id:
            return None
        return template


class FakeTaskAuditRepo:
    def __init__(self) -> None:
        self.records: list[TaskAuditRecordResult] = []

    async def append(self, data) -> TaskAuditRecordResult:
        record = TaskAuditRecordResult(
            id=f"audit-{len(self.records) + 1}",
            task_id=data.task_id,
            space_id=data.space_id,
            user_id=data.user_id,
            from_status_id=data.from_status_id,
            to_status_id=data.to_status_id,
            transition_id=data.transition_id,
            transition_key=data.transition_key,
            activity_type="STATUS_CHANGED",
            timestamp=data.timestamp,
            metadata=dict(data.metadata),
        )
        self.records.append(record)
        return record

    async def list_for_task(self, task_id: str) -> list[TaskAuditRecordResult]:
        return [r for r in self.records if r.task_id == task_id]


class FakeOracle:
    """Admins hold every permission; members hold the keys listed for them."""

    def __init__(self, admins: set[str], members: dict[str, set[str]]) -> None:
        self.admins = admins
        self.members = members

    async def has_permission(self, user_id: str, space_id: str, permission_key: str) -> bool:
        if space_id != SPACE_ID:
            return False
        return user_id in self.admins or permission_key in self.members.get(user_id, set())

    async def is_space_admin(self, user_id: str, space_id: str) -> bool:
        return space_id == SPACE_ID and user_id in self.admins


def _status(status_id, key, position, *, category="TODO", is_done=False, is_initial=False):
    return StatusEntity(
        id=status_id,
        workflow_id="wf-1",
        key=key,
        name=key.title(),
        color=None,
        category=category,
        position=position,
        is_done=is_done,
        is_initial=is_initial,
    )


def _transition(transition_id, from_id, to_id, key, position, **extra):
    return TransitionEntity(
        id=transition_id,
        workflow_id="wf-1",
        from_status_id=from_id,
        to_status_id=to_id,
        transition_key=key,
        name=key.title(),
        position=position,
        **extra,
    )


@pytest.fixture
def workflow() -> WorkflowEntity:
    """Board workflow: TODO -> IN_PROGRESS -> REVIEW -> DONE, plus a global CANCEL."""
    return WorkflowEntity(
        id="wf-1",
        space_id=SPACE_ID,
        name="Board",
        description=None,
        is_default=True,
        version=3,
        statuses=[
            _status("st-todo", "TODO", 0, is_initial=True),
            _status("st-doing", "IN_PROGRESS", 1, category="IN_PROGRESS"),
            _status("st-review", "REVIEW", 2, category="IN_PROGRESS"),
            _status("st-done", "DONE", 3, category="DONE", is_done=True),
        ],
        transitions=[
            _transition(
                "tr-start",
                "st-todo",
                "st-doing",
                "START",
                0,
                post_functions=[{"type": "assign", "to": "actor"}],
            ),
            _transition("tr-skip", "st-todo", "st-done", "CANCEL", 1),
            _transition(
                "tr-submit",
                "st-doing",
                "st-review",
                "SUBMIT",
                2,
                guards=[{"type": "assignee_required"}, {"type": "due_date_required"}],
            ),
            _transition(
                "tr-approve",
                "st-review",
                "st-done",
                "APPROVE",
                3,
                required_permission="approve_tasks",
            ),
            _transition(
                "tr-reopen",
                "st-done",
                "st-todo",
                "REOPEN",
                4,
                post_functions=[{"type": "clear_sprint"}],
            ),
            _transition("tr-cancel", None, "st-done", "CANCEL", 5, is_global=True),
        ],
    )


@pytest.fixture
def env(workflow: WorkflowEntity) -> SimpleNamespace:
    """Engine and task service wired to fresh fakes."""
    task_repo = FakeTaskRepo()
    workflow_repo = FakeWorkflowRepo(workflow)
    audit_repo = FakeTaskAuditRepo()
    template_repo = FakeTemplateRepo()
    oracle = FakeOracle(
        admins={"u-admin"},
        members={
            "u-member": {"view_tasks"},
            "u-approver": {"view_tasks", "approve_tasks"},
        },
    )
    engine = TransitionEngine(
        task_repo=task_repo,
        workflow_repo=workflow_repo,
        audit_repo=audit_repo,
        permission_oracle=oracle,
    )
    service = TaskService(
        task_repo=task_repo,
        workflow_repo=workflow_repo,
        template_repo=template_repo,
        audit_repo=audit_repo,
        permission_oracle=oracle,
        engine=engine,
    )
    return SimpleNamespace(
        task_repo=task_repo,
        workflow_repo=workflow_repo,
        audit_repo=audit_repo,
        template_repo=template_repo,
        oracle=oracle,
        engine=engine,
        service=service,
    )


@pytest.fixture
def make_task(env: SimpleNamespace):
    """Factory: store a task of wf-1 (in TODO unless overridden) and return it."""

    def _make(**overrides) -> TaskResult:
        values = dict(
            id="task-1",
            space_id=SPACE_ID,
            template_id=None,
            workflow_id="wf-1",
            status_id="st-todo",
            version=1,
            title="Write release notes",
            description=None,
            assignee_id=None,
            priority=None,
            due_at=None,
            sprint_id=None,
            parent_id=None,
            custom_fields={},
            completed_at=None,
            created_by="u-member",
        )
        values.update(overrides)
        return env.task_repo.add(TaskResult(**values))

    return _make
