"""Integration tests for the workflow store and task persistence (SQLite via aiosqlite)."""

from dataclasses import replace

import pytest
from sqlalchemy import select

from taskflow.application.dtos.audit import TaskAuditRecordCreate
from taskflow.application.dtos.task import TaskCreate
from taskflow.application.dtos.workflow import (
    StatusInput,
    TransitionInput,
    WorkflowCreate,
    WorkflowUpdate,
)
from taskflow.application.use_cases.workflows import WorkflowDefinitionService
from taskflow.domain.exceptions import ValidationException, WorkflowNotFoundException
from taskflow.infrastructure.persistence.models import TaskAuditRecord
from taskflow.infrastructure.persistence.repositories import (
    TaskAuditRepository,
    TaskRepository,
    TaskTemplateRepository,
    WorkflowAuditRepository,
    WorkflowRepository,
)
from taskflow.shared.utils import utc_now

pytestmark = pytest.mark.requires_db

SPACE_ID = "space-main"
OTHER_SPACE_ID = "space-other"


def _board() -> WorkflowCreate:
    return WorkflowCreate(
        name="Board",
        is_default=True,
        statuses=[
            StatusInput(key="todo", name="To do", is_initial=True),
            StatusInput(key="in progress", name="In progress", category="IN_PROGRESS"),
            StatusInput(key="done", name="Done", category="DONE", is_done=True),
        ],
        transitions=[
            TransitionInput(from_key="todo", to_key="in_progress", transition_key="start"),
            TransitionInput(from_key="in_progress", to_key="done", transition_key="finish"),
            TransitionInput(
                to_key="done",
                transition_key="cancel",
                is_global=True,
                guards=[{"type": "assignee_required"}],
            ),
        ],
    )


@pytest.fixture
def service(db_session, seeded_space) -> WorkflowDefinitionService:
    return WorkflowDefinitionService(
        workflow_repo=WorkflowRepository(db_session),
        task_repo=TaskRepository(db_session),
        template_repo=TaskTemplateRepository(db_session),
        audit_repo=WorkflowAuditRepository(db_session),
    )


async def test_create_and_get_workflow(service) -> None:
    created = await service.create_workflow(SPACE_ID, _board(), "u-admin")
    fetched = await service.get_workflow(SPACE_ID, created.id)

    assert fetched.version == 1
    assert fetched.is_default is True
    assert [s.key for s in fetched.statuses] == ["TODO", "IN_PROGRESS", "DONE"]
    assert fetched.initial_status.key == "TODO"
    assert fetched.edge_signature() == {
        ("TODO", "IN_PROGRESS", "START"),
        ("IN_PROGRESS", "DONE", "FINISH"),
        (None, "DONE", "CANCEL"),
    }
    cancel = fetched.resolve_key(fetched.statuses[0].id, "CANCEL")
    assert cancel.guards == [{"type": "assignee_required"}]


async def test_get_workflow_is_space_scoped(service) -> None:
    created = await service.create_workflow(SPACE_ID, _board(), "u-admin")
    with pytest.raises(WorkflowNotFoundException):
        await service.get_workflow(OTHER_SPACE_ID, created.id)


async def test_invalid_definition_persists_nothing(service, db_session) -> None:
    data = WorkflowCreate(
        name=" ",
        statuses=[StatusInput(key="a", name="A"), StatusInput(key="a", name="A2")],
        transitions=[TransitionInput(from_key="a", to_key="b", transition_key="go")],
    )
    with pytest.raises(ValidationException) as exc_info:
        await service.create_workflow(SPACE_ID, data, "u-admin")
    assert len(exc_info.value.violations) == 3
    assert await service.list_workflows(SPACE_ID) == []


async def test_list_is_idempotent_and_space_scoped(service) -> None:
    first = await service.create_workflow(SPACE_ID, _board(), "u-admin")
    second = await service.create_workflow(
        SPACE_ID, WorkflowCreate(name="Intake", statuses=[StatusInput(key="new", name="New")]), "u-admin"
    )
    listed = [w.id for w in await service.list_workflows(SPACE_ID)]
    assert sorted(listed) == sorted([first.id, second.id])
    assert [w.id for w in await service.list_workflows(SPACE_ID)] == listed
    assert await service.list_workflows(OTHER_SPACE_ID) == []


async def test_only_one_default_per_space(service) -> None:
    first = await service.create_workflow(SPACE_ID, _board(), "u-admin")
    second = await service.create_workflow(SPACE_ID, _board(), "u-admin")
    assert (await service.get_workflow(SPACE_ID, first.id)).is_default is False
    assert (await service.get_workflow(SPACE_ID, second.id)).is_default is True


async def test_duplicate_is_isomorphic_with_fresh_ids(service) -> None:
    source = await service.create_workflow(SPACE_ID, _board(), "u-admin")
    copy = await service.duplicate_workflow(SPACE_ID, source.id, "u-admin")

    assert copy.id != source.id
    assert copy.name == "Board Copy"
    assert copy.is_default is False
    assert copy.edge_signature() == source.edge_signature()
    assert not {s.id for s in copy.statuses} & {s.id for s in source.statuses}
    assert not {t.id for t in copy.transitions} & {t.id for t in source.transitions}
    assert all(t.workflow_id == copy.id for t in copy.transitions)


async def test_update_keeps_ids_and_bumps_version(service) -> None:
    workflow = await service.create_workflow(SPACE_ID, _board(), "u-admin")
    ids = {s.key: s.id for s in workflow.statuses}

    updated = await service.update_workflow(
        SPACE_ID,
        workflow.id,
        WorkflowUpdate(
            statuses=[
                StatusInput(key="todo", name="Backlog", is_initial=True),
                StatusInput(key="in_progress", name="Doing", category="IN_PROGRESS"),
                StatusInput(key="review", name="Review", category="IN_PROGRESS"),
                StatusInput(key="done", name="Done", category="DONE", is_done=True),
            ],
            transitions=[
                TransitionInput(from_key="todo", to_key="in_progress", transition_key="start"),
                TransitionInput(from_key="in_progress", to_key="review", transition_key="submit"),
                TransitionInput(from_key="review", to_key="done", transition_key="finish"),
            ],
        ),
        "u-admin",
    )

    assert updated.version == 2
    new_ids = {s.key: s.id for s in updated.statuses}
    for key in ("TODO", "IN_PROGRESS", "DONE"):
        assert new_ids[key] == ids[key]
    assert updated.status_by_key("TODO").name == "Backlog"
    start_before = workflow.resolve_key(ids["TODO"], "START")
    assert updated.resolve_key(ids["TODO"], "START").id == start_before.id
    assert (None, "DONE", "CANCEL") not in updated.edge_signature()

    history = await service.workflow_history(SPACE_ID, workflow.id)
    assert [h.action for h in history] == ["CREATED", "UPDATED"]
    assert history[-1].metadata["changed"] == ["graph"]


async def test_rename_only_does_not_bump_version(service) -> None:
    workflow = await service.create_workflow(SPACE_ID, _board(), "u-admin")
    updated = await service.update_workflow(
        SPACE_ID, workflow.id, WorkflowUpdate(name="Renamed"), "u-admin"
    )
    assert updated.name == "Renamed"
    assert updated.version == 1
    assert [s.id for s in updated.statuses] == [s.id for s in workflow.statuses]


async def test_removing_status_in_use_is_rejected(service, db_session) -> None:
    workflow = await service.create_workflow(SPACE_ID, _board(), "u-admin")
    await TaskRepository(db_session).create(
        SPACE_ID,
        TaskCreate(title="Stuck"),
        workflow_id=workflow.id,
        status_id=workflow.initial_status.id,
        created_by="u-member",
    )
    with pytest.raises(ValidationException) as exc_info:
        await service.update_workflow(
            SPACE_ID,
            workflow.id,
            WorkflowUpdate(
                statuses=[StatusInput(key="done", name="Done", category="DONE", is_done=True)],
                transitions=[],
            ),
            "u-admin",
        )
    assert exc_info.value.violations == ["Status 'TODO' is referenced by existing tasks"]


async def test_delete_in_use_workflow_is_rejected(service, db_session) -> None:
    workflow = await service.create_workflow(SPACE_ID, _board(), "u-admin")
    template = await TaskTemplateRepository(db_session).create_template(
        SPACE_ID, "Bug", workflow_id=workflow.id
    )
    with pytest.raises(ValidationException) as exc_info:
        await service.delete_workflow(SPACE_ID, workflow.id, "u-admin")
    assert exc_info.value.violations == ["1 template(s) are bound to this workflow"]

    await service.assign_workflow_to_template(SPACE_ID, template.id, None, "u-admin")
    await service.delete_workflow(SPACE_ID, workflow.id, "u-admin")
    with pytest.raises(WorkflowNotFoundException):
        await service.get_workflow(SPACE_ID, workflow.id)


async def test_template_binding(service, db_session) -> None:
    workflow = await service.create_workflow(SPACE_ID, _board(), "u-admin")
    foreign = await service.create_workflow(OTHER_SPACE_ID, _board(), "u-outsider")
    template = await TaskTemplateRepository(db_session).create_template(SPACE_ID, "Bug")

    bound = await service.assign_workflow_to_template(
        SPACE_ID, template.id, workflow.id, "u-admin"
    )
    assert bound.workflow_id == workflow.id
    assert (await service.get_workflow(SPACE_ID, workflow.id)).linked_template_ids == [
        template.id
    ]

    with pytest.raises(ValidationException):
        await service.assign_workflow_to_template(
            SPACE_ID, template.id, foreign.id, "u-admin"
        )
    actions = [h.action for h in await service.workflow_history(SPACE_ID, workflow.id)]
    assert actions == ["CREATED", "TEMPLATE_BOUND"]


async def test_conditional_status_update(service, db_session) -> None:
    """The second writer with the same expected version matches no row."""
    workflow = await service.create_workflow(SPACE_ID, _board(), "u-admin")
    repo = TaskRepository(db_session)
    todo = workflow.initial_status.id
    doing = workflow.status_by_key("IN_PROGRESS").id
    task = await repo.create(
        SPACE_ID, TaskCreate(title="Race"), workflow_id=workflow.id, status_id=todo, created_by="u-member"
    )

    first = await repo.update_status_if_version(
        task.id, expected_version=1, expected_status_id=todo, values={"status_id": doing}
    )
    second = await repo.update_status_if_version(
        task.id, expected_version=1, expected_status_id=todo, values={"status_id": doing}
    )
    assert first is not None
    assert first.version == 2
    assert first.status_id == doing
    assert second is None


async def test_task_audit_records_are_immutable(service, db_session) -> None:
    workflow = await service.create_workflow(SPACE_ID, _board(), "u-admin")
    todo = workflow.initial_status.id
    task = await TaskRepository(db_session).create(
        SPACE_ID, TaskCreate(title="Audited"), workflow_id=workflow.id, status_id=todo, created_by="u-member"
    )
    appended = await TaskAuditRepository(db_session).append(
        TaskAuditRecordCreate(
            task_id=task.id,
            space_id=SPACE_ID,
            user_id="u-member",
            from_status_id=todo,
            to_status_id=workflow.status_by_key("IN_PROGRESS").id,
            transition_id=workflow.transitions[0].id,
            transition_key="START",
            timestamp=utc_now(),
            metadata={},
        )
    )
    row = (
        await db_session.execute(select(TaskAuditRecord).where(TaskAuditRecord.id == appended.id))
    ).scalar_one()
    row.transition_key = "EDITED"
    with pytest.raises(ValueError, match="immutable"):
        await db_session.flush()


async def test_duplicate_shortens_name_to_fit(service) -> None:
    source = await service.create_workflow(
        SPACE_ID, replace(_board(), name="N" * 255, is_default=False), "u-admin"
    )
    copy = await service.duplicate_workflow(SPACE_ID, source.id, "u-admin")
    assert copy.name == "N" * 250 + " Copy"


async def test_linked_templates_are_bound_and_replaced(service, db_session) -> None:
    templates = TaskTemplateRepository(db_session)
    bug = await templates.create_template(SPACE_ID, "Bug")
    story = await templates.create_template(SPACE_ID, "Story")

    workflow = await service.create_workflow(
        SPACE_ID, replace(_board(), linked_template_ids=[bug.id, bug.id]), "u-admin"
    )
    assert workflow.linked_template_ids == [bug.id]

    updated = await service.update_workflow(
        SPACE_ID, workflow.id, WorkflowUpdate(linked_template_ids=[story.id]), "u-admin"
    )
    assert updated.linked_template_ids == [story.id]
    assert updated.version == 1
    assert (await templates.get_by_id_and_space(bug.id, SPACE_ID)).workflow_id is None

    history = await service.workflow_history(SPACE_ID, workflow.id)
    update = next(h for h in history if h.action == "UPDATED")
    assert update.metadata["changed"] == ["linked_template_ids"]
    assert sorted(
        (h.action, h.metadata["template_id"]) for h in history if "template_id" in h.metadata
    ) == sorted(
        [
            ("TEMPLATE_BOUND", bug.id),
            ("TEMPLATE_UNBOUND", bug.id),
            ("TEMPLATE_BOUND", story.id),
        ]
    )


async def test_linked_templates_must_be_in_the_space(service, db_session) -> None:
    foreign = await TaskTemplateRepository(db_session).create_template(OTHER_SPACE_ID, "Bug")
    with pytest.raises(ValidationException) as exc_info:
        await service.create_workflow(
            SPACE_ID,
            replace(_board(), linked_template_ids=[foreign.id, "missing"]),
            "u-admin",
        )
    assert exc_info.value.violations == [
        f"Template '{foreign.id}' not found in this space",
        "Template 'missing' not found in this space",
    ]
    assert await service.list_workflows(SPACE_ID) == []


async def test_description_can_be_cleared(service) -> None:
    workflow = await service.create_workflow(
        SPACE_ID, replace(_board(), description="Bugs only"), "u-admin"
    )
    renamed = await service.update_workflow(
        SPACE_ID, workflow.id, WorkflowUpdate(name="Bugs"), "u-admin"
    )
    assert renamed.description == "Bugs only"
    cleared = await service.update_workflow(
        SPACE_ID, workflow.id, WorkflowUpdate(clear_description=True), "u-admin"
    )
    assert cleared.description is None
