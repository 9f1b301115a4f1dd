"""Workflow definition use cases: create, list, get, duplicate, update, delete, template binding."""

from __future__ import annotations

from typing import TYPE_CHECKING

from taskflow.application.dtos.workflow import (
    StatusInput,
    TransitionInput,
    WorkflowCreate,
    WorkflowUpdate,
)
from taskflow.application.services.workflow_definition_validator import (
    WorkflowDefinitionValidator,
)
from taskflow.core.constants import WORKFLOW_NAME_MAX_LENGTH
from taskflow.domain.exceptions import (
    TemplateNotFoundException,
    ValidationException,
    WorkflowNotFoundException,
)
from taskflow.shared.enums import WorkflowAuditAction
from taskflow.shared.telemetry.logging import get_logger
from taskflow.shared.telemetry.tracing import traced

if TYPE_CHECKING:
    from taskflow.application.dtos.audit import WorkflowAuditRecordResult
    from taskflow.application.dtos.template import TaskTemplateResult
    from taskflow.application.interfaces.repositories import (
        ITaskRepository,
        ITaskTemplateRepository,
        IWorkflowAuditRepository,
        IWorkflowRepository,
    )
    from taskflow.domain.entities.workflow import WorkflowEntity

logger = get_logger(__name__)


def _status_inputs(workflow: WorkflowEntity) -> list[StatusInput]:
    """Rebuild author input from a stored graph (same keys and order)."""
    return [
        StatusInput(
            key=s.key,
            name=s.name,
            color=s.color,
            category=s.category,
            is_done=s.is_done,
            is_initial=s.is_initial,
            position=s.position,
        )
        for s in workflow.statuses
    ]


def _transition_inputs(workflow: WorkflowEntity) -> list[TransitionInput]:
    keys = {s.id: s.key for s in workflow.statuses}
    return [
        TransitionInput(
            from_key=keys[t.from_status_id] if t.from_status_id else None,
            to_key=keys[t.to_status_id],
            transition_key=t.transition_key,
            name=t.name,
            guards=list(t.guards),
            required_permission=t.required_permission,
            post_functions=list(t.post_functions),
            is_global=t.is_global,
        )
        for t in workflow.transitions
    ]


def _copy_name(name: str) -> str:
    """Name of a duplicate; the base is shortened so the suffix always fits."""
    suffix = " Copy"
    return f"{name[: WORKFLOW_NAME_MAX_LENGTH - len(suffix)].rstrip()}{suffix}"


class WorkflowDefinitionService:
    """Space-scoped store of workflow graphs.

    Callers run each write inside one transaction (see get_db_transactional);
    the graph, the is_default flip and the audit record commit together.
    """

    def __init__(
        self,
        workflow_repo: IWorkflowRepository,
        task_repo: ITaskRepository,
        template_repo: ITaskTemplateRepository,
        audit_repo: IWorkflowAuditRepository,
        validator: WorkflowDefinitionValidator | None = None,
    ) -> None:
        self.workflow_repo = workflow_repo
        self.task_repo = task_repo
        self.template_repo = template_repo
        self.audit_repo = audit_repo
        self.validator = validator or WorkflowDefinitionValidator()

    async def _get_owned(self, space_id: str, workflow_id: str) -> WorkflowEntity:
        workflow = await self.workflow_repo.get_by_id_and_space(workflow_id, space_id)
        if workflow is None:
            raise WorkflowNotFoundException(workflow_id)
        return workflow

    async def _templates_in_space(
        self, space_id: str, template_ids: list[str]
    ) -> list[TaskTemplateResult]:
        """Load the templates to link; every id must name a template of this space."""
        templates: list[TaskTemplateResult] = []
        missing: list[str] = []
        for template_id in dict.fromkeys(template_ids):
            template = await self.template_repo.get_by_id_and_space(template_id, space_id)
            if template is None:
                missing.append(f"Template '{template_id}' not found in this space")
            else:
                templates.append(template)
        if missing:
            raise ValidationException(
                "Linked templates must belong to the workflow's space",
                field="linked_template_ids",
                violations=missing,
            )
        return templates

    async def _record_binding(
        self,
        space_id: str,
        workflow_id: str,
        version: int,
        template_id: str,
        action: WorkflowAuditAction,
        actor_id: str | None,
    ) -> None:
        await self.audit_repo.append(
            workflow_id=workflow_id,
            space_id=space_id,
            version=version,
            action=action.value,
            actor_id=actor_id,
            metadata={"template_id": template_id},
        )

    async def _sync_templates(
        self,
        space_id: str,
        workflow: WorkflowEntity,
        templates: list[TaskTemplateResult],
        version: int,
        actor_id: str | None,
    ) -> None:
        """Bind exactly templates to workflow; its other templates are unbound."""
        wanted = {t.id for t in templates}
        for template_id in workflow.linked_template_ids:
            if template_id in wanted:
                continue
            await self.template_repo.set_workflow(template_id, None)
            await self._record_binding(
                space_id,
                workflow.id,
                version,
                template_id,
                WorkflowAuditAction.TEMPLATE_UNBOUND,
                actor_id,
            )
        for template in templates:
            if template.workflow_id == workflow.id:
                continue
            await self.template_repo.set_workflow(template.id, workflow.id)
            await self._record_binding(
                space_id,
                workflow.id,
                version,
                template.id,
                WorkflowAuditAction.TEMPLATE_BOUND,
                actor_id,
            )

    async def _store_new(
        self,
        space_id: str,
        *,
        name: str,
        description: str | None,
        is_default: bool,
        statuses: list[StatusInput],
        transitions: list[TransitionInput],
        actor_id: str | None,
    ) -> WorkflowEntity:
        graph = self.validator.build_graph(
            statuses,
            transitions,
            extra_violations=self.validator.validate_name(name),
        )
        workflow = await self.workflow_repo.create(
            space_id,
            name=name.strip(),
            description=description,
            is_default=is_default,
            graph=graph,
            actor_id=actor_id,
        )
        if is_default:
            await self.workflow_repo.clear_default(space_id, workflow.id)
        return workflow

    @traced("workflow.create")
    async def create_workflow(
        self, space_id: str, data: WorkflowCreate, actor_id: str | None
    ) -> WorkflowEntity:
        """Validate and persist a new workflow with its statuses and transitions.

        Templates named in linked_template_ids are bound to the new workflow
        in the same transaction.

        Raises:
            ValidationException: listing every problem with the definition,
                or every linked template that is not in the space.
        """
        templates = await self._templates_in_space(space_id, data.linked_template_ids)
        workflow = await self._store_new(
            space_id,
            name=data.name,
            description=data.description,
            is_default=data.is_default,
            statuses=data.statuses,
            transitions=data.transitions,
            actor_id=actor_id,
        )
        await self.audit_repo.append(
            workflow_id=workflow.id,
            space_id=space_id,
            version=workflow.version,
            action=WorkflowAuditAction.CREATED.value,
            actor_id=actor_id,
            metadata={
                "name": workflow.name,
                "status_count": len(workflow.statuses),
                "transition_count": len(workflow.transitions),
            },
        )
        if templates:
            await self._sync_templates(
                space_id, workflow, templates, workflow.version, actor_id
            )
            workflow = await self._get_owned(space_id, workflow.id)
        logger.info("Workflow created: id=%s space=%s", workflow.id, space_id)
        return workflow

    async def list_workflows(self, space_id: str) -> list[WorkflowEntity]:
        """Return all workflows of the space with full graphs (stable order)."""
        return await self.workflow_repo.list_by_space(space_id)

    async def get_workflow(self, space_id: str, workflow_id: str) -> WorkflowEntity:
        """Return one workflow of the space or raise WorkflowNotFoundException."""
        return await self._get_owned(space_id, workflow_id)

    async def workflow_history(
        self, space_id: str, workflow_id: str
    ) -> list[WorkflowAuditRecordResult]:
        """Return lifecycle records of a workflow, oldest first."""
        await self._get_owned(space_id, workflow_id)
        return await self.audit_repo.list_for_workflow(workflow_id)

    @traced("workflow.duplicate")
    async def duplicate_workflow(
        self, space_id: str, workflow_id: str, actor_id: str | None
    ) -> WorkflowEntity:
        """Deep-copy a workflow: fresh ids, same keys and edges, never the default."""
        source = await self._get_owned(space_id, workflow_id)
        copy = await self._store_new(
            space_id,
            name=_copy_name(source.name),
            description=source.description,
            is_default=False,
            statuses=_status_inputs(source),
            transitions=_transition_inputs(source),
            actor_id=actor_id,
        )
        await self.audit_repo.append(
            workflow_id=copy.id,
            space_id=space_id,
            version=copy.version,
            action=WorkflowAuditAction.DUPLICATED.value,
            actor_id=actor_id,
            metadata={"source_workflow_id": source.id},
        )
        logger.info("Workflow duplicated: source=%s copy=%s", source.id, copy.id)
        return copy

    @traced("workflow.update")
    async def update_workflow(
        self,
        space_id: str,
        workflow_id: str,
        data: WorkflowUpdate,
        actor_id: str | None,
    ) -> WorkflowEntity:
        """Update attributes and, when supplied, the graph (re-validated as a whole).

        Statuses are matched by key so kept statuses (and the tasks in them)
        keep their ids. Removing a status that any task is in is rejected.
        When linked_template_ids is given the workflow ends up bound to exactly
        those templates.
        """
        workflow = await self._get_owned(space_id, workflow_id)
        templates = (
            await self._templates_in_space(space_id, data.linked_template_ids)
            if data.linked_template_ids is not None
            else None
        )
        violations = self.validator.validate_name(data.name) if data.name is not None else []
        changed: list[str] = []

        if data.changes_graph:
            statuses = data.statuses if data.statuses is not None else _status_inputs(workflow)
            transitions = (
                data.transitions
                if data.transitions is not None
                else _transition_inputs(workflow)
            )
            keys = {s.id: s.key for s in workflow.statuses}
            graph = self.validator.build_graph(
                statuses,
                transitions,
                existing_status_ids={s.key: s.id for s in workflow.statuses},
                existing_transition_ids={
                    (
                        None if t.is_global else keys.get(t.from_status_id or ""),
                        t.transition_key,
                    ): t.id
                    for t in workflow.transitions
                },
                extra_violations=violations,
            )
            kept_ids = {s.id for s in graph.statuses}
            removed = [s for s in workflow.statuses if s.id not in kept_ids]
            in_use = [
                f"Status '{s.key}' is referenced by existing tasks"
                for s in removed
                if await self.task_repo.count_by_statuses([s.id])
            ]
            if in_use:
                raise ValidationException(
                    "Cannot remove statuses that tasks are still in",
                    field="statuses",
                    violations=in_use,
                )
            await self.workflow_repo.replace_graph(
                workflow_id, graph, [s.id for s in removed]
            )
            changed.append("graph")
        elif violations:
            raise ValidationException(violations[0], field="name", violations=violations)

        await self.workflow_repo.update_attributes(
            workflow_id,
            name=data.name.strip() if data.name is not None else None,
            description=data.description,
            clear_description=data.clear_description,
            is_default=data.is_default,
            actor_id=actor_id,
        )
        changed.extend(
            name
            for name, touched in (
                ("name", data.name is not None),
                ("description", data.description is not None or data.clear_description),
                ("is_default", data.is_default is not None),
                ("linked_template_ids", data.linked_template_ids is not None),
            )
            if touched
        )
        if data.is_default:
            await self.workflow_repo.clear_default(space_id, workflow_id)

        version = workflow.version
        if data.changes_graph:
            version = await self.workflow_repo.bump_version(workflow_id)
        await self.audit_repo.append(
            workflow_id=workflow_id,
            space_id=space_id,
            version=version,
            action=WorkflowAuditAction.UPDATED.value,
            actor_id=actor_id,
            metadata={"changed": changed},
        )
        if templates is not None:
            await self._sync_templates(space_id, workflow, templates, version, actor_id)
        logger.info(
            "Workflow updated: id=%s version=%s changed=%s", workflow_id, version, changed
        )
        updated = await self.workflow_repo.get_by_id(workflow_id)
        if updated is None:
            raise WorkflowNotFoundException(workflow_id)
        return updated

    @traced("workflow.delete")
    async def delete_workflow(
        self, space_id: str, workflow_id: str, actor_id: str | None
    ) -> None:
        """Delete a workflow nobody uses; tasks or templates bound to it block deletion."""
        workflow = await self._get_owned(space_id, workflow_id)
        task_count = await self.task_repo.count_by_workflow(workflow_id)
        template_count = await self.template_repo.count_by_workflow(workflow_id)
        violations = []
        if task_count:
            violations.append(f"{task_count} task(s) use this workflow")
        if template_count:
            violations.append(f"{template_count} template(s) are bound to this workflow")
        if violations:
            raise ValidationException(
                "Workflow is in use and cannot be deleted",
                field="workflow_id",
                violations=violations,
            )
        await self.audit_repo.append(
            workflow_id=workflow_id,
            space_id=space_id,
            version=workflow.version,
            action=WorkflowAuditAction.DELETED.value,
            actor_id=actor_id,
            metadata={"name": workflow.name},
        )
        await self.workflow_repo.delete(workflow_id)
        logger.info("Workflow deleted: id=%s space=%s", workflow_id, space_id)

    @traced("workflow.assign_to_template")
    async def assign_workflow_to_template(
        self,
        space_id: str,
        template_id: str,
        workflow_id: str | None,
        actor_id: str | None,
    ) -> TaskTemplateResult:
        """Bind a workflow to a template (None unbinds).

        Raises:
            TemplateNotFoundException: template missing or in another space.
            WorkflowNotFoundException: workflow does not exist.
            ValidationException: workflow belongs to a different space.
        """
        template = await self.template_repo.get_by_id_and_space(template_id, space_id)
        if template is None:
            raise TemplateNotFoundException(template_id)

        if workflow_id is not None:
            workflow = await self.workflow_repo.get_by_id(workflow_id)
            if workflow is None:
                raise WorkflowNotFoundException(workflow_id)
            if not workflow.belongs_to_space(space_id):
                raise ValidationException(
                    "Workflow belongs to a different space than the template",
                    field="workflow_id",
                )
            action, audited = WorkflowAuditAction.TEMPLATE_BOUND, workflow
        elif template.workflow_id is not None:
            action = WorkflowAuditAction.TEMPLATE_UNBOUND
            audited = await self.workflow_repo.get_by_id(template.workflow_id)
        else:
            audited = None

        updated = await self.template_repo.set_workflow(template_id, workflow_id)
        if audited is not None:
            await self._record_binding(
                space_id, audited.id, audited.version, template_id, action, actor_id
            )
        logger.info(
            "Template %s workflow set to %s (space=%s)", template_id, workflow_id, space_id
        )
        return updated
