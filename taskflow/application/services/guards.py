"""Transition guards: predicates over (task, actor) that must hold for an edge to fire.

A guard is stored on the transition as a JSON object ``{"type": <name>, ...params}``.
Guards are evaluated in declared order and every failure is collected, so a
caller sees all reasons a transition is blocked at once.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from taskflow.application.services.action_schema import (
    action_params,
    action_schema,
    validate_actions,
)
from taskflow.core.constants import GUARDABLE_TASK_FIELDS
from taskflow.domain.exceptions import GuardFailedException

if TYPE_CHECKING:
    from taskflow.application.dtos.task import TaskResult
    from taskflow.application.interfaces.repositories import ITaskRepository
    from taskflow.domain.entities.workflow import TransitionEntity


@dataclass(frozen=True)
class GuardContext:
    """What a guard may look at: the loaded task, the acting user and the edge."""

    task: TaskResult
    actor_id: str
    transition: TransitionEntity
    task_repo: ITaskRepository


GuardCheck = Callable[[GuardContext, dict[str, Any]], Awaitable[str | None]]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


async def _assignee_required(ctx: GuardContext, params: dict[str, Any]) -> str | None:
    if _is_blank(ctx.task.assignee_id):
        return "Task must have an assignee"
    return None


async def _due_date_required(ctx: GuardContext, params: dict[str, Any]) -> str | None:
    if ctx.task.due_at is None:
        return "Task must have a due date"
    return None


async def _required_fields(ctx: GuardContext, params: dict[str, Any]) -> str | None:
    missing = [f for f in params["fields"] if _is_blank(getattr(ctx.task, f, None))]
    if missing:
        return f"Required field(s) missing: {', '.join(missing)}"
    return None


async def _custom_fields(ctx: GuardContext, params: dict[str, Any]) -> str | None:
    values = ctx.task.custom_fields or {}
    missing = [k for k in params["keys"] if _is_blank(values.get(k))]
    if missing:
        return f"Required custom field(s) missing: {', '.join(missing)}"
    return None


async def _no_open_subtasks(ctx: GuardContext, params: dict[str, Any]) -> str | None:
    open_count = await ctx.task_repo.count_open_subtasks(ctx.task.id)
    if open_count:
        return f"Task has {open_count} open subtask(s)"
    return None


async def _actor_is_assignee(ctx: GuardContext, params: dict[str, Any]) -> str | None:
    if ctx.task.assignee_id != ctx.actor_id:
        return "Only the assignee may perform this transition"
    return None


GUARD_SCHEMAS: dict[str, dict[str, Any]] = {
    "assignee_required": action_schema(),
    "due_date_required": action_schema(),
    "required_fields": action_schema(
        {
            "fields": {
                "type": "array",
                "minItems": 1,
                "items": {"enum": sorted(GUARDABLE_TASK_FIELDS)},
            }
        },
        required=["fields"],
    ),
    "custom_fields": action_schema(
        {
            "keys": {
                "type": "array",
                "minItems": 1,
                "items": {"type": "string", "minLength": 1},
            }
        },
        required=["keys"],
    ),
    "no_open_subtasks": action_schema(),
    "actor_is_assignee": action_schema(),
}

GUARD_CHECKS: dict[str, GuardCheck] = {
    "assignee_required": _assignee_required,
    "due_date_required": _due_date_required,
    "required_fields": _required_fields,
    "custom_fields": _custom_fields,
    "no_open_subtasks": _no_open_subtasks,
    "actor_is_assignee": _actor_is_assignee,
}


def validate_guard_specs(guards: Any, where: str) -> list[str]:
    """Return violations for a transition's guard list (empty when well-formed)."""
    return validate_actions(guards, GUARD_SCHEMAS, where=where, label="guard")


async def evaluate_guards(ctx: GuardContext) -> list[dict[str, str]]:
    """Evaluate every guard of ctx.transition in order; return all failures."""
    reasons: list[dict[str, str]] = []
    for spec in ctx.transition.guards:
        name = spec.get("type", "")
        check = GUARD_CHECKS.get(name)
        if check is None:
            # Stored definitions are validated on write; treat drift as a failing guard.
            reasons.append({"guard": str(name), "message": "Unknown guard"})
            continue
        message = await check(ctx, action_params(spec))
        if message is not None:
            reasons.append({"guard": name, "message": message})
    return reasons


async def enforce_guards(ctx: GuardContext) -> None:
    """Raise GuardFailedException listing every failing guard, if any."""
    reasons = await evaluate_guards(ctx)
    if reasons:
        raise GuardFailedException(ctx.transition.transition_key, reasons)
