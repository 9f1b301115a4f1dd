"""Transition post-functions: side effects applied together with the status write.

A post-function is stored on the transition as ``{"type": <name>, ...params}``.
Each one contributes column values that are folded into the single conditional
task UPDATE, so side effects commit or roll back with the status change.
``notify`` has no delivery backend and is only logged.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from taskflow.application.services.action_schema import (
    action_params,
    action_schema,
    validate_actions,
)
from taskflow.core.constants import SETTABLE_TASK_FIELDS, TASK_PRIORITY_MAX_LENGTH
from taskflow.shared.utils.datetime import ensure_utc

if TYPE_CHECKING:
    from taskflow.application.dtos.task import TaskResult
    from taskflow.domain.entities.workflow import TransitionEntity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostFunctionContext:
    """Task as loaded, acting user and the edge being taken."""

    task: TaskResult
    actor_id: str
    transition: TransitionEntity


PostFunction = Callable[[PostFunctionContext, dict[str, Any]], dict[str, Any]]


def _set_field(ctx: PostFunctionContext, params: dict[str, Any]) -> dict[str, Any]:
    field, value = params["field"], params["value"]
    if field == "due_at" and isinstance(value, str):
        value = ensure_utc(datetime.fromisoformat(value))
    return {field: value}


def _assign(ctx: PostFunctionContext, params: dict[str, Any]) -> dict[str, Any]:
    if params.get("to") == "actor":
        return {"assignee_id": ctx.actor_id}
    return {"assignee_id": params["user_id"]}


def _clear_sprint(ctx: PostFunctionContext, params: dict[str, Any]) -> dict[str, Any]:
    return {"sprint_id": None}


def _notify(ctx: PostFunctionContext, params: dict[str, Any]) -> dict[str, Any]:
    logger.info(
        "Workflow notification: task=%s transition=%s recipients=%s",
        ctx.task.id,
        ctx.transition.transition_key,
        params.get("recipients", []),
    )
    return {}


# Accepted set_field values per task column; null clears the column.
SET_FIELD_VALUE_SCHEMAS: dict[str, dict[str, Any]] = {
    "assignee_id": {"type": ["string", "null"], "minLength": 1},
    "sprint_id": {"type": ["string", "null"], "minLength": 1},
    "description": {"type": ["string", "null"]},
    "priority": {"type": ["string", "null"], "maxLength": TASK_PRIORITY_MAX_LENGTH},
    "due_at": {"type": ["string", "null"]},
}

POST_FUNCTION_SCHEMAS: dict[str, dict[str, Any]] = {
    "set_field": action_schema(
        {"field": {"enum": sorted(SETTABLE_TASK_FIELDS)}, "value": {}},
        required=["field", "value"],
        allOf=[
            {
                "if": {"properties": {"field": {"const": name}}, "required": ["field"]},
                "then": {"properties": {"value": schema}},
            }
            for name, schema in sorted(SET_FIELD_VALUE_SCHEMAS.items())
        ],
    ),
    "assign": action_schema(
        {
            "user_id": {"type": "string", "minLength": 1},
            "to": {"const": "actor"},
        },
        oneOf=[{"required": ["user_id"]}, {"required": ["to"]}],
    ),
    "clear_sprint": action_schema(),
    "notify": action_schema(
        {
            "recipients": {"type": "array", "items": {"type": "string"}},
            "message": {"type": "string"},
        }
    ),
}

POST_FUNCTIONS: dict[str, PostFunction] = {
    "set_field": _set_field,
    "assign": _assign,
    "clear_sprint": _clear_sprint,
    "notify": _notify,
}


def _due_at_violations(post_functions: list[Any], where: str) -> list[str]:
    violations: list[str] = []
    for spec in post_functions:
        if not (isinstance(spec, dict) and spec.get("type") == "set_field"):
            continue
        if spec.get("field") == "due_at" and isinstance(spec.get("value"), str):
            try:
                datetime.fromisoformat(spec["value"])
            except ValueError:
                violations.append(
                    f"{where}: post-function 'set_field' value for due_at is not an ISO-8601 datetime"
                )
    return violations


def validate_post_function_specs(post_functions: Any, where: str) -> list[str]:
    """Return violations for a transition's post-function list."""
    violations = validate_actions(
        post_functions, POST_FUNCTION_SCHEMAS, where=where, label="post-function"
    )
    if isinstance(post_functions, list):
        violations.extend(_due_at_violations(post_functions, where))
    return violations


def collect_post_function_values(ctx: PostFunctionContext) -> dict[str, Any]:
    """Run post-functions in declared order; later writes to a field win."""
    values: dict[str, Any] = {}
    for spec in ctx.transition.post_functions:
        func = POST_FUNCTIONS.get(spec.get("type", ""))
        if func is None:
            logger.warning(
                "Skipping unknown post-function %r on transition %s",
                spec.get("type"),
                ctx.transition.id,
            )
            continue
        values.update(func(ctx, action_params(spec)))
    return values
