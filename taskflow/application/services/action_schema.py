"""JSON Schema helpers for the ``{"type": <name>, ...params}`` objects stored on transitions.

Guards and post-functions share this shape; each registered type declares a
schema for its parameters and definitions are checked with jsonschema.
"""

from __future__ import annotations

from typing import Any

from jsonschema import Draft202012Validator


def action_schema(
    properties: dict[str, Any] | None = None,
    required: list[str] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build the schema for one action type: a closed object with a string 'type'."""
    return {
        "type": "object",
        "properties": {"type": {"type": "string"}, **(properties or {})},
        "required": ["type", *(required or [])],
        "additionalProperties": False,
        **extra,
    }


def validate_actions(
    actions: Any,
    schemas: dict[str, dict[str, Any]],
    *,
    where: str,
    label: str,
) -> list[str]:
    """Return one message per problem across a list of actions (empty when well-formed).

    Args:
        actions: The stored list (anything, as received from the author).
        schemas: Registered action type -> parameter schema.
        where: Prefix locating the owning transition in messages.
        label: Human name of the action kind ('guard', 'post-function').
    """
    if not isinstance(actions, list):
        return [f"{where}: {label}s must be a list"]
    violations: list[str] = []
    for index, action in enumerate(actions):
        if not isinstance(action, dict) or not isinstance(action.get("type"), str):
            violations.append(f"{where}: {label} #{index} must be an object with a 'type'")
            continue
        schema = schemas.get(action["type"])
        if schema is None:
            violations.append(f"{where}: unknown {label} type '{action['type']}'")
            continue
        errors = sorted(
            Draft202012Validator(schema).iter_errors(action),
            key=lambda e: list(e.absolute_path),
        )
        violations.extend(f"{where}: {label} '{action['type']}' {e.message}" for e in errors)
    return violations


def action_params(action: dict[str, Any]) -> dict[str, Any]:
    """Return the parameters of an action (everything except its type)."""
    return {k: v for k, v in action.items() if k != "type"}
