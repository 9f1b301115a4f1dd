"""Validates and normalises a workflow graph before it is stored.

Collects every violation instead of stopping at the first one, so an author
fixing a definition sees the full list in one ValidationException.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from taskflow.application.dtos.workflow import (
    StatusToPersist,
    TransitionToPersist,
    WorkflowGraphToPersist,
)
from taskflow.application.services.guards import validate_guard_specs
from taskflow.application.services.post_functions import validate_post_function_specs
from taskflow.core.constants import PERMISSION_KEY_MAX_LENGTH, WORKFLOW_NAME_MAX_LENGTH
from taskflow.domain.enums import StatusCategory
from taskflow.domain.exceptions import ValidationException
from taskflow.domain.value_objects import is_valid_key, normalize_key
from taskflow.shared.utils import generate_cuid

if TYPE_CHECKING:
    from taskflow.application.dtos.workflow import StatusInput, TransitionInput


def _default_name(key: str) -> str:
    return key.replace("_", " ").title()


class WorkflowDefinitionValidator:
    """Turns author input into a WorkflowGraphToPersist or raises with all violations."""

    def validate_name(self, name: str | None) -> list[str]:
        if name is None or not name.strip():
            return ["Workflow name is required"]
        if len(name.strip()) > WORKFLOW_NAME_MAX_LENGTH:
            return [f"Workflow name must be at most {WORKFLOW_NAME_MAX_LENGTH} characters"]
        return []

    def _statuses(
        self,
        statuses: list[StatusInput],
        existing_ids: dict[str, str],
        violations: list[str],
    ) -> list[StatusToPersist]:
        if not statuses:
            violations.append("Workflow must declare at least one status")
            return []

        seen: set[str] = set()
        initial_keys: list[str] = []
        ordered = sorted(
            enumerate(statuses),
            key=lambda pair: (
                pair[1].position if pair[1].position is not None else pair[0],
                pair[0],
            ),
        )
        prepared: list[tuple[str, StatusInput]] = []
        for index, status in ordered:
            key = normalize_key(status.key)
            where = f"status #{index}"
            if not key:
                violations.append(f"{where}: key is required")
                continue
            if not is_valid_key(key):
                violations.append(
                    f"{where}: key '{key}' must contain only letters, digits and underscores"
                )
                continue
            if key in seen:
                violations.append(f"Duplicate status key '{key}'")
                continue
            seen.add(key)
            if normalize_key(status.category) not in StatusCategory.values():
                violations.append(
                    f"Status '{key}': category must be one of {', '.join(StatusCategory.values())}"
                )
            if status.is_initial:
                initial_keys.append(key)
            prepared.append((key, status))

        if len(initial_keys) > 1:
            violations.append(
                f"Exactly one initial status is allowed, got {len(initial_keys)}: "
                f"{', '.join(initial_keys)}"
            )
        initial_key = initial_keys[0] if initial_keys else (prepared[0][0] if prepared else None)

        return [
            StatusToPersist(
                id=existing_ids.get(key) or generate_cuid(),
                key=key,
                name=(status.name or "").strip() or _default_name(key),
                color=status.color,
                category=normalize_key(status.category),
                position=position,
                is_done=status.is_done,
                is_initial=key == initial_key,
            )
            for position, (key, status) in enumerate(prepared)
        ]

    def _transitions(
        self,
        transitions: list[TransitionInput],
        status_ids: dict[str, str],
        existing_ids: dict[tuple[str | None, str], str],
        violations: list[str],
    ) -> list[TransitionToPersist]:
        result: list[TransitionToPersist] = []
        seen: set[tuple[str | None, str]] = set()
        for index, transition in enumerate(transitions):
            key = normalize_key(transition.transition_key)
            where = f"transition #{index} ({key or '?'})"
            ok = True
            if not key or not is_valid_key(key):
                violations.append(
                    f"{where}: transition_key must be non-empty letters, digits and underscores"
                )
                ok = False

            from_key = normalize_key(transition.from_key) if transition.from_key is not None else None
            to_key = normalize_key(transition.to_key)
            if transition.is_global and from_key is not None:
                violations.append(f"{where}: global transitions must not declare a from status")
                ok = False
            if not transition.is_global and from_key is None:
                violations.append(
                    f"{where}: from status is required unless the transition is global"
                )
                ok = False
            if from_key is not None and from_key not in status_ids:
                violations.append(f"{where}: from status '{from_key}' is not declared")
                ok = False
            if to_key not in status_ids:
                violations.append(f"{where}: to status '{to_key}' is not declared")
                ok = False

            scope = None if transition.is_global else from_key
            if key and (scope, key) in seen:
                origin = "among global transitions" if scope is None else f"from '{scope}'"
                violations.append(f"{where}: duplicate transition key '{key}' {origin}")
                ok = False
            seen.add((scope, key))

            required_permission = transition.required_permission
            if required_permission is not None:
                required_permission = required_permission.strip()
                if not required_permission:
                    violations.append(f"{where}: required_permission must not be blank")
                    ok = False
                elif len(required_permission) > PERMISSION_KEY_MAX_LENGTH:
                    violations.append(
                        f"{where}: required_permission must be at most "
                        f"{PERMISSION_KEY_MAX_LENGTH} characters"
                    )
                    ok = False

            guard_problems = validate_guard_specs(transition.guards, where)
            post_problems = validate_post_function_specs(transition.post_functions, where)
            violations.extend(guard_problems)
            violations.extend(post_problems)
            if not ok or guard_problems or post_problems:
                continue

            result.append(
                TransitionToPersist(
                    id=existing_ids.get((scope, key)) or generate_cuid(),
                    from_status_id=status_ids[from_key] if from_key is not None else None,
                    to_status_id=status_ids[to_key],
                    transition_key=key,
                    name=(transition.name or "").strip() or _default_name(key),
                    position=index,
                    guards=list(transition.guards),
                    required_permission=required_permission,
                    post_functions=list(transition.post_functions),
                    is_global=transition.is_global,
                )
            )
        return result

    def build_graph(
        self,
        statuses: list[StatusInput],
        transitions: list[TransitionInput],
        *,
        existing_status_ids: dict[str, str] | None = None,
        existing_transition_ids: dict[tuple[str | None, str], str] | None = None,
        extra_violations: list[str] | None = None,
    ) -> WorkflowGraphToPersist:
        """Validate the graph as a whole and return it ready to persist.

        Args:
            statuses: Declared statuses in author order.
            transitions: Declared transitions; endpoints reference status keys.
            existing_status_ids: key -> id of statuses already stored (updates
                keep those ids stable).
            existing_transition_ids: (from_key or None for global, transition_key)
                -> id of transitions already stored.
            extra_violations: Problems found by the caller (e.g. a blank name)
                reported together with graph problems.

        Raises:
            ValidationException: with every violation found.
        """
        violations = list(extra_violations or [])
        persisted_statuses = self._statuses(statuses, existing_status_ids or {}, violations)
        status_ids = {s.key: s.id for s in persisted_statuses}
        persisted_transitions = self._transitions(
            transitions, status_ids, existing_transition_ids or {}, violations
        )
        if violations:
            raise ValidationException(
                "Workflow definition is invalid",
                field="workflow",
                violations=violations,
            )
        return WorkflowGraphToPersist(
            statuses=persisted_statuses,
            transitions=persisted_transitions,
        )
