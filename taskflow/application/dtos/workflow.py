"""DTOs for workflow definition use cases (no dependency on ORM or presentation schemas)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class StatusInput:
    """One status as declared by the author (keys are normalised by the service)."""

    key: str
    name: str
    color: str | None = None
    category: str = "TODO"
    is_done: bool = False
    is_initial: bool = False
    position: int | None = None


@dataclass(frozen=True)
class TransitionInput:
    """One transition as declared by the author; endpoints reference status keys.

    from_key is None exactly when is_global is True.
    """

    to_key: str
    transition_key: str
    from_key: str | None = None
    name: str | None = None
    guards: list[dict[str, Any]] = field(default_factory=list)
    required_permission: str | None = None
    post_functions: list[dict[str, Any]] = field(default_factory=list)
    is_global: bool = False


@dataclass(frozen=True)
class WorkflowCreate:
    """Input for creating a workflow with its full graph."""

    name: str
    statuses: list[StatusInput]
    transitions: list[TransitionInput] = field(default_factory=list)
    description: str | None = None
    is_default: bool = False
    linked_template_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class WorkflowUpdate:
    """Partial update. None leaves the attribute (or the graph part) unchanged.

    Supplying statuses and/or transitions re-validates the whole graph.
    clear_description removes the description. linked_template_ids, when
    given, is the exact set of templates bound to the workflow afterwards.
    """

    name: str | None = None
    description: str | None = None
    clear_description: bool = False
    is_default: bool | None = None
    statuses: list[StatusInput] | None = None
    transitions: list[TransitionInput] | None = None
    linked_template_ids: list[str] | None = None

    @property
    def changes_graph(self) -> bool:
        return self.statuses is not None or self.transitions is not None


@dataclass(frozen=True)
class StatusToPersist:
    """Status row ready for insert/update (key normalised, position and id assigned)."""

    id: str
    key: str
    name: str
    color: str | None
    category: str
    position: int
    is_done: bool
    is_initial: bool


@dataclass(frozen=True)
class TransitionToPersist:
    """Transition row ready for insert (endpoints resolved to status ids)."""

    id: str
    from_status_id: str | None
    to_status_id: str
    transition_key: str
    name: str
    position: int
    guards: list[dict[str, Any]]
    required_permission: str | None
    post_functions: list[dict[str, Any]]
    is_global: bool


@dataclass(frozen=True)
class WorkflowGraphToPersist:
    """Validated, normalised graph for one workflow."""

    statuses: list[StatusToPersist]
    transitions: list[TransitionToPersist]
