"""Workflow domain entity.

A workflow is a space-scoped directed graph: its statuses are the states a
task may occupy and its transitions are the legal moves between them. The
entity answers graph questions (initial status, outgoing edges, resolution
of a key from a given status); it never touches persistence.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class StatusEntity:
    """One state of a workflow."""

    id: str
    workflow_id: str
    key: str
    name: str
    color: str | None
    category: str
    position: int
    is_done: bool
    is_initial: bool


@dataclass(frozen=True)
class TransitionEntity:
    """A directed, optionally guarded and permission-gated edge.

    from_status_id is None only for global edges (is_global=True), which
    are reachable from any status and reserved for space admins.
    """

    id: str
    workflow_id: str
    from_status_id: str | None
    to_status_id: str
    transition_key: str
    name: str
    position: int
    guards: list[dict[str, Any]] = field(default_factory=list)
    required_permission: str | None = None
    post_functions: list[dict[str, Any]] = field(default_factory=list)
    is_global: bool = False

    def leaves(self, status_id: str) -> bool:
        """Return whether this edge may be taken from status_id."""
        return self.is_global or self.from_status_id == status_id


@dataclass(frozen=True)
class WorkflowEntity:
    """Domain entity for a workflow definition and its full graph."""

    id: str
    space_id: str
    name: str
    description: str | None
    is_default: bool
    version: int
    statuses: list[StatusEntity]
    transitions: list[TransitionEntity]
    created_at: datetime | None = None
    updated_at: datetime | None = None
    linked_template_ids: list[str] = field(default_factory=list)

    def belongs_to_space(self, space_id: str) -> bool:
        """Return whether this workflow is owned by the given space."""
        return self.space_id == space_id

    @property
    def initial_status(self) -> StatusEntity:
        """Return the status new tasks start in (exactly one per workflow)."""
        for status in self.statuses:
            if status.is_initial:
                return status
        raise LookupError(f"Workflow {self.id} has no initial status")

    def status_by_id(self, status_id: str | None) -> StatusEntity | None:
        """Return the status with this id, or None."""
        for status in self.statuses:
            if status.id == status_id:
                return status
        return None

    def status_by_key(self, key: str) -> StatusEntity | None:
        """Return the status with this key, or None."""
        for status in self.statuses:
            if status.key == key:
                return status
        return None

    def transition_by_id(self, transition_id: str) -> TransitionEntity | None:
        """Return the transition with this id, or None."""
        for transition in self.transitions:
            if transition.id == transition_id:
                return transition
        return None

    def outgoing(self, status_id: str, *, include_global: bool = True) -> list[TransitionEntity]:
        """Return edges that may be taken from status_id, in display order.

        Edges declared on the status come first, then global edges.
        """
        direct = [t for t in self.transitions if t.from_status_id == status_id]
        if not include_global:
            return direct
        return direct + [t for t in self.transitions if t.is_global]

    def resolve_key(self, status_id: str, transition_key: str) -> TransitionEntity | None:
        """Resolve a key against the edges leaving status_id.

        An edge declared on the status wins over a global edge with the same key.
        """
        for transition in self.outgoing(status_id):
            if transition.transition_key == transition_key:
                return transition
        return None

    def edge_signature(self) -> set[tuple[str | None, str, str]]:
        """Return the graph shape as (from_key, to_key, transition_key) triples."""
        keys = {s.id: s.key for s in self.statuses}
        return {
            (keys.get(t.from_status_id) if t.from_status_id else None, keys[t.to_status_id], t.transition_key)
            for t in self.transitions
        }
