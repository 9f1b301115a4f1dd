"""Domain entities and aggregates.

Pure domain models; no ORM or persistence concerns.
"""

from taskflow.domain.entities.workflow import (
    StatusEntity,
    TransitionEntity,
    WorkflowEntity,
)

__all__ = [
    "StatusEntity",
    "TransitionEntity",
    "WorkflowEntity",
]
