"""Task use cases: transitions and task operations."""

from taskflow.application.use_cases.tasks.perform_transition import TransitionEngine
from taskflow.application.use_cases.tasks.task_operations import TaskService

__all__ = ["TaskService", "TransitionEngine"]
