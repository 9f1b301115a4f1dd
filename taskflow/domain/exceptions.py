"""Domain exceptions for Taskflow.

Defines domain-level exceptions that represent business rule violations in
workflow definitions and task transitions. These exceptions are independent
of infrastructure concerns. The presentation layer maps them to HTTP
responses in taskflow.core.exception_handlers.

Every exception carries an ``error_kind`` (the caller-facing failure
category: TaskNotFound, TransitionNotFound, NotFound, PermissionDenied,
GuardFailed, ConcurrentModification, ValidationError) in addition to the
machine-readable ``error_code``.
"""

from typing import Any


class TaskflowException(Exception):
    """Base exception for all Taskflow application errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. violations, guard reasons).
    """

    error_kind: str = "Error"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        return {
            "error_kind": self.error_kind,
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(TaskflowException):
    """Raised when a request or a workflow definition is malformed.

    Always carries the full list of violations, never just the first one.
    """

    error_kind = "ValidationError"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        violations: list[str] | None = None,
    ) -> None:
        """Initialize with message, optional field name and violation list.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
            violations: Every individual problem found.
        """
        details: dict[str, Any] = {"violations": violations or [message]}
        if field:
            details["field"] = field
        self.violations = details["violations"]
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(TaskflowException):
    """Raised when a workflow, template or space is absent or out of scope."""

    error_kind = "NotFound"

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'workflow', 'template').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class WorkflowNotFoundException(ResourceNotFoundException):
    """Raised when a workflow does not exist in the requested space."""

    def __init__(self, workflow_id: str) -> None:
        super().__init__("workflow", workflow_id)


class TemplateNotFoundException(ResourceNotFoundException):
    """Raised when a task template does not exist in the requested space."""

    def __init__(self, template_id: str) -> None:
        super().__init__("template", template_id)


class TaskNotFoundException(TaskflowException):
    """Raised when the task of a transition request does not exist."""

    error_kind = "TaskNotFound"

    def __init__(self, task_id: str) -> None:
        super().__init__(
            f"Task not found: {task_id}",
            "TASK_NOT_FOUND",
            {"task_id": task_id},
        )


class TransitionNotFoundException(TaskflowException):
    """Raised when no legal edge matches the request from the task's current status."""

    error_kind = "TransitionNotFound"

    def __init__(
        self,
        task_id: str,
        *,
        transition_id: str | None = None,
        transition_key: str | None = None,
        current_status_id: str | None = None,
        reason: str = "not_found",
    ) -> None:
        """Initialize with the lookup that failed.

        Args:
            task_id: Task the transition was requested for.
            transition_id: Requested transition id, if resolving by id.
            transition_key: Requested transition key, if resolving by key.
            current_status_id: Status the task was in when resolution failed.
            reason: 'not_found', 'foreign_workflow' or 'not_from_current_status'.
        """
        ref = transition_id or transition_key
        super().__init__(
            f"Transition '{ref}' is not available for task {task_id}",
            "TRANSITION_NOT_FOUND",
            {
                "task_id": task_id,
                "transition_id": transition_id,
                "transition_key": transition_key,
                "current_status_id": current_status_id,
                "reason": reason,
            },
        )


class PermissionDeniedException(TaskflowException):
    """Raised when the user lacks the permission a transition or operation requires."""

    error_kind = "PermissionDenied"

    def __init__(
        self,
        required_permission: str | None = None,
        *,
        space_id: str | None = None,
        message: str | None = None,
        requires_space_admin: bool = False,
    ) -> None:
        """Initialize with the missing capability.

        Args:
            required_permission: Permission key the user would need.
            space_id: Space the check was made in.
            message: Optional override of the default message.
            requires_space_admin: True when only a space admin may proceed.
        """
        if message is None:
            if requires_space_admin:
                message = "Permission denied: space administrator required"
            elif required_permission:
                message = f"Permission denied: '{required_permission}' required"
            else:
                message = "Permission denied"
        details: dict[str, Any] = {"requires_space_admin": requires_space_admin}
        if required_permission:
            details["required_permission"] = required_permission
        if space_id:
            details["space_id"] = space_id
        super().__init__(message, "PERMISSION_DENIED", details)


class GuardFailedException(TaskflowException):
    """Raised when one or more transition guards do not hold.

    ``reasons`` lists every failing guard in declared order.
    """

    error_kind = "GuardFailed"

    def __init__(self, transition_key: str, reasons: list[dict[str, str]]) -> None:
        """Initialize with the failing guards.

        Args:
            transition_key: Key of the transition that was attempted.
            reasons: One {"guard": name, "message": text} per failing guard.
        """
        self.reasons = reasons
        names = ", ".join(r["guard"] for r in reasons)
        super().__init__(
            f"Transition '{transition_key}' blocked by guard(s): {names}",
            "GUARD_FAILED",
            {"transition_key": transition_key, "reasons": reasons},
        )


class ConcurrentModificationException(TaskflowException):
    """Raised when another write won the optimistic lock; re-read and resubmit."""

    error_kind = "ConcurrentModification"

    def __init__(
        self,
        task_id: str,
        expected_version: int,
        reason: str = "version_conflict",
    ) -> None:
        """Initialize with the conflicting task and the version that was read.

        Args:
            task_id: Task whose conditional update matched no row.
            expected_version: Version read before the update was attempted.
            reason: 'version_conflict', 'transition_removed' or 'transition_changed'.
        """
        super().__init__(
            "Task was modified by another request; re-read and retry.",
            "CONCURRENT_MODIFICATION",
            {"task_id": task_id, "expected_version": expected_version, "reason": reason},
        )


class SqlNotConfiguredException(TaskflowException):
    """Raised when an operation requires the database but it is not configured."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
