"""Infrastructure services (implement application service ports)."""

from taskflow.infrastructure.services.permission_resolver import SpaceMembershipResolver

__all__ = ["SpaceMembershipResolver"]
