"""Domain value objects and shared value types."""

from taskflow.domain.value_objects.core import (
    ById,
    ByKey,
    TransitionRef,
    is_valid_key,
    normalize_key,
    transition_ref_from_request,
)

__all__ = [
    "ById",
    "ByKey",
    "TransitionRef",
    "is_valid_key",
    "normalize_key",
    "transition_ref_from_request",
]
