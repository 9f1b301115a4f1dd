"""Domain value objects for workflow definitions and transition requests.

Value objects are immutable types that represent domain concepts with
self-validation. They have no identity, only value.
"""

import re
from dataclasses import dataclass
from typing import TypeAlias

from taskflow.domain.exceptions import ValidationException

_KEY_SEPARATORS_RE = re.compile(r"[\s\-]+")
_KEY_RE = re.compile(r"^[A-Z0-9][A-Z0-9_]*$")
KEY_MAX_LENGTH = 64


def normalize_key(value: str | None) -> str:
    """Return the canonical form of a status or transition key.

    'In progress' and 'in-progress' both become 'IN_PROGRESS'. Returns ''
    for None or blank input so callers can report it as a violation.
    """
    if value is None:
        return ""
    return _KEY_SEPARATORS_RE.sub("_", value.strip()).upper()


def is_valid_key(key: str) -> bool:
    """Return True if key is a normalised, non-empty symbolic key."""
    return bool(key) and len(key) <= KEY_MAX_LENGTH and bool(_KEY_RE.match(key))


@dataclass(frozen=True)
class ById:
    """Transition reference by primary key."""

    transition_id: str


@dataclass(frozen=True)
class ByKey:
    """Transition reference by symbolic key, resolved from the task's current status."""

    transition_key: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "transition_key", normalize_key(self.transition_key))


TransitionRef: TypeAlias = ById | ByKey


def transition_ref_from_request(
    transition_id: str | None, transition_key: str | None
) -> TransitionRef:
    """Build a TransitionRef from the two optional request fields.

    Exactly one of the two must be present.

    Raises:
        ValidationException: both or neither given.
    """
    has_id = bool(transition_id and transition_id.strip())
    has_key = bool(transition_key and transition_key.strip())
    if has_id and has_key:
        raise ValidationException(
            "Provide either transition_id or transition_key, not both",
            field="transition_id",
        )
    if not has_id and not has_key:
        raise ValidationException(
            "One of transition_id or transition_key is required",
            field="transition_id",
        )
    if has_id:
        return ById(transition_id.strip())
    return ByKey(transition_key)
