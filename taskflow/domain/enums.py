"""Domain enumerations for workflow definitions.

Enums represent fixed sets of domain values (e.g. status category).
"""

from enum import Enum


class StatusCategory(str, Enum):
    """Board column family a workflow status belongs to.

    Independent of is_done: a DONE-category status is normally flagged
    is_done, but the flag is what the engine reads.
    """

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid category values as strings."""
        return [category.value for category in cls]
