"""CUID2 identifiers for every persisted row (workflows, statuses, tasks, audit records)."""

from cuid2 import cuid_wrapper

_next_id = cuid_wrapper()


def generate_cuid() -> str:
    """Return a fresh CUID2 string; safe to use as a column default."""
    return str(_next_id())
