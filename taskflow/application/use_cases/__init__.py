"""Application use cases (orchestrate domain, services and repositories)."""
