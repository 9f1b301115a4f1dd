"""Persistence layer: database engine, ORM models, repositories, Alembic migrations."""
