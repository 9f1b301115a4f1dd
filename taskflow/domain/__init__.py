"""Domain layer: workflow graph entities, value objects, enums and exceptions.

Pure domain models; no ORM or persistence concerns.
"""
