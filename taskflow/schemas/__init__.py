"""API request/response schemas (pydantic). No ORM imports."""
