"""Pydantic request/response schemas (API contracts), separate from ORM models."""
