"""
HealthAPI Backend — Application Package
=========================================

Layered architecture:

    ┌─────────────────────────────────────┐
    │        Routes (HTTP surface)        │  ← status codes, bodies
    ├─────────────────────────────────────┤
    │     Services (credential lifecycle, │  ← preconditions, state changes
    │      profile & measurement CRUD)    │
    ├─────────────────────────────────────┤
    │  Models (SQLAlchemy) & Schemas      │  ← tables / API contracts
    ├─────────────────────────────────────┤
    │   Database (async sessions)         │  ← one transaction per request
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
