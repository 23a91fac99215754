"""
HealthAPI Backend — API Routes Package
========================================

Route Inventory:
    - users.py:         POST/GET/DELETE /users
    - auth.py:          /auth (login, logout, tokens, confirmation, credentials, reset)
    - profiles.py:      GET/PATCH /profiles
    - measurements.py:  /measurements CRUD
    - health.py:        GET /health

Design Principle:
    Routes are thin: parse the body, call one service method, shape the
    response. Preconditions and state changes live in the services.
"""
