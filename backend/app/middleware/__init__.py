"""
HealthAPI Backend — Middleware Package
========================================

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    - Rate limit first: abusive clients are rejected before any work,
      which also slows down guessing of passwords and reset codes
    - Request ID before logging: every access log line carries the ID
"""
