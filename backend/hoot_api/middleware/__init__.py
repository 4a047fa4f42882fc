# Middleware package init
"""
Hoot API Backend: Middleware Package
=====================================

Middleware Chain (order matters):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Rate Limit first: reject over-budget clients before any work
    2. Request ID: correlation id for every later log line
    3. Logging: one access line with status and duration
    4. GZip / CORS: FastAPI built-ins

Responses travel the chain in reverse, so the X-Request-ID header is
present on every response except 429s from the rate limiter.
"""
