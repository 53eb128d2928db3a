# Middleware package init
"""
Storefront Backend — Middleware Package
=========================================

Cross-cutting request handling.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation ID for logs and the X-Request-ID header
    2. Logging: method, path, status and duration, tagged with the request ID
    3. GZip / CORS: FastAPI's stock middleware

auth.py is not Starlette middleware: it is the `require_auth` dependency
that protected routes declare, so only those routes pay for token checks.
"""
