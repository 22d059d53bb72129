# Middleware package init
"""
Portbook Backend - Middleware Package
=======================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Request ID first, so the access log line carries it
    - Logging measures everything below it, auth and database included

Authentication is a route dependency (app.dependencies), not middleware,
so /health and the docs stay open.
"""
