# Middleware package init
"""
DevOps Learning API: Middleware Package
=======================================

Middleware Chain:
    Request → [Request ID] → [Logging] → Route Handler

    Responses travel back in reverse, so the access log line sees the final
    status code and the X-Request-ID header is set last.
"""
