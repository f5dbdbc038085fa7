"""
OneSim Backend: Middleware Package
==================================

What:  Cross-cutting concerns applied to every HTTP request.

Middleware chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    The request ID is assigned first so the access log line carries it.
    WebSocket connections pass through untouched.
"""
