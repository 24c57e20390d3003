# Middleware package init
"""
Training Record Backend: Middleware Package
============================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS/Preflight] → Router

    - Request ID: correlation ID in a ContextVar and X-Request-ID
    - Logging: one access line per request with status and duration
    - CORS/Preflight: OPTIONS answered with "ok"; Allow-Origin on everything else
"""
