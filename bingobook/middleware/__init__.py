"""
BingoBook Backend — Middleware Package
========================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    The request ID is set before the access log line is written, so every
    log line of a request carries the same ID.
"""
