"""
SnapPDF Backend - Middleware Package
======================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    The request id is set before the logging middleware reads it, so every
    access log line and every error response of a request share one id.
"""
