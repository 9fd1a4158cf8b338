"""
NoteDigest Backend: Middleware Package
========================================

Middleware Chain:
    Request → [Request ID] → [Access Log] → Route Handler

The request id is set first so the access log line and any error body of
the same request carry it.
"""
