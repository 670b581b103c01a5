# Middleware package init
"""
SpiritArt Backend: Middleware Package
======================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

Request ID runs first so the access log line and any error body for the
request carry the same correlation id.
"""
