# Routes package init
"""
SpiritArt Backend: API Routes Package
======================================

Route Inventory:
    - health.py:    GET  /                       (liveness banner)
                    GET  /health                 (dependency status)
    - users.py:     GET  /api/user/{id}          (user + balance)
                    POST /api/user/create        (upsert)
                    GET  /api/user/{id}/transactions
                    GET  /api/user/{id}/images
    - payments.py:  POST /api/create-order
                    POST /api/verify-payment
    - images.py:    POST /api/upload-image       (transform workflow)
                    POST /api/generate-image     (retired, always 400)
    - uploads.py:   GET  /uploads/{name}         (temporary originals)

Routes stay thin: read the request, call one service, return its result.
"""
