"""
SnapPDF Backend - API Routes Package
======================================

Route Inventory:
    - auth.py:    GET   /api/auth/google            (consent URL)
                  POST  /api/auth/google/login      (code → access token)
                  POST  /api/auth/logout            (revoke token)
    - user.py:    GET   /api/user/profile           (session snapshot)
    - upload.py:  POST  /api/upload                 (images → OCR)
                  POST  /api/upload/management      (any file type)
    - files.py:   GET   /api/files                  (listing with links)
                  PATCH /api/files/{id}/status      (OCR worker callback, basic auth)
    - health.py:  GET   /health

Handlers stay thin: parse the request, call a service, shape the response.
Errors propagate as SnapPDFError subclasses to the handlers in main.py.
"""
