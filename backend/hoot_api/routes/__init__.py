# Routes package init
"""
Hoot API Backend: API Routes Package
=====================================

Route Inventory:
    - hoots.py:   /hoots and /hoots/{id}/comments (authenticated CRUD)
    - health.py:  GET /health (unauthenticated service health)

Routes stay thin: extract path/body data, resolve the caller, call the
service. Authorization and aggregate handling live in services/.
"""
