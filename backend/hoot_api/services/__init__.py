# Services package init
"""
Hoot API Backend: Services Layer
=================================

What:  Business logic between routes (HTTP) and the database (persistence).

Service Inventory:
    - HootService: hoot CRUD, comment append/edit/remove, authorship rules

Services receive the request's AsyncSession and the verified caller as
arguments and hold no per-request state, so one configured instance serves
every request.
"""
