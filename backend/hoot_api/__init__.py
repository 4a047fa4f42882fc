"""
Hoot API Backend: Application Package Initializer
==================================================

What: Marks the `hoot_api` directory as a Python package.
Who:  Imported by uvicorn (`uvicorn hoot_api.main:app`), Alembic and pytest.

Architecture Note:
    The backend is layered:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, auth dependency
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← ownership checks, aggregate edits
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    A hoot and its comments form one aggregate. Comments are only ever
    reached through the owning hoot's `comments` collection.
"""

__version__ = "1.0.0"
