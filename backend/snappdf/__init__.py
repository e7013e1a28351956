"""
SnapPDF Backend - Application Package Initializer
==================================================

What: Marks the `snappdf` directory as a Python package.
Who:  Imported by uvicorn (`snappdf.main:app`), Alembic and pytest.

Architecture Note:
    The backend keeps a layered layout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, auth dependencies
    ├─────────────────────────────────────┤
    │         Services (Intake, Auth)     │  ← Orchestration of SDK calls
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │  Clients (Postgres, Redis, S3, SQS) │  ← Built in the app lifespan
    └─────────────────────────────────────┘

    Services never import a client from module scope. Every client is
    constructed once at startup, stored on `app.state`, and passed into the
    service constructor by a FastAPI dependency (see `snappdf.dependencies`).
"""

__version__ = "1.0.0"
