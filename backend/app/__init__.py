"""
Portcullis Backend - Application Package Initializer
====================================================

What: Marks the `app` directory as a Python package.
Who:  Used by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend is layered around one request/response contract:

    ┌─────────────────────────────────────┐
    │   Middleware (ids, logs, errors,    │  ← envelope + error mapping
    │   security headers, rate limits)    │
    ├─────────────────────────────────────┤
    │     Routes + auth guard (API)       │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │        Services (Business Logic)    │  ← users, Google OAuth
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Every response, success or failure, leaves the process in the envelope
    shape built by app.responses.
"""

__version__ = "1.0.0"
