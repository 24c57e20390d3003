"""
Training Record Backend: Application Package Initializer
========================================================

What: Marks the `app` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The backend is split into thin layers:

    ┌─────────────────────────────────────┐
    │      Router (path-suffix dispatch)  │  ← HTTP concerns, response envelope
    ├─────────────────────────────────────┤
    │   Services (reference, record)      │  ← Store reads/writes, transactions
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async engine and sessions
    └─────────────────────────────────────┘

    Routes format responses; services own every statement sent to the store
    and every commit/rollback.
"""

__version__ = "1.0.0"
