"""
Portbook Backend - Application Package Initializer
====================================================

POD destination reference data: destinations (ports of discharge) and the
shipping lines serving each of them.

Architecture Note:
    ┌─────────────────────────────────────┐
    │     Routes (API Layer) + auth dep   │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (aggregate rules)        │  ← uniqueness, soft delete, merges
    ├─────────────────────────────────────┤
    │   Models & Schemas (Data)           │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database (Persistence)            │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
