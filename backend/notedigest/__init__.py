"""
NoteDigest Backend: Application Package
=========================================

Note-taking backend with on-demand AI summaries and tags.

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (stores, AI gateway,      │  ← Validation, lifecycle rules,
    │  retry, token estimation)           │    retry/backoff, token budget
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
