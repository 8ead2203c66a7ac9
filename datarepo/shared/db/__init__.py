"""
Database Module

Engine and session management for the repositories.

Architecture Overview:
======================
┌─────────────────────────────────────────────────────────────────────────────┐
│                        DATABASE LAYER                                       │
├─────────────────────────────────────────────────────────────────────────────┤
│                                                                             │
│   Caller (service, web handler, script)                                     │
│       │                                                                     │
│       │  async with session_scope() as session                              │
│       ▼                                                                     │
│   ┌─────────────────────────────────────────────────────────────┐          │
│   │              AsyncSession (from session.py)                 │          │
│   │  - Commit on success, rollback on exception                 │          │
│   └─────────────────────────────────────────────────────────────┘          │
│       │                                                                     │
│       │  Passed to Repository                                               │
│       ▼                                                                     │
│   ┌─────────────────────────────────────────────────────────────┐          │
│   │      BaseRepository[Model] + QueryFilterEngine              │          │
│   └─────────────────────────────────────────────────────────────┘          │
│       │                                                                     │
│       │  SQL Statements                                                     │
│       ▼                                                                     │
│   ┌─────────────────────────────────────────────────────────────┐          │
│   │       PostgreSQL / MySQL / SQLite (async driver)            │          │
│   └─────────────────────────────────────────────────────────────┘          │
│                                                                             │
└─────────────────────────────────────────────────────────────────────────────┘
"""

from datarepo.shared.db.session import (
    build_engine,
    build_sessionmaker,
    get_engine,
    get_sessionmaker,
    session_scope,
    get_db,
    init_db,
    close_db,
)

__all__ = [
    "build_engine",
    "build_sessionmaker",
    "get_engine",
    "get_sessionmaker",
    "session_scope",
    "get_db",
    "init_db",
    "close_db",
]
