"""
datarepo

Generic repository layer for async SQLAlchemy: filter mappings in,
queries out.

Package Structure:
==================
    datarepo/
    ├── config/     ← Settings
    └── shared/     ← Models, repositories, schemas, db, core

Quick Start:
============
    from datarepo.shared.db import session_scope
    from datarepo.shared.repositories import BaseRepository

    async with session_scope() as session:
        articles = await BaseRepository(Article, session).list({"keyword": "sql"})
"""

__version__ = "1.0.0"
