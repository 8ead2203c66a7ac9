"""
Shared Module

Package Structure:
==================
    shared/
    ├── core/           ← Logging, exceptions
    ├── db/             ← Engine and session management
    ├── models/         ← Declarative base and column mixins
    ├── repositories/   ← Base repository and query filter engine
    └── schemas/        ← Filter specs, options, paginated results

Usage:
======
    from datarepo.shared.models import Base, SoftDeleteMixin
    from datarepo.shared.repositories import BaseRepository
    from datarepo.shared.core import logger, RecordNotFoundError
"""
