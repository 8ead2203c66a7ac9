"""
Configuration Module

Application configuration loaded from environment variables.

Usage:
======
    from datarepo.config.settings import settings

    db_url = settings.DATABASE_URL
    tz = settings.QUERY_TIMEZONE
"""

from datarepo.config.settings import settings, get_settings, Settings

__all__ = [
    "settings",
    "get_settings",
    "Settings",
]
