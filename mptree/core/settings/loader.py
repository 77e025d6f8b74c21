"""Cached settings loaders.

Each loader reads the environment once and hands out the same frozen
instance afterwards. Code that accepts an explicit settings argument (for
example ``detect_backend(session, settings)``) falls back to these loaders
when none is passed.

Tests that change ``TREE_*`` or ``LOG_*`` variables call
``clear_all_caches()`` so the next lookup sees the new values.
"""

from __future__ import annotations

from functools import lru_cache

from .hierarchy import HierarchySettings
from .logs import LoggingSettings


@lru_cache(maxsize=1)
def get_hierarchy_settings() -> HierarchySettings:
    """Backend selection for tree queries (``TREE_*``)."""
    return HierarchySettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Logging configuration (``LOG_*``)."""
    return LoggingSettings()


def clear_all_caches() -> None:
    """Drop every cached settings instance."""
    get_hierarchy_settings.cache_clear()
    get_logging_settings.cache_clear()


__all__ = [
    "clear_all_caches",
    "get_hierarchy_settings",
    "get_logging_settings",
]
