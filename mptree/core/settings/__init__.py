"""Pydantic Settings v2 configuration.

Settings are frozen models read from environment variables (and an optional
.env file), loaded through LRU-cached loaders:

    from mptree.core.settings import get_hierarchy_settings

    settings = get_hierarchy_settings()
    print(settings.backend)

Environment prefixes:
    TREE_  hierarchy backend selection
    LOG_   logging
"""

from __future__ import annotations

from .hierarchy import HierarchySettings
from .loader import clear_all_caches, get_hierarchy_settings, get_logging_settings
from .logs import LoggingSettings

__all__ = [
    "HierarchySettings",
    "LoggingSettings",
    "clear_all_caches",
    "get_hierarchy_settings",
    "get_logging_settings",
]
