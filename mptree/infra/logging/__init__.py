"""Logging infrastructure.

Basic usage:
    from mptree.infra.logging import setup_logging
    import logging

    setup_logging()  # reads LOG_* settings
    logger = logging.getLogger(__name__)
    logger.info("Ready")
"""

from mptree.infra.logging.config import configure_logging, setup_logging
from mptree.infra.logging.formatters import JSONFormatter

__all__ = [
    "JSONFormatter",
    "configure_logging",
    "setup_logging",
]
