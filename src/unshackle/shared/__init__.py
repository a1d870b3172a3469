"""Shared modules for unshackle.

This module provides functionality used by both the engine and the CLI:
- Logging configuration
- ~/.unshackle/ paths
"""

from .logging import bind_release, configure_logging, get_logger
from .paths import LOG_DIR, UNSHACKLE_DIR, ensure_dirs, get_log_file

__all__ = [
    # Paths
    "UNSHACKLE_DIR",
    "LOG_DIR",
    "ensure_dirs",
    "get_log_file",
    # Logging
    "bind_release",
    "configure_logging",
    "get_logger",
]
