"""
Utility helpers for apt-downgrade.

This package provides reusable utilities used across apt-downgrade:

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Package archive directory helpers
- Synchronous HTTP client

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------

from apt_downgrade.utils.filesystem import (
    ensure_directory,
    find_package_archives,
    split_archive_name,
)

# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------

from apt_downgrade.utils.logger import (
    get_logger,
    level_for_verbosity,
    setup_logging,
)

# ---------------------------------------------------------------------------
# Console utilities
# ---------------------------------------------------------------------------

from apt_downgrade.utils.console import (
    colorize_source,
    confirm,
    print_command,
    print_error,
    print_success,
    print_table,
    print_warning,
    progress_status,
    reconfigure_console,
)

# ---------------------------------------------------------------------------
# HTTP utilities
# ---------------------------------------------------------------------------

from apt_downgrade.utils.http import HTTPClient

__all__ = [
    # Console
    "confirm",
    "print_error",
    "print_table",
    "print_command",
    "print_success",
    "print_warning",
    "progress_status",
    "reconfigure_console",
    "colorize_source",
    # Logging
    "get_logger",
    "setup_logging",
    "level_for_verbosity",
    # Filesystem
    "ensure_directory",
    "split_archive_name",
    "find_package_archives",
    # HTTP
    "HTTPClient",
]
