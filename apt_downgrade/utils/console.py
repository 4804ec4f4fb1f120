"""
Console output utilities for apt-downgrade using Rich.

User-facing output only: progress, the final install command, tables and
confirmation prompts. Diagnostics belong to :mod:`apt_downgrade.utils.logger`.
"""

from __future__ import annotations

import os
import sys
import threading
from typing import Any, Callable, Dict, List, Optional

from rich.table import Table
from rich.theme import Theme
from rich.status import Status
from rich.console import Console

# ---------------------------------------------------------------------------
# Theme configuration
# ---------------------------------------------------------------------------

APT_DOWNGRADE_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "dim": "dim",
        "highlight": "bold magenta",
        "command": "bold",
    }
)

# ---------------------------------------------------------------------------
# Console lifecycle management
# ---------------------------------------------------------------------------

_console: Optional[Console] = None
_console_lock = threading.Lock()


def _should_use_color() -> bool:
    """Return True if colored output should be enabled."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("CI"):
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, OSError):
        return False


def _get_console() -> Console:
    """Return the process-wide Rich Console, creating it on first use."""
    global _console

    if _console is None:
        with _console_lock:
            if _console is None:
                use_color = _should_use_color()
                _console = Console(
                    theme=APT_DOWNGRADE_THEME,
                    no_color=not use_color,
                    highlight=use_color,
                )
    return _console


def reconfigure_console() -> None:
    """Drop the cached console so the next call re-reads the environment."""
    global _console
    with _console_lock:
        _console = None


# ---------------------------------------------------------------------------
# Status message helpers
# ---------------------------------------------------------------------------


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    _get_console().print(f"{prefix} {message}", style="success")


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    _get_console().print(f"{prefix} {message}", style="error")


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    _get_console().print(f"{prefix} {message}", style="warning")


def print_command(command: str) -> None:
    """Print a shell command without markup interpretation."""
    _get_console().print(command, style="command", markup=False, soft_wrap=True)


def progress_status(message: str) -> Status:
    """Return a live spinner line; update it with ``status.update(text)``."""
    return _get_console().status(message, spinner="dots")


# ---------------------------------------------------------------------------
# Structured output
# ---------------------------------------------------------------------------


def print_table(
    data: List[Dict[str, Any]],
    *,
    headers: Optional[List[str]] = None,
    title: Optional[str] = None,
    caption: Optional[str] = None,
    column_styles: Optional[Dict[str, Dict[str, Any]]] = None,
    row_styler: Optional[Callable[[Dict[str, Any]], Optional[str]]] = None,
) -> None:
    """Render structured data as a Rich table.

    Args:
        data: List of row dictionaries.
        headers: Column order. Defaults to keys of the first row.
        title: Optional table title.
        caption: Optional table caption.
        column_styles: Per-column style configuration.
        row_styler: Optional callback returning a row style.
    """
    if not data:
        return

    if headers is None:
        headers = list(data[0].keys())

    table = Table(
        title=title,
        caption=caption,
        show_header=True,
        header_style="bold",
    )

    column_styles = column_styles or {}
    for header in headers:
        config = column_styles.get(header, {})
        table.add_column(
            header,
            style=config.get("style"),
            justify=config.get("justify", "default"),
            no_wrap=config.get("no_wrap", False),
            overflow=config.get("overflow", "fold"),
        )

    for row in data:
        values = [str(row.get(h, "")) for h in headers]
        style = row_styler(row) if row_styler else None
        table.add_row(*values, style=style)

    _get_console().print(table)


def colorize_source(source: str) -> str:
    """Return a Rich-markup label for a candidate source (local/remote)."""
    color_map = {
        "local": "green",
        "remote": "cyan",
        "installed": "magenta",
    }
    color = color_map.get(source.lower())
    return f"[{color}]{source}[/{color}]" if color else source


# ---------------------------------------------------------------------------
# User interaction
# ---------------------------------------------------------------------------


def confirm(message: str, *, default: bool = False) -> bool:
    """Prompt the user for a yes/no confirmation.

    "y"/"yes" confirm, "n"/"no" decline, anything else (including an empty
    line) returns ``default``; Ctrl+C and EOF decline.
    """
    console = _get_console()
    suffix = " [Y/n]: " if default else " [y/N]: "
    console.print(f"{message}{suffix}", end="", style="info")

    try:
        response = input().strip().lower()
    except (KeyboardInterrupt, EOFError):
        console.print()
        return False

    if response in ("y", "yes"):
        return True
    if response in ("n", "no"):
        return False
    return default
