"""
Shared context object for apt-downgrade CLI commands.

Holds global options and the loaded configuration for one invocation.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional

import click

if TYPE_CHECKING:
    from apt_downgrade.config import AptDowngradeConfig


class AptDowngradeContext:
    """Global context object for apt-downgrade CLI commands.

    Attributes:
        config_path: Path to the configuration file, if any.
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
        config: Loaded configuration.
    """

    __slots__ = ("config_path", "verbose", "color", "config")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.verbose: int = 0
        self.color: bool = True
        self.config: Optional["AptDowngradeConfig"] = None


#: Click decorator for injecting :class:`AptDowngradeContext` into commands.
pass_context = click.make_pass_decorator(AptDowngradeContext, ensure=True)
