"""Versions command implementation for apt-downgrade.

Lists every version of a package that a downgrade could pick: archives in
apt's cache plus artifacts in the mirror pool, highest first, with the
installed version highlighted.

Typical usage::

    $ apt-downgrade versions curl
"""

from __future__ import annotations

import sys
from typing import Any, Dict, List, Optional

import click

from apt_downgrade.models import Package
from apt_downgrade.exceptions import AptDowngradeError
from apt_downgrade.commands import build_aggregator
from apt_downgrade.context import AptDowngradeContext, pass_context
from apt_downgrade.config import AptDowngradeConfig
from apt_downgrade.core import AptQuery
from apt_downgrade.utils import (
    HTTPClient,
    colorize_source,
    get_logger,
    print_error,
    print_table,
    print_warning,
)

logger = get_logger("commands.versions")


@click.command()
@click.argument("name")
@pass_context
def versions(ctx: AptDowngradeContext, name: str) -> None:
    """List the versions of NAME available for a downgrade."""
    config = ctx.config or AptDowngradeConfig()
    try:
        apt = AptQuery()
        env = apt.read_environment()
        installed = apt.get_installed(name)
        with HTTPClient(timeout=config.timeout) as http:
            candidates = build_aggregator(config, env, apt, http).get_candidates(name, installed)
    except AptDowngradeError as exc:
        print_error(str(exc))
        logger.debug("Lookup failed: %r", exc, exc_info=True)
        sys.exit(1)

    if not candidates and installed is None:
        print_warning(f"No versions of {name} found")
        sys.exit(1)

    rows = _candidate_rows(candidates, installed)
    print_table(
        rows,
        title=f"Available versions of {name}",
        headers=["Version", "Arch", "Source", "Location"],
        column_styles={
            "Version": {"style": "bold", "no_wrap": True},
            "Location": {"style": "dim"},
        },
        row_styler=lambda row: "highlight" if row["installed"] else None,
    )


def _candidate_rows(
    candidates: List[Package],
    installed: Optional[Package],
) -> List[Dict[str, Any]]:
    if installed is not None and not any(c.matches(installed) for c in candidates):
        candidates = sorted(
            candidates + [installed],
            key=lambda p: (p.version, p.architecture or ""),
            reverse=True,
        )

    rows: List[Dict[str, Any]] = []
    for package in candidates:
        is_installed = installed is not None and package.matches(installed)
        source = "local" if package.is_local else "remote"
        rows.append(
            {
                "Version": str(package.version),
                "Arch": package.architecture or "-",
                "Source": colorize_source("installed" if is_installed else source),
                "Location": package.location or "-",
                "installed": is_installed,
            }
        )
    return rows
