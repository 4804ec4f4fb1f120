"""Downgrade command implementation for apt-downgrade.

Resolves everything needed to install ``NAME`` at ``VERSION`` and prints
(or runs) the resulting ``apt-get install`` command.

The command wires together:

1. **AptQuery**: host environment, installed state, local archives and
   package metadata.
2. **CandidateAggregator**: local archives merged with the mirror pool.
3. **ArtifactCache**: downloads of remote-only packages.
4. **DowngradeResolver**: the breadth-first worklist.

Typical usage::

    # Show what would be installed
    $ apt-downgrade downgrade curl 7.50.0 --dry-run

    # Resolve and run apt-get without prompting
    $ sudo apt-downgrade downgrade curl 7.50.0 --yes
"""

from __future__ import annotations

import sys
import shlex
from typing import Any, Dict, List, Optional

import click

from apt_downgrade.models import Package
from apt_downgrade.config import AptDowngradeConfig
from apt_downgrade.exceptions import AptDowngradeError
from apt_downgrade.commands import build_aggregator
from apt_downgrade.context import AptDowngradeContext, pass_context
from apt_downgrade.core import (
    AptQuery,
    ArtifactCache,
    DowngradeResolver,
    ResolutionResult,
    build_install_command,
)
from apt_downgrade.utils import (
    HTTPClient,
    confirm,
    get_logger,
    print_command,
    print_error,
    print_success,
    print_table,
    print_warning,
    progress_status,
)

logger = get_logger("commands.downgrade")


@click.command()
@click.argument("name")
@click.argument("version")
@click.option(
    "--dry-run",
    "-d",
    is_flag=True,
    help="Only display the install command, do not install anything.",
)
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Run the install command without asking for confirmation.",
)
@pass_context
def downgrade(
    ctx: AptDowngradeContext,
    name: str,
    version: str,
    dry_run: bool,
    yes: bool,
) -> None:
    """Downgrade NAME to VERSION together with its dependencies.

    Exits 0 when there is nothing to do or the dry run succeeded, with the
    installer's exit status after a real run, and 1 on any resolution error.
    """
    try:
        result = resolve_downgrade(ctx.config, name, version)
    except AptDowngradeError as exc:
        print_error(str(exc))
        logger.debug("Resolution failed: %r", exc, exc_info=True)
        sys.exit(1)

    if result.is_empty:
        print_success("Nothing to do")
        return

    _display_install_set(result.install_set)
    command = build_install_command(result.install_set)
    print_command(shlex.join(command))

    if dry_run:
        return

    if not yes and not confirm("Run this command?"):
        print_warning("Aborted")
        sys.exit(1)

    sys.exit(AptQuery().execute_install(command))


def resolve_downgrade(
    config: Optional[AptDowngradeConfig],
    name: str,
    version: str,
) -> ResolutionResult:
    """Run one resolution with the host's apt state and a live status line.

    Raises:
        AptDowngradeError: Any fatal resolution error.
    """
    config = config or AptDowngradeConfig()
    apt = AptQuery()
    env = apt.read_environment()

    with HTTPClient(timeout=config.timeout) as http:
        aggregator = build_aggregator(config, env, apt, http)
        artifacts = ArtifactCache(http, config.artifact_cache_dir)

        with progress_status("Analyzing dependencies...") as status:

            def on_progress(processed: int, pending: int) -> None:
                status.update(f"Analyzing {processed} dependencies ({pending} pending)...")

            resolver = DowngradeResolver(
                env=env,
                apt=apt,
                aggregator=aggregator,
                artifacts=artifacts,
                progress_callback=on_progress,
            )
            result = resolver.resolve(name, version)

    if aggregator.remote_failures:
        print_warning(
            f"Remote lookup failed for {len(aggregator.remote_failures)} package(s); "
            "only local archives were considered for them"
        )
    return result


def _display_install_set(packages: List[Package]) -> None:
    """Render the install set as a table."""
    data: List[Dict[str, Any]] = [
        {
            "Package": package.name,
            "Version": str(package.version),
            "Arch": package.architecture or "-",
            "Archive": package.local_path or "-",
        }
        for package in packages
    ]
    print_table(
        data,
        title="Packages to install",
        column_styles={
            "Package": {"style": "bold cyan", "no_wrap": True},
            "Version": {"style": "bold green"},
            "Archive": {"style": "dim"},
        },
    )
