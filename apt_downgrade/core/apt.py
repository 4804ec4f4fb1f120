"""Host package manager queries for apt-downgrade.

Everything that shells out to apt or dpkg lives here, behind
:class:`AptQuery`. All tools run through one ``runner`` callable so tests
can substitute canned output for real subprocesses.

Tools used:

- ``apt-config shell``: archive cache directory and native architecture
- ``apt-cache policy`` / ``dpkg-query --show``: installed version and arch
- ``dpkg-deb --field``: control stanza of a local ``.deb``
- ``apt-cache show name=version``: control stanza from the apt lists
- ``apt-get install``: final installation (only when not a dry run)
"""

from __future__ import annotations

import os
import shlex
import subprocess
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from debian.deb822 import Deb822

from apt_downgrade.core.parser import parse_depends
from apt_downgrade.utils.logger import get_logger
from apt_downgrade.utils.filesystem import find_package_archives
from apt_downgrade.models import (
    Dependency,
    Package,
    PackageVersion,
    ResolutionEnvironment,
)
from apt_downgrade.exceptions import (
    ArtifactDownloadError,
    MetadataParseError,
    ToolError,
)
from apt_downgrade.constants import (
    APT_CONFIG_QUERY,
    DEPENDENCY_FIELDS,
    INSTALL_COMMAND,
    POLICY_INSTALLED_PREFIX,
    POLICY_NOT_INSTALLED,
)

logger = get_logger("apt")

__all__ = ["AptQuery", "CommandRunner", "run_command", "build_install_command"]

#: ``(argv) -> stdout``; raises :class:`ToolError` on failure.
CommandRunner = Callable[[Sequence[str]], str]


def run_command(args: Sequence[str]) -> str:
    """Run a host tool in the C locale and return its standard output.

    Raises:
        ToolError: The tool is missing, exits non-zero, or is killed.
    """
    env = dict(os.environ, LANG="C", LC_ALL="C")
    logger.debug("Running: %s", shlex.join(args))

    try:
        completed = subprocess.run(
            list(args),
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            env=env,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise ToolError(f"Cannot execute {args[0]}: {exc}", command=args) from exc

    if completed.returncode < 0:
        raise ToolError(
            f"{args[0]} killed by signal {-completed.returncode}",
            command=args,
            signal=-completed.returncode,
        )
    if completed.returncode != 0:
        raise ToolError(
            f"{args[0]} returned {completed.returncode}",
            command=args,
            returncode=completed.returncode,
        )
    return completed.stdout


def build_install_command(packages: Sequence[Package]) -> List[str]:
    """Return the ``apt-get install`` argv for materialized packages.

    Raises:
        ArtifactDownloadError: A package has no local artifact.
    """
    command = list(INSTALL_COMMAND)
    for package in packages:
        if package.local_path is None:
            raise ArtifactDownloadError(
                "Package has no local artifact",
                url=package.source_url,
                package=str(package),
            )
        command.append(package.local_path)
    return command


def _read_stanza(output: str, *, package: str) -> Mapping[str, str]:
    """Return the first control stanza of ``output``."""
    for paragraph in Deb822.iter_paragraphs(output.splitlines(keepends=True)):
        if "Package" in paragraph:
            return paragraph
    raise MetadataParseError(
        "No control stanza in tool output",
        package=package,
        content=output,
    )


class AptQuery:
    """Read-only view of the host's apt/dpkg state.

    Args:
        runner: Executes an argv and returns stdout. Defaults to
            :func:`run_command`.
        installer: Executes the final install command and returns its exit
            status. Defaults to an interactive :func:`subprocess.call`.
    """

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        installer: Optional[Callable[[Sequence[str]], int]] = None,
    ) -> None:
        self._run = runner or run_command
        self._install = installer or (lambda command: subprocess.call(list(command)))

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    def read_environment(self) -> ResolutionEnvironment:
        """Read the archive cache directory and native architecture.

        Raises:
            ToolError: ``apt-config`` failed.
            MetadataParseError: An expected variable is missing.
        """
        output = self._run(["apt-config", "shell", *APT_CONFIG_QUERY])
        values: Dict[str, str] = {}
        for line in output.splitlines():
            key, sep, raw = line.partition("=")
            if not sep:
                continue
            try:
                parts = shlex.split(raw)
            except ValueError as exc:
                raise MetadataParseError(
                    f"Unexpected apt-config output: {exc}",
                    content=line,
                ) from exc
            values[key.strip()] = parts[0] if parts else ""

        missing = [k for k in ("CACHE_ROOT_DIR", "CACHE_ARCHIVE_SUBDIR", "ARCH") if not values.get(k)]
        if missing:
            raise MetadataParseError(
                f"Unexpected apt-config output, missing {', '.join(missing)}",
                content=output,
            )

        cache_dir = Path("/") / values["CACHE_ROOT_DIR"] / values["CACHE_ARCHIVE_SUBDIR"]
        env = ResolutionEnvironment(
            architecture=values["ARCH"],
            cache_dir=str(cache_dir),
        )
        logger.debug("APT environment: arch=%s cache=%s", env.architecture, env.cache_dir)
        return env

    # ------------------------------------------------------------------
    # Installed state
    # ------------------------------------------------------------------

    def get_installed(self, name: str) -> Optional[Package]:
        """Return the installed package named ``name``, or ``None``."""
        output = self._run(["apt-cache", "policy", name])

        version: Optional[str] = None
        for line in output.splitlines():
            if line.startswith(POLICY_INSTALLED_PREFIX):
                version = line[len(POLICY_INSTALLED_PREFIX):].strip()
                break

        if not version or version == POLICY_NOT_INSTALLED:
            logger.debug("%s is not installed", name)
            return None

        arch_output = self._run(
            ["dpkg-query", "--show", "--showformat=${Architecture}\n", name]
        )
        architecture = next(
            (line.strip() for line in arch_output.splitlines() if line.strip()),
            None,
        )
        logger.debug("%s installed at %s (%s)", name, version, architecture)
        return Package(name, PackageVersion(version), architecture)

    # ------------------------------------------------------------------
    # Local archive cache
    # ------------------------------------------------------------------

    def list_local(self, name: str, env: ResolutionEnvironment) -> List[Package]:
        """Return packages of ``name`` found in apt's archive cache."""
        packages = [
            Package(
                name,
                PackageVersion(version),
                architecture,
                local_path=str(path),
            )
            for path, version, architecture in find_package_archives(
                env.cache_dir, name, env.architectures
            )
        ]
        logger.debug("%d local archive(s) for %s", len(packages), name)
        return packages

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------

    def get_dependencies(self, package: Package) -> List[Dependency]:
        """Return the direct dependencies declared by ``package``.

        Reads the control stanza from the local artifact when there is one,
        otherwise from the apt lists via ``name=version``.

        Raises:
            ToolError: The metadata tool failed.
            MetadataParseError: The output holds no control stanza or a
                relation is malformed.
        """
        if package.local_path and Path(package.local_path).is_file():
            output = self._run(["dpkg-deb", "--field", package.local_path])
        else:
            output = self._run(["apt-cache", "show", f"{package.name}={package.version}"])

        stanza = _read_stanza(output, package=str(package))

        dependencies: List[Dependency] = []
        for field_name in DEPENDENCY_FIELDS:
            value = stanza.get(field_name)
            if value:
                dependencies.extend(parse_depends(value, package=str(package)))

        logger.debug(
            "%s depends on: %s",
            package,
            ", ".join(str(d) for d in dependencies) or "<nothing>",
        )
        return dependencies

    # ------------------------------------------------------------------
    # Installation
    # ------------------------------------------------------------------

    def execute_install(self, command: Sequence[str]) -> int:
        """Run the install command attached to the terminal."""
        logger.info("Executing: %s", shlex.join(command))
        return self._install(command)
