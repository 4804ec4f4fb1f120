"""Breadth-first downgrade resolution for apt-downgrade.

:class:`DowngradeResolver` expands a single ``name (= version)`` request
into the flat list of packages that must be installed with it.

Algorithm (one greedy forward pass, no backtracking):

1. Seed a FIFO queue with the requested dependency.
2. Pop a dependency, look up the installed package and the candidates,
   and select one package (:func:`~apt_downgrade.core.selector.resolve`).
   Nothing selectable aborts the run.
3. Skip packages already in the install set.
4. Skip the installed package and do not expand its dependencies: the host
   is assumed to already satisfy them.
5. Otherwise download the artifact if needed, queue its direct
   dependencies at the back, and append it to the install set.

The installed package always counts as a candidate, even when neither the
archive cache nor the mirror pool still carries its artifact.

Typical usage::

    apt = AptQuery()
    env = apt.read_environment()
    with HTTPClient() as http:
        resolver = DowngradeResolver(
            env=env,
            apt=apt,
            aggregator=CandidateAggregator(env, apt.list_local, RemoteIndex(http, env)),
            artifacts=ArtifactCache(http),
        )
        result = resolver.resolve("curl", "7.50.0")
        print(build_install_command(result.install_set))
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, List, Optional, Protocol

from apt_downgrade.core import selector
from apt_downgrade.utils.logger import get_logger
from apt_downgrade.core.candidates import CandidateAggregator
from apt_downgrade.core.artifact_cache import ArtifactCache
from apt_downgrade.exceptions import UnresolvableDependencyError
from apt_downgrade.models import Dependency, Package, ResolutionEnvironment

logger = get_logger("resolver")

__all__ = ["DowngradeResolver", "ResolutionResult", "PackageSource"]

#: ``(processed, pending)`` progress notification.
ProgressCallback = Callable[[int, int], None]


class PackageSource(Protocol):
    """Host queries the resolver needs; implemented by ``AptQuery``."""

    def get_installed(self, name: str) -> Optional[Package]: ...

    def get_dependencies(self, package: Package) -> List[Dependency]: ...


@dataclass
class ResolutionResult:
    """Outcome of one resolution run.

    Attributes:
        install_set: Packages to install, in breadth-first discovery order.
        processed: Number of dependencies popped from the queue.
        skipped_installed: Dependencies already satisfied by the host.
        skipped_duplicate: Dependencies resolved to a package already queued
            for installation.
    """

    install_set: List[Package] = field(default_factory=list)
    processed: int = 0
    skipped_installed: int = 0
    skipped_duplicate: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.install_set

    def contains(self, package: Package) -> bool:
        return any(p.matches(package) for p in self.install_set)


class DowngradeResolver:
    """Worklist engine turning a downgrade request into an install set.

    Args:
        env: Host environment for this run.
        apt: Installed-state and dependency queries.
        aggregator: Candidate lookup.
        artifacts: Artifact cache used to download remote-only packages.
        progress_callback: Called after every queue step.
    """

    def __init__(
        self,
        *,
        env: ResolutionEnvironment,
        apt: PackageSource,
        aggregator: CandidateAggregator,
        artifacts: ArtifactCache,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        self.env = env
        self.apt = apt
        self.aggregator = aggregator
        self.artifacts = artifacts
        self.progress_callback = progress_callback

    def _candidates(self, name: str, installed: Optional[Package]) -> List[Package]:
        candidates = self.aggregator.get_candidates(name, installed)
        if installed is not None and not any(c.matches(installed) for c in candidates):
            candidates = sorted(
                candidates + [installed],
                key=lambda p: (p.version, p.architecture or ""),
                reverse=True,
            )
        return candidates

    def resolve(self, package_name: str, version: str) -> ResolutionResult:
        """Resolve everything needed to install ``package_name`` at ``version``.

        Raises:
            UnresolvableDependencyError: Some dependency has no candidate
                satisfying all of its constraints.
            ArtifactDownloadError: A selected remote package cannot be
                downloaded.
            ToolError: A host tool failed.
            MetadataParseError: Package metadata could not be parsed.
        """
        queue: Deque[Dependency] = deque([Dependency.exact(package_name, version)])
        result = ResolutionResult()

        logger.info("Resolving %s (= %s)", package_name, version)

        while queue:
            dependency = queue.popleft()
            result.processed += 1
            self._step(dependency, queue, result)

            if self.progress_callback is not None:
                self.progress_callback(result.processed, len(queue))

        logger.info(
            "Resolved %d package(s) to install after %d step(s) "
            "(%d already installed, %d duplicate)",
            len(result.install_set),
            result.processed,
            result.skipped_installed,
            result.skipped_duplicate,
        )
        return result

    def _step(
        self,
        dependency: Dependency,
        queue: Deque[Dependency],
        result: ResolutionResult,
    ) -> None:
        name = dependency.package_name
        installed = self.apt.get_installed(name)
        candidates = self._candidates(name, installed)

        package = selector.resolve(dependency, candidates, installed)
        if package is None:
            raise UnresolvableDependencyError(
                f"Unable to resolve dependency {dependency}",
                dependency=dependency,
                candidates=[str(c.version) for c in candidates],
            )

        if result.contains(package):
            logger.debug("%s already selected", package)
            result.skipped_duplicate += 1
            return

        if installed is not None and package.matches(installed):
            logger.debug("%s already installed, not expanding", package)
            result.skipped_installed += 1
            return

        package = self.artifacts.materialize(package)
        dependencies = self.apt.get_dependencies(package)
        queue.extend(dependencies)
        result.install_set.append(package)

        logger.info("Selected %s for %s", package, dependency)
