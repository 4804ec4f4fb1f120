"""Candidate aggregation for apt-downgrade.

Merges the versions of one package available locally (apt's archive
cache) with those listed remotely (the mirror pool) into a single list,
highest version first. Local entries win on duplicate versions because
they already have a usable artifact. The remote side is best effort: a
:class:`~apt_downgrade.exceptions.RemoteSourceError` is logged and the
local candidates are returned alone.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Dict, List, Optional, Set

from apt_downgrade.utils.logger import get_logger
from apt_downgrade.core.remote_index import RemoteIndex
from apt_downgrade.exceptions import RemoteSourceError
from apt_downgrade.models import Package, PackageVersion, ResolutionEnvironment

logger = get_logger("candidates")

__all__ = ["CandidateAggregator", "merge_candidates", "with_epoch"]

#: ``(name, env) -> packages`` from the local archive cache.
LocalLister = Callable[[str, ResolutionEnvironment], List[Package]]


def merge_candidates(local: List[Package], remote: List[Package]) -> List[Package]:
    """Merge two candidate lists, dropping remote duplicates of local versions.

    Returns:
        Candidates sorted by version, then architecture, both descending.
        Exact duplicates are removed.
    """
    local_versions: Set[PackageVersion] = {p.version for p in local}
    merged: List[Package] = []

    for package in local + [p for p in remote if p.version not in local_versions]:
        if package not in merged:
            merged.append(package)

    merged.sort(key=lambda p: (p.version, p.architecture or ""), reverse=True)
    return merged


def with_epoch(package: Package, epoch: int) -> Package:
    """Return ``package`` with ``epoch`` prefixed to an epoch-less version."""
    version = str(package.version)
    if ":" in version:
        return package
    logger.debug("Assuming epoch %d for %s %s", epoch, package.name, version)
    return replace(package, version=PackageVersion(f"{epoch}:{version}"))


class CandidateAggregator:
    """Per-name candidate lookup over local and remote sources.

    Remote results are memoised per package name for the lifetime of the
    aggregator, failures included, so a name shared by many dependents is
    looked up (and reported as failed) at most once per run.

    Args:
        env: Host environment.
        list_local: Local archive lister, usually ``AptQuery.list_local``.
        remote: Remote pool index, or ``None`` to use local archives only.
    """

    def __init__(
        self,
        env: ResolutionEnvironment,
        list_local: LocalLister,
        remote: Optional[RemoteIndex] = None,
    ) -> None:
        self.env = env
        self._list_local = list_local
        self.remote = remote
        self.remote_failures: List[RemoteSourceError] = []
        self._remote_results: Dict[str, List[Package]] = {}

    def _remote_candidates(self, name: str) -> List[Package]:
        if self.remote is None:
            return []
        if name in self._remote_results:
            return self._remote_results[name]
        try:
            packages = self.remote.get_versions(name)
        except RemoteSourceError as exc:
            self.remote_failures.append(exc)
            logger.warning("Remote lookup failed for %s, using local archives only: %s", name, exc)
            packages = []
        self._remote_results[name] = packages
        return packages

    def get_candidates(self, name: str, installed: Optional[Package] = None) -> List[Package]:
        """Return every known candidate for ``name``, highest version first.

        Args:
            name: Binary package name.
            installed: The installed package, if any. Its epoch (or else the
                highest local epoch) is applied to remote versions, whose
                pool filenames never carry one.
        """
        local = self._list_local(name, self.env)
        remote = self._remote_candidates(name)

        known = [p.version.epoch for p in local]
        epoch = installed.version.epoch if installed is not None else max(known, default=0)
        if epoch:
            remote = [with_epoch(p, epoch) for p in remote]

        candidates = merge_candidates(local, remote)

        logger.debug(
            "Candidates for %s: %s",
            name,
            ", ".join(f"{p.version}{'' if p.is_local else '*'}" for p in candidates) or "<none>",
        )
        return candidates
