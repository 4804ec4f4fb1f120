"""
Package data model for apt-downgrade.

This module defines the concrete, installable artifact handled by the
resolver and the per-run host environment it is resolved against.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from apt_downgrade.constants import ARCH_INDEPENDENT
from apt_downgrade.models.version import PackageVersion


@dataclass(frozen=True)
class ResolutionEnvironment:
    """Host package manager settings, read once per run.

    Attributes:
        architecture: Native architecture (``APT::Architecture``).
        cache_dir: Directory holding apt's downloaded archives.
    """

    architecture: str
    cache_dir: str

    @property
    def architectures(self) -> Tuple[str, ...]:
        """Architectures whose packages can be installed on this host."""
        return (self.architecture,) + tuple(ARCH_INDEPENDENT)


@dataclass(frozen=True)
class Package:
    """One concrete package version, optionally with a known artifact.

    Equality is structural over every field. Use :meth:`matches` to ask
    whether two values denote the same package regardless of where its
    artifact lives.

    Attributes:
        name: Binary package name.
        version: Package version.
        architecture: Package architecture, when known.
        local_path: Path of the ``.deb`` on disk.
        source_url: URL the ``.deb`` can be downloaded from.
    """

    name: str
    version: PackageVersion
    architecture: Optional[str] = None
    local_path: Optional[str] = None
    source_url: Optional[str] = None

    @property
    def is_local(self) -> bool:
        return self.local_path is not None

    @property
    def location(self) -> Optional[str]:
        """Local path if known, otherwise the source URL."""
        return self.local_path or self.source_url

    def matches(self, other: "Package") -> bool:
        """Return True if both values denote the same name, version and arch.

        Architecture is only compared when both sides know it.
        """
        if self.name != other.name or self.version != other.version:
            return False
        if self.architecture and other.architecture:
            return self.architecture == other.architecture
        return True

    def with_local_path(self, path: str) -> "Package":
        """Return a copy with the downloaded artifact path attached."""
        return replace(self, local_path=path)

    def __str__(self) -> str:
        if self.architecture:
            return f"{self.name}:{self.architecture} {self.version}"
        return f"{self.name} {self.version}"
