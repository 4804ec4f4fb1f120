"""
Unified data model exports for apt-downgrade.

Example:
    >>> from apt_downgrade.models import Package, PackageVersion, Dependency
"""

from __future__ import annotations

from apt_downgrade.models.version import PackageVersion, compare_versions
from apt_downgrade.models.package import Package, ResolutionEnvironment
from apt_downgrade.models.dependency import (
    ANY_VERSION,
    Dependency,
    VersionConstraint,
    VersionRelation,
)

__all__ = [
    "ANY_VERSION",
    "Dependency",
    "Package",
    "PackageVersion",
    "ResolutionEnvironment",
    "VersionConstraint",
    "VersionRelation",
    "compare_versions",
]
