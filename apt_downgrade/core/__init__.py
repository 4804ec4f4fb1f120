"""
Core functionality exports for apt-downgrade.

Importing from here keeps user-facing imports short:

    from apt_downgrade.core import DowngradeResolver, CandidateAggregator
"""

from __future__ import annotations

from apt_downgrade.core.parser import parse_depends
from apt_downgrade.core.selector import resolve as select_package
from apt_downgrade.core.remote_index import IndexCache, RemoteIndex
from apt_downgrade.core.artifact_cache import ArtifactCache
from apt_downgrade.core.candidates import CandidateAggregator
from apt_downgrade.core.apt import AptQuery, build_install_command
from apt_downgrade.core.resolver import DowngradeResolver, ResolutionResult

__all__ = [
    "AptQuery",
    "ArtifactCache",
    "CandidateAggregator",
    "DowngradeResolver",
    "IndexCache",
    "RemoteIndex",
    "ResolutionResult",
    "build_install_command",
    "parse_depends",
    "select_package",
]
