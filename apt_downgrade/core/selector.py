"""Version selection policy for apt-downgrade.

Chooses one concrete package for a dependency from a descending candidate
list. The installed package wins whenever it still satisfies every
constraint, even if a higher matching version exists, so that packages are
only touched when they have to be.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from apt_downgrade.models import Dependency, Package

__all__ = ["resolve", "matching_candidates"]


def matching_candidates(dependency: Dependency, candidates: Sequence[Package]) -> List[Package]:
    """Return the candidates satisfying every constraint, order preserved."""
    return [c for c in candidates if dependency.is_satisfied_by(c.version)]


def resolve(
    dependency: Dependency,
    candidates: Sequence[Package],
    installed: Optional[Package] = None,
) -> Optional[Package]:
    """Pick the package that should satisfy ``dependency``.

    Args:
        dependency: Name and ANDed constraints.
        candidates: Available packages, highest version first.
        installed: Currently installed package of that name, if any.

    Returns:
        ``installed`` when it is among the matching candidates, otherwise
        the highest matching candidate, or ``None`` when nothing matches.

    Example::

        >>> resolve(Dependency("curl"), [v2, v15, v1], installed=v15)
        v15
    """
    matches = matching_candidates(dependency, candidates)
    if not matches:
        return None

    if installed is not None:
        for match in matches:
            if match.matches(installed):
                return installed

    return matches[0]
