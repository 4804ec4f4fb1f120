"""
Dependency data model for apt-downgrade.

A :class:`Dependency` names a package and carries a list of
:class:`VersionConstraint` objects that are ANDed together. A dependency
without a version clause carries a single ``ANY`` constraint.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from apt_downgrade.models.version import PackageVersion


class VersionRelation(Enum):
    """Relation between a candidate version and a constraint version."""

    ANY = ""
    LT = "<<"
    LE = "<="
    EQ = "="
    GE = ">="
    GT = ">>"

    @classmethod
    def from_operator(cls, operator: str) -> "VersionRelation":
        """Map a control-file relation operator to a relation.

        The obsolete single-character forms ``<`` and ``>`` mean ``<=`` and
        ``>=`` respectively.

        Raises:
            ValueError: ``operator`` is not a Debian relation operator.
        """
        try:
            return _OPERATORS[operator]
        except KeyError:
            raise ValueError(f"Unknown version relation: {operator!r}") from None


_OPERATORS: Dict[str, VersionRelation] = {
    "<<": VersionRelation.LT,
    "<=": VersionRelation.LE,
    "<": VersionRelation.LE,
    "=": VersionRelation.EQ,
    ">=": VersionRelation.GE,
    ">": VersionRelation.GE,
    ">>": VersionRelation.GT,
}


@dataclass(frozen=True)
class VersionConstraint:
    """A single ``(relation, version)`` clause.

    Attributes:
        relation: Required relation.
        version: Version the candidate is compared against; ignored for ``ANY``.
    """

    relation: VersionRelation
    version: Optional[PackageVersion] = None

    def is_satisfied_by(self, candidate: PackageVersion) -> bool:
        """Return True if ``candidate`` satisfies this clause."""
        if self.relation is VersionRelation.ANY or self.version is None:
            return True

        result = candidate.compare(self.version)
        if self.relation is VersionRelation.LT:
            return result < 0
        if self.relation is VersionRelation.LE:
            return result <= 0
        if self.relation is VersionRelation.EQ:
            return result == 0
        if self.relation is VersionRelation.GE:
            return result >= 0
        return result > 0

    def __str__(self) -> str:
        if self.relation is VersionRelation.ANY or self.version is None:
            return ""
        return f"({self.relation.value} {self.version})"


#: Constraint used for dependencies without a version clause.
ANY_VERSION = VersionConstraint(VersionRelation.ANY)


@dataclass(frozen=True)
class Dependency:
    """A named package requirement with ANDed version constraints.

    Attributes:
        package_name: Binary package name.
        constraints: Every constraint a candidate must satisfy.
    """

    package_name: str
    constraints: Tuple[VersionConstraint, ...] = (ANY_VERSION,)

    @classmethod
    def exact(cls, package_name: str, version: str) -> "Dependency":
        """Build the ``name (= version)`` dependency that seeds a resolution."""
        return cls(
            package_name,
            (VersionConstraint(VersionRelation.EQ, PackageVersion(version)),),
        )

    def is_satisfied_by(self, version: PackageVersion) -> bool:
        """Return True if ``version`` satisfies every constraint.

        Stops at the first failing constraint.
        """
        for constraint in self.constraints:
            if not constraint.is_satisfied_by(version):
                return False
        return True

    def merged_with(self, constraints: Iterable[VersionConstraint]) -> "Dependency":
        """Return a copy with ``constraints`` ANDed onto this dependency."""
        combined = [c for c in self.constraints if c.relation is not VersionRelation.ANY]
        combined.extend(c for c in constraints if c.relation is not VersionRelation.ANY)
        return Dependency(self.package_name, tuple(combined) or (ANY_VERSION,))

    def __str__(self) -> str:
        clauses = [str(c) for c in self.constraints if str(c)]
        if not clauses:
            return self.package_name
        return f"{self.package_name} {' '.join(clauses)}"
