"""Relationship field parser for apt-downgrade.

Parses the value of a ``Depends:``/``Pre-Depends:`` control field into
:class:`~apt_downgrade.models.Dependency` objects.

Grammar handled (Debian Policy §7.1)::

    field     := clause ("," clause)*
    clause    := relation ("|" relation)*
    relation  := name [":" archqual] ["(" op version ")"] ["[" archs "]"] ["<" profiles ">"]*
    op        := "<<" | "<=" | "=" | ">=" | ">>" | "<" | ">"

Only the first alternative of an ``|`` clause is kept. Clauses naming the
same package (``foo (>= 1), foo (<< 2)``) are merged into one dependency
whose constraints are ANDed, in order of first appearance.

Typical usage::

    deps = parse_depends("libc6 (>= 2.34), libcurl4 (= 7.88.1-10) | libcurl3")
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from apt_downgrade.utils.logger import get_logger
from apt_downgrade.exceptions import MetadataParseError
from apt_downgrade.models import (
    Dependency,
    PackageVersion,
    VersionConstraint,
    VersionRelation,
)

logger = get_logger("parser")

__all__ = ["parse_depends", "parse_relation"]

_RELATION_RE = re.compile(
    r"""
    ^\s*
    (?P<name>[a-z0-9][a-z0-9+.\-]*)         # package name
    (?::(?P<archqual>[a-z0-9\-]+))?          # :any / :native / :amd64
    \s*
    (?:\(\s*(?P<op><<|<=|>=|>>|=|<|>)\s*(?P<version>[^)\s]+)\s*\))?
    \s*
    (?:\[(?P<archs>[^\]]*)\])?               # architecture restriction
    \s*
    (?:<[^>]*>\s*)*                          # build profiles
    $
    """,
    re.VERBOSE | re.IGNORECASE,
)


def parse_relation(text: str, *, package: Optional[str] = None) -> Dependency:
    """Parse a single relation such as ``libc6 (>= 2.34)``.

    Args:
        text: One relation, without ``,`` or ``|`` separators.
        package: Package whose metadata is being parsed, for error context.

    Raises:
        MetadataParseError: ``text`` is not a valid relation.
    """
    match = _RELATION_RE.match(text)
    if match is None:
        raise MetadataParseError(
            f"Malformed dependency relation: {text.strip()!r}",
            package=package,
            content=text,
        )

    name = match.group("name")
    operator = match.group("op")
    if operator is None:
        return Dependency(name)

    constraint = VersionConstraint(
        VersionRelation.from_operator(operator),
        PackageVersion(match.group("version")),
    )
    return Dependency(name, (constraint,))


def parse_depends(value: str, *, package: Optional[str] = None) -> List[Dependency]:
    """Parse a full relationship field value.

    Args:
        value: Field value, possibly folded over several lines.
        package: Package whose metadata is being parsed, for error context.

    Returns:
        Dependencies in order of first appearance.

    Raises:
        MetadataParseError: A clause is malformed.

    Example::

        >>> [str(d) for d in parse_depends("a (>= 1) | b, c, a (<< 2)")]
        ['a (>= 1) (<< 2)', 'c']
    """
    merged: Dict[str, Dependency] = {}

    for clause in value.replace("\n", " ").split(","):
        clause = clause.strip()
        if not clause:
            continue

        alternatives = clause.split("|")
        if len(alternatives) > 1:
            logger.debug(
                "Ignoring alternatives of %r: %s",
                alternatives[0].strip(),
                ", ".join(a.strip() for a in alternatives[1:]),
            )

        dependency = parse_relation(alternatives[0], package=package)
        existing = merged.get(dependency.package_name)
        if existing is None:
            merged[dependency.package_name] = dependency
        else:
            merged[dependency.package_name] = existing.merged_with(dependency.constraints)

    return list(merged.values())

