"""
Debian package version model for apt-downgrade.

Ordering is delegated to python-debian's ``debian_support``, which follows
dpkg: epoch first, then the upstream version, then the Debian revision.
Comparison never fails. Strings python-debian rejects as versions sort
below every valid version and compare among themselves as plain text.
"""

from __future__ import annotations

from typing import Any, Hashable, List, Optional, Tuple

from debian.debian_support import Version, version_compare


def _parse(version: str) -> Optional[Version]:
    try:
        return Version(version)
    except ValueError:
        return None


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def compare_versions(a: str, b: str) -> int:
    """Compare two Debian version strings.

    Returns:
        ``-1`` if ``a < b``, ``0`` if equal, ``1`` if ``a > b``.

    Examples::

        >>> compare_versions("1:1.0", "2.0")
        1
        >>> compare_versions("1.0~rc1", "1.0")
        -1
        >>> compare_versions("1.09", "1.9")
        0
    """
    valid_a, valid_b = _parse(a) is not None, _parse(b) is not None
    if valid_a and valid_b:
        result = version_compare(a, b)
        return (result > 0) - (result < 0)
    if valid_a != valid_b:
        return 1 if valid_a else -1
    return (a > b) - (a < b)


def _fragment_key(fragment: str) -> Tuple[Tuple[str, int], ...]:
    """Canonical ``(non-digit, number)`` runs of a fragment.

    Trailing ``("", 0)`` runs are dropped because an absent run compares
    equal to an empty non-digit run followed by zero.
    """
    runs: List[Tuple[str, int]] = []
    i, length = 0, len(fragment)
    while i < length:
        start = i
        while i < length and not _is_digit(fragment[i]):
            i += 1
        text = fragment[start:i]
        start = i
        while i < length and _is_digit(fragment[i]):
            i += 1
        runs.append((text, int(fragment[start:i] or "0")))
    while runs and runs[-1] == ("", 0):
        runs.pop()
    return tuple(runs)


class PackageVersion:
    """Immutable Debian version, ordered by :func:`compare_versions`.

    Equality and hashing follow the ordering, so ``PackageVersion("1.09")``
    equals ``PackageVersion("1.9")``. ``str()`` returns the original text.
    """

    __slots__ = ("_string", "_epoch", "_key")

    def __init__(self, string: str) -> None:
        object.__setattr__(self, "_string", string)
        parsed = _parse(string)
        key: Hashable
        if parsed is None:
            epoch = 0
            key = ("", string)
        else:
            epoch = int(parsed.epoch or 0)
            key = (
                epoch,
                _fragment_key(parsed.upstream_version or ""),
                _fragment_key(parsed.debian_revision or ""),
            )
        object.__setattr__(self, "_epoch", epoch)
        object.__setattr__(self, "_key", key)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def string(self) -> str:
        return self._string

    @property
    def epoch(self) -> int:
        return self._epoch

    def compare(self, other: "PackageVersion") -> int:
        return compare_versions(self._string, other._string)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageVersion):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: "PackageVersion") -> bool:
        if not isinstance(other, PackageVersion):
            return NotImplemented
        return self.compare(other) < 0

    def __le__(self, other: "PackageVersion") -> bool:
        if not isinstance(other, PackageVersion):
            return NotImplemented
        return self.compare(other) <= 0

    def __gt__(self, other: "PackageVersion") -> bool:
        if not isinstance(other, PackageVersion):
            return NotImplemented
        return self.compare(other) > 0

    def __ge__(self, other: "PackageVersion") -> bool:
        if not isinstance(other, PackageVersion):
            return NotImplemented
        return self.compare(other) >= 0

    def __hash__(self) -> int:
        return hash(self._key)

    def __str__(self) -> str:
        return self._string

    def __repr__(self) -> str:
        return f"PackageVersion({self._string!r})"
