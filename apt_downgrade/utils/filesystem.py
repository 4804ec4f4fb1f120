"""
Filesystem utilities for apt-downgrade.

Helpers for the two on-disk package directories the tool touches: the
host's apt archive cache (read-only) and the per-user artifact cache.
Filesystem errors are normalized to ``FileOperationError``.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote
from typing import Iterable, List, Optional, Tuple, Union

from apt_downgrade.constants import DEB_SUFFIX
from apt_downgrade.utils.logger import get_logger
from apt_downgrade.exceptions import FileOperationError

logger = get_logger("filesystem")

PathLike = Union[str, Path]


def ensure_directory(path: PathLike) -> Path:
    """Create ``path`` (and parents) if missing and return it resolved.

    Raises:
        FileOperationError: The directory cannot be created, or a non-directory
            already exists at ``path``.
    """
    directory = Path(path).expanduser()
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileOperationError(
            f"Cannot create directory: {exc}",
            file_path=str(directory),
            operation="mkdir",
            original_error=exc,
        ) from exc
    return directory.resolve()


def split_archive_name(filename: str) -> Optional[Tuple[str, str, str]]:
    """Split ``name_version_arch.deb`` into its three parts.

    Versions are URL-decoded: apt stores the epoch colon as ``%3a`` and
    mirrors quote ``+`` and ``~`` in links.

    Returns:
        ``(name, version, architecture)``, or ``None`` when ``filename`` is not
        a binary package archive name.

    Example::

        >>> split_archive_name("libc6_2.36-9%2bdeb12u4_amd64.deb")
        ('libc6', '2.36-9+deb12u4', 'amd64')
    """
    decoded = unquote(filename)
    if not decoded.endswith(DEB_SUFFIX):
        return None
    parts = decoded[: -len(DEB_SUFFIX)].split("_")
    if len(parts) != 3 or not all(parts):
        return None
    name, version, architecture = parts
    return name, version, architecture


def find_package_archives(
    directory: PathLike,
    name: str,
    architectures: Iterable[str],
) -> List[Tuple[Path, str, str]]:
    """List archives of ``name`` in ``directory`` for the given architectures.

    Returns:
        Sorted ``(path, version, architecture)`` triples. A missing directory
        yields an empty list.
    """
    root = Path(directory)
    if not root.is_dir():
        logger.debug("Archive directory does not exist: %s", root)
        return []

    wanted = set(architectures)
    matches: List[Tuple[Path, str, str]] = []

    for path in sorted(root.glob(f"{name}_*{DEB_SUFFIX}")):
        parts = split_archive_name(path.name)
        if parts is None:
            continue
        archive_name, version, architecture = parts
        if archive_name != name or architecture not in wanted:
            continue
        if not path.is_file():
            continue
        matches.append((path, version, architecture))

    return matches
