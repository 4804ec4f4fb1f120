"""On-disk artifact cache for apt-downgrade.

Downloaded ``.deb`` files are stored under a per-user cache directory,
named after the last segment of their pool URL. Pool filenames encode
name, version and architecture, and a published pool file never changes,
so a file that exists under that name is treated as valid without any
network access. Downloads are published with an atomic rename, so a
partially written file never occupies a target name.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit

import appdirs

from apt_downgrade.models import Package
from apt_downgrade.constants import APP_NAME
from apt_downgrade.utils.http import HTTPClient
from apt_downgrade.utils.logger import get_logger
from apt_downgrade.utils.filesystem import ensure_directory
from apt_downgrade.exceptions import (
    ArtifactDownloadError,
    FileOperationError,
    RemoteSourceError,
)

logger = get_logger("artifact_cache")

__all__ = ["ArtifactCache", "default_cache_dir"]


def default_cache_dir() -> Path:
    """Return the per-user cache directory for downloaded artifacts."""
    return Path(appdirs.user_cache_dir(APP_NAME))


class ArtifactCache:
    """Filename-addressed store of downloaded package archives.

    Args:
        http: Client used for downloads.
        root: Cache directory; defaults to :func:`default_cache_dir`.
    """

    def __init__(self, http: HTTPClient, root: Optional[Path] = None) -> None:
        self.http = http
        self.root = Path(root) if root is not None else default_cache_dir()
        self.downloads = 0

    def target_for(self, source_url: str) -> Path:
        """Return the cache path for an artifact URL."""
        filename = unquote(urlsplit(source_url).path.rsplit("/", 1)[-1])
        if not filename:
            raise ArtifactDownloadError(
                "Artifact URL has no file name",
                url=source_url,
            )
        return self.root / filename

    def materialize(self, package: Package) -> Package:
        """Return ``package`` with ``local_path`` pointing at its artifact.

        Packages that already have a local path are returned unchanged.

        Raises:
            ArtifactDownloadError: No location is known, or the download
                failed.
            FileOperationError: The cache directory is not writable.
        """
        if package.local_path is not None:
            return package

        if package.source_url is None:
            raise ArtifactDownloadError(
                "Package has neither a local path nor a source URL",
                package=str(package),
            )

        ensure_directory(self.root)
        target = self.target_for(package.source_url)

        if target.is_file():
            logger.debug("Artifact cache hit: %s", target)
            return package.with_local_path(str(target))

        logger.info("Downloading %s", package.source_url)
        try:
            self.http.download(package.source_url, target)
        except RemoteSourceError as exc:
            raise ArtifactDownloadError(
                f"Cannot download {package}",
                url=package.source_url,
                package=str(package),
                original_error=exc,
            ) from exc
        except OSError as exc:
            raise FileOperationError(
                f"Cannot write artifact: {exc}",
                file_path=str(target),
                operation="write",
                original_error=exc,
            ) from exc

        self.downloads += 1
        return package.with_local_path(str(target))
