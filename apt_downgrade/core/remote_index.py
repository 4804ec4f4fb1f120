"""Remote package-pool index for apt-downgrade.

Discovers versions that are no longer in the apt lists by scraping two
pages:

1. the package-search *download* page for a binary package, whose links
   point into the mirror's pool directory of the source package;
2. that pool directory's listing, which holds every historical artifact.

HTML handling is confined to :func:`extract_links`; callers only see
:meth:`RemoteIndex.find_source_directory` and
:meth:`RemoteIndex.list_pool_versions`.

Every page body is memoised in an :class:`IndexCache` for the lifetime of
one resolution run, since binary packages built from the same source share
one pool directory.
"""

from __future__ import annotations

from html.parser import HTMLParser
from urllib.parse import urljoin
from typing import Dict, List, Optional, Tuple

from apt_downgrade.utils.http import HTTPClient
from apt_downgrade.utils.logger import get_logger
from apt_downgrade.exceptions import IndexFormatError
from apt_downgrade.utils.filesystem import split_archive_name
from apt_downgrade.models import Package, PackageVersion, ResolutionEnvironment
from apt_downgrade.constants import (
    DEB_SUFFIX,
    DEFAULT_MIRROR_URL,
    DEFAULT_SEARCH_URL,
    DEFAULT_SUITE,
)

logger = get_logger("remote_index")

__all__ = ["IndexCache", "RemoteIndex", "extract_links"]


class _LinkCollector(HTMLParser):
    """Collect ``href`` attributes of anchors in document order."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.links: List[str] = []

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        if tag != "a":
            return
        for key, value in attrs:
            if key == "href" and value:
                self.links.append(value)


def extract_links(html: str) -> List[str]:
    """Return every anchor ``href`` in ``html``, in document order."""
    collector = _LinkCollector()
    collector.feed(html)
    collector.close()
    return collector.links


class IndexCache:
    """Run-scoped memo of fetched index pages, keyed by URL."""

    def __init__(self) -> None:
        self._pages: Dict[str, str] = {}
        self.hits = 0
        self.misses = 0

    def get(self, url: str, http: HTTPClient) -> str:
        """Return the page at ``url``, fetching it on first request."""
        page = self._pages.get(url)
        if page is not None:
            self.hits += 1
            logger.debug("Index cache hit: %s", url)
            return page

        self.misses += 1
        page = http.get_text(url)
        self._pages[url] = page
        return page

    def __contains__(self, url: object) -> bool:
        return url in self._pages

    def __len__(self) -> int:
        return len(self._pages)


class RemoteIndex:
    """Package-pool lookups against a Debian mirror.

    Args:
        http: HTTP client used for page fetches.
        env: Host environment (architecture whitelist).
        cache: Page memo; a fresh one is created when omitted.
        mirror_url: Mirror root; pool links must start with it.
        search_url: Package search site root.
        suite: Suite used in the search-site URL.
    """

    def __init__(
        self,
        http: HTTPClient,
        env: ResolutionEnvironment,
        *,
        cache: Optional[IndexCache] = None,
        mirror_url: str = DEFAULT_MIRROR_URL,
        search_url: str = DEFAULT_SEARCH_URL,
        suite: str = DEFAULT_SUITE,
    ) -> None:
        self.http = http
        self.env = env
        self.cache = cache if cache is not None else IndexCache()
        self.mirror_url = mirror_url.rstrip("/") + "/"
        self.search_url = search_url.rstrip("/")
        self.suite = suite

    def download_page_url(self, name: str) -> str:
        return f"{self.search_url}/{self.suite}/{self.env.architecture}/{name}/download"

    def find_source_directory(self, name: str) -> str:
        """Return the pool directory URL (with trailing ``/``) for ``name``.

        Raises:
            RemoteSourceError: The search page cannot be fetched.
            IndexFormatError: The page has no link into the mirror pool.
        """
        url = self.download_page_url(name)
        pool_prefix = self.mirror_url + "pool/"

        for link in extract_links(self.cache.get(url, self.http)):
            if link.startswith(pool_prefix) and link.endswith(DEB_SUFFIX):
                directory = link.rsplit("/", 1)[0] + "/"
                logger.debug("Pool directory for %s: %s", name, directory)
                return directory

        raise IndexFormatError(
            f"No pool link under {self.mirror_url} found for {name}",
            url=url,
            package=name,
        )

    def list_pool_versions(self, directory_url: str, name: str) -> List[Package]:
        """Return the artifacts of ``name`` listed in a pool directory.

        Only ``name_version_arch.deb`` entries whose architecture is
        installable on this host are returned.

        Raises:
            RemoteSourceError: The listing cannot be fetched.
        """
        page = self.cache.get(directory_url, self.http)
        allowed = set(self.env.architectures)
        packages: List[Package] = []

        for link in extract_links(page):
            filename = link.rsplit("/", 1)[-1]
            parts = split_archive_name(filename)
            if parts is None:
                continue
            archive_name, version, architecture = parts
            if archive_name != name or architecture not in allowed:
                continue
            packages.append(
                Package(
                    name,
                    PackageVersion(version),
                    architecture,
                    source_url=urljoin(directory_url, link),
                )
            )

        logger.debug("%d remote artifact(s) for %s", len(packages), name)
        return packages

    def get_versions(self, name: str) -> List[Package]:
        """Find the pool directory of ``name`` and list its artifacts."""
        return self.list_pool_versions(self.find_source_directory(name), name)
