from __future__ import annotations

from typing import Dict, List

import httpx
import pytest

from apt_downgrade.core.remote_index import IndexCache, RemoteIndex, extract_links
from apt_downgrade.exceptions import ErrorKind, IndexFormatError, RemoteSourceError
from apt_downgrade.models import PackageVersion, ResolutionEnvironment
from apt_downgrade.utils.http import HTTPClient

MIRROR = "http://ftp.debian.org/debian"
SEARCH = "https://packages.debian.org"
POOL = f"{MIRROR}/pool/main/c/curl/"

DOWNLOAD_PAGE = f"""
<html><body>
<a href="https://www.debian.org/mirror/list">mirrors</a>
<a href="http://ftp.us.debian.org/debian/pool/main/c/curl/libcurl4_8.5.0-2_amd64.deb">us</a>
<a href="{MIRROR}/pool/main/c/curl/libcurl4_8.5.0-2_amd64.deb">ftp.debian.org</a>
</body></html>
"""

POOL_LISTING = """
<html><body><pre>
<a href="../">../</a>
<a href="curl_7.50.0-1_amd64.deb">curl_7.50.0-1_amd64.deb</a>
<a href="curl_7.88.1-10%2Bdeb12u5_amd64.deb">curl_7.88.1-10+deb12u5_amd64.deb</a>
<a href="curl_7.88.1-10_arm64.deb">curl_7.88.1-10_arm64.deb</a>
<a href="curl_7.88.1-10.dsc">curl_7.88.1-10.dsc</a>
<a href="libcurl4_7.88.1-10_amd64.deb">libcurl4_7.88.1-10_amd64.deb</a>
<a href="libcurl4-doc_7.88.1-10_all.deb">libcurl4-doc_7.88.1-10_all.deb</a>
</pre></body></html>
"""


def _client(pages: Dict[str, str], requests: List[str]) -> HTTPClient:
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        requests.append(url)
        if url in pages:
            return httpx.Response(200, text=pages[url])
        return httpx.Response(404, text="not found")

    return HTTPClient(transport=httpx.MockTransport(handler), max_retries=0)


@pytest.fixture
def env() -> ResolutionEnvironment:
    return ResolutionEnvironment("amd64", "/var/cache/apt/archives")


@pytest.mark.unit
class TestExtractLinks:
    """Tests for extract_links."""

    def test_document_order(self) -> None:
        html = '<a href="a.deb">a</a><p><A HREF="b.deb">b</A></p><a name="x">no href</a>'

        assert extract_links(html) == ["a.deb", "b.deb"]

    def test_unescapes_entities(self) -> None:
        assert extract_links('<a href="x?a=1&amp;b=2">x</a>') == ["x?a=1&b=2"]


@pytest.mark.unit
class TestRemoteIndex:
    """Tests for RemoteIndex lookups against a mocked mirror."""

    def test_download_page_url(self, env: ResolutionEnvironment) -> None:
        index = RemoteIndex(HTTPClient(), env, search_url=SEARCH + "/", suite="bookworm")

        assert index.download_page_url("curl") == f"{SEARCH}/bookworm/amd64/curl/download"

    def test_find_source_directory_uses_configured_mirror(self, env: ResolutionEnvironment) -> None:
        requests: List[str] = []
        pages = {f"{SEARCH}/sid/amd64/libcurl4/download": DOWNLOAD_PAGE}

        with _client(pages, requests) as http:
            directory = RemoteIndex(http, env, mirror_url=MIRROR).find_source_directory("libcurl4")

        assert directory == POOL

    def test_find_source_directory_without_pool_link(self, env: ResolutionEnvironment) -> None:
        pages = {f"{SEARCH}/sid/amd64/curl/download": "<html>No such package.</html>"}

        with _client(pages, []) as http:
            with pytest.raises(IndexFormatError) as exc_info:
                RemoteIndex(http, env, mirror_url=MIRROR).find_source_directory("curl")

        assert exc_info.value.kind is ErrorKind.REMOTE_FAILURE
        assert exc_info.value.recoverable

    def test_list_pool_versions_filters_name_and_arch(self, env: ResolutionEnvironment) -> None:
        with _client({POOL: POOL_LISTING}, []) as http:
            packages = RemoteIndex(http, env, mirror_url=MIRROR).list_pool_versions(POOL, "curl")

        assert [str(p.version) for p in packages] == ["7.50.0-1", "7.88.1-10+deb12u5"]
        assert packages[1].source_url == POOL + "curl_7.88.1-10%2Bdeb12u5_amd64.deb"
        assert not any(p.is_local for p in packages)

    def test_list_pool_versions_decodes_once(self, env: ResolutionEnvironment) -> None:
        listing = '<a href="curl_7.50.0%2525b1_amd64.deb">x</a>'

        with _client({POOL: listing}, []) as http:
            packages = RemoteIndex(http, env).list_pool_versions(POOL, "curl")

        assert [str(p.version) for p in packages] == ["7.50.0%25b1"]
        assert packages[0].source_url == POOL + "curl_7.50.0%2525b1_amd64.deb"

    def test_list_pool_versions_keeps_arch_all(self, env: ResolutionEnvironment) -> None:
        with _client({POOL: POOL_LISTING}, []) as http:
            packages = RemoteIndex(http, env).list_pool_versions(POOL, "libcurl4-doc")

        assert [(p.version, p.architecture) for p in packages] == [
            (PackageVersion("7.88.1-10"), "all")
        ]

    def test_get_versions_shares_pool_listing(self, env: ResolutionEnvironment) -> None:
        requests: List[str] = []
        pages = {
            f"{SEARCH}/sid/amd64/curl/download": DOWNLOAD_PAGE,
            f"{SEARCH}/sid/amd64/libcurl4/download": DOWNLOAD_PAGE,
            POOL: POOL_LISTING,
        }

        with _client(pages, requests) as http:
            index = RemoteIndex(http, env, mirror_url=MIRROR)
            curl = index.get_versions("curl")
            libcurl = index.get_versions("libcurl4")
            again = index.get_versions("curl")

        assert len(curl) == 2
        assert [str(p.version) for p in libcurl] == ["7.88.1-10"]
        assert again == curl
        assert requests.count(POOL) == 1
        assert index.cache.hits == 3
        assert len(index.cache) == 3

    def test_http_error_is_remote_failure(self, env: ResolutionEnvironment) -> None:
        with _client({}, []) as http:
            with pytest.raises(RemoteSourceError) as exc_info:
                RemoteIndex(http, env).get_versions("curl")

        assert exc_info.value.status_code == 404


@pytest.mark.unit
class TestIndexCache:
    """Tests for IndexCache."""

    def test_memoizes_pages(self) -> None:
        requests: List[str] = []
        cache = IndexCache()

        with _client({POOL: "listing"}, requests) as http:
            assert cache.get(POOL, http) == "listing"
            assert cache.get(POOL, http) == "listing"

        assert requests == [POOL]
        assert (cache.hits, cache.misses) == (1, 1)
        assert POOL in cache
