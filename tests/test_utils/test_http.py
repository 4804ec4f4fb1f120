from __future__ import annotations

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Callable, List
from unittest.mock import patch

import httpx
import pytest

from apt_downgrade.exceptions import ErrorKind, RemoteSourceError
from apt_downgrade.utils.http import HTTPClient, _retry_after_seconds

URL = "http://ftp.debian.org/debian/pool/main/c/curl/"


def _client(
    handler: Callable[[httpx.Request], httpx.Response],
    **kwargs,
) -> HTTPClient:
    return HTTPClient(transport=httpx.MockTransport(handler), **kwargs)


def _sequence(*responses: httpx.Response) -> Callable[[httpx.Request], httpx.Response]:
    """Return a handler answering with ``responses`` in order."""
    pending: List[httpx.Response] = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        return pending.pop(0)

    return handler


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("apt_downgrade.utils.http.time.sleep") as sleep:
        yield sleep


@pytest.mark.unit
class TestHTTPClientInit:
    """Tests for HTTPClient configuration."""

    def test_defaults(self) -> None:
        client = HTTPClient()

        assert client.timeout == 30
        assert client.max_retries == 3
        assert client.verify_ssl is True
        assert client.user_agent.startswith("apt-downgrade/")
        assert client._client is None

    def test_context_manager_closes_client(self) -> None:
        with _client(_sequence()) as client:
            assert client._client is not None

        assert client._client is None

    def test_sends_user_agent(self) -> None:
        seen: List[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers["User-Agent"])
            return httpx.Response(200, text="ok")

        with _client(handler, user_agent="test-agent/1") as client:
            client.get_text(URL)

        assert seen == ["test-agent/1"]


@pytest.mark.unit
class TestGetWithRetry:
    """Tests for index page fetching."""

    def test_returns_text(self) -> None:
        with _client(_sequence(httpx.Response(200, text="<html/>"))) as client:
            assert client.get_text(URL) == "<html/>"

    def test_client_error_is_not_retried(self) -> None:
        calls: List[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            return httpx.Response(404, text="Not Found")

        with _client(handler) as client:
            with pytest.raises(RemoteSourceError) as exc_info:
                client.get(URL)

        assert len(calls) == 1
        assert exc_info.value.status_code == 404
        assert exc_info.value.kind is ErrorKind.REMOTE_FAILURE
        assert exc_info.value.details["response"] == "Not Found"

    def test_server_error_is_retried(self, no_sleep) -> None:
        handler = _sequence(httpx.Response(503), httpx.Response(502), httpx.Response(200, text="ok"))

        with _client(handler, max_retries=3) as client:
            assert client.get_text(URL) == "ok"

        assert no_sleep.call_count == 2

    def test_gives_up_after_max_retries(self) -> None:
        calls: List[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            raise httpx.ConnectError("unreachable", request=request)

        with _client(handler, max_retries=2) as client:
            with pytest.raises(RemoteSourceError, match="after 3 attempts"):
                client.get(URL)

        assert len(calls) == 3

    def test_timeout_is_retried(self) -> None:
        state = {"calls": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            state["calls"] += 1
            if state["calls"] == 1:
                raise httpx.ReadTimeout("slow", request=request)
            return httpx.Response(200, text="ok")

        with _client(handler) as client:
            assert client.get_text(URL) == "ok"

    def test_rate_limit_honours_retry_after(self, no_sleep) -> None:
        handler = _sequence(
            httpx.Response(429, headers={"Retry-After": "7"}),
            httpx.Response(200, text="ok"),
        )

        with _client(handler) as client:
            assert client.get_text(URL) == "ok"

        no_sleep.assert_called_once_with(7)

    @pytest.mark.parametrize(
        "header, delay",
        [("Wed, 21 Oct 2015 07:28:00 GMT", 0.0), ("soon", 1.0), ("", 1.0)],
    )
    def test_rate_limit_with_date_or_garbage(self, no_sleep, header: str, delay: float) -> None:
        handler = _sequence(
            httpx.Response(429, headers={"Retry-After": header}),
            httpx.Response(200, text="ok"),
        )

        with _client(handler) as client:
            assert client.get_text(URL) == "ok"

        no_sleep.assert_called_once_with(delay)


@pytest.mark.unit
class TestRetryAfterSeconds:
    """Tests for _retry_after_seconds."""

    def test_delay_seconds(self) -> None:
        assert _retry_after_seconds(" 12 ") == 12.0

    def test_future_http_date(self) -> None:
        future = datetime.now(timezone.utc) + timedelta(seconds=120)

        delay = _retry_after_seconds(format_datetime(future, usegmt=True))

        assert 60.0 < delay <= 120.0

    def test_missing_header_uses_default(self) -> None:
        assert _retry_after_seconds(None, default=3.0) == 3.0


@pytest.mark.unit
class TestDownload:
    """Tests for HTTPClient.download."""

    def test_writes_target_atomically(self, tmp_path: Path) -> None:
        target = tmp_path / "debs" / "curl_7.50.0_amd64.deb"

        with _client(_sequence(httpx.Response(200, content=b"x" * 100_000))) as client:
            assert client.download(URL + "curl_7.50.0_amd64.deb", target) == target

        assert target.read_bytes() == b"x" * 100_000
        assert [p.name for p in target.parent.iterdir()] == [target.name]

    def test_http_error_status(self, tmp_path: Path) -> None:
        target = tmp_path / "curl.deb"

        with _client(_sequence(httpx.Response(410))) as client:
            with pytest.raises(RemoteSourceError) as exc_info:
                client.download(URL, target)

        assert exc_info.value.status_code == 410
        assert not target.exists()

    def test_transport_error_is_not_retried(self, tmp_path: Path) -> None:
        calls: List[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            raise httpx.ReadError("reset", request=request)

        with _client(handler) as client:
            with pytest.raises(RemoteSourceError, match="Download failed"):
                client.download(URL, tmp_path / "curl.deb")

        assert len(calls) == 1
        assert list(tmp_path.iterdir()) == []

    def test_partial_file_removed_on_stream_failure(self, tmp_path: Path) -> None:
        class BrokenStream(httpx.SyncByteStream):
            def __iter__(self):
                yield b"partial"
                raise httpx.ReadError("connection reset")

        with _client(_sequence(httpx.Response(200, stream=BrokenStream()))) as client:
            with pytest.raises(RemoteSourceError):
                client.download(URL, tmp_path / "curl.deb")

        assert list(tmp_path.iterdir()) == []
