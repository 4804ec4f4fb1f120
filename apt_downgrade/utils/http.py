"""
HTTP client utilities for apt-downgrade.

Synchronous wrapper around :class:`httpx.Client`. Index pages are fetched
with retry and backoff; artifact downloads are a single streamed attempt
published to disk with an atomic rename.
"""

from __future__ import annotations

import os
import time
import httpx
import random
import tempfile
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Any, Optional

from apt_downgrade.utils.logger import get_logger
from apt_downgrade.__version__ import __version__
from apt_downgrade.exceptions import RemoteSourceError
from apt_downgrade.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    DOWNLOAD_CHUNK_SIZE,
    USER_AGENT_TEMPLATE,
)

logger = get_logger("http")


def _retry_after_seconds(value: Optional[str], default: float = 1.0) -> float:
    """Seconds to wait for a ``Retry-After`` header.

    Accepts both delay-seconds and HTTP-date forms; anything unparseable
    falls back to ``default``.
    """
    if not value:
        return default
    value = value.strip()
    if value.isdigit():
        return float(value)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return default
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


class HTTPClient:
    """Blocking HTTP client with retries for index pages.

    Args:
        timeout: Request timeout in seconds.
        max_retries: Maximum number of retry attempts for :meth:`get`.
        verify_ssl: Whether to verify SSL certificates.
        user_agent: Custom User-Agent header value.
        transport: Optional httpx transport (tests inject a mock one).

    Example:
        >>> with HTTPClient() as client:
        ...     page = client.get_text("http://ftp.debian.org/debian/pool/main/c/curl/")
    """

    def __init__(
        self,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)

        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self._max_429_retries: int = 5

    def __enter__(self) -> "HTTPClient":
        self._ensure_client()
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    def _ensure_client(self) -> httpx.Client:
        """Create the underlying httpx client on first use."""
        if self._client is None:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                http2=self._transport is None,
                verify=self.verify_ssl,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------
    # Index pages
    # ------------------------------------------------------------------

    def _request_with_retry(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Execute an HTTP request with retry and backoff logic."""
        client = self._ensure_client()

        last_exc: Optional[Exception] = None
        retry_429_count = 0

        for attempt in range(self.max_retries + 1):
            try:
                logger.debug("%s %s", method, url)
                response = client.request(method, url, **kwargs)

                if response.status_code == 429:
                    retry_429_count += 1
                    if retry_429_count > self._max_429_retries:
                        raise RemoteSourceError(
                            f"Rate limit exceeded after {self._max_429_retries} retries",
                            url=url,
                            status_code=429,
                        )
                    retry_after = _retry_after_seconds(response.headers.get("Retry-After"))
                    logger.warning(
                        "Rate limited (429), retrying after %.1fs (%d/%d)",
                        retry_after,
                        retry_429_count,
                        self._max_429_retries,
                    )
                    time.sleep(retry_after)
                    continue

                response.raise_for_status()
                return response

            except httpx.TimeoutException as exc:
                last_exc = exc
                logger.warning(
                    "Request timeout (%d/%d): %s",
                    attempt + 1,
                    self.max_retries + 1,
                    url,
                )

            except httpx.HTTPStatusError as exc:
                if exc.response.status_code < 500:
                    raise RemoteSourceError(
                        f"HTTP {exc.response.status_code} error for {url}",
                        url=url,
                        status_code=exc.response.status_code,
                        response_body=exc.response.text,
                    ) from exc
                last_exc = exc
                logger.warning(
                    "HTTP %d error (%d/%d): %s",
                    exc.response.status_code,
                    attempt + 1,
                    self.max_retries + 1,
                    url,
                )

            except httpx.TransportError as exc:
                last_exc = exc
                logger.warning(
                    "Network error (%d/%d): %s",
                    attempt + 1,
                    self.max_retries + 1,
                    exc,
                )

            if attempt < self.max_retries:
                delay = (2**attempt) + random.uniform(0.0, 0.3)
                logger.debug("Retrying in %.2fs", delay)
                time.sleep(delay)

        raise RemoteSourceError(
            f"Request failed after {self.max_retries + 1} attempts: {url}",
            url=url,
        ) from last_exc

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Perform a GET request with retry logic."""
        return self._request_with_retry("GET", url, **kwargs)

    def get_text(self, url: str, **kwargs: Any) -> str:
        """Fetch a URL and return the decoded body."""
        return self.get(url, **kwargs).text

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------

    def download(self, url: str, target: Path) -> Path:
        """Stream ``url`` into ``target`` in one attempt.

        The body is written to a temporary file beside ``target`` and
        renamed over it only once complete, so an interrupted download never
        leaves a file at ``target``.

        Raises:
            RemoteSourceError: On any transport error or non-2xx status.
        """
        client = self._ensure_client()
        target.parent.mkdir(parents=True, exist_ok=True)
        temp_path: Optional[Path] = None

        try:
            logger.debug("Downloading %s -> %s", url, target)
            with client.stream("GET", url) as response:
                if not response.is_success:
                    raise RemoteSourceError(
                        f"HTTP {response.status_code} error for {url}",
                        url=url,
                        status_code=response.status_code,
                    )
                with tempfile.NamedTemporaryFile(
                    mode="wb",
                    dir=str(target.parent),
                    delete=False,
                    prefix=f".{target.name}.",
                    suffix=".part",
                ) as tmp:
                    temp_path = Path(tmp.name)
                    for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                        tmp.write(chunk)
                    tmp.flush()
                    os.fsync(tmp.fileno())

            os.replace(temp_path, target)
            temp_path = None
            return target

        except httpx.HTTPError as exc:
            raise RemoteSourceError(
                f"Download failed for {url}: {exc}",
                url=url,
            ) from exc

        finally:
            if temp_path is not None and temp_path.exists():
                try:
                    temp_path.unlink()
                    logger.debug("Cleaned up partial download: %s", temp_path)
                except OSError as cleanup_exc:
                    logger.warning(
                        "Failed to clean up partial download %s: %s",
                        temp_path,
                        cleanup_exc,
                    )
