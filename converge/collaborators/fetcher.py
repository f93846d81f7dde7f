"""HTTP file fetcher with checksum verification and atomic replacement."""

import hashlib
import logging
import os
import tempfile
from pathlib import Path

import httpx

from converge.errors import ActionExecutionError

from .base import FileFetcher

logger = logging.getLogger(__name__)

# Status codes worth another attempt
_RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}


def sha256_of(path: Path, chunk_size: int = 1 << 16) -> str:
    """Return the hex SHA-256 digest of a file."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


class _RetryableDownloadError(Exception):
    """Transient failure; the fetch may be attempted again."""


class HttpFileFetcher(FileFetcher):
    """Downloads files over HTTP(S) with httpx.

    The body is streamed into a temporary file in the destination directory,
    hashed while it is written, and moved into place with ``os.replace`` only
    after the checksum matches. Transport errors and retryable status codes
    are retried up to ``max_retries`` times; checksum mismatches are not.

    Attributes:
        timeout_seconds: Timeout for each attempt
        max_retries: Additional attempts after a transient failure

    Example:
        >>> fetcher = HttpFileFetcher(max_retries=2)
        >>> fetcher.fetch(
        ...     "https://example.com/font.zip",
        ...     Path("~/Library/Caches/converge/font.zip").expanduser(),
        ...     checksum="456d7d42797febd0d7d4cf1b782a2e03680bb4a5ee43cc9d06bda172bac05b42",
        ... )
    """

    def __init__(
        self,
        timeout_seconds: float = 60.0,
        max_retries: int = 3,
        client: httpx.Client | None = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self._client = client

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.timeout_seconds, follow_redirects=True
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def fetch(self, url: str, dest: Path, checksum: str | None = None) -> None:
        dest = Path(dest)
        if not dest.parent.is_dir():
            raise ActionExecutionError(
                url, f"destination directory {dest.parent} does not exist"
            )

        attempts = self.max_retries + 1
        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                self._download(url, dest, checksum)
                logger.info(f"Downloaded {url} -> {dest}")
                return
            except _RetryableDownloadError as e:
                last_error = e
                logger.warning(
                    f"Download attempt {attempt}/{attempts} for {url} failed: {e}"
                )

        raise ActionExecutionError(
            url, f"download failed after {attempts} attempt(s): {last_error}"
        )

    def _download(self, url: str, dest: Path, checksum: str | None) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=dest.parent, prefix=f".{dest.name}.", suffix=".part"
        )
        tmp_path = Path(tmp_name)
        try:
            digest = hashlib.sha256()
            with os.fdopen(fd, "wb") as out:
                try:
                    with self.client.stream("GET", url) as response:
                        if response.status_code in _RETRYABLE_STATUS:
                            raise _RetryableDownloadError(
                                f"HTTP {response.status_code}"
                            )
                        if response.is_error:
                            raise ActionExecutionError(
                                url, f"HTTP {response.status_code}"
                            )
                        for chunk in response.iter_bytes():
                            out.write(chunk)
                            digest.update(chunk)
                except httpx.TransportError as e:
                    raise _RetryableDownloadError(
                        f"{type(e).__name__}: {e}"
                    ) from e

            actual = digest.hexdigest()
            if checksum is not None and actual != checksum.lower():
                raise ActionExecutionError(
                    url, f"checksum mismatch: expected {checksum}, got {actual}"
                )

            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, dest)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
