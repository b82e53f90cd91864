"""Streaming archive download with progress and MD5 taps."""

from __future__ import annotations

import logging
from typing import Callable, Iterator, Optional

import httpx

from servicefetch.modules.artifactfetch.domain import DownloadSession
from servicefetch.modules.artifactfetch.util import build_user_agent
from servicefetch.modules.artifactfetch.util.exceptions import (
    ChecksumMismatchError,
    FetchTimeoutError,
    HttpStatusError,
    NetworkError,
    RequestBuildError,
)
from servicefetch.settings import Settings

log = logging.getLogger(__name__)

ProgressSink = Callable[[int, Optional[int]], None]

CHECKSUM_HEADER = "X-Checksum-Md5"


class LoggingProgress:
    """Progress sink that logs every 10%, or every 5MB when the size is unknown."""

    STEP_PERCENT = 10
    STEP_BYTES = 5 * 1024 * 1024

    def __init__(self, label: str, logger: Optional[logging.Logger] = None) -> None:
        self.label = label
        self.log = logger or log
        self._next_percent = self.STEP_PERCENT
        self._next_bytes = self.STEP_BYTES

    def __call__(self, bytes_read: int, content_length: Optional[int]) -> None:
        if content_length:
            percent = int(bytes_read * 100 / content_length)
            if percent >= self._next_percent:
                self.log.info("Download progress %s %s%% (%d/%d bytes)", self.label, percent, bytes_read, content_length)
                while self._next_percent <= percent:
                    self._next_percent += self.STEP_PERCENT
        elif bytes_read >= self._next_bytes:
            self.log.info("Download progress %s %d bytes", self.label, bytes_read)
            while self._next_bytes <= bytes_read:
                self._next_bytes += self.STEP_BYTES


class FetchedArchive:
    """An in-flight archive download exposed as a readable stream.

    Every chunk pulled from the response passes through the progress tap and
    then the MD5 tap before it is handed out, so the digest is complete once
    the stream has been read to the end. Nothing beyond the current chunk is
    held in memory.
    """

    def __init__(
        self,
        response: httpx.Response,
        session: DownloadSession,
        progress: Optional[ProgressSink] = None,
    ) -> None:
        self._response = response
        self.session = session
        self._progress = progress
        self._chunks = response.iter_bytes()
        self._buffer = bytearray()
        self._eof = False
        self._closed = False

    @property
    def url(self) -> str:
        return self.session.url

    @property
    def content_length(self) -> Optional[int]:
        return self.session.content_length

    @property
    def expected_md5(self) -> Optional[str]:
        return self.session.expected_md5

    @property
    def bytes_read(self) -> int:
        return self.session.bytes_read

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            while not self._eof:
                self._buffer.extend(self._next_chunk())
            size = len(self._buffer)
        while len(self._buffer) < size and not self._eof:
            self._buffer.extend(self._next_chunk())
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    def iter_chunks(self) -> Iterator[bytes]:
        if self._buffer:
            pending = bytes(self._buffer)
            self._buffer.clear()
            yield pending
        while not self._eof:
            chunk = self._next_chunk()
            if chunk:
                yield chunk

    def drain(self) -> int:
        """Consume whatever is left so the digest covers the whole payload."""
        self._buffer.clear()
        while not self._eof:
            self._next_chunk()
        return self.session.bytes_read

    def hexdigest(self) -> str:
        return self.session.hexdigest()

    def verify(self) -> bool:
        """Compare the computed digest with the declared one.

        Returns False when the server declared no checksum (unverified), True on
        a match. Must be called after the stream was fully consumed.
        """
        expected = self.session.expected_md5
        if not expected:
            log.debug("No %s header for %s, skipping checksum verification", CHECKSUM_HEADER, self.url)
            return False
        if not self._eof:
            self.drain()
        actual = self.hexdigest()
        if actual != expected:
            raise ChecksumMismatchError(self.url, expected, actual)
        log.info("Checksum verified for %s (md5=%s)", self.url, actual)
        return True

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._response.close()

    def __enter__(self) -> "FetchedArchive":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _next_chunk(self) -> bytes:
        session = self.session
        if session.expired():
            self.close()
            raise FetchTimeoutError(session.url, session.timeout)
        try:
            chunk = next(self._chunks)
        except StopIteration:
            self._finish()
            return b""
        except httpx.TimeoutException as exc:
            self.close()
            raise FetchTimeoutError(session.url, session.timeout) from exc
        except httpx.HTTPError as exc:
            self.close()
            raise NetworkError(session.url, str(exc)) from exc
        self._tap(chunk)
        return chunk

    def _tap(self, chunk: bytes) -> None:
        session = self.session
        session.bytes_read += len(chunk)
        if self._progress is not None:
            self._progress(session.bytes_read, session.content_length)
        session.hasher.update(chunk)

    def _finish(self) -> None:
        self._eof = True
        session = self.session
        elapsed = max(session.elapsed(), 1e-3)
        speed_mb_s = (session.bytes_read / 1024 / 1024) / elapsed
        log.info(
            "Downloaded %s (%d bytes, %.2f MB/s, %.2fs)",
            session.url,
            session.bytes_read,
            speed_mb_s,
            elapsed,
        )


class ArchiveFetcher:
    """Open archive downloads against the repository with a bounded deadline."""

    DEFAULT_TIMEOUT = 30 * 60

    def __init__(self, settings: Settings, client: Optional[httpx.Client] = None) -> None:
        self.settings = settings
        self.default_timeout = float(settings.fetch_timeout_seconds or self.DEFAULT_TIMEOUT)
        self.user_agent = build_user_agent(settings.agent_name, settings.version)
        auth = None
        if settings.repository_username and settings.repository_password:
            auth = (settings.repository_username, settings.repository_password)
        self._auth = auth
        self._client = client or httpx.Client(timeout=settings.http_timeout_seconds, follow_redirects=True)

    def open(
        self,
        url: str,
        timeout: Optional[float] = None,
        progress: Optional[ProgressSink] = None,
    ) -> FetchedArchive:
        """Start downloading ``url`` and return the tapped body stream.

        The caller owns the returned object and must close it (it is a context
        manager). When ``expected_md5`` is set, :meth:`FetchedArchive.verify`
        has to be called after the body was consumed.

        Raises:
            RequestBuildError, NetworkError, HttpStatusError, FetchTimeoutError;
            ValueError for a timeout that is not positive.
        """
        timeout = float(timeout if timeout is not None else self.default_timeout)
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout:g}")
        session = DownloadSession(url=url, timeout=timeout)
        try:
            request = self._client.build_request(
                "GET",
                url,
                headers={"User-Agent": self.user_agent},
                timeout=httpx.Timeout(timeout),
            )
        except (httpx.InvalidURL, ValueError) as exc:
            raise RequestBuildError(f"cannot build request for {url}: {exc}") from exc

        log.info("Downloading %s (deadline %.0fs)", url, timeout)
        try:
            response = self._client.send(request, stream=True, auth=self._auth)
        except httpx.UnsupportedProtocol as exc:
            raise RequestBuildError(f"cannot build request for {url}: {exc}") from exc
        except httpx.TimeoutException as exc:
            raise FetchTimeoutError(url, timeout) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(url, str(exc)) from exc

        if response.status_code != 200:
            response.close()
            raise HttpStatusError(url, response.status_code)

        length = response.headers.get("content-length")
        session.content_length = int(length) if length and length.isdigit() else None
        expected = response.headers.get(CHECKSUM_HEADER)
        session.expected_md5 = expected.strip().lower() if expected else None
        return FetchedArchive(response, session, progress)
