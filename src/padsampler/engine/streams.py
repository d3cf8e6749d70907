"""Byte streams behind a sound's source locator.

A locator is an ``http(s)://`` URL, a ``file://`` URL or a plain path.
Blocking reads run in worker threads so the event loop stays free.
"""

import asyncio
import logging
import os
from typing import AsyncGenerator, AsyncIterator, Iterator, Optional, Protocol
from urllib.parse import unquote, urlparse

import requests

from padsampler.errors import NetworkError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class ByteStream(Protocol):
    total: Optional[int]  # None when the length is unknown

    def chunks(self) -> AsyncGenerator[bytes, None]: ...

    def close(self) -> None: ...


class StreamOpener(Protocol):
    async def open(self, locator: str) -> ByteStream: ...


class _IteratorStream:
    """Pulls chunks from a blocking iterator one worker-thread hop at a time."""

    def __init__(self, iterator: Iterator[bytes], total: Optional[int], on_close):
        self.total = total
        self._iterator = iterator
        self._on_close = on_close

    async def chunks(self) -> AsyncIterator[bytes]:
        while True:
            try:
                chunk = await asyncio.to_thread(next, self._iterator, None)
            except (OSError, requests.RequestException) as e:
                raise NetworkError(f"Read failed: {e}") from e
            if chunk is None:
                return
            if chunk:
                yield chunk

    def close(self) -> None:
        self._on_close()


def _read_file(handle, chunk_size: int) -> Iterator[bytes]:
    while True:
        chunk = handle.read(chunk_size)
        if not chunk:
            return
        yield chunk


class LocatorOpener:
    """Opens HTTP(S) locators with ``requests`` and everything else as a file."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.session = session or requests.Session()
        self.chunk_size = chunk_size

    async def open(self, locator: str) -> ByteStream:
        parsed = urlparse(locator)
        if parsed.scheme in ("http", "https"):
            return await asyncio.to_thread(self._open_http, locator)
        if parsed.scheme == "file":
            path = unquote(parsed.path)
        else:
            path = locator
        return await asyncio.to_thread(self._open_file, path)

    def _open_http(self, url: str) -> ByteStream:
        try:
            response = self.session.get(url, stream=True)
            response.raise_for_status()
        except requests.RequestException as e:
            raise NetworkError(f"Could not open {url}: {e}") from e

        length = response.headers.get("Content-Length")
        total = int(length) if length and length.isdigit() and int(length) > 0 else None
        return _IteratorStream(
            response.iter_content(chunk_size=self.chunk_size), total, response.close
        )

    def _open_file(self, path: str) -> ByteStream:
        try:
            handle = open(path, "rb")
        except OSError as e:
            raise NetworkError(f"Could not open {path}: {e}") from e
        total = os.fstat(handle.fileno()).st_size
        return _IteratorStream(_read_file(handle, self.chunk_size), total or None, handle.close)
