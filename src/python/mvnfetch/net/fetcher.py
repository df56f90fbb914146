# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from __future__ import annotations

import errno
import hashlib
import logging
import os
from abc import ABC, abstractmethod
from contextlib import closing
from typing import Any, BinaryIO, Iterator
from urllib.parse import unquote, urlparse

import requests

from mvnfetch.util.dirutil import safe_open

logger = logging.getLogger(__name__)


class Fetcher:
    """A streaming URL fetcher that supports listeners.

    Understands `http(s)://` urls, fetched with `requests`, and `file://` urls read straight from
    disk, so a repository can equally be a web server or a local directory.
    """

    class Error(Exception):
        """Indicates an error fetching an URL."""

    class TransientError(Error):
        """Indicates a fetch error for an operation that may reasonably be retried.

        For example a connection error or fetch timeout are both considered transient.
        """

    class PermanentError(Error):
        """Indicates a fetch error that is likely permanent.

        Retrying operations that raise these errors is unlikely to succeed.  For example, an HTTP 404
        response code is considered a permanent error.
        """

        def __init__(self, value: str | None = None, response_code: int | None = None) -> None:
            super().__init__(value)
            if response_code is not None and not isinstance(response_code, int):
                raise ValueError(f"response_code must be an integer, got {response_code}")
            self._response_code = response_code

        @property
        def response_code(self) -> int | None:
            """The HTTP response code of the failed request.

            May be None it the request failed before receiving a server response.
            """
            return self._response_code

        @property
        def not_found(self) -> bool:
            return self._response_code == requests.codes.not_found

    class Listener:
        """A listener callback interface for GET requests made by a Fetcher."""

        def status(self, code: int, content_length: int | None = None) -> None:
            """Called when the response headers are received before data starts streaming."""

        def recv_chunk(self, data: bytes) -> None:
            """Called as each chunk of data is received from the streaming response."""

        def finished(self) -> None:
            """Called when the response has been fully read."""

        def wrap(self, listener: Fetcher.Listener | None = None) -> Fetcher.Listener:
            """Returns a Listener that wraps both the given listener and this listener, calling each
            in turn for each callback method."""
            if not listener:
                return self

            outer = self

            class Wrapper(Fetcher.Listener):
                def status(self, code, content_length=None):
                    listener.status(code, content_length=content_length)
                    outer.status(code, content_length=content_length)

                def recv_chunk(self, data):
                    listener.recv_chunk(data)
                    outer.recv_chunk(data)

                def finished(self):
                    listener.finished()
                    outer.finished()

            return Wrapper()

    class DownloadListener(Listener):
        """A Listener that writes all received data to a file like object."""

        def __init__(self, fh: BinaryIO) -> None:
            """Creates a DownloadListener that writes to the given open file handle.

            The file handle is not closed.
            """
            if not fh or not hasattr(fh, "write"):
                raise ValueError(f"fh must be an open file handle, given {fh}")
            self._fh = fh

        def recv_chunk(self, data: bytes) -> None:
            self._fh.write(data)

    class ChecksumListener(Listener):
        """A Listener that checksums the data received, with SHA-1 unless told otherwise."""

        def __init__(self, digest: Any = None) -> None:
            self.digest = digest or hashlib.sha1()
            self._checksum: str | None = None

        def recv_chunk(self, data: bytes) -> None:
            self.digest.update(data)

        def finished(self) -> None:
            self._checksum = self.digest.hexdigest()

        @property
        def checksum(self) -> str:
            """Returns the hex digest of the received data.

            :raises: ValueError if accessed before this listener is finished
            """
            if self._checksum is None:
                raise ValueError(
                    "The checksum cannot be accessed before this listener is finished."
                )
            return self._checksum

    class _Response(ABC):
        """Abstracts a fetch response."""

        @property
        @abstractmethod
        def status_code(self) -> int:
            """The HTTP status code for the fetch."""

        @property
        @abstractmethod
        def size(self) -> int | None:
            """The size of the fetched file in bytes if known; otherwise, `None`."""

        @abstractmethod
        def iter_content(self, chunk_size_bytes: int) -> Iterator[bytes]:
            """Return an iterator over the content of the fetched file's bytes."""

        @abstractmethod
        def close(self) -> None:
            """Close the underlying fetched file stream."""

    class _RequestsResponse(_Response):
        _TRANSIENT_EXCEPTION_TYPES = (requests.ConnectionError, requests.Timeout)

        @classmethod
        def as_fetcher_error(cls, url: str, e: Exception) -> Fetcher.Error:
            exception_factory = (
                Fetcher.TransientError
                if isinstance(e, cls._TRANSIENT_EXCEPTION_TYPES)
                else Fetcher.PermanentError
            )
            return exception_factory(f"Problem GETing data from {url}: {e}")

        def __init__(self, url: str, resp: requests.Response) -> None:
            self._url = url
            self._resp = resp

        @property
        def status_code(self) -> int:
            return self._resp.status_code

        @property
        def size(self) -> int | None:
            size = self._resp.headers.get("content-length")
            # Transparently decoded bodies do not match the advertised length.
            if not size or self._resp.headers.get("content-encoding"):
                return None
            return int(size)

        def iter_content(self, chunk_size_bytes: int) -> Iterator[bytes]:
            try:
                yield from self._resp.iter_content(chunk_size=chunk_size_bytes)
            except requests.RequestException as e:
                raise self.as_fetcher_error(self._url, e)

        def close(self) -> None:
            self._resp.close()

    class _LocalFileResponse(_Response):
        def __init__(self, fp: BinaryIO) -> None:
            self._fp = fp

        @property
        def status_code(self) -> int:
            return requests.codes.ok

        @property
        def size(self) -> int | None:
            try:
                return os.fstat(self._fp.fileno()).st_size
            except OSError as e:
                raise Fetcher.PermanentError(f"Problem stating {self._fp.name} for its size: {e}")

        def iter_content(self, chunk_size_bytes: int) -> Iterator[bytes]:
            while True:
                try:
                    data = self._fp.read(chunk_size_bytes)
                except OSError as e:
                    raise Fetcher.PermanentError(
                        f"Problem reading chunk from {self._fp.name}: {e}"
                    )
                if not data:
                    break
                yield data

        def close(self) -> None:
            self._fp.close()

    def __init__(self, requests_api: Any = None) -> None:
        """Creates a Fetcher that uses the given requests api object.

        By default uses a `requests.Session`, but can be any object conforming to the requests api.
        """
        self._requests = requests_api or requests.Session()

    @staticmethod
    def _as_local_file_path(url: str) -> str | None:
        parsed = urlparse(url)
        if parsed.scheme != "file":
            return None
        return unquote(parsed.path)

    def _fetch(self, url: str, timeout_secs: float) -> Fetcher._Response:
        path = self._as_local_file_path(url)
        if path is not None:
            try:
                return self._LocalFileResponse(open(path, "rb"))
            except OSError as e:
                if e.errno in (errno.ENOENT, errno.EISDIR, errno.ENOTDIR):
                    raise self.PermanentError(
                        f"No file at {path}", response_code=requests.codes.not_found
                    )
                raise self.PermanentError(f"Problem reading data from {path}: {e}")
        try:
            resp = self._requests.get(url, stream=True, timeout=timeout_secs, allow_redirects=True)
            return self._RequestsResponse(url, resp)
        except requests.RequestException as e:
            raise self._RequestsResponse.as_fetcher_error(url, e)

    def fetch(
        self,
        url: str,
        listener: Fetcher.Listener,
        chunk_size_bytes: int | None = None,
        timeout_secs: float | None = None,
    ) -> None:
        """Fetches data from the given URL notifying listener of all lifecycle events.

        :param url: the url to GET data from
        :param listener: the listener to notify of all download lifecycle events
        :param chunk_size_bytes: the chunk size to use for buffering data, 10 KB by default
        :param timeout_secs: the maximum time to wait for data to be available, 30 seconds by
          default
        :raises: Fetcher.Error if there was a problem fetching all data from the given url
        """
        if not isinstance(listener, self.Listener):
            raise ValueError(f"listener must be a Listener instance, given {listener}")

        chunk_size_bytes = chunk_size_bytes or 10 * 1024
        timeout_secs = timeout_secs or 30.0

        logger.debug(f"GET {url}")
        with closing(self._fetch(url, timeout_secs=timeout_secs)) as resp:
            if resp.status_code != requests.codes.ok:
                listener.status(resp.status_code)
                message = f"Fetch of {url} failed with status code {resp.status_code}"
                if resp.status_code >= 500:
                    raise self.TransientError(message)
                raise self.PermanentError(message, response_code=resp.status_code)
            listener.status(resp.status_code, content_length=resp.size)

            read_bytes = 0
            for data in resp.iter_content(chunk_size_bytes=chunk_size_bytes):
                listener.recv_chunk(data)
                read_bytes += len(data)
            if resp.size and read_bytes != resp.size:
                raise self.TransientError(f"Expected {resp.size} bytes, read {read_bytes}")
            listener.finished()

    def download(
        self,
        url: str,
        path: str,
        listener: Fetcher.Listener | None = None,
        chunk_size_bytes: int | None = None,
        timeout_secs: float | None = None,
    ) -> str:
        """Downloads data from the given URL to `path`, creating parent directories as needed.

        :returns: the path the data was downloaded to.
        :raises: Fetcher.Error if there was a problem downloading all data from the given url.
        """
        with safe_open(path, "wb") as fp:
            listener = self.DownloadListener(fp).wrap(listener)
            self.fetch(url, listener, chunk_size_bytes=chunk_size_bytes, timeout_secs=timeout_secs)
        return path

    def fetch_bytes(self, url: str, timeout_secs: float | None = None) -> bytes:
        """Fetches the full content of a (small) resource such as a checksum or metadata file."""
        chunks: list[bytes] = []

        class Collector(Fetcher.Listener):
            def recv_chunk(self, data):
                chunks.append(data)

        self.fetch(url, Collector(), timeout_secs=timeout_secs)
        return b"".join(chunks)
