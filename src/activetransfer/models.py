"""Data models for the activetransfer library."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import asdict, dataclass
from typing import Any, Union

import httpx


@dataclass(frozen=True)
class RequestSnapshot:
    """Parameters of an upload request, attached to upload failures."""

    endpoint: str
    method: str
    file_path: str
    remote_path: str
    file_name: str
    upload_name: str
    file_size: int
    base_url: str
    username: str
    mode: str
    compress: bool
    timeout_ms: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class DownloadStream:
    """A live download response handed to the caller unread.

    The caller owns the stream and must close it, preferably with ``with``:

        result = client.download_file("/reports/day.csv")
        with result.stream as stream:
            for chunk in stream.iter_bytes():
                ...
    """

    def __init__(self, response: httpx.Response, client: httpx.Client) -> None:
        self._response = response
        self._client = client
        self._closed = False

    def __enter__(self) -> DownloadStream:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def content_length(self) -> int | None:
        value = self._response.headers.get("content-length")
        return int(value) if value and value.isdigit() else None

    def iter_bytes(self, chunk_size: int | None = None) -> Iterator[bytes]:
        """Iterate over the response body."""
        yield from self._response.iter_bytes(chunk_size)

    def read(self) -> bytes:
        """Read the remaining body into memory."""
        return self._response.read()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._response.close()
        finally:
            self._client.close()


@dataclass(frozen=True)
class Success:
    """Successful outcome of a client operation."""

    message: str
    data: Any = None
    local_path: str | None = None
    stream: DownloadStream | None = None

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Failed outcome of a client operation.

    ``message`` prefers the server-supplied message over the transport error
    text. ``status`` and ``status_text`` are ``None`` when no response was
    received.
    """

    operation: str
    message: str
    status: int | None = None
    status_text: str | None = None
    details: Any = None
    request: RequestSnapshot | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return False


OperationResult = Union[Success, Failure]
