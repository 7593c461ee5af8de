"""Streaming upload sources with optional gzip compression."""

from __future__ import annotations

import time
import zlib
from collections.abc import Callable
from pathlib import Path
from typing import Any, BinaryIO

CHUNK_SIZE = 64 * 1024

# Upload timeout estimate: 10 MiB/s baseline, doubled, plus a fixed floor
BASELINE_RATE_BYTES = 10 * 1024 * 1024
UPLOAD_TIMEOUT_FLOOR_MS = 60_000
MIN_UPLOAD_TIMEOUT_MS = 300_000

PROGRESS_INTERVAL = 0.1

ProgressCallback = Callable[[int, int | None], None]


def compute_upload_timeout(size_bytes: int) -> float:
    """Estimate an upload timeout in milliseconds from the original file size."""
    estimated_ms = size_bytes / BASELINE_RATE_BYTES * 1000
    return max(MIN_UPLOAD_TIMEOUT_MS, estimated_ms * 2 + UPLOAD_TIMEOUT_FLOOR_MS)


class ProgressTracker:
    """Counts bytes handed to the HTTP layer and samples them to a callback.

    ``total`` is None when the length is unknown (compressed uploads); the
    callback then receives a raw byte count only.
    """

    def __init__(
        self,
        total: int | None,
        callback: ProgressCallback | None = None,
        *,
        interval: float = PROGRESS_INTERVAL,
    ) -> None:
        self.total = total
        self.sent = 0
        self._callback = callback
        self._interval = interval
        self._last_report: float | None = None
        self._finished = False

    def update(self, count: int) -> None:
        self.sent += count
        if self._callback is None:
            return
        now = time.monotonic()
        if self._last_report is None or now - self._last_report >= self._interval:
            self._last_report = now
            self._callback(self.sent, self.total)

    def finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        if self._callback is not None:
            self._callback(self.sent, self.total)

    def reset(self) -> None:
        self.sent = 0
        self._finished = False


class _CountingReader:
    """File reader that exposes ``fileno`` so httpx can declare its length."""

    def __init__(self, file: BinaryIO, tracker: ProgressTracker) -> None:
        self._file = file
        self._tracker = tracker

    def fileno(self) -> int:
        return self._file.fileno()

    def seek(self, offset: int, whence: int = 0) -> int:
        position = self._file.seek(offset, whence)
        if position == 0:
            self._tracker.reset()
        return position

    def tell(self) -> int:
        return self._file.tell()

    def read(self, size: int = -1) -> bytes:
        data = self._file.read(size)
        if data:
            self._tracker.update(len(data))
        else:
            self._tracker.finish()
        return data


class _GzipReader:
    """Pull-based gzip compressor over a file.

    Has no ``fileno``/``seek``, so the compressed length stays unknown and
    the body goes out with chunked transfer encoding.
    """

    mode = "rb"

    def __init__(self, file: BinaryIO, tracker: ProgressTracker) -> None:
        self._file = file
        self._tracker = tracker
        # wbits=31 selects the gzip container
        self._compressor = zlib.compressobj(zlib.Z_DEFAULT_COMPRESSION, zlib.DEFLATED, 31)
        self._buffer = bytearray()
        self._eof = False

    def _fill(self, size: int) -> None:
        while not self._eof and (size < 0 or len(self._buffer) < size):
            chunk = self._file.read(CHUNK_SIZE)
            if chunk:
                self._buffer += self._compressor.compress(chunk)
            else:
                self._buffer += self._compressor.flush()
                self._eof = True

    def read(self, size: int = -1) -> bytes:
        self._fill(size)
        if size < 0:
            data = bytes(self._buffer)
            self._buffer.clear()
        else:
            data = bytes(self._buffer[:size])
            del self._buffer[:size]

        if data:
            self._tracker.update(len(data))
        if self._eof and not self._buffer:
            self._tracker.finish()
        return data


class UploadSource:
    """A local file prepared for a multipart upload.

    The file is stat'ed on construction, so a missing path fails before any
    request is made. Use as a context manager to open and release it:

        source = UploadSource("report.csv", compress=True)
        with source:
            client.post(url, files={"file": source.form_file()})
    """

    def __init__(
        self,
        path: str | Path,
        *,
        compress: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.path = Path(path)
        stat = self.path.stat()
        if not self.path.is_file():
            raise IsADirectoryError(f"Not a regular file: {self.path}")

        self.file_name = self.path.name
        self.size = stat.st_size
        self.compress = compress
        self.upload_name = f"{self.file_name}.gz" if compress else self.file_name
        # Compressed size is unknown until the stream is exhausted
        self.content_length: int | None = None if compress else self.size
        self.timeout_ms = compute_upload_timeout(self.size)
        self.tracker = ProgressTracker(self.content_length, on_progress)

        self._file: BinaryIO | None = None
        self._stream: _CountingReader | _GzipReader | None = None

    def __enter__(self) -> UploadSource:
        self.open()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    @property
    def stream(self) -> _CountingReader | _GzipReader:
        if self._stream is None:
            raise ValueError("Upload source is not open")
        return self._stream

    def open(self) -> None:
        if self._file is not None:
            return
        self._file = self.path.open("rb")
        if self.compress:
            self._stream = _GzipReader(self._file, self.tracker)
        else:
            self._stream = _CountingReader(self._file, self.tracker)

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
        self._file = None
        self._stream = None

    def form_file(self) -> tuple[str, Any]:
        """Return the ``(filename, fileobj)`` pair for an httpx ``files=`` entry."""
        return (self.upload_name, self.stream)
