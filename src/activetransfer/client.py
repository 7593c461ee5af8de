"""Main ActiveTransferClient class for interacting with Active Transfer servers."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx

from activetransfer._internal.errors import normalize_error
from activetransfer._internal.executor import RequestExecutor
from activetransfer._internal.session import SessionManager
from activetransfer._internal.transports import Transport, select_transport
from activetransfer._internal.upload import ProgressCallback, UploadSource
from activetransfer.config import Environment, load_config
from activetransfer.exceptions import AuthenticationError, SessionError
from activetransfer.models import DownloadStream, Failure, OperationResult, Success


class ActiveTransferClient:
    """Client for an Active Transfer server, on-prem or SaaS.

    Every operation returns a ``Success`` or ``Failure``; only a failed SaaS
    login raises (``AuthenticationError``).

    Example (context manager - recommended):
        with ActiveTransferClient(environment) as client:
            result = client.upload_file("report.csv", "/inbound")
            if not result.success:
                print(result.message)

    Example (from a config file):
        client = ActiveTransferClient.from_config("config.json", "production")
        client.list_files("/")
        client.close()
    """

    def __init__(
        self,
        environment: Environment,
        *,
        transport: httpx.BaseTransport | None = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            environment: Server and credentials to talk to
            transport: Optional httpx transport, mainly for tests
            logger: Optional logger receiving request diagnostics
        """
        self._environment = environment
        self._logger = logger or logging.getLogger(__name__)
        self._executor = RequestExecutor(environment, transport=transport)
        self._session = SessionManager(environment, self._executor, logger=self._logger)
        self._transport: Transport = select_transport(
            environment, self._executor, self._session, logger=self._logger
        )
        self._closed = False

    @classmethod
    def from_config(
        cls,
        path: str | Path,
        name: str | None = None,
        **kwargs: Any,
    ) -> ActiveTransferClient:
        """Create a client for a named environment of a config file."""
        return cls(load_config(path).get(name), **kwargs)

    def __enter__(self) -> ActiveTransferClient:
        """Enter context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit context manager."""
        self.close()

    @property
    def environment(self) -> Environment:
        return self._environment

    @property
    def is_saas(self) -> bool:
        return self._environment.is_saas

    @property
    def session(self) -> SessionManager:
        return self._session

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionError("Client is closed")

    def _failure(self, operation: str, exc: BaseException, **kwargs: Any) -> Failure:
        return normalize_error(operation, exc, logger=self._logger, **kwargs)

    def _call(
        self,
        operation: str,
        message: str,
        func: Callable[..., Any],
        *args: Any,
    ) -> OperationResult:
        self._ensure_open()
        try:
            data = func(*args)
        except AuthenticationError:
            raise
        except Exception as e:
            return self._failure(operation, e)
        self._logger.info(f"{operation}: {message}")
        return Success(message=message, data=data)

    def upload_file(
        self,
        local_path: str | Path,
        remote_path: str = "/",
        *,
        compress: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> OperationResult:
        """Upload a local file to a remote directory.

        Args:
            local_path: File to upload
            remote_path: Destination directory, relative to the VFS root
            compress: Gzip the file on the fly and upload it as ``<name>.gz``
            on_progress: Called with ``(bytes_sent, total)``; ``total`` is
                None when compressing

        Returns:
            Success with the server response, or Failure carrying the request
            snapshot

        Raises:
            AuthenticationError: If the SaaS login fails
        """
        self._ensure_open()
        mode = self._transport.mode
        operation = f"Upload ({mode})"

        try:
            source = UploadSource(local_path, compress=compress, on_progress=on_progress)
        except OSError as e:
            return self._failure(operation, e)

        snapshot = self._transport.describe_upload(source, remote_path)
        self._logger.debug(
            f"Upload request ({mode}): POST {snapshot.base_url}{snapshot.endpoint} "
            f"file={source.file_name} upload_name={source.upload_name} "
            f"size={source.size / 1024 / 1024:.2f} MB path={remote_path} "
            f"compression={'gzip' if compress else 'none'} "
            f"timeout={source.timeout_ms / 1000:.0f}s"
        )

        try:
            with source:
                data = self._transport.upload(source, remote_path)
        except AuthenticationError:
            raise
        except Exception as e:
            return self._failure(operation, e, request=snapshot)

        message = f"File uploaded successfully ({mode})"
        self._logger.info(
            f"Uploaded {source.upload_name} to {remote_path} ({source.tracker.sent} bytes)"
        )
        return Success(message=message, data=data)

    def download_file(
        self,
        remote_path: str,
        local_path: str | Path | None = None,
    ) -> OperationResult:
        """Download a remote file.

        With ``local_path`` the body is streamed into that file. Without it
        the Success carries an open ``DownloadStream`` which the caller must
        close.

        Raises:
            AuthenticationError: If the SaaS login fails
        """
        self._ensure_open()
        operation = "Download"

        destination = Path(local_path) if local_path is not None else None
        if destination is not None and not destination.parent.exists():
            return self._failure(
                operation,
                FileNotFoundError(f"Destination directory does not exist: {destination.parent}"),
            )

        try:
            response, http_client = self._transport.download(remote_path)
        except AuthenticationError:
            raise
        except Exception as e:
            return self._failure(operation, e)

        stream = DownloadStream(response, http_client)
        if destination is None:
            return Success(message="File stream retrieved", stream=stream)

        opened = False
        with stream:
            try:
                with destination.open("wb") as f:
                    opened = True
                    for chunk in stream.iter_bytes():
                        f.write(chunk)
            except OSError as e:
                self._logger.error(f"Failed to write {destination}: {e}")
                if opened:
                    self._discard_partial(destination)
                return Failure(
                    operation=operation,
                    message="Failed to write file",
                    error=str(e),
                )
            except httpx.HTTPError as e:
                if opened:
                    self._discard_partial(destination)
                return self._failure(operation, e)

        self._logger.info(f"Downloaded {remote_path} to {destination}")
        return Success(message="File downloaded successfully", local_path=str(local_path))

    def _discard_partial(self, destination: Path) -> None:
        """Remove a partly written download."""
        try:
            destination.unlink(missing_ok=True)
        except OSError as e:
            self._logger.warning(f"Could not remove partial download {destination}: {e}")

    def list_files(self, remote_path: str = "/") -> OperationResult:
        """List the contents of a remote directory."""
        mode = self._transport.mode
        return self._call(
            f"List ({mode})",
            f"Files listed successfully ({mode})",
            self._transport.list_files,
            remote_path,
        )

    def create_folder(self, path: str) -> OperationResult:
        """Create a remote folder."""
        return self._call(
            "Create Folder", "Folder created successfully", self._transport.create_folder, path
        )

    def delete(self, path: str) -> OperationResult:
        """Delete a remote file or folder."""
        return self._call("Delete", "Deleted successfully", self._transport.delete, path)

    def rename(self, old_path: str, new_path: str) -> OperationResult:
        """Rename or move a remote file or folder."""
        return self._call(
            "Rename", "Renamed successfully", self._transport.rename, old_path, new_path
        )

    def is_file(self, path: str) -> OperationResult:
        """Ask the server whether ``path`` is a file."""
        return self._call("Verify", "Path verified", self._transport.is_file, path)

    def close(self) -> None:
        """Close the client and drop the SaaS session."""
        self._session.invalidate()
        self._closed = True
