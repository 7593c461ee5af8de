"""Endpoint shapes for the on-prem REST API and the SaaS legacy interface."""

from __future__ import annotations

import logging
import secrets
import string
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import quote

import httpx

from activetransfer._internal.executor import RequestExecutor, decode_body
from activetransfer._internal.session import FORM_HEADERS, SAAS_ENDPOINT, SessionManager
from activetransfer._internal.upload import UploadSource
from activetransfer.config import Environment
from activetransfer.models import RequestSnapshot

_TOKEN_ALPHABET = string.digits + string.ascii_lowercase


def random_token(length: int = 26) -> str:
    """Random base-36 token sent with SaaS listings."""
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


class Transport(ABC):
    """Maps client operations onto one deployment variant's endpoints.

    Methods return the decoded server payload and raise ``httpx.HTTPError``
    (or ``OSError`` for local I/O) on failure.
    """

    mode: str = ""
    upload_endpoint: str = ""

    def __init__(
        self,
        environment: Environment,
        executor: RequestExecutor,
        *,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self._environment = environment
        self._executor = executor
        self._logger = logger or logging.getLogger(__name__)

    def _cookie(self) -> str | None:
        return None

    def _post_json(self, endpoint: str, payload: dict[str, Any]) -> Any:
        self._logger.debug(
            f"{self.mode} request: POST {self._environment.base_url}{endpoint} {payload}"
        )
        response = self._executor.post(endpoint, json=payload, cookie=self._cookie())
        return decode_body(response)

    def describe_upload(self, source: UploadSource, remote_path: str) -> RequestSnapshot:
        return RequestSnapshot(
            endpoint=self.upload_endpoint,
            method="POST",
            file_path=str(source.path),
            remote_path=remote_path,
            file_name=source.file_name,
            upload_name=source.upload_name,
            file_size=source.size,
            base_url=self._environment.base_url,
            username=self._environment.username,
            mode=self.mode,
            compress=source.compress,
            timeout_ms=source.timeout_ms,
        )

    @abstractmethod
    def upload(self, source: UploadSource, remote_path: str) -> Any:
        """Send an open upload source to ``remote_path``."""

    @abstractmethod
    def list_files(self, remote_path: str) -> Any:
        """List a remote directory."""

    def create_folder(self, path: str) -> Any:
        return self._post_json("/api/createFolder", {"path": path})

    def delete(self, path: str) -> Any:
        return self._post_json("/api/delete", {"path": path})

    def rename(self, old_path: str, new_path: str) -> Any:
        return self._post_json("/api/rename", {"oldPath": old_path, "newPath": new_path})

    def is_file(self, path: str) -> Any:
        return self._post_json("/api/isFile", {"path": path})

    def download(self, remote_path: str) -> tuple[httpx.Response, httpx.Client]:
        """Start a download; the caller closes the returned response and client."""
        return self._executor.post_stream(
            "/api/download", json={"path": remote_path}, cookie=self._cookie()
        )


class OnPremTransport(Transport):
    """REST/JSON endpoints under ``/api`` with per-request basic auth."""

    mode = "On-Premises"
    upload_endpoint = "/api/upload"

    def upload(self, source: UploadSource, remote_path: str) -> Any:
        response = self._executor.post(
            self.upload_endpoint,
            timeout_ms=source.timeout_ms,
            follow_redirects=self._environment.upload_follow_redirects,
            data={"path": remote_path, "uploadPath": remote_path},
            files={"file": source.form_file()},
        )
        return decode_body(response)

    def list_files(self, remote_path: str) -> Any:
        return self._post_json("/api/list", {"path": remote_path})


class SaaSTransport(Transport):
    """Legacy ``/WebInterface/function/`` dispatch behind a cookie session."""

    mode = "SaaS"
    upload_endpoint = SAAS_ENDPOINT

    def __init__(
        self,
        environment: Environment,
        executor: RequestExecutor,
        session: SessionManager,
        *,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        super().__init__(environment, executor, logger=logger)
        self._session = session

    def _cookie(self) -> str | None:
        return self._session.get_or_create()

    def upload(self, source: UploadSource, remote_path: str) -> Any:
        upload_path = remote_path if remote_path.endswith("/") else remote_path + "/"
        response = self._executor.post(
            self.upload_endpoint,
            timeout_ms=source.timeout_ms,
            cookie=self._cookie(),
            headers={"X-Requested-With": "XMLHttpRequest"},
            data={"uploadPath": upload_path, "the_action": "STOR"},
            files={"file_lWsx_SINGLE_FILE_POST": source.form_file()},
        )
        return decode_body(response)

    def list_files(self, remote_path: str) -> Any:
        self._logger.debug(f"SaaS listing of {remote_path}")
        # The path is encoded here and again by the form encoding
        response = self._executor.post(
            SAAS_ENDPOINT,
            cookie=self._cookie(),
            headers=FORM_HEADERS,
            data={
                "command": "getXMLListing",
                "format": "JSONOBJ",
                "path": quote(remote_path, safe=""),
                "random": random_token(),
            },
        )
        return decode_body(response)


def select_transport(
    environment: Environment,
    executor: RequestExecutor,
    session: SessionManager,
    *,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
) -> Transport:
    """Pick the transport matching the environment's host."""
    if environment.is_saas:
        return SaaSTransport(environment, executor, session, logger=logger)
    return OnPremTransport(environment, executor, logger=logger)
