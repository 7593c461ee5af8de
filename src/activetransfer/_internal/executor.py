"""Builds authenticated httpx clients for Active Transfer requests."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx

from activetransfer.config import Environment

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30_000

DEFAULT_USER_AGENT = "activetransfer-client"


class RequestExecutor:
    """Single entry point for every outbound request.

    Attaches the ``Cookie`` header when a session cookie is supplied, and
    basic-auth credentials otherwise. httpx imposes no body size limits, so
    large transfers are never truncated.
    """

    def __init__(
        self,
        environment: Environment,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._environment = environment
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._environment.base_url

    def build_client(
        self,
        timeout_ms: float | None = None,
        *,
        cookie: str | None = None,
        follow_redirects: bool = True,
        basic_auth: bool = True,
    ) -> httpx.Client:
        """Create a configured client. The caller must close it."""
        timeout = (timeout_ms or DEFAULT_TIMEOUT_MS) / 1000
        headers = {"User-Agent": DEFAULT_USER_AGENT}
        auth: httpx.Auth | None = None
        if cookie:
            headers["Cookie"] = cookie
        elif basic_auth:
            auth = httpx.BasicAuth(self._environment.username, self._environment.password)

        return httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers=headers,
            auth=auth,
            follow_redirects=follow_redirects,
            transport=self._transport,
        )

    @contextmanager
    def client(
        self,
        timeout_ms: float | None = None,
        *,
        cookie: str | None = None,
        follow_redirects: bool = True,
        basic_auth: bool = True,
    ) -> Iterator[httpx.Client]:
        client = self.build_client(
            timeout_ms,
            cookie=cookie,
            follow_redirects=follow_redirects,
            basic_auth=basic_auth,
        )
        try:
            yield client
        finally:
            client.close()

    def post(
        self,
        path: str,
        *,
        timeout_ms: float | None = None,
        cookie: str | None = None,
        follow_redirects: bool = True,
        basic_auth: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        """POST and return the fully read response.

        Raises:
            httpx.HTTPStatusError: On a non-2xx response
            httpx.HTTPError: On transport failures and timeouts
        """
        with self.client(
            timeout_ms,
            cookie=cookie,
            follow_redirects=follow_redirects,
            basic_auth=basic_auth,
        ) as client:
            logger.debug(f"POST {self.base_url}{path}")
            response = client.post(path, **kwargs)
            response.raise_for_status()
            return response

    def post_stream(
        self,
        path: str,
        *,
        timeout_ms: float | None = None,
        cookie: str | None = None,
        **kwargs: Any,
    ) -> tuple[httpx.Response, httpx.Client]:
        """POST and return the unread response together with its client.

        Both must be closed by the caller. On a non-2xx response the body is
        read, both are closed and ``httpx.HTTPStatusError`` is raised.
        """
        client = self.build_client(timeout_ms, cookie=cookie)
        try:
            logger.debug(f"POST {self.base_url}{path} (streamed)")
            request = client.build_request("POST", path, **kwargs)
            response = client.send(request, stream=True)
        except BaseException:
            client.close()
            raise

        if not response.is_success:
            try:
                response.read()
                response.raise_for_status()
            finally:
                response.close()
                client.close()
        return response, client


def decode_body(response: httpx.Response) -> Any:
    """Return the response body as JSON when it parses, else as text."""
    try:
        return response.json()
    except ValueError:
        return response.text
