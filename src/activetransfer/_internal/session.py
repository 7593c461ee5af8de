"""Cookie session handling for the SaaS variant."""

from __future__ import annotations

import logging

import httpx

from activetransfer._internal.executor import RequestExecutor
from activetransfer.config import Environment
from activetransfer.exceptions import AuthenticationError

SAAS_ENDPOINT = "/WebInterface/function/"

FORM_HEADERS = {
    "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
    "X-Requested-With": "XMLHttpRequest",
}


class SessionManager:
    """Owns the SaaS session cookie for one client.

    The cookie lives as long as this instance; there is no expiry or refresh.
    Two concurrent first calls may both log in, so callers wanting a single
    login must serialize the first call themselves.
    """

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
        self._cookie: str | None = None

    @property
    def cookie(self) -> str | None:
        return self._cookie

    @property
    def is_active(self) -> bool:
        return self._cookie is not None

    def get_or_create(self) -> str:
        """Return the cached cookie, logging in first if there is none.

        Returns:
            The ``Cookie`` header value

        Raises:
            AuthenticationError: If the login request fails
        """
        if self._cookie:
            return self._cookie

        self._logger.info(f"Logging in to SaaS environment {self._environment.base_url}")
        try:
            response = self._executor.post(
                SAAS_ENDPOINT,
                basic_auth=False,
                headers=FORM_HEADERS,
                data={
                    "command": "login",
                    "username": self._environment.username,
                    "password": self._environment.password,
                },
            )
        except httpx.HTTPStatusError as e:
            self._logger.error(
                f"SaaS login failed: {e.response.status_code} {e.response.text[:500]}"
            )
            raise AuthenticationError("Failed to authenticate with SaaS environment") from e
        except httpx.HTTPError as e:
            self._logger.error(f"SaaS login failed: {e}")
            raise AuthenticationError("Failed to authenticate with SaaS environment") from e

        cookies = [
            value.split(";", 1)[0].strip()
            for value in response.headers.get_list("set-cookie")
        ]
        cookies = [cookie for cookie in cookies if cookie]
        if not cookies:
            self._logger.error("SaaS login response carried no session cookie")
            raise AuthenticationError("Failed to authenticate with SaaS environment")

        self._cookie = "; ".join(cookies)
        self._logger.info("SaaS login successful")
        return self._cookie

    ensure_session = get_or_create

    def invalidate(self) -> None:
        """Forget the cached cookie; the next call logs in again."""
        self._cookie = None
