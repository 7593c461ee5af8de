"""Shared test helpers for activetransfer tests."""

from __future__ import annotations

import re
from collections.abc import Callable

import httpx


class RecordingHandler:
    """httpx.MockTransport handler that records requests and replays responses.

    ``responder`` maps a request to a response; by default every request gets
    ``200 {"status": "ok"}``.
    """

    def __init__(
        self, responder: Callable[[httpx.Request], httpx.Response] | None = None
    ) -> None:
        self.requests: list[httpx.Request] = []
        self._responder = responder or (lambda request: httpx.Response(200, json={"status": "ok"}))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


class MultipartField:
    """One parsed multipart field."""

    def __init__(self, name: str, filename: str | None, value: bytes) -> None:
        self.name = name
        self.filename = filename
        self.value = value


def parse_multipart(request: httpx.Request) -> dict[str, MultipartField]:
    """Split a recorded multipart/form-data body into its fields."""
    content_type = request.headers["content-type"]
    boundary = content_type.split("boundary=", 1)[1].encode()
    fields: dict[str, MultipartField] = {}
    for part in request.content.split(b"--" + boundary):
        if not part or part.startswith(b"--"):
            continue
        head, _, value = part[2:].partition(b"\r\n\r\n")
        header_text = head.decode()
        name = re.search(r'name="([^"]*)"', header_text)
        filename = re.search(r'filename="([^"]*)"', header_text)
        assert name is not None
        fields[name.group(1)] = MultipartField(
            name.group(1),
            filename.group(1) if filename else None,
            value[:-2],
        )
    return fields


SAAS_HOST = "tenant.ipaas.automation.ibm.com"


def saas_responder(
    responder: Callable[[httpx.Request], httpx.Response] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """Answer SaaS logins with two session cookies and delegate everything else."""

    def respond(request: httpx.Request) -> httpx.Response:
        if b"command=login" in request.content:
            return httpx.Response(
                200,
                headers=[
                    ("Set-Cookie", "CrushAuth=abc123; Path=/; HttpOnly"),
                    ("Set-Cookie", "currentAuth=xyz; Path=/"),
                ],
                text="<loginResult>success</loginResult>",
            )
        if responder is not None:
            return responder(request)
        return httpx.Response(200, json={"status": "ok"})

    return respond
