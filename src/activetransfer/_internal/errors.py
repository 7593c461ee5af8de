"""Conversion of transport and server failures into Failure results."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from activetransfer._internal.executor import decode_body
from activetransfer.models import Failure, RequestSnapshot


def _server_message(details: Any) -> str | None:
    if isinstance(details, dict):
        message = details.get("message")
        if message:
            return str(message)
    return None


def normalize_error(
    operation: str,
    exc: BaseException,
    *,
    request: RequestSnapshot | None = None,
    logger: logging.Logger | logging.LoggerAdapter,
) -> Failure:
    """Build a Failure for ``operation`` from any exception.

    The server-supplied ``message`` wins over the exception text. Full
    diagnostics go to the logger; the Failure keeps a condensed copy.
    """
    message = str(exc) or type(exc).__name__
    status: int | None = None
    status_text: str | None = None
    details: Any = None

    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        status = response.status_code
        status_text = response.reason_phrase
        details = decode_body(response)
        message = _server_message(details) or message
        logger.debug(
            f"{operation} server response: {status} {status_text}\n"
            f"Headers: {json.dumps(dict(response.headers), indent=2)}\n"
            f"Body: {response.text[:2000]}"
        )
    elif isinstance(exc, httpx.RequestError):
        try:
            logger.debug(f"{operation} request: {exc.request.method} {exc.request.url}")
        except RuntimeError:
            pass  # request not attached

    logger.error(
        f"{operation} error: {message}",
        extra={
            "operation": operation,
            "status": status,
            "request_snapshot": request.to_dict() if request else None,
        },
    )
    if request is not None:
        logger.debug(f"Request that failed: {json.dumps(request.to_dict(), indent=2)}")

    return Failure(
        operation=operation,
        message=message,
        status=status,
        status_text=status_text,
        details=details,
        request=request,
    )
