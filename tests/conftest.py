"""Pytest fixtures for activetransfer tests."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest
from helpers import SAAS_HOST, RecordingHandler, saas_responder

from activetransfer import ActiveTransferClient, Environment


@pytest.fixture
def onprem_env() -> Environment:
    """An on-premises environment."""
    return Environment(
        host="mft.example.com",
        port=8443,
        username="alice",
        password="secret",
        name="On-Prem",
    )


@pytest.fixture
def saas_env() -> Environment:
    """A SaaS environment."""
    return Environment(
        host=SAAS_HOST,
        port=443,
        username="alice@example.com",
        password="p@ss word",
        name="SaaS",
    )


@pytest.fixture
def make_client() -> Callable[..., tuple[ActiveTransferClient, RecordingHandler]]:
    """Build a client wired to a recording mock transport."""

    def factory(
        environment: Environment,
        responder: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> tuple[ActiveTransferClient, RecordingHandler]:
        if environment.is_saas:
            responder = saas_responder(responder)
        handler = RecordingHandler(responder)
        client = ActiveTransferClient(
            environment,
            transport=handler.transport,
            logger=logging.getLogger("activetransfer.tests"),
        )
        return client, handler

    return factory


@pytest.fixture
def temp_file(tmp_path: Path) -> Path:
    """A small text file to upload."""
    path = tmp_path / "report.csv"
    path.write_bytes(b"id,name\n1,alpha\n2,beta\n" * 50)
    return path


@pytest.fixture
def empty_file(tmp_path: Path) -> Path:
    """A zero-byte file."""
    path = tmp_path / "empty.txt"
    path.write_bytes(b"")
    return path
