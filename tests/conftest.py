"""Pytest configuration and fixtures for tableau_rest tests."""

from __future__ import annotations

import io
import zipfile
from unittest.mock import AsyncMock, MagicMock

import pytest

from tableau_rest import ClientConfig, TableauApi

SERVER = "https://tableau.example.com"
NS = 'xmlns="http://tableau.com/api"'


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    return MagicMock(spec=aiohttp.ClientSession)


@pytest.fixture
def api(mock_session: MagicMock) -> TableauApi:
    """TableauApi bound to the mock session."""
    return TableauApi(ClientConfig(server=SERVER), session=mock_session)


def create_mock_response(status: int = 200, read_data: bytes | str = b"") -> AsyncMock:
    """Create a configured mock response.

    Args:
        status: HTTP status code
        read_data: Body returned from read()

    Returns:
        Configured AsyncMock response usable as an async context manager
    """
    if isinstance(read_data, str):
        read_data = read_data.encode("utf-8")

    response = AsyncMock()
    response.status = status
    response.read.return_value = read_data
    response.__aenter__.return_value = response
    response.__aexit__.return_value = None
    return response


def ts_response(inner: str) -> str:
    """Wrap XML in a namespaced tsResponse document."""
    return f'<?xml version="1.0" encoding="UTF-8"?><tsResponse {NS}>{inner}</tsResponse>'


def make_zip(entries: dict[str, bytes]) -> bytes:
    """Build an in-memory zip archive."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, data in entries.items():
            archive.writestr(name, data)
    return buffer.getvalue()
