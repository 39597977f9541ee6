"""Test transport timeout and TLS construction."""

from __future__ import annotations

import ssl
from pathlib import Path
from unittest.mock import patch

import aiohttp
import pytest

from tableau_rest.config import ClientIdentity
from tableau_rest.transport import (
    build_client,
    build_ssl_context,
    build_timeout,
    default_client,
)


class TestBuildTimeout:
    def test_total_covers_connect_and_exchange(self) -> None:
        timeout = build_timeout(10, 20)

        assert timeout.connect == 10
        assert timeout.sock_connect == 10
        assert timeout.total == 30

    def test_zero_read_write_timeout_leaves_total_unbounded(self) -> None:
        timeout = build_timeout(5, 0)

        assert timeout.total is None
        assert timeout.sock_connect == 5


class TestBuildSslContext:
    def test_no_identity_trusts_everything(self) -> None:
        context = build_ssl_context(None)

        assert context.verify_mode == ssl.CERT_NONE
        assert context.check_hostname is False

    def test_unloadable_identity_falls_back(self, tmp_path: Path) -> None:
        identity = ClientIdentity(
            cert_file=str(tmp_path / "missing.pem"),
            key_file=str(tmp_path / "missing.key"),
        )

        context = build_ssl_context(identity)

        assert context.verify_mode == ssl.CERT_NONE
        assert context.check_hostname is False

    def test_identity_and_ca_are_loaded(self) -> None:
        identity = ClientIdentity(
            cert_file="client.pem", key_file="client.key", ca_file="ca.pem"
        )
        with (
            patch.object(ssl.SSLContext, "load_cert_chain") as load_cert_chain,
            patch.object(ssl.SSLContext, "load_verify_locations") as load_verify,
        ):
            context = build_ssl_context(identity)

        load_cert_chain.assert_called_once_with("client.pem", "client.key")
        load_verify.assert_called_once_with(cafile="ca.pem")
        assert context.verify_mode == ssl.CERT_NONE

    def test_unreadable_ca_is_not_fatal(self) -> None:
        identity = ClientIdentity(
            cert_file="client.pem", key_file="client.key", ca_file="missing-ca.pem"
        )
        with (
            patch.object(ssl.SSLContext, "load_cert_chain") as load_cert_chain,
            patch.object(
                ssl.SSLContext, "load_verify_locations", side_effect=OSError("missing")
            ),
        ):
            context = build_ssl_context(identity)

        load_cert_chain.assert_called_once()
        assert isinstance(context, ssl.SSLContext)


class TestBuildClient:
    async def test_build_client_applies_timeouts(self) -> None:
        session = build_client(3, 7)
        try:
            assert isinstance(session, aiohttp.ClientSession)
            assert session.timeout.total == 10
            assert session.timeout.sock_connect == 3
        finally:
            await session.close()

    async def test_default_client(self) -> None:
        session = default_client()
        try:
            assert session.timeout.total == pytest.approx(30.0)
            assert session.timeout.connect == pytest.approx(10.0)
        finally:
            await session.close()
