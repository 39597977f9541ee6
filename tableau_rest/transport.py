"""Timeout-aware HTTP transport for the Tableau REST client.

Server certificates are never verified: Tableau deployments commonly run
with self-signed certificates, and this client trusts every server
certificate. Treat this as a known risk when pointing the client at an
untrusted network.
"""

from __future__ import annotations

import logging
import ssl

import aiohttp

from .config import DEFAULT_CONNECT_TIMEOUT, DEFAULT_READ_TIMEOUT, ClientIdentity

_LOGGER = logging.getLogger(__name__)


def build_timeout(
    connect_timeout: float, read_write_timeout: float
) -> aiohttp.ClientTimeout:
    """Build the request deadline.

    The connect deadline bounds establishing the connection. When a
    read/write timeout is set, the whole exchange (not only idle reads) must
    complete within the connect deadline plus that window.
    """
    total = None
    if read_write_timeout > 0:
        total = connect_timeout + read_write_timeout
    return aiohttp.ClientTimeout(
        total=total,
        connect=connect_timeout,
        sock_connect=connect_timeout,
    )


def _insecure_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


def build_ssl_context(identity: ClientIdentity | None = None) -> ssl.SSLContext:
    """Build the TLS configuration, optionally presenting a client identity.

    If the key pair cannot be loaded the no-identity configuration is
    returned instead; startup is never aborted over identity material.
    """
    context = _insecure_context()
    if identity is None:
        return context

    try:
        context.load_cert_chain(identity.cert_file, identity.key_file)
    except (OSError, ssl.SSLError) as err:
        _LOGGER.warning(
            "Failed to load client certificate %s: %s", identity.cert_file, err
        )
        return _insecure_context()

    if identity.ca_file:
        try:
            context.load_verify_locations(cafile=identity.ca_file)
        except (OSError, ssl.SSLError) as err:
            _LOGGER.warning(
                "Error setting up CA file [%s]: %s", identity.ca_file, err
            )
    return context


def build_client(
    connect_timeout: float,
    read_write_timeout: float,
    identity: ClientIdentity | None = None,
) -> aiohttp.ClientSession:
    """Create an HTTP session with timeouts and TLS settings applied.

    Must be called from a running event loop. The caller owns the session
    and is responsible for closing it.
    """
    connector = aiohttp.TCPConnector(ssl=build_ssl_context(identity))
    return aiohttp.ClientSession(
        connector=connector,
        timeout=build_timeout(connect_timeout, read_write_timeout),
    )


def default_client() -> aiohttp.ClientSession:
    """Create an HTTP session with default timeouts and no client identity."""
    return build_client(DEFAULT_CONNECT_TIMEOUT, DEFAULT_READ_TIMEOUT)
