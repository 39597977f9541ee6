"""Client configuration for the Tableau REST client.

Configuration is data: it is built once (from keyword arguments, the process
environment, or a YAML file) and handed to the transport and client. The
transport never reads the environment itself.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

CERT_ENV = "atscale_http_sslcert"
KEY_ENV = "atscale_http_sslkey"
CA_ENV = "atscale_ca_file"

DEFAULT_VERSION = "3.4"
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_READ_TIMEOUT = 20.0
DEFAULT_SITE_NAME = "Default"
DEFAULT_BOUNDARY = "813e3160-3c11-11e5-a151-feff819cdc9f"


@dataclass(frozen=True)
class ClientIdentity:
    """TLS client certificate material.

    Attributes:
        cert_file: Path to the PEM client certificate.
        key_file: Path to the PEM private key.
        ca_file: Optional path to a PEM CA bundle.
    """

    cert_file: str
    key_file: str
    ca_file: str | None = None

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None
    ) -> ClientIdentity | None:
        """Read identity paths from the environment.

        Returns None unless both the certificate and key paths are set.
        """
        env = os.environ if environ is None else environ
        cert_file = env.get(CERT_ENV, "")
        key_file = env.get(KEY_ENV, "")
        if not cert_file or not key_file:
            return None
        return cls(
            cert_file=cert_file,
            key_file=key_file,
            ca_file=env.get(CA_ENV) or None,
        )


@dataclass(frozen=True)
class ClientConfig:
    """Settings for a TableauApi instance.

    Attributes:
        server: Base server URL, e.g. "https://tableau.example.com".
        version: REST API version segment.
        connect_timeout: Connect deadline (seconds).
        read_timeout: Deadline for the exchange after connecting (seconds);
            0 disables it.
        debug: Emit verbose request/response tracing at DEBUG level.
        default_site_name: Name of the server's default site.
        omit_default_site_name: Send an empty site name when signing in to
            the default site.
        boundary: Multipart boundary used when publishing.
        identity: Optional TLS client identity.
    """

    server: str
    version: str = DEFAULT_VERSION
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT
    debug: bool = False
    default_site_name: str = DEFAULT_SITE_NAME
    omit_default_site_name: bool = False
    boundary: str = DEFAULT_BOUNDARY
    identity: ClientIdentity | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "server", self.server.rstrip("/"))

    @classmethod
    def from_env(cls, server: str, **overrides: Any) -> ClientConfig:
        """Build a config whose client identity comes from the environment."""
        return cls(server=server, identity=ClientIdentity.from_env(), **overrides)


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file with error handling."""
    if not path.exists():
        raise ConfigError(f"File not found: {path}")
    with path.open() as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping in {path}")
    return data


def load_config(path: Path) -> ClientConfig:
    """Load a client configuration from a YAML file.

    Args:
        path: Path to a YAML mapping. Keys match the ClientConfig fields;
            ``identity`` is a nested mapping with ``cert_file``, ``key_file``
            and optionally ``ca_file``.

    Returns:
        Parsed ClientConfig.

    Raises:
        ConfigError: If the file is missing or malformed.
    """
    data = _load_yaml(Path(path))

    server = data.get("server")
    if not server:
        raise ConfigError(f"Missing 'server' in {path}")

    identity = None
    if identity_data := data.get("identity"):
        try:
            identity = ClientIdentity(
                cert_file=identity_data["cert_file"],
                key_file=identity_data["key_file"],
                ca_file=identity_data.get("ca_file"),
            )
        except (KeyError, TypeError) as err:
            raise ConfigError(f"Invalid 'identity' in {path}") from err

    return ClientConfig(
        server=server,
        version=str(data.get("version", DEFAULT_VERSION)),
        connect_timeout=float(data.get("connect_timeout", DEFAULT_CONNECT_TIMEOUT)),
        read_timeout=float(data.get("read_timeout", DEFAULT_READ_TIMEOUT)),
        debug=bool(data.get("debug", False)),
        default_site_name=data.get("default_site_name", DEFAULT_SITE_NAME),
        omit_default_site_name=bool(data.get("omit_default_site_name", False)),
        boundary=data.get("boundary", DEFAULT_BOUNDARY),
        identity=identity,
    )
