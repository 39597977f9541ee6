"""Async client for the Tableau Server REST API."""

__version__ = "0.1.0"

from .archive import extract_embedded_document
from .client import TableauApi, convert_site_name_to_content_url
from .config import ClientConfig, ClientIdentity, load_config
from .engine import RequestEngine
from .errors import (
    ConfigError,
    TableauArchiveError,
    TableauClientError,
    TableauConnectionError,
    TableauDecodeError,
    TableauLookupError,
    TableauNotFoundError,
    TableauServerError,
    TableauStatusError,
    TableauTimeout,
)
from .models import (
    ConnectionCredentials,
    Credentials,
    Datasource,
    Pagination,
    Project,
    ServerInfo,
    Site,
    SiteUsage,
    User,
)
from .transport import build_client, build_ssl_context, build_timeout, default_client

__all__ = [
    "ClientConfig",
    "ClientIdentity",
    "ConfigError",
    "ConnectionCredentials",
    "Credentials",
    "Datasource",
    "Pagination",
    "Project",
    "RequestEngine",
    "ServerInfo",
    "Site",
    "SiteUsage",
    "TableauApi",
    "TableauArchiveError",
    "TableauClientError",
    "TableauConnectionError",
    "TableauDecodeError",
    "TableauLookupError",
    "TableauNotFoundError",
    "TableauServerError",
    "TableauStatusError",
    "TableauTimeout",
    "User",
    "__version__",
    "build_client",
    "build_ssl_context",
    "build_timeout",
    "convert_site_name_to_content_url",
    "default_client",
    "extract_embedded_document",
    "load_config",
]
