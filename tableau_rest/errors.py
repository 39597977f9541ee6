"""Client error types for Tableau Server REST API interactions."""

from __future__ import annotations


class TableauClientError(Exception):
    """Base error for Tableau REST client failures."""


class TableauTimeout(TableauClientError):
    """Timeout while communicating with the server."""


class TableauConnectionError(TableauClientError):
    """Network connection to the server failed."""


class TableauStatusError(TableauClientError):
    """HTTP status error for a request URL."""

    def __init__(self, status: int, message: str, url: str) -> None:
        super().__init__(f"{status} {message}: {url}")
        self.status = status
        self.message = message
        self.url = url


class TableauNotFoundError(TableauStatusError):
    """The requested resource does not exist (HTTP 404)."""

    def __init__(self, url: str) -> None:
        super().__init__(404, "Resource not found", url)


class TableauServerError(TableauClientError):
    """Error envelope reported by the server for a failed request."""

    def __init__(
        self,
        status: int,
        code: str,
        summary: str,
        detail: str,
        body: bytes = b"",
    ) -> None:
        super().__init__(f"{code}: {summary} - {detail}")
        self.status = status
        self.code = code
        self.summary = summary
        self.detail = detail
        self.body = body


class TableauDecodeError(TableauClientError):
    """Response body could not be decoded."""

    def __init__(self, message: str, body: bytes = b"") -> None:
        super().__init__(message)
        self.body = body


class TableauArchiveError(TableauClientError):
    """Archive is not a single-document zip."""


class TableauLookupError(TableauClientError):
    """Named resource was not found after scanning the full listing."""

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"{kind} '{key}' Not Found")
        self.kind = kind
        self.key = key


class ConfigError(TableauClientError):
    """Error loading client configuration."""
