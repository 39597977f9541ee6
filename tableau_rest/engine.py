"""Authenticated request/response core for the Tableau REST client.

Every resource operation funnels through :class:`RequestEngine`: it attaches
the session token, performs one HTTP exchange, buffers the full response
body, and classifies the outcome:

- transport failure -> TableauTimeout / TableauConnectionError
- HTTP 404 -> TableauNotFoundError
- HTTP >= 300 -> TableauServerError (or TableauDecodeError if the error
  envelope itself cannot be decoded)
- otherwise -> the body, optionally decoded into a response shape

The engine holds no locks. Signing in while other requests are in flight on
the same instance is the caller's responsibility to serialize.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Callable, Mapping
from typing import TypeVar

import aiohttp
from multidict import CIMultiDict

from .errors import (
    TableauConnectionError,
    TableauDecodeError,
    TableauNotFoundError,
    TableauServerError,
    TableauTimeout,
)
from .models import ErrorResponse, XmlDecodable, parse_document

_LOGGER = logging.getLogger(__name__)

AUTH_HEADER = "X-Tableau-Auth"
CONTENT_TYPE_HEADER = "Content-Type"
CONTENT_LENGTH_HEADER = "Content-Length"
APPLICATION_XML = "application/xml"

GET = "GET"
POST = "POST"
DELETE = "DELETE"

T = TypeVar("T", bound=XmlDecodable)


def decode_response(body: bytes, result: type[T]) -> T:
    """Decode a response body into ``result``.

    Raises:
        TableauDecodeError: If the body is not well-formed or does not match
            the expected shape.
    """
    try:
        return result.from_xml(parse_document(body))
    except (ET.ParseError, ValueError) as err:
        raise TableauDecodeError(
            f"Unable to decode {result.__name__}: {err}", body
        ) from err


class RequestEngine:
    """Performs authenticated HTTP exchanges against the REST API."""

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        *,
        session_factory: Callable[[], aiohttp.ClientSession] | None = None,
        debug: bool = False,
    ) -> None:
        """Initialize engine.

        Args:
            session: Caller-owned HTTP session. Never closed by the engine.
            session_factory: Builds an engine-owned session on first use when
                no session is given. The session is reused until close().
            debug: Trace requests and responses at DEBUG level.
        """
        if session is None and session_factory is None:
            raise ValueError("Either session or session_factory is required")
        self._session = session
        self._session_factory = session_factory
        self._owns_session = session is None
        self.debug = debug
        self.auth_token: str | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """The HTTP session, built once on first access if engine-owned."""
        if self._session is None or (self._owns_session and self._session.closed):
            if self._session_factory is None:
                raise RuntimeError("No HTTP session available")
            self._session = self._session_factory()
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if the engine created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _build_headers(
        self, payload: bytes | None, headers: Mapping[str, str] | None
    ) -> CIMultiDict[str]:
        # Caller headers are passed through as-is, colliding names included;
        # the auth header is always added last.
        request_headers: CIMultiDict[str] = CIMultiDict()
        if payload:
            request_headers.add(CONTENT_LENGTH_HEADER, str(len(payload)))
        for name, value in (headers or {}).items():
            request_headers.add(name, value)
        if self.auth_token:
            if self.debug:
                _LOGGER.debug("%s:%s", AUTH_HEADER, self.auth_token)
            request_headers.add(AUTH_HEADER, self.auth_token)
        return request_headers

    async def execute(
        self,
        url: str,
        method: str,
        payload: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> bytes:
        """Perform one exchange and return the full response body.

        Raises:
            TableauTimeout: If the connect or exchange deadline passes.
            TableauConnectionError: On any other transport failure.
            TableauNotFoundError: If the server answers 404.
            TableauServerError: For any other status >= 300 with a
                well-formed error envelope.
            TableauDecodeError: If the error envelope cannot be decoded.
        """
        method = method.strip()
        request_url = url.strip()
        if self.debug:
            _LOGGER.debug("%s:%s", method, request_url)
            if payload:
                _LOGGER.debug("%s", payload.decode("utf-8", errors="replace"))

        request_headers = self._build_headers(payload, headers)
        try:
            async with self.session.request(
                method,
                request_url,
                data=payload if payload else None,
                headers=request_headers,
            ) as resp:
                status = resp.status
                body = await resp.read()
        except TimeoutError as err:
            raise TableauTimeout(f"{method} {request_url} timed out") from err
        except aiohttp.ClientError as err:
            raise TableauConnectionError(f"{method} {request_url} failed") from err

        if self.debug:
            _LOGGER.debug("Response %s:%r", status, body)

        if status == 404:
            raise TableauNotFoundError(url)

        if status >= 300:
            try:
                error = decode_response(body, ErrorResponse).error
            except TableauDecodeError as err:
                raise TableauDecodeError(
                    f"Unable to decode error response ({status}) from {url}: {err}",
                    body,
                ) from err
            raise TableauServerError(
                status, error.code, error.summary, error.detail, body
            )

        return body

    async def request(
        self,
        url: str,
        method: str,
        result: type[T],
        payload: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> T:
        """Perform one exchange and decode the body into ``result``.

        A decode failure raises TableauDecodeError even though the HTTP
        exchange itself succeeded.
        """
        body = await self.execute(url, method, payload, headers)
        return decode_response(body, result)
