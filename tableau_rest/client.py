"""Tableau Server REST API client.

Each operation formats a resource URL and delegates to the request engine.
See https://help.tableau.com/current/api/rest_api/en-us/REST/rest_api_ref.htm
"""

from __future__ import annotations

import logging
from functools import partial
from types import TracebackType
from urllib.parse import quote_plus

import aiohttp

from .archive import extract_embedded_document
from .config import ClientConfig
from .engine import (
    APPLICATION_XML,
    CONTENT_TYPE_HEADER,
    DELETE,
    GET,
    POST,
    RequestEngine,
)
from .errors import TableauArchiveError, TableauLookupError
from .models import (
    AuthResponse,
    CreateProjectResponse,
    CreateSiteResponse,
    Credentials,
    Datasource,
    DatasourceResponse,
    Project,
    QueryDatasourcesResponse,
    QueryProjectsResponse,
    QuerySiteResponse,
    QuerySitesResponse,
    QueryUserOnSiteResponse,
    ServerInfo,
    ServerInfoResponse,
    Site,
    User,
    create_project_request,
    create_site_request,
    datasource_create_request,
    signin_request,
)
from .transport import build_client

_LOGGER = logging.getLogger(__name__)

PAGE_SIZE = 100
DATASOURCE_PAGE_SIZE = 1000
# serverinfo only exists from API version 2.4 onwards
SERVER_INFO_VERSION = "2.4"

_XML_HEADERS = {CONTENT_TYPE_HEADER: APPLICATION_XML}


def convert_site_name_to_content_url(site_name: str) -> str:
    """Derive a site's content URL from its display name."""
    return site_name.replace(" ", "")


def _bool_param(value: bool) -> str:
    return "true" if value else "false"


class TableauApi:
    """Client for the Tableau Server REST API.

    Usage:
        async with TableauApi(ClientConfig.from_env("https://tableau.local")) as api:
            await api.signin("admin", "secret", "Finance")
            site = await api.get_site("Finance")
            projects = await api.query_projects(site.id)

    The HTTP session is built once from the config and reused for every call.
    Pass ``session`` to use a caller-owned session instead.

    An instance holds a single auth token and no locks: callers must not
    sign in while other calls on the same instance are in flight.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.config = config
        self._engine = RequestEngine(
            session,
            session_factory=partial(
                build_client,
                config.connect_timeout,
                config.read_timeout,
                config.identity,
            ),
            debug=config.debug,
        )

    async def __aenter__(self) -> TableauApi:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the HTTP session if this client created it."""
        await self._engine.close()

    @property
    def auth_token(self) -> str | None:
        """Token from the most recent successful sign-in."""
        return self._engine.auth_token

    def _url(self, path: str, version: str | None = None) -> str:
        return f"{self.config.server}/api/{version or self.config.version}/{path}"

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    async def signin(
        self,
        username: str,
        password: str,
        content_url: str,
        user_id_to_impersonate: str = "",
    ) -> None:
        """Sign in and keep the returned token for subsequent calls.

        When ``omit_default_site_name`` is configured, signing in to the
        default site sends an empty site name, as the server requires.
        """
        site_name = content_url
        if (
            self.config.omit_default_site_name
            and content_url == self.config.default_site_name
        ):
            site_name = ""
        credentials = Credentials(
            name=username,
            password=password,
            site=Site(content_url=site_name),
            user=User(id=user_id_to_impersonate) if user_id_to_impersonate else None,
        )
        response = await self._engine.request(
            self._url("auth/signin"),
            POST,
            AuthResponse,
            signin_request(credentials),
            _XML_HEADERS,
        )
        self._engine.auth_token = response.credentials.token

    async def signout(self) -> None:
        await self._engine.execute(
            self._url("auth/signout"), POST, headers=_XML_HEADERS
        )

    async def server_info(self) -> ServerInfo:
        response = await self._engine.request(
            self._url("serverinfo", SERVER_INFO_VERSION), GET, ServerInfoResponse
        )
        return response.server_info

    # -------------------------------------------------------------------------
    # Sites
    # -------------------------------------------------------------------------

    async def query_sites(self) -> list[Site]:
        response = await self._engine.request(
            self._url("sites/"), GET, QuerySitesResponse
        )
        return list(response.sites)

    async def query_site(self, site_id: str, include_storage: bool = False) -> Site:
        url = self._url(f"sites/{site_id}")
        if include_storage:
            url += "?includeStorage=true"
        return await self._execute_query_site(url)

    async def query_site_by_name(
        self, name: str, include_storage: bool = False
    ) -> Site:
        return await self._query_site_by_key("name", name, include_storage)

    async def query_site_by_content_url(
        self, content_url: str, include_storage: bool = False
    ) -> Site:
        return await self._query_site_by_key("contentUrl", content_url, include_storage)

    async def _query_site_by_key(
        self, key: str, value: str, include_storage: bool
    ) -> Site:
        url = self._url(f"sites/{value}?key={key}")
        if include_storage:
            url += "&includeStorage=true"
        return await self._execute_query_site(url)

    async def _execute_query_site(self, url: str) -> Site:
        response = await self._engine.request(url, GET, QuerySiteResponse)
        return response.site

    async def get_site_id(self, site_name: str) -> str:
        site = await self.query_site_by_name(site_name)
        return site.id

    async def get_site(self, site_name: str) -> Site:
        """Look up a site by display name.

        The default site is queried by name; any other site by the content
        URL derived from its name.
        """
        if site_name == self.config.default_site_name:
            return await self.query_site_by_name(site_name)
        return await self.query_site_by_content_url(
            convert_site_name_to_content_url(site_name)
        )

    async def create_site(self, site: Site) -> Site:
        response = await self._engine.request(
            self._url("sites"),
            POST,
            CreateSiteResponse,
            create_site_request(site),
            _XML_HEADERS,
        )
        return response.site

    async def delete_site(self, site_id: str) -> None:
        await self._delete(self._url(f"sites/{site_id}"))

    async def delete_site_by_name(self, name: str) -> None:
        await self._delete_site_by_key("name", name)

    async def delete_site_by_content_url(self, content_url: str) -> None:
        await self._delete_site_by_key("contentUrl", content_url)

    async def _delete_site_by_key(self, key: str, value: str) -> None:
        await self._delete(self._url(f"sites/{value}?key={key}"))

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def query_user_on_site(self, site_id: str, user_id: str) -> User:
        response = await self._engine.request(
            self._url(f"sites/{site_id}/users/{user_id}"),
            GET,
            QueryUserOnSiteResponse,
        )
        return response.user

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    async def query_projects(self, site_id: str) -> list[Project]:
        """Fetch every project on a site, one page at a time.

        The reported total is re-read on each page since projects may be
        added or deleted while paging.
        """
        projects: list[Project] = []
        total_available = 1
        page_number = 1
        while len(projects) < total_available:
            response = await self.query_projects_by_page(site_id, page_number)
            projects.extend(response.projects)
            total_available = response.pagination.total_available
            if not response.projects:
                break
            page_number += 1
        return projects

    async def query_projects_by_page(
        self, site_id: str, page_number: int
    ) -> QueryProjectsResponse:
        url = self._url(
            f"sites/{site_id}/projects?pageSize={PAGE_SIZE}&pageNumber={page_number}"
        )
        return await self._engine.request(url, GET, QueryProjectsResponse)

    async def get_project_by_name(self, site_id: str, name: str) -> Project:
        for project in await self.query_projects(site_id):
            if project.name == name:
                return project
        raise TableauLookupError("Project Named", name)

    async def get_project_by_id(self, site_id: str, project_id: str) -> Project:
        for project in await self.query_projects(site_id):
            if project.id == project_id:
                return project
        raise TableauLookupError("Project with ID", project_id)

    async def create_project(self, site_id: str, project: Project) -> Project:
        response = await self._engine.request(
            self._url(f"sites/{site_id}/projects"),
            POST,
            CreateProjectResponse,
            create_project_request(project),
            _XML_HEADERS,
        )
        return response.project

    async def delete_project(self, site_id: str, project_id: str) -> None:
        await self._delete(self._url(f"sites/{site_id}/projects/{project_id}"))

    # -------------------------------------------------------------------------
    # Datasources
    # -------------------------------------------------------------------------

    async def query_datasources(
        self, site_id: str, name: str | None = None
    ) -> list[Datasource]:
        """List datasources on a site, optionally filtered by exact name.

        Only a single page of up to 1000 datasources is fetched.
        """
        path = f"sites/{site_id}/datasources?pageSize={DATASOURCE_PAGE_SIZE}"
        if name:
            path += f"&filter=name:eq:{quote_plus(name)}"
        response = await self._engine.request(
            self._url(path), GET, QueryDatasourcesResponse
        )
        if self.config.debug:
            _LOGGER.debug(
                "Found %d datasources for siteId %s",
                len(response.datasources),
                site_id,
            )
        return list(response.datasources)

    async def get_datasource_content(self, site_id: str, datasource_id: str) -> str:
        """Download a datasource document.

        Packaged (.tdsx) downloads are unzipped; anything that is not a
        single-document archive is returned as plain .tds text.
        """
        body = await self._engine.execute(
            self._url(
                f"sites/{site_id}/datasources/{datasource_id}/content"
                "?includeExtract=false"
            ),
            GET,
        )
        try:
            return extract_embedded_document(body)
        except TableauArchiveError:
            if self.config.debug:
                _LOGGER.debug(
                    "Datasource %s is not a .tdsx archive, treating it as plain .tds",
                    datasource_id,
                )
            return body.decode("utf-8", errors="replace")

    async def get_datasource_content_xml(
        self, site_id: str, project_id: str, datasource_name: str
    ) -> str | None:
        """Download the document of the datasource named in a project.

        Assumes site, project and datasource name identify one datasource.
        Returns None if no such datasource exists.
        """
        datasource = None
        for candidate in await self.query_datasources(site_id, datasource_name):
            if (
                candidate.project is not None
                and candidate.project.id == project_id
                and candidate.name == datasource_name
            ):
                datasource = candidate
                break

        if datasource is None:
            if self.config.debug:
                _LOGGER.debug(
                    "Could not find datasource for siteId %s, projectId %s, name %s",
                    site_id,
                    project_id,
                    datasource_name,
                )
            return None

        return await self.get_datasource_content(site_id, datasource.id)

    async def publish_tds(
        self,
        site_id: str,
        metadata: Datasource,
        tds: str,
        overwrite: bool = False,
    ) -> Datasource:
        return await self._publish_datasource(site_id, metadata, tds, "tds", overwrite)

    def _multipart_body(self, metadata: Datasource, document: str, ext: str) -> bytes:
        boundary = self.config.boundary
        parts = [
            f"--{boundary}\r\n",
            'Content-Disposition: name="request_payload"\r\n',
            "Content-Type: text/xml\r\n",
            "\r\n",
            datasource_create_request(metadata).decode("utf-8"),
            f"\r\n--{boundary}\r\n",
            "Content-Disposition: name=\"tableau_datasource\"; "
            f'filename="{metadata.name}.{ext}"\r\n',
            "Content-Type: application/octet-stream\r\n",
            "\r\n",
            document,
            f"\r\n--{boundary}--\r\n",
        ]
        return "".join(parts).encode("utf-8")

    async def _publish_datasource(
        self,
        site_id: str,
        metadata: Datasource,
        document: str,
        datasource_type: str,
        overwrite: bool,
    ) -> Datasource:
        url = self._url(
            f"sites/{site_id}/datasources?datasourceType={datasource_type}"
            f"&overwrite={_bool_param(overwrite)}"
        )
        headers = {
            CONTENT_TYPE_HEADER: f"multipart/mixed; boundary={self.config.boundary}"
        }
        response = await self._engine.request(
            url,
            POST,
            DatasourceResponse,
            self._multipart_body(metadata, document, datasource_type),
            headers,
        )
        return response.datasource

    async def delete_datasource(self, site_id: str, datasource_id: str) -> None:
        await self._delete(self._url(f"sites/{site_id}/datasources/{datasource_id}"))

    async def _delete(self, url: str) -> None:
        await self._engine.execute(url, DELETE)
