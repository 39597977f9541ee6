"""Resource records and XML mapping for the Tableau REST API.

Records mirror the server's ``tsRequest``/``tsResponse`` schemas. Incoming
documents may use the ``http://tableau.com/api`` default namespace; tags are
matched on their local name. Missing attributes and elements decode to
empty defaults, matching how the server omits unset fields.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Protocol, Self

NAMESPACE = "http://tableau.com/api"


class XmlDecodable(Protocol):
    """Response shape that can be built from a parsed ``tsResponse`` root."""

    @classmethod
    def from_xml(cls, root: ET.Element) -> Self: ...


# -----------------------------------------------------------------------------
# XML helpers
# -----------------------------------------------------------------------------


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element | None, name: str) -> ET.Element | None:
    if element is None:
        return None
    for child in element:
        if _local(child.tag) == name:
            return child
    return None


def _children(element: ET.Element | None, name: str) -> list[ET.Element]:
    if element is None:
        return []
    return [child for child in element if _local(child.tag) == name]


def _int(element: ET.Element, name: str) -> int:
    value = element.get(name)
    return int(value) if value else 0


def _bool(value: str | None) -> bool:
    return value is not None and value.lower() == "true"


def _set(element: ET.Element, name: str, value: str | int | None) -> None:
    """Set an attribute, omitting empty values."""
    if value is None or value == "":
        return
    element.set(name, str(value))


def parse_document(body: bytes) -> ET.Element:
    """Parse a response body into its ``tsResponse`` root element.

    Raises:
        xml.etree.ElementTree.ParseError: If the body is not well-formed.
        ValueError: If the root element is not ``tsResponse``.
    """
    root = ET.fromstring(body)
    tag = _local(root.tag)
    if tag != "tsResponse":
        raise ValueError(f"Expected a tsResponse document, got <{tag}>")
    return root


def ts_request(*elements: ET.Element) -> bytes:
    """Wrap elements in a ``tsRequest`` document."""
    root = ET.Element("tsRequest")
    root.extend(elements)
    return ET.tostring(root, encoding="unicode").encode("utf-8")


# -----------------------------------------------------------------------------
# Records
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class SiteUsage:
    """Storage and user counts reported for a site."""

    num_users: int = 0
    storage: int = 0

    @classmethod
    def from_xml(cls, element: ET.Element) -> SiteUsage:
        return cls(
            num_users=_int(element, "numUsers"),
            storage=_int(element, "storage"),
        )

    def to_xml(self) -> ET.Element:
        element = ET.Element("usage")
        element.set("numUsers", str(self.num_users))
        element.set("storage", str(self.storage))
        return element


@dataclass(frozen=True)
class Site:
    """A tenant on the server."""

    id: str = ""
    name: str = ""
    content_url: str = ""
    admin_mode: str = ""
    user_quota: str = ""
    storage_quota: str = ""
    state: str = ""
    status_reason: str = ""
    usage: SiteUsage | None = None

    @classmethod
    def from_xml(cls, element: ET.Element) -> Site:
        usage = _child(element, "usage")
        return cls(
            id=element.get("id", ""),
            name=element.get("name", ""),
            content_url=element.get("contentUrl", ""),
            admin_mode=element.get("adminMode", ""),
            user_quota=element.get("userQuota", ""),
            storage_quota=element.get("storageQuota", ""),
            state=element.get("state", ""),
            status_reason=element.get("statusReason", ""),
            usage=SiteUsage.from_xml(usage) if usage is not None else None,
        )

    def to_xml(self) -> ET.Element:
        element = ET.Element("site")
        _set(element, "id", self.id)
        _set(element, "name", self.name)
        # contentUrl is always sent: an empty value selects the default site.
        element.set("contentUrl", self.content_url)
        _set(element, "adminMode", self.admin_mode)
        _set(element, "userQuota", self.user_quota)
        _set(element, "storageQuota", self.storage_quota)
        _set(element, "state", self.state)
        _set(element, "statusReason", self.status_reason)
        if self.usage is not None:
            element.append(self.usage.to_xml())
        return element


@dataclass(frozen=True)
class User:
    """A user account on a site."""

    id: str = ""
    name: str = ""
    site_role: str = ""
    full_name: str = ""
    last_login: str = ""
    external_auth_user_id: str = ""

    @classmethod
    def from_xml(cls, element: ET.Element) -> User:
        return cls(
            id=element.get("id", ""),
            name=element.get("name", ""),
            site_role=element.get("siteRole", ""),
            full_name=element.get("fullName", ""),
            last_login=element.get("lastLogin", ""),
            external_auth_user_id=element.get("externalAuthUserId", ""),
        )

    def to_xml(self, tag: str = "user") -> ET.Element:
        element = ET.Element(tag)
        _set(element, "id", self.id)
        _set(element, "name", self.name)
        _set(element, "siteRole", self.site_role)
        _set(element, "fullName", self.full_name)
        _set(element, "lastLogin", self.last_login)
        _set(element, "externalAuthUserId", self.external_auth_user_id)
        return element


@dataclass(frozen=True)
class Project:
    """A folder-like grouping of content within a site."""

    id: str = ""
    name: str = ""
    description: str = ""
    parent_project_id: str = ""
    content_permissions: str = ""

    @classmethod
    def from_xml(cls, element: ET.Element) -> Project:
        return cls(
            id=element.get("id", ""),
            name=element.get("name", ""),
            description=element.get("description", ""),
            parent_project_id=element.get("parentProjectId", ""),
            content_permissions=element.get("contentPermissions", ""),
        )

    def to_xml(self) -> ET.Element:
        element = ET.Element("project")
        _set(element, "id", self.id)
        _set(element, "name", self.name)
        _set(element, "description", self.description)
        _set(element, "parentProjectId", self.parent_project_id)
        _set(element, "contentPermissions", self.content_permissions)
        return element


@dataclass(frozen=True)
class ConnectionCredentials:
    """Credentials embedded in a published datasource connection."""

    name: str = ""
    password: str = ""
    embed: bool = False

    @classmethod
    def from_xml(cls, element: ET.Element) -> ConnectionCredentials:
        return cls(
            name=element.get("name", ""),
            password=element.get("password", ""),
            embed=_bool(element.get("embed")),
        )

    def to_xml(self) -> ET.Element:
        element = ET.Element("connectionCredentials")
        _set(element, "name", self.name)
        _set(element, "password", self.password)
        element.set("embed", "true" if self.embed else "false")
        return element


@dataclass(frozen=True)
class Datasource:
    """A published data connection definition."""

    id: str = ""
    name: str = ""
    type: str = ""
    content_url: str = ""
    project: Project | None = None
    owner: User | None = None
    connection_credentials: ConnectionCredentials | None = None

    @classmethod
    def from_xml(cls, element: ET.Element) -> Datasource:
        project = _child(element, "project")
        owner = _child(element, "owner")
        credentials = _child(element, "connectionCredentials")
        return cls(
            id=element.get("id", ""),
            name=element.get("name", ""),
            type=element.get("type", ""),
            content_url=element.get("contentUrl", ""),
            project=Project.from_xml(project) if project is not None else None,
            owner=User.from_xml(owner) if owner is not None else None,
            connection_credentials=(
                ConnectionCredentials.from_xml(credentials)
                if credentials is not None
                else None
            ),
        )

    def to_xml(self) -> ET.Element:
        element = ET.Element("datasource")
        _set(element, "id", self.id)
        _set(element, "name", self.name)
        _set(element, "type", self.type)
        _set(element, "contentUrl", self.content_url)
        if self.connection_credentials is not None:
            element.append(self.connection_credentials.to_xml())
        if self.project is not None:
            element.append(self.project.to_xml())
        if self.owner is not None:
            element.append(self.owner.to_xml("owner"))
        return element


@dataclass(frozen=True)
class Credentials:
    """Sign-in credentials, and the session returned by the server.

    On requests ``user`` is the user to impersonate; on responses it is the
    signed-in user.
    """

    name: str = ""
    password: str = ""
    token: str = ""
    site: Site | None = None
    user: User | None = None

    @classmethod
    def from_xml(cls, element: ET.Element) -> Credentials:
        site = _child(element, "site")
        user = _child(element, "user")
        return cls(
            name=element.get("name", ""),
            password=element.get("password", ""),
            token=element.get("token", ""),
            site=Site.from_xml(site) if site is not None else None,
            user=User.from_xml(user) if user is not None else None,
        )

    def to_xml(self) -> ET.Element:
        element = ET.Element("credentials")
        _set(element, "name", self.name)
        _set(element, "password", self.password)
        _set(element, "token", self.token)
        if self.site is not None:
            element.append(self.site.to_xml())
        if self.user is not None:
            element.append(self.user.to_xml())
        return element


@dataclass(frozen=True)
class ServerInfo:
    """Product and REST API versions of the server."""

    product_version: str = ""
    build: str = ""
    rest_api_version: str = ""

    @classmethod
    def from_xml(cls, element: ET.Element) -> ServerInfo:
        product = _child(element, "productVersion")
        api_version = _child(element, "restApiVersion")
        if product is None:
            product = ET.Element("productVersion")
        return cls(
            product_version=(product.text or "").strip(),
            build=product.get("build", ""),
            rest_api_version=(
                (api_version.text or "").strip() if api_version is not None else ""
            ),
        )


@dataclass(frozen=True)
class Pagination:
    """Paging information attached to list responses."""

    page_number: int = 0
    page_size: int = 0
    total_available: int = 0

    @classmethod
    def from_xml(cls, element: ET.Element) -> Pagination:
        return cls(
            page_number=_int(element, "pageNumber"),
            page_size=_int(element, "pageSize"),
            total_available=_int(element, "totalAvailable"),
        )


@dataclass(frozen=True)
class ErrorDetail:
    """Server-defined error code and message."""

    code: str = ""
    summary: str = ""
    detail: str = ""

    @classmethod
    def from_xml(cls, element: ET.Element) -> ErrorDetail:
        summary = _child(element, "summary")
        detail = _child(element, "detail")
        return cls(
            code=element.get("code", ""),
            summary=(summary.text or "") if summary is not None else "",
            detail=(detail.text or "") if detail is not None else "",
        )


# -----------------------------------------------------------------------------
# Request documents
# -----------------------------------------------------------------------------


def signin_request(credentials: Credentials) -> bytes:
    return ts_request(credentials.to_xml())


def create_project_request(project: Project) -> bytes:
    return ts_request(project.to_xml())


def create_site_request(site: Site) -> bytes:
    return ts_request(site.to_xml())


def datasource_create_request(datasource: Datasource) -> bytes:
    return ts_request(datasource.to_xml())


# -----------------------------------------------------------------------------
# Response shapes
# -----------------------------------------------------------------------------


def _pagination(root: ET.Element) -> Pagination:
    element = _child(root, "pagination")
    return Pagination.from_xml(element) if element is not None else Pagination()


@dataclass(frozen=True)
class ErrorResponse:
    error: ErrorDetail

    @classmethod
    def from_xml(cls, root: ET.Element) -> ErrorResponse:
        error = _child(root, "error")
        if error is None:
            return cls(error=ErrorDetail())
        return cls(error=ErrorDetail.from_xml(error))


@dataclass(frozen=True)
class AuthResponse:
    credentials: Credentials

    @classmethod
    def from_xml(cls, root: ET.Element) -> AuthResponse:
        credentials = _child(root, "credentials")
        if credentials is None:
            return cls(credentials=Credentials())
        return cls(credentials=Credentials.from_xml(credentials))


@dataclass(frozen=True)
class ServerInfoResponse:
    server_info: ServerInfo

    @classmethod
    def from_xml(cls, root: ET.Element) -> ServerInfoResponse:
        info = _child(root, "serverInfo")
        if info is None:
            return cls(server_info=ServerInfo())
        return cls(server_info=ServerInfo.from_xml(info))


@dataclass(frozen=True)
class QuerySitesResponse:
    sites: tuple[Site, ...]
    pagination: Pagination

    @classmethod
    def from_xml(cls, root: ET.Element) -> QuerySitesResponse:
        sites = _children(_child(root, "sites"), "site")
        return cls(
            sites=tuple(Site.from_xml(e) for e in sites),
            pagination=_pagination(root),
        )


@dataclass(frozen=True)
class QuerySiteResponse:
    site: Site

    @classmethod
    def from_xml(cls, root: ET.Element) -> QuerySiteResponse:
        site = _child(root, "site")
        return cls(site=Site.from_xml(site) if site is not None else Site())


CreateSiteResponse = QuerySiteResponse


@dataclass(frozen=True)
class QueryUserOnSiteResponse:
    user: User

    @classmethod
    def from_xml(cls, root: ET.Element) -> QueryUserOnSiteResponse:
        user = _child(root, "user")
        return cls(user=User.from_xml(user) if user is not None else User())


@dataclass(frozen=True)
class QueryProjectsResponse:
    projects: tuple[Project, ...]
    pagination: Pagination

    @classmethod
    def from_xml(cls, root: ET.Element) -> QueryProjectsResponse:
        projects = _children(_child(root, "projects"), "project")
        return cls(
            projects=tuple(Project.from_xml(e) for e in projects),
            pagination=_pagination(root),
        )


@dataclass(frozen=True)
class CreateProjectResponse:
    project: Project

    @classmethod
    def from_xml(cls, root: ET.Element) -> CreateProjectResponse:
        project = _child(root, "project")
        if project is None:
            return cls(project=Project())
        return cls(project=Project.from_xml(project))


@dataclass(frozen=True)
class QueryDatasourcesResponse:
    datasources: tuple[Datasource, ...]
    pagination: Pagination

    @classmethod
    def from_xml(cls, root: ET.Element) -> QueryDatasourcesResponse:
        datasources = _children(_child(root, "datasources"), "datasource")
        return cls(
            datasources=tuple(Datasource.from_xml(e) for e in datasources),
            pagination=_pagination(root),
        )


@dataclass(frozen=True)
class DatasourceResponse:
    datasource: Datasource

    @classmethod
    def from_xml(cls, root: ET.Element) -> DatasourceResponse:
        datasource = _child(root, "datasource")
        if datasource is None:
            return cls(datasource=Datasource())
        return cls(datasource=Datasource.from_xml(datasource))
