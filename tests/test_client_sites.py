"""Test site and user operations."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from tableau_rest import Site, TableauApi, convert_site_name_to_content_url

from .conftest import SERVER, create_mock_response, ts_response

BASE = f"{SERVER}/api/3.4"
SITE = ts_response('<site id="s-1" name="Finance Team" contentUrl="FinanceTeam"/>')


def test_convert_site_name_to_content_url() -> None:
    assert convert_site_name_to_content_url("Finance Team West") == "FinanceTeamWest"


async def test_query_sites(api: TableauApi, mock_session: MagicMock) -> None:
    mock_session.request.return_value = create_mock_response(
        200,
        ts_response(
            '<pagination pageNumber="1" pageSize="100" totalAvailable="2"/>'
            '<sites><site id="a" name="Default" contentUrl=""/>'
            '<site id="b" name="Sales" contentUrl="Sales"/></sites>'
        ),
    )

    sites = await api.query_sites()

    assert mock_session.request.call_args.args == ("GET", f"{BASE}/sites/")
    assert [s.id for s in sites] == ["a", "b"]


@pytest.mark.parametrize(
    ("include_storage", "expected"),
    [(False, f"{BASE}/sites/s-1"), (True, f"{BASE}/sites/s-1?includeStorage=true")],
)
async def test_query_site(
    api: TableauApi, mock_session: MagicMock, include_storage: bool, expected: str
) -> None:
    mock_session.request.return_value = create_mock_response(200, SITE)

    site = await api.query_site("s-1", include_storage)

    assert mock_session.request.call_args.args == ("GET", expected)
    assert site.content_url == "FinanceTeam"


async def test_query_site_by_name_with_storage(
    api: TableauApi, mock_session: MagicMock
) -> None:
    mock_session.request.return_value = create_mock_response(200, SITE)

    await api.query_site_by_name("Finance", include_storage=True)

    assert mock_session.request.call_args.args == (
        "GET",
        f"{BASE}/sites/Finance?key=name&includeStorage=true",
    )


async def test_get_site_uses_content_url(
    api: TableauApi, mock_session: MagicMock
) -> None:
    mock_session.request.return_value = create_mock_response(200, SITE)

    site = await api.get_site("Finance Team")

    assert mock_session.request.call_args.args == (
        "GET",
        f"{BASE}/sites/FinanceTeam?key=contentUrl",
    )
    assert site.id == "s-1"


async def test_get_default_site_uses_name(
    api: TableauApi, mock_session: MagicMock
) -> None:
    mock_session.request.return_value = create_mock_response(
        200, ts_response('<site id="d" name="Default" contentUrl=""/>')
    )

    site_id = await api.get_site_id("Default")
    await api.get_site("Default")

    assert site_id == "d"
    urls = [c.args[1] for c in mock_session.request.call_args_list]
    assert urls == [f"{BASE}/sites/Default?key=name"] * 2


async def test_create_site(api: TableauApi, mock_session: MagicMock) -> None:
    mock_session.request.return_value = create_mock_response(
        201, ts_response('<site id="s-9" name="Ops" contentUrl="Ops"/>')
    )

    site = await api.create_site(Site(name="Ops", content_url="Ops"))

    assert mock_session.request.call_args.args == ("POST", f"{BASE}/sites")
    assert site == Site(id="s-9", name="Ops", content_url="Ops")


@pytest.mark.parametrize(
    ("method", "arg", "expected"),
    [
        ("delete_site", "s-1", f"{BASE}/sites/s-1"),
        ("delete_site_by_name", "Ops", f"{BASE}/sites/Ops?key=name"),
        ("delete_site_by_content_url", "Ops", f"{BASE}/sites/Ops?key=contentUrl"),
    ],
)
async def test_delete_site_variants(
    api: TableauApi, mock_session: MagicMock, method: str, arg: str, expected: str
) -> None:
    mock_session.request.return_value = create_mock_response(204)

    await getattr(api, method)(arg)

    assert mock_session.request.call_count == 1
    assert mock_session.request.call_args.args == ("DELETE", expected)


async def test_query_user_on_site(api: TableauApi, mock_session: MagicMock) -> None:
    mock_session.request.return_value = create_mock_response(
        200,
        ts_response('<user id="u-1" name="jdoe" siteRole="Explorer" fullName="J Doe"/>'),
    )

    user = await api.query_user_on_site("s-1", "u-1")

    assert mock_session.request.call_args.args == ("GET", f"{BASE}/sites/s-1/users/u-1")
    assert user.site_role == "Explorer"
    assert user.full_name == "J Doe"
