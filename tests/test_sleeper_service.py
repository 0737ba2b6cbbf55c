"""
Tests for the Sleeper API fetchers.
"""

import httpx
import pytest

from sleeper_chat.services.sleeper_service import SleeperAPIError
from tests.sample_data import SAMPLE_LEAGUE, SAMPLE_LEAGUES, SAMPLE_ROSTERS, SAMPLE_USER


@pytest.mark.asyncio
async def test_get_user_returns_payload(sleeper_factory):
    service = sleeper_factory({"/user/gridironguru": SAMPLE_USER})

    user = await service.get_user("gridironguru")

    assert user["user_id"] == "U9"
    assert service.requested_paths == ["/user/gridironguru"]


@pytest.mark.asyncio
async def test_get_user_unknown_username_is_none(sleeper_factory):
    service = sleeper_factory({"/user/ghost": None})

    assert await service.get_user("ghost") is None
    assert await service.get_user("nobody") is None


@pytest.mark.asyncio
async def test_get_user_leagues_builds_sport_and_season_path(sleeper_factory):
    service = sleeper_factory({"/user/U9/leagues/nfl/2023": SAMPLE_LEAGUES})

    leagues = await service.get_user_leagues("U9", "nfl", "2023")

    assert [league["league_id"] for league in leagues] == ["L1", "L2"]
    assert service.requested_paths == ["/user/U9/leagues/nfl/2023"]


@pytest.mark.asyncio
async def test_null_league_list_becomes_empty(sleeper_factory):
    service = sleeper_factory({"/user/U9/leagues/nfl/2023": None})

    assert await service.get_user_leagues("U9", "nfl", "2023") == []


@pytest.mark.asyncio
async def test_get_league_and_rosters(sleeper_factory):
    service = sleeper_factory({
        "/league/L1": SAMPLE_LEAGUE,
        "/league/L1/rosters": SAMPLE_ROSTERS
    })

    league = await service.get_league("L1")
    rosters = await service.get_league_rosters("L1")

    assert league["name"] == "Sunday Legends"
    assert len(rosters) == 3
    assert await service.get_league("missing") is None
    assert await service.get_league_rosters("missing") == []


@pytest.mark.asyncio
async def test_server_errors_are_retried(sleeper_factory):
    calls = []

    def flaky(request):
        calls.append(request.url.path)
        if len(calls) < 3:
            return httpx.Response(503, text="unavailable")
        return httpx.Response(200, json=SAMPLE_USER)

    service = sleeper_factory({"/user/gridironguru": flaky}, max_retries=2)

    user = await service.get_user("gridironguru")

    assert user["username"] == "gridironguru"
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_exhausted_retries_raise_sleeper_api_error(sleeper_factory):
    service = sleeper_factory(
        {"/league/L1": lambda request: httpx.Response(500, text="boom")},
        max_retries=1
    )

    with pytest.raises(SleeperAPIError) as excinfo:
        await service.get_league("L1")

    assert excinfo.value.status_code == 500
    assert excinfo.value.path == "/league/L1"
    assert service.requested_paths == ["/league/L1", "/league/L1"]


@pytest.mark.asyncio
async def test_transport_failure_raises_sleeper_api_error(sleeper_factory):
    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    service = sleeper_factory({"/league/L1/rosters": unreachable})

    with pytest.raises(SleeperAPIError):
        await service.get_league_rosters("L1")


@pytest.mark.asyncio
async def test_undecodable_body_raises_sleeper_api_error(sleeper_factory):
    service = sleeper_factory({"/user/gridironguru": lambda request: httpx.Response(200, text="<html>")})

    with pytest.raises(SleeperAPIError):
        await service.get_user("gridironguru")


@pytest.mark.asyncio
async def test_client_is_recreated_after_close(sleeper_factory):
    service = sleeper_factory({"/user/gridironguru": SAMPLE_USER})
    await service.close()

    user = await service.get_user("gridironguru")

    assert user["user_id"] == "U9"
    await service.close()


@pytest.mark.asyncio
async def test_path_segments_are_escaped(sleeper_factory):
    service = sleeper_factory({"/user/bob/leagues/nfl/2023": SAMPLE_LEAGUES})

    assert await service.get_user("bob/leagues/nfl/2023") is None
    assert await service.get_league("L1?x=1#frag") is None
    assert service.requested_paths == ["/user/bob%2Fleagues%2Fnfl%2F2023", "/league/L1%3Fx%3D1%23frag"]


@pytest.mark.parametrize("fetch, route, payload", [
    (lambda s: s.get_user("gridironguru"), "/user/gridironguru", [SAMPLE_USER]),
    (lambda s: s.get_user_leagues("U9", "nfl", "2023"), "/user/U9/leagues/nfl/2023", SAMPLE_LEAGUE),
    (lambda s: s.get_league("L1"), "/league/L1", SAMPLE_LEAGUES),
    (lambda s: s.get_league_rosters("L1"), "/league/L1/rosters", {"roster_id": 1}),
])
@pytest.mark.asyncio
async def test_wrong_payload_shape_raises_sleeper_api_error(sleeper_factory, fetch, route, payload):
    service = sleeper_factory({route: payload})

    with pytest.raises(SleeperAPIError) as excinfo:
        await fetch(service)

    assert excinfo.value.path == route
