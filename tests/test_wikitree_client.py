"""Tests for the WikiTree and WikiTree+ clients against a mocked transport."""
from __future__ import annotations

import httpx
import pytest

from biocheck.net import RateLimitConfig
from biocheck.sources import (
    RateLimitError,
    WikiTreeAPIError,
    WikiTreeClient,
    WikiTreePlusClient,
    WikiTreePlusError,
)

FAST = RateLimitConfig(max_calls=1000)


def make_client(handler, cls=WikiTreeClient, **kwargs):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return cls(http, rate_limit=FAST, **kwargs), http


class TestGetProfile:
    """Tests for ``WikiTreeClient.get_profile``."""

    @pytest.mark.asyncio
    async def test_found(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return httpx.Response(200, json=[{"status": 0, "person": {"Id": 7, "Name": "Smith-7"}}])

        client, http = make_client(handler)
        async with http:
            response = await client.get_profile("Smith-7")

        assert response.ok
        assert response.person["Name"] == "Smith-7"
        assert seen["action"] == "getPerson"
        assert seen["key"] == "Smith-7"
        assert seen["resolveRedirect"] == "1"
        assert seen["appId"] == "bioCheck"
        assert client.request_count == 1

    @pytest.mark.asyncio
    async def test_status_is_returned(self):
        def handler(request):
            return httpx.Response(200, json=[{"status": "Illegal WikiTree ID or Person.Id."}])

        client, http = make_client(handler)
        async with http:
            response = await client.get_profile("Nobody-1")
        assert not response.ok
        assert response.person is None


class TestGetPeople:
    """Tests for ``WikiTreeClient.get_people``."""

    @pytest.mark.asyncio
    async def test_form_post(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["form"] = dict(httpx.QueryParams(request.content.decode()))
            return httpx.Response(
                200,
                json=[{
                    "status": "",
                    "resultByKey": {"5": {"Id": 7, "status": 0}, "Jones-2": {"Id": 2}, "9": "bad"},
                    "people": {"7": {"Id": 7, "Name": "Smith-7"}, "-1": "bad"},
                }],
            )

        client, http = make_client(handler)
        async with http:
            response = await client.get_people([7, "Jones-2"], ancestors=3, min_generation=1, limit=50)

        form = seen["form"]
        assert seen["method"] == "POST"
        assert form["action"] == "getPeople"
        assert form["keys"] == "7,Jones-2"
        assert form["ancestors"] == "3"
        assert form["minGeneration"] == "1"
        assert form["limit"] == "50"
        assert "descendants" not in form
        assert "start" not in form
        assert list(response.people) == ["7"]
        assert response.redirects == {7: 5}

    @pytest.mark.asyncio
    async def test_empty_people_list(self):
        def handler(request):
            return httpx.Response(200, json=[{"status": 0, "people": []}])

        client, http = make_client(handler)
        async with http:
            response = await client.get_people([7])
        assert response.ok
        assert response.people == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,rate_limited,max_profiles",
        [
            ("Limit exceeded. Please try again later.", True, False),
            ("Maximum number of profiles (10000) reached.", False, True),
        ],
    )
    async def test_quota_statuses(self, status, rate_limited, max_profiles):
        def handler(request):
            return httpx.Response(200, json=[{"status": status}])

        client, http = make_client(handler)
        async with http:
            response = await client.get_people([7])
        assert response.rate_limited is rate_limited
        assert response.max_profiles_reached is max_profiles
        assert not response.ok


class TestGetBioAndWatchlist:
    """Tests for ``get_bio`` and ``get_watchlist``."""

    @pytest.mark.asyncio
    async def test_bio(self):
        def handler(request):
            assert request.url.params["bioFormat"] == "wiki"
            return httpx.Response(200, json=[{"status": 0, "bio": "== Biography =="}])

        client, http = make_client(handler)
        async with http:
            response = await client.get_bio(7)
        assert response.bio == "== Biography =="
        assert not response.permission_denied

    @pytest.mark.asyncio
    async def test_bio_permission_denied(self):
        def handler(request):
            return httpx.Response(200, json=[{"status": "Permission denied."}])

        client, http = make_client(handler)
        async with http:
            response = await client.get_bio(7)
        assert response.permission_denied
        assert response.bio is None

    @pytest.mark.asyncio
    async def test_watchlist(self):
        seen = {}

        def handler(request):
            seen.update(request.url.params)
            return httpx.Response(
                200,
                json=[{"status": 0, "watchlistCount": "150", "watchlist": [{"Id": 1, "Name": "Smith-1"}]}],
            )

        client, http = make_client(handler)
        async with http:
            response = await client.get_watchlist(offset=100, limit=50)
        assert response.count == 150
        assert len(response.profiles) == 1
        assert seen["offset"] == "100"
        assert seen["limit"] == "50"
        assert seen["getPerson"] == "1"
        assert seen["getSpace"] == "0"

    def test_cookie_header(self):
        client = WikiTreeClient(cookies="wikidb_wtb_UserID=12", rate_limit=FAST)
        assert client._default_headers() == {"Cookie": "wikidb_wtb_UserID=12"}


class TestErrors:
    """Tests for HTTP failures and retries."""

    @pytest.mark.asyncio
    async def test_server_error_is_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(503)
            return httpx.Response(200, json=[{"status": 0, "bio": "text"}])

        client, http = make_client(handler)
        async with http:
            response = await client.get_bio(7)
        assert response.bio == "text"
        assert len(calls) == 2
        assert client.request_count == 2

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404)

        client, http = make_client(handler)
        async with http:
            with pytest.raises(WikiTreeAPIError) as exc_info:
                await client.get_bio(7)
        assert exc_info.value.status_code == 404
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_persistent_rate_limit(self):
        def handler(request):
            return httpx.Response(429)

        client, http = make_client(handler)
        async with http:
            with pytest.raises(RateLimitError):
                await client.get_bio(7)
        assert client.request_count == 3

    @pytest.mark.asyncio
    async def test_malformed_json(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>oops</html>")

        client, http = make_client(handler)
        async with http:
            with pytest.raises(WikiTreeAPIError, match="malformed JSON"):
                await client.get_bio(7)

    @pytest.mark.asyncio
    async def test_unexpected_shape(self):
        def handler(request):
            return httpx.Response(200, json=["not a mapping"])

        client, http = make_client(handler)
        async with http:
            with pytest.raises(WikiTreeAPIError):
                await client.get_bio(7)

    @pytest.mark.asyncio
    async def test_borrowed_client_left_open(self):
        def handler(request):
            return httpx.Response(200, json=[{"status": 0}])

        client, http = make_client(handler)
        async with client:
            await client.get_bio(7)
        assert not http.is_closed
        await http.aclose()


class TestWikiTreePlus:
    """Tests for ``WikiTreePlusClient``."""

    @pytest.mark.asyncio
    async def test_search(self):
        seen = {}

        def handler(request):
            seen.update(request.url.params)
            return httpx.Response(200, json={"response": {"found": 12, "profiles": [3, "4", "x"]}})

        client, http = make_client(handler, WikiTreePlusClient)
        async with http:
            result = await client.search("Smith Boston", max_profiles=5, open_only=True)
        assert result.found == 12
        assert result.profiles == [3, 4]
        assert seen["Query"] == "Smith Boston"
        assert seen["maxProfiles"] == "5"
        assert seen["Privacy"] == "Public"

    @pytest.mark.asyncio
    async def test_search_without_response(self):
        def handler(request):
            return httpx.Response(200, json={"error": "bad query"})

        client, http = make_client(handler, WikiTreePlusClient)
        async with http:
            with pytest.raises(WikiTreePlusError):
                await client.search("(")

    @pytest.mark.asyncio
    async def test_fetch_templates(self):
        def handler(request):
            assert request.url.host == "plus.wikitree.com"
            assert request.url.params["appid"] == "bioCheck"
            return httpx.Response(200, json={"templates": [{"name": "Died Young", "type": "sticker"}]})

        client, http = make_client(handler, WikiTreePlusClient)
        async with http:
            templates = await client.fetch_templates()
        assert templates == [{"name": "Died Young", "type": "sticker"}]

    @pytest.mark.asyncio
    async def test_fetch_templates_error(self):
        def handler(request):
            return httpx.Response(404)

        client, http = make_client(handler, WikiTreePlusClient)
        async with http:
            with pytest.raises(WikiTreePlusError) as exc_info:
                await client.fetch_templates()
        assert exc_info.value.status_code == 404
