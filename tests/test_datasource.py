"""Tests for dashboard_cache.datasource module."""

import httpx
import pytest

from dashboard_cache.datasource import HttpDataSource, InMemoryDataSource


class TestInMemoryDataSource:
    """Tests for the dict-backed data source."""

    @pytest.mark.asyncio
    async def test_fetch_by_org(self, source):
        docs = await source.fetch_by_org("org1", "categories")
        assert [d["id"] for d in docs] == ["c1", "c2"]
        assert docs[0]["name"] == "Attendance"

    @pytest.mark.asyncio
    async def test_fetch_by_key(self, source):
        doc = await source.fetch_by_key("org1", "permissions", "u1")
        assert doc == {"canIssueWarnings": True, "id": "u1"}
        assert await source.fetch_by_key("org1", "permissions", "nobody") is None

    @pytest.mark.asyncio
    async def test_query(self, source):
        docs = await source.query("org1", "employees", "managerId", "u9")
        assert [d["name"] for d in docs] == ["Cleo"]

    @pytest.mark.asyncio
    async def test_unknown_org_or_collection(self, source):
        assert await source.fetch_by_org("org2", "employees") == []
        assert await source.fetch_by_org("org1", "nothing") == []

    @pytest.mark.asyncio
    async def test_returns_copies(self, source):
        docs = await source.fetch_by_org("org1", "teams")
        docs[0]["name"] = "changed"
        again = await source.fetch_by_org("org1", "teams")
        assert again[0]["name"] == "Night shift"

    @pytest.mark.asyncio
    async def test_failures(self, source):
        source.fail_collection("reports", ConnectionError("unreachable"))
        with pytest.raises(ConnectionError):
            await source.fetch_by_org("org1", "reports")

        source.clear_failures()
        assert len(await source.fetch_by_org("org1", "reports")) == 1

    @pytest.mark.asyncio
    async def test_call_log(self, source):
        await source.fetch_by_org("org1", "teams")
        await source.query("org1", "employees", "managerId", "u1")

        assert source.calls == [
            ("fetch_by_org", "org1", "teams"),
            ("query", "org1", "employees"),
        ]
        assert source.call_count() == 2
        assert source.call_count("teams") == 1

    @pytest.mark.asyncio
    async def test_put(self):
        source = InMemoryDataSource()
        source.put("acme", "teams", "t9", {"name": "Day shift"})
        assert await source.fetch_by_key("acme", "teams", "t9") == {"name": "Day shift", "id": "t9"}

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "docs.yaml"
        path.write_text(
            "organizations:\n"
            "  acme:\n"
            "    employees:\n"
            "      e1: {name: Ada, managerId: u1}\n"
        )
        source = InMemoryDataSource.from_yaml(str(path), latency=0.5)
        assert source._data["acme"]["employees"]["e1"]["name"] == "Ada"
        assert source._latency == 0.5


def make_http_source(handler) -> HttpDataSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpDataSource("https://api.example.com/", client=client)


class TestHttpDataSource:
    """Tests for the REST-backed data source."""

    @pytest.mark.asyncio
    async def test_fetch_by_org(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json=[{"id": "e1"}])

        source = make_http_source(handler)
        assert await source.fetch_by_org("acme", "employees") == [{"id": "e1"}]
        assert seen == ["https://api.example.com/organizations/acme/employees"]

    @pytest.mark.asyncio
    async def test_fetch_by_key(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/organizations/acme/permissions/u1"
            return httpx.Response(200, json={"canIssueWarnings": False})

        source = make_http_source(handler)
        assert await source.fetch_by_key("acme", "permissions", "u1") == {"canIssueWarnings": False}

    @pytest.mark.asyncio
    async def test_fetch_by_key_not_found(self):
        source = make_http_source(lambda request: httpx.Response(404))
        assert await source.fetch_by_key("acme", "organizations", "acme") is None

    @pytest.mark.asyncio
    async def test_query_params(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["managerId"] == "u1"
            return httpx.Response(200, json=[{"id": "f1"}])

        source = make_http_source(handler)
        assert await source.query("acme", "followUps", "managerId", "u1") == [{"id": "f1"}]

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        source = make_http_source(lambda request: httpx.Response(503))
        with pytest.raises(httpx.HTTPStatusError):
            await source.fetch_by_org("acme", "warnings")

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_client_open(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[])))
        source = HttpDataSource("https://api.example.com", client=client)
        await source.aclose()
        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_aclose_closes_owned_client(self):
        source = HttpDataSource("https://api.example.com")
        client = source._get_client()
        await source.aclose()
        assert client.is_closed
