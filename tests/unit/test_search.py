# ABOUTME: Unit tests for cross-resource search
# ABOUTME: Tests text, status and tag matching, type aliases, limits and partial failures

import httpx
import pytest
import respx

from coolifyme.errors import InvalidArgumentError
from coolifyme.tools.search import (
    KINDS,
    SearchFilter,
    matches_text,
    resolve_kinds,
    resource_status,
    search,
)

BASE_URL = "https://coolify.example.com/api/v1"

APPS = [
    {
        "uuid": "app-1",
        "name": "api-gateway",
        "status": "running:healthy",
        "fqdn": "https://api.example.com",
        "tags": [{"name": "prod"}],
    },
    {
        "uuid": "app-2",
        "name": "web",
        "status": "exited:unhealthy",
        "git_repository": "acme/api-web",
    },
    {"uuid": "app-3", "name": "worker", "status": "running", "description": "queue consumer"},
]
SERVICES = [{"uuid": "svc-1", "name": "plausible", "status": "running", "tags": ["prod"]}]
SERVERS = [
    {"uuid": "srv-1", "name": "edge", "ip": "10.0.0.5", "validation_logs": None},
    {"uuid": "srv-2", "name": "api-host", "ip": "10.0.0.6", "validation_logs": "ok"},
]
DATABASES = [{"uuid": "db-1", "name": "api-db", "status": "running"}]


def mock_listings(**overrides: httpx.Response) -> dict[str, respx.Route]:
    """Fake every listing endpoint; keyword overrides replace one kind's answer."""
    routes = {}
    payloads = {
        "applications": APPS,
        "services": SERVICES,
        "servers": SERVERS,
        "databases": DATABASES,
    }
    for kind, payload in payloads.items():
        response = overrides.get(kind, httpx.Response(200, json=payload))
        routes[kind] = respx.get(f"{BASE_URL}/{kind}").mock(return_value=response)
    return routes


def uuids(results, kind: str) -> list[str]:
    return [hit.uuid for hit in results.hits.get(kind, [])]


@pytest.mark.unit
class TestMatching:
    """Tests for the matching helpers."""

    @pytest.mark.parametrize(
        ("text", "query", "case_sensitive", "expected"),
        [
            ("api-gateway", "GATE", False, True),
            ("api-gateway", "GATE", True, False),
            ("api-gateway", "api*way", False, True),
            ("api-gateway", "web*", False, False),
            ("a.b", "a.*", False, True),
            ("axb", "a.b", False, False),
            ("anything", "", False, True),
        ],
    )
    def test_matches_text(self, text: str, query: str, case_sensitive: bool, expected: bool):
        """Test substring and wildcard matching."""
        assert matches_text(text, query, case_sensitive) is expected

    def test_server_status_from_validation(self):
        """Test that servers without a status are judged by their validation logs."""
        assert resource_status("servers", SERVERS[1]) == "validated"
        assert resource_status("servers", SERVERS[0]) == "unknown"
        assert resource_status("services", {}) == "unknown"

    def test_status_matches_first_segment(self):
        """Test that a bare status matches a compound one."""
        criteria = SearchFilter(status="running")

        assert criteria.matches("applications", APPS[0])
        assert not criteria.matches("applications", APPS[1])

    def test_tag_matches_names_and_strings(self):
        """Test tags given as objects or plain strings."""
        criteria = SearchFilter(tag="prod")

        assert criteria.matches("applications", APPS[0])
        assert criteria.matches("services", SERVICES[0])
        assert not criteria.matches("applications", APPS[2])

    def test_resolve_kinds(self):
        """Test type aliases and the all-kinds default."""
        assert resolve_kinds(None) == KINDS
        assert resolve_kinds("svc") == ("services",)
        assert resolve_kinds("DB") == ("databases",)

    def test_resolve_unknown_kind(self):
        """Test that an unknown type is an invalid argument."""
        with pytest.raises(InvalidArgumentError, match="unknown resource type"):
            resolve_kinds("volumes")


@pytest.mark.unit
class TestSearch:
    """Tests for search against a faked Platform."""

    @respx.mock
    async def test_query_across_kinds(self, client):
        """Test that the query is matched against every kind's text fields."""
        mock_listings()

        results = await search(client, SearchFilter(query="api"))

        assert uuids(results, "applications") == ["app-1", "app-2"]
        assert uuids(results, "services") == []
        assert uuids(results, "servers") == ["srv-2"]
        assert uuids(results, "databases") == ["db-1"]
        assert results.total == 4
        assert results.errors == {}

    @respx.mock
    async def test_hit_columns(self, client):
        """Test the kind-specific detail column."""
        mock_listings()

        results = await search(client, SearchFilter(query="api-"))

        app = results.hits["applications"][0]
        assert (app.name, app.status, app.detail) == (
            "api-gateway",
            "running:healthy",
            "https://api.example.com",
        )
        assert results.hits["servers"][0].detail == "10.0.0.6"

    @respx.mock
    async def test_only_selected_kinds_listed(self, client):
        """Test that other kinds are never requested."""
        routes = mock_listings()

        results = await search(client, SearchFilter(query="a"), kinds=("servers",))

        assert list(results.hits) == ["servers"]
        assert routes["servers"].called
        assert not routes["applications"].called

    @respx.mock
    async def test_limit_in_kind_order(self, client):
        """Test that the limit keeps the first hits across kinds."""
        mock_listings()

        results = await search(client, SearchFilter(query="api"), limit=3)

        assert uuids(results, "applications") == ["app-1", "app-2"]
        assert uuids(results, "servers") == ["srv-2"]
        assert uuids(results, "databases") == []
        assert results.total == 3

    @respx.mock
    async def test_failed_kind_reported(self, client):
        """Test that one failing listing does not hide the others."""
        mock_listings(services=httpx.Response(500, json={"message": "boom"}))

        results = await search(client, SearchFilter(query="api"))

        assert "services" in results.errors
        assert "services" not in results.hits
        assert uuids(results, "applications") == ["app-1", "app-2"]

    @respx.mock
    async def test_unparseable_databases_reported(self, client):
        """Test that a database listing that is not JSON is reported as failed."""
        mock_listings(databases=httpx.Response(200, text="not json"))

        results = await search(client, SearchFilter(query="api"))

        assert "databases" in results.errors
        assert results.total == 3

    @respx.mock
    async def test_to_dict(self, client):
        """Test the JSON shape, including empty kinds and the total."""
        mock_listings()

        data = (await search(client, SearchFilter(query="plausible"))).to_dict()

        assert data["total_count"] == 1
        assert data["applications"] == []
        assert data["services"] == [
            {"uuid": "svc-1", "name": "plausible", "status": "running", "detail": ""}
        ]
        assert "errors" not in data
