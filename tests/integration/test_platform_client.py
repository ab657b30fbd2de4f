# ABOUTME: Integration tests for the Platform client against a live Coolify instance
# ABOUTME: Read-only; requires COOLIFY_URL and COOLIFY_API_TOKEN in the environment

"""Integration tests for PlatformClient against a live Coolify instance.

These tests require:
- COOLIFY_URL pointing at the API base (e.g. https://coolify.example.com/api/v1)
- COOLIFY_API_TOKEN with read access

Only read endpoints are called; nothing on the instance is modified.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import AsyncIterator

import pytest
from pydantic import SecretStr

from coolifyme.config import EffectiveConfig
from coolifyme.errors import RemoteError
from coolifyme.resources.models import DeploymentStatus, EnvVar
from coolifyme.utils.client import PlatformClient

# Read at import time; the autouse fixture in conftest clears these per test
LIVE_URL = os.environ.get("COOLIFY_URL", "")
LIVE_TOKEN = os.environ.get("COOLIFY_API_TOKEN", "")

# Skip marker for tests that require a Coolify instance
requires_coolify = pytest.mark.skipif(
    not (LIVE_URL and LIVE_TOKEN),
    reason="COOLIFY_URL and COOLIFY_API_TOKEN not set",
)


@pytest.fixture
async def live_client() -> AsyncIterator[PlatformClient]:
    config = EffectiveConfig(api_token=SecretStr(LIVE_TOKEN), base_url=LIVE_URL)
    async with PlatformClient(config) as client:
        yield client


@pytest.mark.integration
@requires_coolify
class TestPlatformClientIntegration:
    """Integration tests for PlatformClient against a live Coolify."""

    async def test_health(self, live_client: PlatformClient):
        """Test that the health endpoint answers."""
        assert await live_client.system.healthcheck()

    async def test_version(self, live_client: PlatformClient):
        """Test that the version is a bare string."""
        version = await live_client.system.version()

        assert version
        assert not version.startswith('"')

    async def test_list_applications(self, live_client: PlatformClient):
        """Test listing applications and their variables."""
        apps = await live_client.applications.list()

        assert isinstance(apps, list)
        for app in apps[:3]:
            envs = await live_client.applications.list_envs(app["uuid"])
            assert all(isinstance(env, EnvVar) for env in envs)

    async def test_list_servers_and_projects(self, live_client: PlatformClient):
        """Test the basic inventory listings."""
        assert isinstance(await live_client.servers.list(), list)
        assert isinstance(await live_client.projects.list(), list)

    async def test_current_team(self, live_client: PlatformClient):
        """Test that the token belongs to a team."""
        team = await live_client.teams.current()

        assert "id" in team

    async def test_running_deployments(self, live_client: PlatformClient):
        """Test listing running deployments."""
        deployments = await live_client.deployments.list_all()

        assert all(isinstance(d, DeploymentStatus) for d in deployments)


@pytest.mark.integration
@requires_coolify
class TestPlatformClientErrorHandling:
    """Integration tests for error mapping against a live Coolify."""

    async def test_unknown_application(self, live_client: PlatformClient):
        """Test that an unknown application is a 404."""
        with pytest.raises(RemoteError) as exc_info:
            await live_client.applications.get(str(uuid.uuid4()))

        assert exc_info.value.code == 404

    async def test_bad_token(self):
        """Test that a wrong token is rejected."""
        config = EffectiveConfig(api_token=SecretStr("invalid-token"), base_url=LIVE_URL)

        async with PlatformClient(config) as client:
            with pytest.raises(RemoteError) as exc_info:
                await client.applications.list()

        assert exc_info.value.code in (401, 403)
