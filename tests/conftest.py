# ABOUTME: Pytest fixtures and configuration for coolifyme tests
# ABOUTME: Provides an isolated environment, a temporary profile store and a base config

import os
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from pydantic import SecretStr

from coolifyme.config import EffectiveConfig
from coolifyme.profiles import ProfileStore
from coolifyme.utils.client import PlatformClient
from coolifyme.utils.logging import configure_logging

BASE_URL = "https://coolify.example.com/api/v1"


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove COOLIFY_* / COOLIFYME_* variables so the host never leaks into tests."""
    for name in list(os.environ):
        if name.startswith(("COOLIFY_", "COOLIFYME_")):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def quiet_logging() -> None:
    """Keep test output readable; individual tests reconfigure when they inspect logs."""
    configure_logging(level="error")


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Location of a not-yet-existing config file."""
    return tmp_path / "coolifyme" / "config.yaml"


@pytest.fixture
def store(config_path: Path) -> ProfileStore:
    """Profile store backed by a temporary file."""
    return ProfileStore(config_path)


@pytest.fixture
def effective_config() -> EffectiveConfig:
    """Effective configuration pointing at a fake Platform."""
    return EffectiveConfig(api_token=SecretStr("test-token"), base_url=BASE_URL)


@pytest.fixture
async def client(effective_config: EffectiveConfig) -> AsyncIterator[PlatformClient]:
    """Entered PlatformClient; combine with respx to fake responses."""
    async with PlatformClient(effective_config) as platform:
        yield platform
