# ABOUTME: Unit tests for the .env sync engine
# ABOUTME: Tests export, import, bidirectional sync and cleanup against a respx-faked Platform

import json
from datetime import datetime

import httpx
import pytest
import respx

from coolifyme.errors import InvalidArgumentError, LocalFileError, RemoteError, UnsafePathError
from coolifyme.tools.envsync import EnvSyncEngine, Target, plan_sync
from coolifyme.utils.envfile import parse_env

BASE_URL = "https://coolify.example.com/api/v1"
APP = "a1b2c3d4-0000-4000-8000-000000000001"
SVC = "a1b2c3d4-0000-4000-8000-000000000002"
WHEN = datetime(2024, 1, 15, 10, 30, 0)


def remote_envs(**values: str) -> httpx.Response:
    return httpx.Response(200, json=[{"key": k, "value": v} for k, v in values.items()])


def bulk_ok() -> httpx.Response:
    return httpx.Response(201, json={"message": "Environment variables updated."})


@pytest.fixture
def engine(client) -> EnvSyncEngine:
    return EnvSyncEngine(client, clock=lambda: WHEN)


@pytest.mark.unit
class TestPlanSync:
    """Tests for the pure three-way comparison."""

    def test_plan(self):
        """Test key sets for additions on both sides and conflicts."""
        plan = plan_sync({"K2": "new", "K3": "v3", "K4": "same"}, {"K1": "v1", "K2": "old", "K4": "same"})

        assert plan.add_to_remote == ["K3"]
        assert plan.add_to_file == ["K1"]
        assert plan.update_in_remote == ["K2"]
        assert plan.update_in_file == ["K2"]
        assert plan.has_changes

    def test_equal_maps(self):
        """Test that identical maps need nothing."""
        assert not plan_sync({"A": "1"}, {"A": "1"}).has_changes


@pytest.mark.unit
class TestFetchRemote:
    """Tests for EnvSyncEngine.fetch_remote."""

    @respx.mock
    async def test_regular_beats_preview(self, engine):
        """Test that preview copies only fill gaps."""
        respx.get(f"{BASE_URL}/applications/{APP}/envs").mock(
            return_value=httpx.Response(
                200,
                json=[
                    {"key": "A", "value": "preview-a", "is_preview": True},
                    {"key": "A", "value": "regular-a", "is_preview": False},
                    {"key": "B", "value": "preview-b", "is_preview": True},
                    {"key": "", "value": "ignored"},
                ],
            )
        )

        assert await engine.fetch_remote(APP) == {"A": "regular-a", "B": "preview-b"}

    @respx.mock
    async def test_services_target(self, client):
        """Test that the service target reads service variables."""
        respx.get(f"{BASE_URL}/services/{SVC}/envs").mock(return_value=remote_envs(S="1"))

        engine = EnvSyncEngine(client, target=Target.SERVICES)

        assert await engine.fetch_remote(SVC) == {"S": "1"}


@pytest.mark.unit
class TestExport:
    """Tests for EnvSyncEngine.export."""

    @respx.mock
    async def test_writes_file_with_header(self, engine, tmp_path):
        """Test the exported file content and mode."""
        respx.get(f"{BASE_URL}/applications/{APP}/envs").mock(
            return_value=remote_envs(B="two words", A="1")
        )
        path = tmp_path / ".env"

        report = await engine.export(APP, path)

        assert report.count == 2
        assert report.written
        assert path.read_text() == (
            "# Environment variables exported from Coolify\n"
            f"# Application UUID: {APP}\n"
            "# Exported at: 2024-01-15 10:30:00\n"
            "\n"
            "A=1\n"
            "B=two words\n"
        )
        assert oct(path.stat().st_mode & 0o777) == oct(0o600)

    async def test_refuses_existing(self, engine, tmp_path):
        """Test that an existing file is not overwritten by default."""
        path = tmp_path / ".env"
        path.write_text("KEEP=1\n")

        with pytest.raises(LocalFileError, match="already exists"):
            await engine.export(APP, path)

        assert path.read_text() == "KEEP=1\n"

    @respx.mock
    async def test_overwrite(self, engine, tmp_path):
        """Test that overwrite replaces an existing file."""
        respx.get(f"{BASE_URL}/applications/{APP}/envs").mock(return_value=remote_envs(A="1"))
        path = tmp_path / ".env"
        path.write_text("OLD=1\n")

        await engine.export(APP, path, overwrite=True)

        assert parse_env(path.read_text()) == {"A": "1"}

    @respx.mock
    async def test_dry_run(self, engine, tmp_path):
        """Test that a dry run reports without writing."""
        respx.get(f"{BASE_URL}/applications/{APP}/envs").mock(return_value=remote_envs(A="1"))
        path = tmp_path / ".env"

        report = await engine.export(APP, path, dry_run=True)

        assert report.count == 1
        assert not report.written
        assert not path.exists()

    @respx.mock
    async def test_remote_failure_writes_nothing(self, engine, tmp_path):
        """Test that the file is untouched when the fetch fails."""
        respx.get(f"{BASE_URL}/applications/{APP}/envs").mock(
            return_value=httpx.Response(404, json={"message": "Application not found."})
        )
        path = tmp_path / ".env"

        with pytest.raises(RemoteError):
            await engine.export(APP, path)

        assert not path.exists()

    async def test_traversal_refused(self, engine):
        """Test that unsafe paths are refused before any call."""
        with pytest.raises(UnsafePathError):
            await engine.export(APP, "../../.env")


@pytest.mark.unit
class TestImport:
    """Tests for EnvSyncEngine.import_."""

    @respx.mock
    async def test_single_bulk_call(self, engine, tmp_path):
        """Test that all file values go out in one sorted bulk update."""
        route = respx.patch(f"{BASE_URL}/applications/{APP}/envs/bulk").mock(return_value=bulk_ok())
        path = tmp_path / ".env"
        path.write_text("# comment\nB=2\nA=1\n")

        report = await engine.import_(APP, path)

        assert route.call_count == 1
        assert json.loads(route.calls.last.request.content) == {
            "data": [{"key": "A", "value": "1"}, {"key": "B", "value": "2"}]
        }
        assert report.count == 2
        assert report.message == "Environment variables updated."

    @respx.mock
    async def test_dry_run(self, engine, tmp_path):
        """Test that a dry run makes no call."""
        path = tmp_path / ".env"
        path.write_text("A=1\n")

        report = await engine.import_(APP, path, dry_run=True)

        assert report.dry_run
        assert report.values == {"A": "1"}

    async def test_missing_file(self, engine, tmp_path):
        """Test that a missing file is a local file error."""
        with pytest.raises(LocalFileError):
            await engine.import_(APP, tmp_path / ".env")


@pytest.mark.unit
class TestSync:
    """Tests for EnvSyncEngine.sync."""

    @respx.mock
    async def test_file_preferred(self, engine, tmp_path):
        """Test the documented sync scenario with the file winning conflicts."""
        respx.get(f"{BASE_URL}/applications/{APP}/envs").mock(
            return_value=remote_envs(K1="v1", K2="old")
        )
        bulk_route = respx.patch(f"{BASE_URL}/applications/{APP}/envs/bulk").mock(
            return_value=bulk_ok()
        )
        path = tmp_path / ".env"
        path.write_text("K2=new\nK3=v3\n")

        report = await engine.sync(APP, path)

        assert json.loads(bulk_route.calls.last.request.content) == {
            "data": [{"key": "K2", "value": "new"}, {"key": "K3", "value": "v3"}]
        }
        assert parse_env(path.read_text()) == {"K1": "v1", "K2": "new", "K3": "v3"}
        assert "# Environment variables synced with Coolify" in path.read_text()
        assert "# Last synced: 2024-01-15 10:30:00" in path.read_text()
        assert report.remote_updated == 2
        assert report.file_updated == 1

    @respx.mock
    async def test_second_sync_is_noop(self, engine, tmp_path):
        """Test that syncing a converged pair changes nothing."""
        respx.get(f"{BASE_URL}/applications/{APP}/envs").mock(
            side_effect=[
                remote_envs(K1="v1", K2="old"),
                remote_envs(K1="v1", K2="new", K3="v3"),
            ]
        )
        bulk_route = respx.patch(f"{BASE_URL}/applications/{APP}/envs/bulk").mock(
            return_value=bulk_ok()
        )
        path = tmp_path / ".env"
        path.write_text("K2=new\nK3=v3\n")

        await engine.sync(APP, path)
        content = path.read_text()
        second = await engine.sync(APP, path)

        assert second.changes == 0
        assert not second.plan.has_changes
        assert bulk_route.call_count == 1
        assert path.read_text() == content

    @respx.mock
    async def test_remote_preferred(self, engine, tmp_path):
        """Test that prefer=remote rewrites the file instead of the Platform."""
        respx.get(f"{BASE_URL}/applications/{APP}/envs").mock(
            return_value=remote_envs(K1="v1", K2="old")
        )
        bulk_route = respx.patch(f"{BASE_URL}/applications/{APP}/envs/bulk").mock(
            return_value=bulk_ok()
        )
        path = tmp_path / ".env"
        path.write_text("K2=new\nK3=v3\n")

        await engine.sync(APP, path, prefer="remote")

        assert json.loads(bulk_route.calls.last.request.content) == {
            "data": [{"key": "K3", "value": "v3"}]
        }
        assert parse_env(path.read_text()) == {"K1": "v1", "K2": "old", "K3": "v3"}

    @respx.mock
    async def test_creates_missing_file(self, engine, tmp_path):
        """Test that a missing file is created from the remote values."""
        respx.get(f"{BASE_URL}/applications/{APP}/envs").mock(return_value=remote_envs(A="1"))
        path = tmp_path / ".env"

        report = await engine.sync(APP, path)

        assert report.created_file
        assert parse_env(path.read_text()) == {"A": "1"}

    @respx.mock
    async def test_dry_run(self, engine, tmp_path):
        """Test that a dry run reports counts but changes nothing."""
        respx.get(f"{BASE_URL}/applications/{APP}/envs").mock(
            return_value=remote_envs(K1="v1", K2="old")
        )
        path = tmp_path / ".env"
        path.write_text("K2=new\nK3=v3\n")

        report = await engine.sync(APP, path, dry_run=True)

        assert (report.remote_updated, report.file_updated) == (2, 1)
        assert path.read_text() == "K2=new\nK3=v3\n"

    @respx.mock
    async def test_rejected_update_keeps_file(self, engine, tmp_path):
        """Test that a failed remote update leaves the file untouched."""
        respx.get(f"{BASE_URL}/applications/{APP}/envs").mock(
            return_value=remote_envs(K1="v1")
        )
        respx.patch(f"{BASE_URL}/applications/{APP}/envs/bulk").mock(
            return_value=httpx.Response(422, json={"message": "Validation failed."})
        )
        path = tmp_path / ".env"
        path.write_text("K3=v3\n")

        with pytest.raises(RemoteError):
            await engine.sync(APP, path)

        assert path.read_text() == "K3=v3\n"

    async def test_invalid_prefer(self, engine, tmp_path):
        """Test that an unknown preference is rejected."""
        with pytest.raises(InvalidArgumentError, match="prefer"):
            await engine.sync(APP, tmp_path / ".env", prefer="newest")


@pytest.mark.unit
class TestCleanup:
    """Tests for EnvSyncEngine.cleanup."""

    @respx.mock
    async def test_removes_unknown_keys_with_backup(self, engine, tmp_path):
        """Test the documented cleanup scenario."""
        respx.get(f"{BASE_URL}/applications/{APP}/envs").mock(return_value=remote_envs(K1="v1"))
        path = tmp_path / ".env"
        original = "K1=v1\nK2=x\n"
        path.write_text(original)

        report = await engine.cleanup(APP, path)

        backup = tmp_path / ".env.backup.20240115-103000"
        assert report.removed == ["K2"]
        assert report.remaining == 1
        assert report.backup_path == backup
        assert backup.read_text() == original
        assert parse_env(path.read_text()) == {"K1": "v1"}
        assert path.read_text().startswith("# Environment variables cleaned up\n")

    @respx.mock
    async def test_no_backup(self, engine, tmp_path):
        """Test that the backup can be skipped."""
        respx.get(f"{BASE_URL}/applications/{APP}/envs").mock(return_value=remote_envs(K1="v1"))
        path = tmp_path / ".env"
        path.write_text("K1=v1\nK2=x\n")

        report = await engine.cleanup(APP, path, backup=False)

        assert report.backup_path is None
        assert sorted(p.name for p in tmp_path.iterdir()) == [".env"]

    @respx.mock
    async def test_nothing_to_remove(self, engine, tmp_path):
        """Test that a clean file is left alone."""
        respx.get(f"{BASE_URL}/applications/{APP}/envs").mock(
            return_value=remote_envs(K1="v1", K2="v2")
        )
        path = tmp_path / ".env"
        path.write_text("K1=v1\n")

        report = await engine.cleanup(APP, path)

        assert report.removed == []
        assert path.read_text() == "K1=v1\n"

    @respx.mock
    async def test_dry_run(self, engine, tmp_path):
        """Test that a dry run only reports."""
        respx.get(f"{BASE_URL}/applications/{APP}/envs").mock(return_value=remote_envs())
        path = tmp_path / ".env"
        path.write_text("K1=v1\n")

        report = await engine.cleanup(APP, path, dry_run=True)

        assert report.removed == ["K1"]
        assert report.remaining == 0
        assert path.read_text() == "K1=v1\n"
