# ABOUTME: Unit tests for the deployment controller
# ABOUTME: Tests status classification, trigger validation and the watch loop

import asyncio

import httpx
import pytest
import respx

from coolifyme.errors import DeploymentFailedError, EmptyResponseError, InvalidArgumentError
from coolifyme.tools.deploy import (
    POLL_INTERVAL,
    DeploymentController,
    DeployOptions,
    WatchState,
    classify,
)
from coolifyme.utils.retry import TimeoutConfig

BASE_URL = "https://coolify.example.com/api/v1"
APP = "a1b2c3d4-0000-4000-8000-000000000001"
APP2 = "a1b2c3d4-0000-4000-8000-000000000002"


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class BlockingSleep:
    """Poll wait that signals when entered and then waits indefinitely."""

    def __init__(self) -> None:
        self.entered = asyncio.Event()

    async def __call__(self, seconds: float) -> None:
        self.entered.set()
        await asyncio.Event().wait()


def snapshot(status: str | None, logs: str | None = None) -> httpx.Response:
    return httpx.Response(
        200,
        json={"id": 1, "deployment_uuid": "dep1", "status": status, "logs": logs},
    )


@pytest.mark.unit
class TestClassify:
    """Tests for the status classification rules."""

    @pytest.mark.parametrize("status", ["finished", "success", "completed", "FINISHED", " success "])
    def test_success(self, status: str):
        """Test success statuses, case and whitespace insensitive."""
        assert classify(status) is WatchState.TERMINAL_SUCCESS

    @pytest.mark.parametrize("status", ["failed", "error", "cancelled", "Failed"])
    def test_failure(self, status: str):
        """Test failure statuses."""
        assert classify(status) is WatchState.TERMINAL_FAILURE

    @pytest.mark.parametrize("status", ["queued", "in_progress", "running", "building", ""])
    def test_in_progress(self, status: str):
        """Test that everything else is in progress."""
        assert classify(status) is WatchState.IN_PROGRESS

    def test_none_is_unknown(self):
        """Test that a missing status is unknown."""
        assert classify(None) is WatchState.UNKNOWN

    def test_terminal_flag(self):
        """Test which states end the watch loop."""
        assert WatchState.TERMINAL_SUCCESS.is_terminal
        assert WatchState.TERMINAL_FAILURE.is_terminal
        assert not WatchState.IN_PROGRESS.is_terminal
        assert not WatchState.UNKNOWN.is_terminal


@pytest.mark.unit
class TestTrigger:
    """Tests for deploy triggers."""

    @respx.mock
    async def test_branch_and_pr_exclusive(self, client):
        """Test that branch plus PR fails without any HTTP call."""
        controller = DeploymentController(client)

        with pytest.raises(InvalidArgumentError, match="mutually exclusive"):
            await controller.trigger(APP, DeployOptions(branch="main", pr=42))

    @respx.mock
    async def test_trigger_with_pr(self, client):
        """Test that the PR is sent and the branch left out."""
        route = respx.get(f"{BASE_URL}/deploy").mock(
            return_value=httpx.Response(
                200,
                json={"deployments": [{"resource_uuid": APP, "deployment_uuid": "dep1"}]},
            )
        )

        result = await DeploymentController(client).trigger(APP, DeployOptions(pr=42))

        params = route.calls.last.request.url.params
        assert params["pr"] == "42"
        assert params["force"] == "false"
        assert "tag" not in params
        assert result.deployment_uuids == ["dep1"]

    @respx.mock
    async def test_trigger_multiple_joins(self, client):
        """Test that several UUIDs go out in one comma-joined call."""
        route = respx.get(f"{BASE_URL}/deploy").mock(
            return_value=httpx.Response(
                200,
                json={
                    "deployments": [
                        {"resource_uuid": APP, "deployment_uuid": "dep1"},
                        {"resource_uuid": APP2, "deployment_uuid": "dep2"},
                    ]
                },
            )
        )

        result = await DeploymentController(client).trigger_multiple(
            [APP, APP2], DeployOptions(force=True)
        )

        assert route.call_count == 1
        params = route.calls.last.request.url.params
        assert params["uuid"] == f"{APP},{APP2}"
        assert params["force"] == "true"
        assert result.deployment_uuids == ["dep1", "dep2"]

    async def test_trigger_multiple_empty(self, client):
        """Test that an empty UUID list is rejected."""
        with pytest.raises(InvalidArgumentError, match="no UUIDs"):
            await DeploymentController(client).trigger_multiple([])

    @respx.mock
    async def test_trigger_multiple_validates_each(self, client):
        """Test that one bad UUID fails the whole call locally."""
        with pytest.raises(InvalidArgumentError):
            await DeploymentController(client).trigger_multiple([APP, "bad"])

    @respx.mock
    async def test_deploy_service_starts(self, client):
        """Test that deploying a service starts it."""
        respx.get(f"{BASE_URL}/services/{APP}/start").mock(
            return_value=httpx.Response(200, json={"message": "Service starting request queued."})
        )

        message = await DeploymentController(client).deploy_service(APP)

        assert message == "Service starting request queued."

    @respx.mock
    async def test_policy_retries(self, client):
        """Test that calls retry under the configured policy."""
        route = respx.get(f"{BASE_URL}/deployments/dep1").mock(
            side_effect=[httpx.Response(503, json={"message": "busy"}), snapshot("queued")]
        )
        controller = DeploymentController(client, policy=TimeoutConfig(retry_delay=0.1))

        status = await controller.get("dep1")

        assert status.status == "queued"
        assert route.call_count == 2


@pytest.mark.unit
class TestWatch:
    """Tests for the watch loop."""

    @respx.mock
    async def test_polls_until_finished(self, client):
        """Test two waits of the poll interval before the finished snapshot."""
        respx.get(f"{BASE_URL}/deployments/dep1").mock(
            side_effect=[snapshot("running"), snapshot("building"), snapshot("finished")]
        )
        sleep = RecordingSleep()
        seen: list[tuple[str, WatchState]] = []

        final = await DeploymentController(client, sleep=sleep).watch(
            "dep1", on_status=lambda s, state: seen.append((s.status, state))
        )

        assert final.status == "finished"
        assert sleep.delays == [POLL_INTERVAL, POLL_INTERVAL]
        assert POLL_INTERVAL == 5.0
        assert seen == [
            ("running", WatchState.IN_PROGRESS),
            ("building", WatchState.IN_PROGRESS),
            ("finished", WatchState.TERMINAL_SUCCESS),
        ]

    @respx.mock
    async def test_failure_carries_log_tail(self, client):
        """Test that a failed deployment raises with the last log lines."""
        logs = "\n".join(f"line {n}" for n in range(1, 31))
        respx.get(f"{BASE_URL}/deployments/dep1").mock(
            side_effect=[snapshot("queued"), snapshot("failed", logs)]
        )
        sleep = RecordingSleep()

        with pytest.raises(DeploymentFailedError) as exc_info:
            await DeploymentController(client, sleep=sleep).watch("dep1")

        error = exc_info.value
        assert error.status == "failed"
        assert error.deployment_uuid == "dep1"
        assert error.logs.splitlines() == [f"line {n}" for n in range(11, 31)]
        assert sleep.delays == [POLL_INTERVAL]

    @respx.mock
    async def test_failure_without_logs(self, client):
        """Test that a failure without logs carries None."""
        respx.get(f"{BASE_URL}/deployments/dep1").mock(return_value=snapshot("cancelled"))

        with pytest.raises(DeploymentFailedError) as exc_info:
            await DeploymentController(client, sleep=RecordingSleep()).watch("dep1")

        assert exc_info.value.logs is None

    @respx.mock
    async def test_missing_status(self, client):
        """Test that a snapshot without status stops the loop with an error."""
        respx.get(f"{BASE_URL}/deployments/dep1").mock(return_value=snapshot(None))

        with pytest.raises(EmptyResponseError, match="status is unknown"):
            await DeploymentController(client, sleep=RecordingSleep()).watch("dep1")

    @respx.mock
    async def test_custom_interval(self, client):
        """Test that the poll interval is configurable."""
        respx.get(f"{BASE_URL}/deployments/dep1").mock(
            side_effect=[snapshot("queued"), snapshot("success")]
        )
        sleep = RecordingSleep()

        await DeploymentController(client, poll_interval=1.5, sleep=sleep).watch("dep1")

        assert sleep.delays == [1.5]

    @respx.mock
    async def test_cancel_ends_watch(self, client):
        """Test that cancelling the watch stops polling during the wait."""
        route = respx.get(f"{BASE_URL}/deployments/dep1").mock(return_value=snapshot("running"))
        sleep = BlockingSleep()

        task = asyncio.create_task(DeploymentController(client, sleep=sleep).watch("dep1"))
        await sleep.entered.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert route.call_count == 1
