# ABOUTME: Deployment controller: triggers, lookups and the watch loop
# ABOUTME: Classifies deployment statuses into in-progress and terminal states

"""
Deployment orchestration.

=============================================================================
TRIGGERS
=============================================================================

    trigger(uuid, options)            one application
    trigger_multiple([a, b], options) one call, UUIDs comma-joined
    deploy_service(uuid)              services deploy by being started

``DeployOptions.branch`` and ``DeployOptions.pr`` are mutually exclusive;
supplying both fails with InvalidArgumentError before any HTTP call.

=============================================================================
WATCH STATE MACHINE
=============================================================================

    UNKNOWN ──snapshot──> IN_PROGRESS ──snapshot──> IN_PROGRESS ...
                               │
                               ├──> TERMINAL_SUCCESS   (finished, success, completed)
                               └──> TERMINAL_FAILURE   (failed, error, cancelled)

Terminal states are absorbing: the loop stops at the first one. Any other
status string counts as in progress. ``classify`` is a pure function so the
rules can be tested without a Platform.
"""

from __future__ import annotations

import asyncio
import enum
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

import structlog

from coolifyme.errors import DeploymentFailedError, EmptyResponseError, InvalidArgumentError
from coolifyme.resources.base import validate_uuid
from coolifyme.utils.retry import TimeoutConfig, with_timeout

if TYPE_CHECKING:
    from coolifyme.resources.models import DeploymentStatus, DeployResult
    from coolifyme.utils.client import PlatformClient

logger = structlog.get_logger(__name__)

T = TypeVar("T")

POLL_INTERVAL = 5.0
LOG_TAIL_LINES = 20

SUCCESS_STATUSES = frozenset(["finished", "success", "completed"])
FAILURE_STATUSES = frozenset(["failed", "error", "cancelled"])


class WatchState(enum.Enum):
    UNKNOWN = "unknown"
    IN_PROGRESS = "in_progress"
    TERMINAL_SUCCESS = "terminal_success"
    TERMINAL_FAILURE = "terminal_failure"

    @property
    def is_terminal(self) -> bool:
        return self in (WatchState.TERMINAL_SUCCESS, WatchState.TERMINAL_FAILURE)


def classify(status: str | None) -> WatchState:
    """Map a Platform status string to a WatchState."""
    if status is None:
        return WatchState.UNKNOWN
    normalized = status.strip().lower()
    if normalized in SUCCESS_STATUSES:
        return WatchState.TERMINAL_SUCCESS
    if normalized in FAILURE_STATUSES:
        return WatchState.TERMINAL_FAILURE
    return WatchState.IN_PROGRESS


@dataclass
class DeployOptions:
    force: bool = False
    branch: str | None = None
    pr: int | None = None

    def validate(self) -> None:
        """
        Raises:
            InvalidArgumentError: If both branch and pr are set.
        """
        if self.branch and self.pr is not None:
            raise InvalidArgumentError(
                "cannot specify both branch and PR - they are mutually exclusive"
            )


StatusCallback = Callable[["DeploymentStatus", WatchState], Any]


class DeploymentController:
    """
    Deploy operations on top of a PlatformClient.

    Args:
        client: An entered PlatformClient.
        poll_interval: Seconds between watch polls.
        sleep: Awaitable sleep; tests substitute a recorder.
        policy: When given, every Platform call (each watch poll included)
                runs under this timeout and retry policy.
    """

    def __init__(
        self,
        client: PlatformClient,
        poll_interval: float = POLL_INTERVAL,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        policy: TimeoutConfig | None = None,
    ) -> None:
        self._client = client
        self._poll_interval = poll_interval
        self._sleep = sleep
        self._policy = policy

    async def _call(self, operation: Callable[[], Awaitable[T]]) -> T:
        if self._policy is None:
            return await operation()
        return await with_timeout(self._policy, operation)

    async def trigger(self, app_uuid: str, options: DeployOptions | None = None) -> DeployResult:
        """Deploy one application; returns every reference the Platform reported."""
        options = options or DeployOptions()
        options.validate()
        validate_uuid(app_uuid)
        result = await self._call(
            lambda: self._client.deployments.trigger(
                app_uuid,
                force=options.force,
                tag=options.branch,
                pr=options.pr,
            )
        )
        logger.info(
            "Deployment triggered",
            resource_uuid=app_uuid,
            deployments=result.deployment_uuids,
        )
        return result

    async def trigger_multiple(
        self,
        app_uuids: list[str],
        options: DeployOptions | None = None,
    ) -> DeployResult:
        """Deploy several applications with one call (UUIDs comma-joined)."""
        if not app_uuids:
            raise InvalidArgumentError("no UUIDs provided")
        options = options or DeployOptions()
        options.validate()
        for app_uuid in app_uuids:
            validate_uuid(app_uuid)
        result = await self._call(
            lambda: self._client.deployments.trigger(
                ",".join(app_uuids),
                force=options.force,
                tag=options.branch,
                pr=options.pr,
                action="deploy applications",
            )
        )
        logger.info("Deployments triggered", count=len(result.deployments))
        return result

    async def deploy_service(self, service_uuid: str) -> str:
        """Deploy a service by starting it; returns the Platform message."""
        return await self._call(lambda: self._client.services.start(service_uuid))

    async def get(self, deployment_uuid: str) -> DeploymentStatus:
        return await self._call(lambda: self._client.deployments.get(deployment_uuid))

    async def list_for_app(
        self,
        app_uuid: str,
        skip: int | None = None,
        take: int | None = None,
    ) -> list[dict[str, Any]]:
        return await self._call(
            lambda: self._client.deployments.list_for_app(app_uuid, skip=skip, take=take)
        )

    async def list_all(self) -> list[DeploymentStatus]:
        return await self._call(self._client.deployments.list_all)

    async def watch(
        self,
        deployment_uuid: str,
        on_status: StatusCallback | None = None,
    ) -> DeploymentStatus:
        """
        Poll a deployment until it reaches a terminal state.

        Args:
            deployment_uuid: Deployment to follow.
            on_status: Called with every snapshot and its classification.

        Returns:
            The final snapshot when the deployment succeeded.

        Raises:
            DeploymentFailedError: Terminal failure; carries the log tail.
            EmptyResponseError: The Platform reported no status.
        """
        state = WatchState.UNKNOWN
        while True:
            snapshot = await self.get(deployment_uuid)
            if snapshot.status is None:
                raise EmptyResponseError(
                    f"deployment status is unknown for {deployment_uuid}"
                )

            state = classify(snapshot.status)
            logger.info(
                "Deployment status",
                deployment_uuid=deployment_uuid,
                status=snapshot.status,
                state=state.value,
            )
            if on_status is not None:
                on_status(snapshot, state)

            if state is WatchState.TERMINAL_SUCCESS:
                return snapshot
            if state is WatchState.TERMINAL_FAILURE:
                raise DeploymentFailedError(
                    deployment_uuid,
                    snapshot.status,
                    logs=snapshot.log_tail(LOG_TAIL_LINES),
                )

            await self._sleep(self._poll_interval)
