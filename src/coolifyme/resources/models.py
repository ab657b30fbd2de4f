# ABOUTME: Dataclasses for the Platform payloads the core logic reasons about
# ABOUTME: Deployment references and statuses, environment variables, action results

"""
Typed views of Platform responses.

Most resources (applications, servers, projects, ...) are handed back as the
plain dicts the Platform returned; the CLI only prints them. The records here
are the ones other code makes decisions on, so they get real fields.

Every class has a ``from_api_response`` factory that tolerates missing
optional fields. The Platform omits keys instead of sending null in several
places.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Flags the Platform stores per environment variable
ENV_FLAGS = ("is_build_time", "is_literal", "is_multiline", "is_preview", "is_shown_once")


@dataclass
class DeploymentReference:
    """One entry returned by a deploy trigger."""

    resource_uuid: str
    deployment_uuid: str
    message: str = ""

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> DeploymentReference:
        return cls(
            resource_uuid=data.get("resource_uuid") or "",
            deployment_uuid=data.get("deployment_uuid") or "",
            message=data.get("message") or "",
        )


@dataclass
class DeploymentStatus:
    """
    Snapshot of a deployment queue entry.

    ``status`` is None when the Platform did not report one; the watch loop
    treats that as an error rather than guessing.
    """

    id: int | None
    deployment_uuid: str
    application_id: str | None
    status: str | None
    created_at: str | None = None
    updated_at: str | None = None
    commit: str | None = None
    commit_message: str | None = None
    server_name: str | None = None
    logs: str | None = None
    force_rebuild: bool | None = None
    is_webhook: bool | None = None
    is_api: bool | None = None
    pull_request_id: int | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> DeploymentStatus:
        application_id = data.get("application_id")
        return cls(
            id=data.get("id"),
            deployment_uuid=data.get("deployment_uuid") or "",
            application_id=str(application_id) if application_id is not None else None,
            status=data.get("status"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
            commit=data.get("commit"),
            commit_message=data.get("commit_message"),
            server_name=data.get("server_name"),
            logs=data.get("logs"),
            force_rebuild=data.get("force_rebuild"),
            is_webhook=data.get("is_webhook"),
            is_api=data.get("is_api"),
            pull_request_id=data.get("pull_request_id"),
        )

    def log_tail(self, lines: int = 20) -> str | None:
        """Last ``lines`` lines of the logs, or None when there are none."""
        if not self.logs:
            return None
        return "\n".join(self.logs.splitlines()[-lines:])


@dataclass
class EnvVar:
    """
    An environment variable on an application or service.

    Flags are tri-state: None means "not specified" and is left out of
    request payloads so the Platform keeps its own default.
    """

    key: str
    value: str
    uuid: str | None = None
    is_build_time: bool | None = None
    is_literal: bool | None = None
    is_multiline: bool | None = None
    is_preview: bool | None = None
    is_shown_once: bool | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> EnvVar:
        value = data.get("value")
        return cls(
            key=data.get("key") or "",
            value="" if value is None else str(value),
            uuid=data.get("uuid"),
            **{flag: data.get(flag) for flag in ENV_FLAGS},
        )

    def to_payload(self) -> dict[str, Any]:
        """Body for create/update calls; unset flags are omitted."""
        payload: dict[str, Any] = {"key": self.key, "value": self.value}
        for flag in ENV_FLAGS:
            flag_value = getattr(self, flag)
            if flag_value is not None:
                payload[flag] = flag_value
        return payload


@dataclass
class ActionResult:
    """Outcome of start/restart style actions."""

    message: str = ""
    deployment_uuid: str | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> ActionResult:
        return cls(
            message=data.get("message") or "",
            deployment_uuid=data.get("deployment_uuid"),
        )


@dataclass
class DeployResult:
    """All references returned by one deploy trigger, in Platform order."""

    deployments: list[DeploymentReference] = field(default_factory=list)

    @property
    def deployment_uuids(self) -> list[str]:
        return [d.deployment_uuid for d in self.deployments if d.deployment_uuid]
