# ABOUTME: Shared plumbing for the per-resource facades
# ABOUTME: UUID validation, required-field extraction and the env-var operations mixin

"""
Base class for resource facades.

A facade method has a uniform shape:

    1. validate inputs (bad UUIDs fail before any HTTP call)
    2. call PlatformClient.request() with the expected success status
    3. pull the expected field out of the payload, or raise EmptyResponseError

The request helper already prefixes transport and protocol failures with
"failed to <action>: ", so facades only pass a short action description.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from coolifyme.errors import EmptyResponseError, InvalidArgumentError
from coolifyme.resources.models import EnvVar

if TYPE_CHECKING:
    from coolifyme.utils.client import PlatformClient


def validate_uuid(value: str, label: str = "UUID") -> str:
    """
    Raises:
        InvalidArgumentError: If ``value`` does not parse as a UUID.
    """
    try:
        uuid.UUID(str(value))
    except ValueError:
        raise InvalidArgumentError(f"invalid {label}: {value!r}") from None
    return value


def require_field(data: Any, name: str, action: str) -> Any:
    """
    Return ``data[name]`` or fail.

    Raises:
        EmptyResponseError: If the payload is not a mapping or the field is missing.
    """
    if not isinstance(data, dict) or data.get(name) is None:
        raise EmptyResponseError(f"failed to {action}: empty response body")
    return data[name]


def require_mapping(data: Any, action: str) -> dict[str, Any]:
    """
    Raises:
        EmptyResponseError: If the payload is not a non-empty JSON object.
    """
    if not isinstance(data, dict) or not data:
        raise EmptyResponseError(f"failed to {action}: empty response body")
    return data


def require_list(data: Any, action: str) -> list[Any]:
    """
    Raises:
        EmptyResponseError: If the payload is not a JSON array.
    """
    if not isinstance(data, list):
        raise EmptyResponseError(f"failed to {action}: empty response body")
    return data


def require_text(text: Any, action: str) -> str:
    """
    Raises:
        EmptyResponseError: If the body is empty.
    """
    if not text:
        raise EmptyResponseError(f"failed to {action}: empty response body")
    return str(text)


class ResourceClient:
    """Base for facades; holds the owning PlatformClient."""

    def __init__(self, client: PlatformClient) -> None:
        self._client = client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        action: str,
        expected: int = 200,
        params: dict[str, Any] | None = None,
        json_data: Any = None,
        raw: bool = False,
    ) -> Any:
        return await self._client.request(
            method,
            path,
            action=action,
            expected=expected,
            params=params,
            json_data=json_data,
            raw=raw,
        )


class EnvVarsMixin(ResourceClient):
    """
    Environment variable operations shared by applications and services.

    Subclasses set ``collection`` ("applications" or "services") and
    ``noun`` (used in error messages).
    """

    collection = ""
    noun = ""

    async def list_envs(self, resource_uuid: str) -> list[EnvVar]:
        validate_uuid(resource_uuid)
        action = f"list {self.noun} environment variables"
        data = await self._request(
            "GET", f"/{self.collection}/{resource_uuid}/envs", action=action
        )
        return [EnvVar.from_api_response(item) for item in require_list(data, action)]

    async def create_env(self, resource_uuid: str, env: EnvVar) -> str:
        """Create one variable; returns the new variable's UUID."""
        validate_uuid(resource_uuid)
        action = "create environment variable"
        data = await self._request(
            "POST",
            f"/{self.collection}/{resource_uuid}/envs",
            action=action,
            expected=201,
            json_data=env.to_payload(),
        )
        return require_field(data, "uuid", action)

    async def update_env(self, resource_uuid: str, env: EnvVar) -> str:
        """Update one variable (matched by key); returns the Platform message."""
        validate_uuid(resource_uuid)
        action = "update environment variable"
        data = await self._request(
            "PATCH",
            f"/{self.collection}/{resource_uuid}/envs",
            action=action,
            expected=201,
            json_data=env.to_payload(),
        )
        return require_field(data, "message", action)

    async def update_envs(self, resource_uuid: str, envs: list[EnvVar]) -> str:
        """Bulk upsert in a single call; returns the Platform message."""
        validate_uuid(resource_uuid)
        action = "update environment variables"
        data = await self._request(
            "PATCH",
            f"/{self.collection}/{resource_uuid}/envs/bulk",
            action=action,
            expected=201,
            json_data={"data": [env.to_payload() for env in envs]},
        )
        return require_field(data, "message", action)

    async def delete_env(self, resource_uuid: str, env_uuid: str) -> str:
        validate_uuid(resource_uuid)
        validate_uuid(env_uuid, "env UUID")
        action = "delete environment variable"
        data = await self._request(
            "DELETE",
            f"/{self.collection}/{resource_uuid}/envs/{env_uuid}",
            action=action,
        )
        return require_field(data, "message", action)
