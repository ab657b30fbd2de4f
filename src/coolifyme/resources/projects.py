# ABOUTME: Projects facade over the Platform REST API
# ABOUTME: CRUD plus lookup of a project environment by name or UUID

from __future__ import annotations

from typing import Any

from coolifyme.errors import InvalidArgumentError
from coolifyme.resources.base import (
    ResourceClient,
    require_field,
    require_list,
    require_mapping,
    validate_uuid,
)


class ProjectsClient(ResourceClient):
    async def list(self) -> list[dict[str, Any]]:
        action = "list projects"
        return require_list(await self._request("GET", "/projects", action=action), action)

    async def get(self, project_uuid: str) -> dict[str, Any]:
        validate_uuid(project_uuid)
        action = "get project"
        return require_mapping(
            await self._request("GET", f"/projects/{project_uuid}", action=action), action
        )

    async def create(self, name: str, description: str | None = None) -> str:
        if not name:
            raise InvalidArgumentError("project name is required")
        body: dict[str, Any] = {"name": name}
        if description:
            body["description"] = description
        action = "create project"
        data = await self._request("POST", "/projects", action=action, expected=201, json_data=body)
        return require_field(data, "uuid", action)

    async def update(self, project_uuid: str, body: dict[str, Any]) -> dict[str, Any]:
        validate_uuid(project_uuid)
        data = await self._request(
            "PATCH",
            f"/projects/{project_uuid}",
            action="update project",
            expected=201,
            json_data=body,
        )
        return data if isinstance(data, dict) else {}

    async def delete(self, project_uuid: str) -> None:
        validate_uuid(project_uuid)
        await self._request("DELETE", f"/projects/{project_uuid}", action="delete project")

    async def environment(self, project_uuid: str, environment: str) -> dict[str, Any]:
        """
        Fetch one environment of a project.

        ``environment`` may be a name ("production") or a UUID and is not
        validated locally.
        """
        validate_uuid(project_uuid)
        if not environment:
            raise InvalidArgumentError("environment name or UUID is required")
        action = "get project environment"
        return require_mapping(
            await self._request("GET", f"/projects/{project_uuid}/{environment}", action=action),
            action,
        )
