# ABOUTME: Applications facade over the Platform REST API
# ABOUTME: CRUD, per-source create endpoints, lifecycle actions, logs and env vars

"""
Applications.

Platform endpoints used:

    GET    /applications
    POST   /applications/{public,private-github-app,private-deploy-key,
                          dockerfile,dockerimage,dockercompose}
    GET    /applications/{uuid}
    PATCH  /applications/{uuid}
    DELETE /applications/{uuid}
    GET    /applications/{uuid}/start|stop|restart|logs
    *      /applications/{uuid}/envs[/bulk|/{env_uuid}]
"""

from __future__ import annotations

from typing import Any

from coolifyme.errors import InvalidArgumentError
from coolifyme.resources.base import (
    EnvVarsMixin,
    require_field,
    require_list,
    require_mapping,
    validate_uuid,
)
from coolifyme.resources.models import ActionResult

# Source kinds accepted by the create endpoints
CREATE_KINDS = (
    "public",
    "private-github-app",
    "private-deploy-key",
    "dockerfile",
    "dockerimage",
    "dockercompose",
)


class ApplicationsClient(EnvVarsMixin):
    collection = "applications"
    noun = "application"

    async def list(self) -> list[dict[str, Any]]:
        action = "list applications"
        return require_list(await self._request("GET", "/applications", action=action), action)

    async def get(self, app_uuid: str) -> dict[str, Any]:
        validate_uuid(app_uuid)
        action = "get application"
        data = await self._request("GET", f"/applications/{app_uuid}", action=action)
        return require_mapping(data, action)

    async def create(self, kind: str, body: dict[str, Any]) -> str:
        """Create an application from one of CREATE_KINDS; returns the new UUID."""
        if kind not in CREATE_KINDS:
            raise InvalidArgumentError(f"unknown application source: {kind}")
        action = "create application"
        data = await self._request(
            "POST", f"/applications/{kind}", action=action, expected=201, json_data=body
        )
        return require_field(data, "uuid", action)

    async def create_public(self, body: dict[str, Any]) -> str:
        """Create from a public git repository; returns the new UUID."""
        return await self.create("public", body)

    async def create_private_github_app(self, body: dict[str, Any]) -> str:
        return await self.create("private-github-app", body)

    async def create_private_deploy_key(self, body: dict[str, Any]) -> str:
        return await self.create("private-deploy-key", body)

    async def create_dockerfile(self, body: dict[str, Any]) -> str:
        return await self.create("dockerfile", body)

    async def create_dockerimage(self, body: dict[str, Any]) -> str:
        return await self.create("dockerimage", body)

    async def create_dockercompose(self, body: dict[str, Any]) -> str:
        return await self.create("dockercompose", body)

    async def update(self, app_uuid: str, body: dict[str, Any]) -> str:
        """Patch an application; returns its UUID as echoed by the Platform."""
        validate_uuid(app_uuid)
        action = "update application"
        data = await self._request(
            "PATCH", f"/applications/{app_uuid}", action=action, json_data=body
        )
        return require_field(data, "uuid", action)

    async def delete(
        self,
        app_uuid: str,
        delete_configurations: bool | None = None,
        delete_volumes: bool | None = None,
        docker_cleanup: bool | None = None,
        delete_connected_networks: bool | None = None,
    ) -> None:
        """
        Delete an application.

        The cleanup switches are passed through as query parameters when set;
        the Platform's defaults apply otherwise.
        """
        validate_uuid(app_uuid)
        params = {
            "delete_configurations": delete_configurations,
            "delete_volumes": delete_volumes,
            "docker_cleanup": docker_cleanup,
            "delete_connected_networks": delete_connected_networks,
        }
        await self._request(
            "DELETE",
            f"/applications/{app_uuid}",
            action="delete application",
            params={k: v for k, v in params.items() if v is not None} or None,
        )

    async def start(
        self,
        app_uuid: str,
        force: bool = False,
        instant_deploy: bool = False,
    ) -> ActionResult:
        """
        Start (deploy) an application.

        Returns:
            The Platform message and the UUID of the queued deployment.
        """
        validate_uuid(app_uuid)
        params: dict[str, Any] = {}
        if force:
            params["force"] = True
        if instant_deploy:
            params["instant_deploy"] = True
        action = "start application"
        data = await self._request(
            "GET", f"/applications/{app_uuid}/start", action=action, params=params or None
        )
        return ActionResult.from_api_response(require_mapping(data, action))

    async def stop(self, app_uuid: str) -> str:
        validate_uuid(app_uuid)
        data = await self._request(
            "GET", f"/applications/{app_uuid}/stop", action="stop application"
        )
        return data.get("message", "") if isinstance(data, dict) else ""

    async def restart(self, app_uuid: str) -> ActionResult:
        validate_uuid(app_uuid)
        action = "restart application"
        data = await self._request("GET", f"/applications/{app_uuid}/restart", action=action)
        return ActionResult.from_api_response(require_mapping(data, action))

    async def logs(self, app_uuid: str, lines: int | None = None) -> str:
        """Container logs; ``lines`` limits the tail length when positive."""
        validate_uuid(app_uuid)
        action = "get application logs"
        data = await self._request(
            "GET",
            f"/applications/{app_uuid}/logs",
            action=action,
            params={"lines": lines} if lines and lines > 0 else None,
        )
        return require_field(data, "logs", action)
