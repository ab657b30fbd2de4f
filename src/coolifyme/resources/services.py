# ABOUTME: Services facade over the Platform REST API
# ABOUTME: CRUD, start/stop/restart and the shared env-var operations

"""
Services (one-click stacks).

The Platform has no separate deploy endpoint for services: starting a service
deploys it. ``DeploymentController.deploy_service`` relies on ``start``.
"""

from __future__ import annotations

from typing import Any

from coolifyme.resources.base import (
    EnvVarsMixin,
    require_field,
    require_list,
    require_mapping,
    validate_uuid,
)


class ServicesClient(EnvVarsMixin):
    collection = "services"
    noun = "service"

    async def list(self) -> list[dict[str, Any]]:
        action = "list services"
        return require_list(await self._request("GET", "/services", action=action), action)

    async def get(self, service_uuid: str) -> dict[str, Any]:
        validate_uuid(service_uuid)
        action = "get service"
        return require_mapping(
            await self._request("GET", f"/services/{service_uuid}", action=action), action
        )

    async def create(self, body: dict[str, Any]) -> str:
        action = "create service"
        data = await self._request(
            "POST", "/services", action=action, expected=201, json_data=body
        )
        return require_field(data, "uuid", action)

    async def update(self, service_uuid: str, body: dict[str, Any]) -> str:
        validate_uuid(service_uuid)
        action = "update service"
        data = await self._request(
            "PATCH", f"/services/{service_uuid}", action=action, json_data=body
        )
        return require_field(data, "uuid", action)

    async def delete(
        self,
        service_uuid: str,
        delete_configurations: bool | None = None,
        delete_volumes: bool | None = None,
        docker_cleanup: bool | None = None,
        delete_connected_networks: bool | None = None,
    ) -> None:
        validate_uuid(service_uuid)
        params = {
            "delete_configurations": delete_configurations,
            "delete_volumes": delete_volumes,
            "docker_cleanup": docker_cleanup,
            "delete_connected_networks": delete_connected_networks,
        }
        await self._request(
            "DELETE",
            f"/services/{service_uuid}",
            action="delete service",
            params={k: v for k, v in params.items() if v is not None} or None,
        )

    async def _action(self, service_uuid: str, verb: str) -> str:
        validate_uuid(service_uuid)
        data = await self._request(
            "GET", f"/services/{service_uuid}/{verb}", action=f"{verb} service"
        )
        return data.get("message", "") if isinstance(data, dict) else ""

    async def start(self, service_uuid: str) -> str:
        """Start (and thereby deploy) a service; returns the Platform message."""
        return await self._action(service_uuid, "start")

    async def stop(self, service_uuid: str) -> str:
        return await self._action(service_uuid, "stop")

    async def restart(self, service_uuid: str) -> str:
        return await self._action(service_uuid, "restart")
