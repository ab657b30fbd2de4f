# ABOUTME: Servers facade over the Platform REST API
# ABOUTME: CRUD, validation and the resources/domains accessors

from __future__ import annotations

from typing import Any

from coolifyme.resources.base import (
    ResourceClient,
    require_field,
    require_list,
    require_mapping,
    require_text,
    validate_uuid,
)


class ServersClient(ResourceClient):
    """Servers registered with the Platform."""

    async def list(self) -> list[dict[str, Any]]:
        action = "list servers"
        return require_list(await self._request("GET", "/servers", action=action), action)

    async def get(self, server_uuid: str) -> dict[str, Any]:
        validate_uuid(server_uuid)
        action = "get server"
        return require_mapping(
            await self._request("GET", f"/servers/{server_uuid}", action=action), action
        )

    async def create(self, body: dict[str, Any]) -> str:
        action = "create server"
        data = await self._request("POST", "/servers", action=action, expected=201, json_data=body)
        return require_field(data, "uuid", action)

    async def update(self, server_uuid: str, body: dict[str, Any]) -> dict[str, Any]:
        validate_uuid(server_uuid)
        data = await self._request(
            "PATCH",
            f"/servers/{server_uuid}",
            action="update server",
            expected=201,
            json_data=body,
        )
        return data if isinstance(data, dict) else {}

    async def delete(self, server_uuid: str) -> None:
        validate_uuid(server_uuid)
        await self._request("DELETE", f"/servers/{server_uuid}", action="delete server")

    async def resources(self, server_uuid: str) -> str:
        """Resources running on the server, verbatim."""
        validate_uuid(server_uuid)
        action = "get server resources"
        return require_text(
            await self._request(
                "GET", f"/servers/{server_uuid}/resources", action=action, raw=True
            ),
            action,
        )

    async def domains(self, server_uuid: str) -> str:
        """Domains routed by the server, verbatim."""
        validate_uuid(server_uuid)
        action = "get server domains"
        return require_text(
            await self._request("GET", f"/servers/{server_uuid}/domains", action=action, raw=True),
            action,
        )

    async def validate(self, server_uuid: str) -> str:
        """Ask the Platform to (re)validate connectivity; returns its message."""
        validate_uuid(server_uuid)
        action = "validate server"
        data = await self._request(
            "GET", f"/servers/{server_uuid}/validate", action=action, expected=201
        )
        return require_field(data, "message", action)
