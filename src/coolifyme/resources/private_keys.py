# ABOUTME: Private keys facade over the Platform REST API
# ABOUTME: SSH keys the Platform uses to reach servers and private repositories

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


class PrivateKeysClient(ResourceClient):
    async def list(self) -> list[dict[str, Any]]:
        action = "list private keys"
        return require_list(await self._request("GET", "/security/keys", action=action), action)

    async def get(self, key_uuid: str) -> dict[str, Any]:
        validate_uuid(key_uuid)
        action = "get private key"
        return require_mapping(
            await self._request("GET", f"/security/keys/{key_uuid}", action=action), action
        )

    async def create(
        self,
        name: str,
        private_key: str,
        description: str | None = None,
    ) -> str:
        if not name or not private_key:
            raise InvalidArgumentError("name and private key are required")
        body: dict[str, Any] = {"name": name, "private_key": private_key}
        if description:
            body["description"] = description
        action = "create private key"
        data = await self._request(
            "POST", "/security/keys", action=action, expected=201, json_data=body
        )
        return require_field(data, "uuid", action)

    async def update(self, key_uuid: str, body: dict[str, Any]) -> str:
        """The update endpoint takes the key UUID in the body, not the path."""
        validate_uuid(key_uuid)
        action = "update private key"
        data = await self._request(
            "PATCH",
            "/security/keys",
            action=action,
            expected=201,
            json_data={**body, "uuid": key_uuid},
        )
        return require_field(data, "uuid", action)

    async def delete(self, key_uuid: str) -> None:
        validate_uuid(key_uuid)
        await self._request("DELETE", f"/security/keys/{key_uuid}", action="delete private key")
