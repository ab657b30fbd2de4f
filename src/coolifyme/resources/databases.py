# ABOUTME: Databases facade over the Platform REST API
# ABOUTME: List/get as verbatim text, lifecycle actions and per-engine create endpoints

"""
Databases.

List and get are returned as the verbatim response text. The schema for
those payloads varies by engine, so nothing here tries to parse them.
"""

from __future__ import annotations

from typing import Any

from coolifyme.errors import InvalidArgumentError
from coolifyme.resources.base import ResourceClient, require_text, validate_uuid

ENGINES = (
    "postgresql",
    "mysql",
    "mariadb",
    "mongodb",
    "redis",
    "keydb",
    "clickhouse",
    "dragonfly",
)


class DatabasesClient(ResourceClient):
    async def list(self) -> str:
        action = "list databases"
        return require_text(
            await self._request("GET", "/databases", action=action, raw=True), action
        )

    async def get(self, db_uuid: str) -> str:
        validate_uuid(db_uuid)
        action = "get database"
        return require_text(
            await self._request("GET", f"/databases/{db_uuid}", action=action, raw=True),
            action,
        )

    async def create(self, engine: str, body: dict[str, Any]) -> dict[str, Any]:
        """
        Create a database of the given engine.

        Args:
            engine: One of ENGINES.
            body: Engine-specific request body.

        Returns:
            The Platform's response object (may be empty).
        """
        engine = engine.lower()
        if engine not in ENGINES:
            raise InvalidArgumentError(
                f"unsupported database engine: {engine} (expected one of {', '.join(ENGINES)})"
            )
        data = await self._request(
            "POST",
            f"/databases/{engine}",
            action=f"create {engine} database",
            expected=201,
            json_data=body,
        )
        return data if isinstance(data, dict) else {}

    async def update(self, db_uuid: str, body: dict[str, Any]) -> None:
        validate_uuid(db_uuid)
        await self._request(
            "PATCH", f"/databases/{db_uuid}", action="update database", json_data=body
        )

    async def delete(
        self,
        db_uuid: str,
        delete_configurations: bool | None = None,
        delete_volumes: bool | None = None,
        docker_cleanup: bool | None = None,
        delete_connected_networks: bool | None = None,
    ) -> None:
        validate_uuid(db_uuid)
        params = {
            "delete_configurations": delete_configurations,
            "delete_volumes": delete_volumes,
            "docker_cleanup": docker_cleanup,
            "delete_connected_networks": delete_connected_networks,
        }
        await self._request(
            "DELETE",
            f"/databases/{db_uuid}",
            action="delete database",
            params={k: v for k, v in params.items() if v is not None} or None,
        )

    async def _action(self, db_uuid: str, verb: str) -> str:
        validate_uuid(db_uuid)
        data = await self._request(
            "GET", f"/databases/{db_uuid}/{verb}", action=f"{verb} database"
        )
        return data.get("message", "") if isinstance(data, dict) else ""

    async def start(self, db_uuid: str) -> str:
        return await self._action(db_uuid, "start")

    async def stop(self, db_uuid: str) -> str:
        return await self._action(db_uuid, "stop")

    async def restart(self, db_uuid: str) -> str:
        return await self._action(db_uuid, "restart")
