# ABOUTME: Teams facade over the Platform REST API
# ABOUTME: Read-only access to teams, the current team and their members

from __future__ import annotations

from typing import Any

from coolifyme.resources.base import ResourceClient, require_list, require_mapping


class TeamsClient(ResourceClient):
    """Teams are addressed by integer ID rather than UUID."""

    async def list(self) -> list[dict[str, Any]]:
        action = "list teams"
        return require_list(await self._request("GET", "/teams", action=action), action)

    async def get(self, team_id: int) -> dict[str, Any]:
        action = "get team"
        return require_mapping(
            await self._request("GET", f"/teams/{int(team_id)}", action=action), action
        )

    async def members(self, team_id: int) -> list[dict[str, Any]]:
        action = "get team members"
        return require_list(
            await self._request("GET", f"/teams/{int(team_id)}/members", action=action), action
        )

    async def current(self) -> dict[str, Any]:
        action = "get current team"
        return require_mapping(await self._request("GET", "/teams/current", action=action), action)

    async def current_members(self) -> list[dict[str, Any]]:
        action = "get current team members"
        return require_list(
            await self._request("GET", "/teams/current/members", action=action), action
        )
