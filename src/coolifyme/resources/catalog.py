# ABOUTME: Facade for the tenant-wide resource listing endpoint
# ABOUTME: Returns every application, service and database as verbatim text

from __future__ import annotations

from coolifyme.resources.base import ResourceClient, require_text


class ResourcesClient(ResourceClient):
    async def list(self) -> str:
        action = "list resources"
        return require_text(await self._request("GET", "/resources", action=action, raw=True), action)
