# ABOUTME: System facade over the Platform REST API
# ABOUTME: Version, healthcheck and enabling or disabling API access

from __future__ import annotations

from coolifyme.resources.base import ResourceClient, require_field, require_text


class SystemClient(ResourceClient):
    async def version(self) -> str:
        """Platform version string, e.g. "4.0.0-beta.400"."""
        action = "get version"
        text = require_text(await self._request("GET", "/version", action=action, raw=True), action)
        return text.strip().strip('"')

    async def healthcheck(self) -> str:
        """Health endpoint body, verbatim ("OK" on a healthy instance)."""
        action = "perform healthcheck"
        return require_text(await self._request("GET", "/health", action=action, raw=True), action)

    async def enable_api(self) -> str:
        action = "enable API"
        return require_field(await self._request("GET", "/enable", action=action), "message", action)

    async def disable_api(self) -> str:
        action = "disable API"
        return require_field(
            await self._request("GET", "/disable", action=action), "message", action
        )
