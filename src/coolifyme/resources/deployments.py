# ABOUTME: Deployments facade over the Platform REST API
# ABOUTME: Raw deploy trigger, deployment lookup and deployment listings

"""
Deployments.

This facade is a thin mapping of the endpoints. Option checking (branch vs
pull request), multi-target joins and the watch loop live in
``coolifyme.tools.deploy.DeploymentController``.

    GET /deploy?uuid=<a,b,c>&force=<bool>&tag=<branch>&pr=<id>
    GET /deployments
    GET /deployments/{deployment_uuid}
    GET /deployments/applications/{app_uuid}?skip=&take=
"""

from __future__ import annotations

from typing import Any

from coolifyme.resources.base import (
    ResourceClient,
    require_field,
    require_list,
    require_mapping,
    validate_uuid,
)
from coolifyme.resources.models import DeploymentReference, DeploymentStatus, DeployResult


class DeploymentsClient(ResourceClient):
    async def trigger(
        self,
        uuids: str,
        force: bool = False,
        tag: str | None = None,
        pr: int | None = None,
        action: str = "deploy application",
    ) -> DeployResult:
        """
        Call the deploy endpoint.

        Args:
            uuids: One UUID or a comma-separated list.
            force: Rebuild without cache.
            tag: Branch or tag to deploy.
            pr: Pull request ID to deploy.
        """
        params: dict[str, Any] = {"uuid": uuids, "force": force}
        if tag:
            params["tag"] = tag
        if pr is not None:
            params["pr"] = pr

        data = await self._request("GET", "/deploy", action=action, params=params)
        items = require_field(data, "deployments", action)
        return DeployResult(
            deployments=[DeploymentReference.from_api_response(item) for item in items]
        )

    async def get(self, deployment_uuid: str) -> DeploymentStatus:
        """
        Snapshot of one deployment.

        Deployment UUIDs are opaque Platform identifiers and are not parsed.
        """
        action = "get deployment"
        data = await self._request("GET", f"/deployments/{deployment_uuid}", action=action)
        return DeploymentStatus.from_api_response(require_mapping(data, action))

    async def list_for_app(
        self,
        app_uuid: str,
        skip: int | None = None,
        take: int | None = None,
    ) -> list[dict[str, Any]]:
        """Deployment history of one application; paging values pass through only when positive."""
        validate_uuid(app_uuid)
        params: dict[str, int] = {}
        if skip and skip > 0:
            params["skip"] = skip
        if take and take > 0:
            params["take"] = take
        action = "list deployments"
        data = await self._request(
            "GET",
            f"/deployments/applications/{app_uuid}",
            action=action,
            params=params or None,
        )
        return require_list(data, action)

    async def list_all(self) -> list[DeploymentStatus]:
        """Currently running deployments across the tenant."""
        action = "list deployments"
        data = await self._request("GET", "/deployments", action=action)
        return [DeploymentStatus.from_api_response(item) for item in require_list(data, action)]
