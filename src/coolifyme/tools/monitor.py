# ABOUTME: Status overview and connectivity check across Platform resources
# ABOUTME: Counts applications, services and servers by status

"""
Monitoring.

    overview = await status_overview(client)
    overview.kinds["applications"].by_status   # {"running": 3, "stopped": 1}

Statuses are grouped by their first segment ("running:healthy" counts as
"running"); resources without one count as "unknown". As with search, a kind
whose listing fails is reported in ``errors`` instead of failing the whole
overview.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from coolifyme.errors import CoolifyError
from coolifyme.tools.search import resource_status
from coolifyme.utils.retry import TimeoutConfig, with_timeout

if TYPE_CHECKING:
    from coolifyme.utils.client import PlatformClient

logger = structlog.get_logger(__name__)

MONITORED_KINDS = ("applications", "services", "servers")


@dataclass
class KindStatus:
    total: int = 0
    by_status: dict[str, int] = field(default_factory=dict)

    @classmethod
    def count(cls, kind: str, resources: list[dict[str, Any]]) -> KindStatus:
        counts = Counter(resource_status(kind, r).split(":", 1)[0] for r in resources)
        return cls(total=len(resources), by_status=dict(sorted(counts.items())))


@dataclass
class StatusOverview:
    kinds: dict[str, KindStatus] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            kind: {"total": status.total, "by_status": status.by_status}
            for kind, status in self.kinds.items()
        }
        if self.errors:
            data["errors"] = dict(self.errors)
        return data


async def status_overview(
    client: PlatformClient,
    policy: TimeoutConfig | None = None,
) -> StatusOverview:
    """List applications, services and servers concurrently and count them by status."""

    async def fetch(kind: str) -> list[dict[str, Any]]:
        facade = getattr(client, kind)
        if policy is None:
            return await facade.list()
        return await with_timeout(policy, facade.list)

    listings = await asyncio.gather(
        *(fetch(kind) for kind in MONITORED_KINDS), return_exceptions=True
    )

    overview = StatusOverview()
    for kind, listing in zip(MONITORED_KINDS, listings, strict=True):
        if isinstance(listing, CoolifyError):
            logger.warning("Status listing failed", kind=kind, error=str(listing))
            overview.errors[kind] = str(listing)
        elif isinstance(listing, BaseException):
            raise listing
        else:
            overview.kinds[kind] = KindStatus.count(kind, listing)
    return overview


async def health_check(client: PlatformClient, verbose: bool = False) -> dict[str, Any]:
    """
    Confirm the API answers an authenticated call.

    Listing teams needs a valid token, so a failure here means either the
    Platform is unreachable or the token is rejected; the error propagates.
    With ``verbose`` the overview of the monitored kinds is included.
    """
    teams = await client.teams.list()
    report: dict[str, Any] = {"api": "ok", "teams": len(teams)}
    if verbose:
        report.update((await status_overview(client)).to_dict())
    return report
