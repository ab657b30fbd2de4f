# ABOUTME: Cross-resource search over applications, services, servers and databases
# ABOUTME: Text, status and tag filters with wildcard support and a result limit

"""
Search.

    results = await search(client, SearchFilter(query="api*", status="running"))
    results.total  # number of hits across every kind

Each kind is listed once and filtered locally; the Platform has no search
endpoint. A kind whose listing fails is recorded in ``results.errors`` and
the others are still returned.

Matching rules:

- ``query`` is matched against the kind's text fields (name, description,
  and per kind the domains, repository or IP). ``*`` matches any run of
  characters; without one it is a substring match.
- ``status`` matches the whole status or its first segment, so "running"
  matches "running:healthy".
- ``tag`` matches a tag name in the resource's ``tags`` list. Resources the
  Platform returns without tags never match a tag filter.
"""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from coolifyme.errors import CoolifyError, InvalidArgumentError
from coolifyme.utils.retry import TimeoutConfig, with_timeout

if TYPE_CHECKING:
    from coolifyme.utils.client import PlatformClient

logger = structlog.get_logger(__name__)

KINDS = ("applications", "services", "servers", "databases")

KIND_ALIASES = {
    "applications": "applications",
    "apps": "applications",
    "services": "services",
    "svc": "services",
    "servers": "servers",
    "srv": "servers",
    "databases": "databases",
    "db": "databases",
}

# Fields the query is matched against, per kind
TEXT_FIELDS = {
    "applications": ("name", "description", "fqdn", "git_repository"),
    "services": ("name", "description"),
    "servers": ("name", "description", "ip"),
    "databases": ("name", "description"),
}


def resolve_kinds(kind: str | None) -> tuple[str, ...]:
    """
    Kinds selected by a ``--type`` value; all of them when it is empty.

    Raises:
        InvalidArgumentError: The value names no known kind.
    """
    if not kind:
        return KINDS
    try:
        return (KIND_ALIASES[kind.lower()],)
    except KeyError:
        choices = ", ".join(sorted(KIND_ALIASES))
        message = f"unknown resource type {kind!r} (use one of: {choices})"
        raise InvalidArgumentError(message) from None


def matches_text(text: str, query: str, case_sensitive: bool = False) -> bool:
    if not query:
        return True
    flags = 0 if case_sensitive else re.IGNORECASE
    if "*" in query:
        pattern = ".*".join(re.escape(part) for part in query.split("*"))
        return re.search(pattern, text, flags) is not None
    if case_sensitive:
        return query in text
    return query.lower() in text.lower()


def resource_status(kind: str, resource: dict[str, Any]) -> str:
    """Status shown for a resource; servers without one are judged by validation."""
    status = resource.get("status")
    if status:
        return str(status)
    if kind == "servers" and resource.get("validation_logs") is not None:
        return "validated"
    return "unknown"


def _tag_names(resource: dict[str, Any]) -> list[str]:
    names = []
    for tag in resource.get("tags") or []:
        if isinstance(tag, dict):
            tag = tag.get("name")
        if tag:
            names.append(str(tag))
    return names


@dataclass
class SearchFilter:
    query: str = ""
    status: str = ""
    tag: str = ""
    case_sensitive: bool = False

    def matches(self, kind: str, resource: dict[str, Any]) -> bool:
        text = " ".join(str(resource[f]) for f in TEXT_FIELDS[kind] if resource.get(f))
        if not matches_text(text, self.query, self.case_sensitive):
            return False
        if self.status:
            status = resource_status(kind, resource)
            if self.status not in (status, status.split(":", 1)[0]):
                return False
        return not self.tag or self.tag in _tag_names(resource)


@dataclass
class SearchHit:
    """One matching resource, reduced to the columns search prints."""

    kind: str
    uuid: str
    name: str
    status: str
    detail: str = ""

    @classmethod
    def from_resource(cls, kind: str, resource: dict[str, Any]) -> SearchHit:
        if kind == "applications":
            detail = resource.get("fqdn") or ""
        elif kind == "servers":
            detail = resource.get("ip") or ""
        else:
            detail = resource.get("description") or ""
        return cls(
            kind=kind,
            uuid=resource.get("uuid") or "",
            name=resource.get("name") or "",
            status=resource_status(kind, resource),
            detail=str(detail),
        )


@dataclass
class SearchResults:
    hits: dict[str, list[SearchHit]] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(len(found) for found in self.hits.values())

    def limit(self, count: int) -> None:
        """Keep the first ``count`` hits, in kind order. Zero means no limit."""
        if count <= 0:
            return
        remaining = count
        for kind in KINDS:
            found = self.hits.get(kind)
            if found is None:
                continue
            self.hits[kind] = found[:remaining]
            remaining -= len(self.hits[kind])

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            kind: [
                {"uuid": h.uuid, "name": h.name, "status": h.status, "detail": h.detail}
                for h in self.hits.get(kind, [])
            ]
            for kind in KINDS
        }
        data["total_count"] = self.total
        if self.errors:
            data["errors"] = dict(self.errors)
        return data


async def _list_kind(client: PlatformClient, kind: str) -> list[dict[str, Any]]:
    if kind == "databases":
        # The databases listing is returned verbatim; only a JSON array is searchable
        parsed = json.loads(await client.databases.list())
        if not isinstance(parsed, list):
            return []
        return [item for item in parsed if isinstance(item, dict)]
    facade = getattr(client, kind)
    return await facade.list()


async def search(
    client: PlatformClient,
    criteria: SearchFilter,
    kinds: tuple[str, ...] = KINDS,
    limit: int = 0,
    policy: TimeoutConfig | None = None,
) -> SearchResults:
    """
    List the selected kinds concurrently and keep the matching resources.

    Args:
        client: Entered PlatformClient.
        criteria: Text, status and tag filters.
        kinds: Resource kinds to search, see ``resolve_kinds``.
        limit: Maximum hits across all kinds (0 = no limit).
        policy: Timeout and retry policy applied to each listing.

    Returns:
        Hits per kind plus the error message of every kind that failed.
    """

    async def fetch(kind: str) -> list[dict[str, Any]]:
        if policy is None:
            return await _list_kind(client, kind)
        return await with_timeout(policy, lambda: _list_kind(client, kind))

    listings = await asyncio.gather(*(fetch(kind) for kind in kinds), return_exceptions=True)

    results = SearchResults()
    for kind, listing in zip(kinds, listings, strict=True):
        if isinstance(listing, CoolifyError | ValueError):
            logger.warning("Search listing failed", kind=kind, error=str(listing))
            results.errors[kind] = str(listing)
            continue
        if isinstance(listing, BaseException):
            raise listing
        results.hits[kind] = [
            SearchHit.from_resource(kind, resource)
            for resource in listing
            if criteria.matches(kind, resource)
        ]

    results.limit(limit)
    logger.info("Search finished", total=results.total, failed=sorted(results.errors))
    return results
