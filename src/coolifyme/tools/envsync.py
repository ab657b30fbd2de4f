# ABOUTME: Environment-variable sync engine between a local .env file and the Platform
# ABOUTME: Export, import, bidirectional sync and cleanup, all with dry-run support

"""
.env synchronisation.

=============================================================================
OPERATIONS
=============================================================================

EXPORT   Platform -> file. Refuses to overwrite unless asked; the file is
         written only after the remote fetch succeeded.

IMPORT   file -> Platform, one bulk update. No flags are sent, so the
         Platform keeps its defaults for build-time, literal, etc.

SYNC     both ways. With F = file, R = remote:

             add_to_remote    keys(F) - keys(R)
             add_to_file      keys(R) - keys(F)
             update_in_remote {k in both : F[k] != R[k]}
             update_in_file   same keys as update_in_remote

         Conflicting keys converge on ONE value, chosen by ``prefer``
         ("file" by default). The remote bulk update happens before the file
         is rewritten, so a rejected update leaves the file untouched.

CLEANUP  keys(F) - keys(R) are removed from the file, optionally after a
         timestamped backup. The Platform is never modified.

Every operation accepts ``dry_run`` and then only reports what it would do.
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from coolifyme.errors import InvalidArgumentError, LocalFileError
from coolifyme.resources.models import EnvVar
from coolifyme.utils.envfile import (
    backup_file,
    clean_path,
    header_lines,
    read_env_file,
    render_env,
    write_file_atomic,
)

if TYPE_CHECKING:
    from coolifyme.resources.base import EnvVarsMixin
    from coolifyme.utils.client import PlatformClient

logger = structlog.get_logger(__name__)


class Target(enum.Enum):
    APPLICATIONS = "applications"
    SERVICES = "services"

    @property
    def label(self) -> str:
        return "Application" if self is Target.APPLICATIONS else "Service"


# =============================================================================
# REPORTS
# =============================================================================


@dataclass
class ExportReport:
    path: Path
    count: int
    written: bool


@dataclass
class ImportReport:
    path: Path
    values: dict[str, str]
    message: str | None = None
    dry_run: bool = False

    @property
    def count(self) -> int:
        return len(self.values)


@dataclass
class SyncPlan:
    """Key sets of a three-way comparison; values are not stored here."""

    add_to_remote: list[str] = field(default_factory=list)
    add_to_file: list[str] = field(default_factory=list)
    update_in_remote: list[str] = field(default_factory=list)
    update_in_file: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.add_to_remote or self.add_to_file or self.update_in_remote)


@dataclass
class SyncReport:
    path: Path
    plan: SyncPlan
    prefer: str
    remote_updated: int = 0
    file_updated: int = 0
    created_file: bool = False
    message: str | None = None
    dry_run: bool = False

    @property
    def changes(self) -> int:
        return self.remote_updated + self.file_updated


@dataclass
class CleanupReport:
    path: Path
    removed: list[str]
    remaining: int
    backup_path: Path | None = None
    dry_run: bool = False


def plan_sync(file_values: dict[str, str], remote_values: dict[str, str]) -> SyncPlan:
    """Pure three-way comparison of two maps (key lists are sorted)."""
    conflicts = sorted(
        k for k in file_values.keys() & remote_values.keys() if file_values[k] != remote_values[k]
    )
    return SyncPlan(
        add_to_remote=sorted(file_values.keys() - remote_values.keys()),
        add_to_file=sorted(remote_values.keys() - file_values.keys()),
        update_in_remote=list(conflicts),
        update_in_file=list(conflicts),
    )


# =============================================================================
# ENGINE
# =============================================================================


class EnvSyncEngine:
    """
    Moves environment variables between one resource and one .env file.

    Args:
        client: An entered PlatformClient.
        target: Whether ``resource_uuid`` arguments name applications or services.
        clock: Source of "now" for headers and backup names.
    """

    def __init__(
        self,
        client: PlatformClient,
        target: Target = Target.APPLICATIONS,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._target = target
        self._envs: EnvVarsMixin = (
            client.applications if target is Target.APPLICATIONS else client.services
        )
        self._clock = clock

    async def fetch_remote(self, resource_uuid: str) -> dict[str, str]:
        """
        Remote variables as a plain map.

        The Platform lists preview copies of variables alongside the regular
        ones; regular values win and preview values only fill gaps.
        """
        regular: dict[str, str] = {}
        preview: dict[str, str] = {}
        for env in await self._envs.list_envs(resource_uuid):
            if not env.key:
                continue
            (preview if env.is_preview else regular)[env.key] = env.value
        return {**preview, **regular}

    def _header(self, title: str, resource_uuid: str, stamp_label: str) -> list[str]:
        return header_lines(title, self._target.label, resource_uuid, stamp_label, self._clock())

    # -------------------------------------------------------------------------
    # EXPORT
    # -------------------------------------------------------------------------

    async def export(
        self,
        resource_uuid: str,
        path: str | Path,
        overwrite: bool = False,
        dry_run: bool = False,
    ) -> ExportReport:
        """
        Raises:
            LocalFileError: The file exists and ``overwrite`` is False.
        """
        target = clean_path(path)
        if target.exists() and not overwrite and not dry_run:
            raise LocalFileError(f"file {target} already exists, use --overwrite to replace it")

        remote = await self.fetch_remote(resource_uuid)
        if dry_run:
            return ExportReport(path=target, count=len(remote), written=False)

        content = render_env(
            remote,
            self._header("Environment variables exported from Coolify", resource_uuid, "Exported at"),
        )
        write_file_atomic(target, content)
        logger.info("Environment exported", path=str(target), count=len(remote))
        return ExportReport(path=target, count=len(remote), written=True)

    # -------------------------------------------------------------------------
    # IMPORT
    # -------------------------------------------------------------------------

    async def import_(
        self,
        resource_uuid: str,
        path: str | Path,
        dry_run: bool = False,
    ) -> ImportReport:
        """Push every variable in the file with one bulk update."""
        target = clean_path(path)
        values = read_env_file(target)
        if dry_run or not values:
            return ImportReport(path=target, values=values, dry_run=dry_run)

        envs = [EnvVar(key=key, value=values[key]) for key in sorted(values)]
        message = await self._envs.update_envs(resource_uuid, envs)
        logger.info("Environment imported", path=str(target), count=len(values))
        return ImportReport(path=target, values=values, message=message)

    # -------------------------------------------------------------------------
    # SYNC
    # -------------------------------------------------------------------------

    async def sync(
        self,
        resource_uuid: str,
        path: str | Path,
        dry_run: bool = False,
        prefer: str = "file",
    ) -> SyncReport:
        """
        Bidirectional sync.

        Args:
            prefer: "file" or "remote"; whose value wins for conflicting keys.
        """
        if prefer not in ("file", "remote"):
            raise InvalidArgumentError(f"prefer must be 'file' or 'remote', not {prefer!r}")

        target = clean_path(path)
        remote = await self.fetch_remote(resource_uuid)
        file_exists = target.exists()
        local = read_env_file(target) if file_exists else {}

        plan = plan_sync(local, remote)
        report = SyncReport(path=target, plan=plan, prefer=prefer, dry_run=dry_run)

        remote_changes = {k: local[k] for k in plan.add_to_remote}
        file_changes = {k: remote[k] for k in plan.add_to_file}
        if prefer == "file":
            remote_changes.update({k: local[k] for k in plan.update_in_remote})
        else:
            file_changes.update({k: remote[k] for k in plan.update_in_file})

        report.remote_updated = len(remote_changes)
        report.file_updated = len(file_changes)
        if dry_run:
            return report

        if remote_changes:
            envs = [EnvVar(key=k, value=remote_changes[k]) for k in sorted(remote_changes)]
            report.message = await self._envs.update_envs(resource_uuid, envs)

        if file_changes:
            merged = {**local, **file_changes}
            content = render_env(
                merged,
                self._header("Environment variables synced with Coolify", resource_uuid, "Last synced"),
            )
            write_file_atomic(target, content)
            report.created_file = not file_exists

        logger.info(
            "Environment synced",
            path=str(target),
            remote_updated=report.remote_updated,
            file_updated=report.file_updated,
        )
        return report

    # -------------------------------------------------------------------------
    # CLEANUP
    # -------------------------------------------------------------------------

    async def cleanup(
        self,
        resource_uuid: str,
        path: str | Path,
        dry_run: bool = False,
        backup: bool = True,
    ) -> CleanupReport:
        """Remove file keys the Platform does not have."""
        target = clean_path(path)
        local = read_env_file(target)
        remote = await self.fetch_remote(resource_uuid)

        removed = sorted(local.keys() - remote.keys())
        remaining = {k: v for k, v in local.items() if k in remote}
        report = CleanupReport(
            path=target, removed=removed, remaining=len(remaining), dry_run=dry_run
        )
        if dry_run or not removed:
            return report

        if backup:
            report.backup_path = backup_file(target, self._clock())

        content = render_env(
            remaining,
            self._header("Environment variables cleaned up", resource_uuid, "Cleaned up"),
        )
        write_file_atomic(target, content)
        logger.info("Environment file cleaned up", path=str(target), removed=len(removed))
        return report
