# ABOUTME: click command tree for the coolifyme executable
# ABOUTME: Thin surface that resolves config, runs core operations and renders output

"""
coolifyme CLI.

=============================================================================
HOW A COMMAND RUNS
=============================================================================

1. The root group collects the global flags into ConfigOverrides and a
   TimeoutConfig, resolves the effective config and configures logging.
2. The command builds a coroutine that takes an entered PlatformClient.
3. ``CliState.call`` / ``CliState.run`` open the client with asyncio.run and
   run the coroutine; single calls go through ``with_timeout``.
4. ``CliState.emit`` renders the result as JSON, YAML or a table on stdout.

Any CoolifyError ends the process with ``Error: <message>`` on stderr and
exit code 1. Logs always go to stderr so stdout stays machine-readable.

\b
Examples:
    coolifyme config init --token $TOKEN --url https://coolify.example.com
    coolifyme applications list --json
    coolifyme deploy application <uuid> --branch main --watch
    coolifyme applications env sync <uuid> --file .env --dry-run
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Any, TypeVar

import click
import structlog
import yaml
from rich.console import Console
from rich.table import Table

from coolifyme import __version__
from coolifyme.config import (
    ConfigOverrides,
    EffectiveConfig,
    load_environment,
    resolve_config,
)
from coolifyme.errors import CoolifyError, DeploymentFailedError, InvalidArgumentError
from coolifyme.profiles import ProfileStore
from coolifyme.resources.applications import CREATE_KINDS
from coolifyme.resources.databases import ENGINES
from coolifyme.resources.models import EnvVar
from coolifyme.tools.bulk import DEFAULT_CONCURRENCY, BulkResult, bulk, collect_uuids
from coolifyme.tools.deploy import DeploymentController, DeployOptions, WatchState
from coolifyme.tools.envsync import EnvSyncEngine, Target
from coolifyme.tools.monitor import health_check, status_overview
from coolifyme.tools.search import (
    KIND_ALIASES,
    KINDS,
    SearchFilter,
    SearchResults,
    resolve_kinds,
    search,
)
from coolifyme.utils.client import PlatformClient
from coolifyme.utils.envfile import safe_read_file
from coolifyme.utils.logging import configure_logging
from coolifyme.utils.redact import MASK
from coolifyme.utils.retry import TimeoutConfig, with_timeout

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Columns = Sequence[tuple[str, str]]

APPLICATION_COLUMNS: Columns = [
    ("UUID", "uuid"),
    ("NAME", "name"),
    ("STATUS", "status"),
    ("GIT REPOSITORY", "git_repository"),
    ("DOMAINS", "fqdn"),
]
SERVICE_COLUMNS: Columns = [("UUID", "uuid"), ("NAME", "name"), ("STATUS", "status")]
SERVER_COLUMNS: Columns = [
    ("UUID", "uuid"),
    ("NAME", "name"),
    ("IP", "ip"),
    ("USER", "user"),
    ("PORT", "port"),
]
PROJECT_COLUMNS: Columns = [("UUID", "uuid"), ("NAME", "name"), ("DESCRIPTION", "description")]
TEAM_COLUMNS: Columns = [("ID", "id"), ("NAME", "name"), ("DESCRIPTION", "description")]
MEMBER_COLUMNS: Columns = [("ID", "id"), ("NAME", "name"), ("EMAIL", "email")]
KEY_COLUMNS: Columns = [("UUID", "uuid"), ("NAME", "name"), ("DESCRIPTION", "description")]
DEPLOYMENT_COLUMNS: Columns = [
    ("DEPLOYMENT UUID", "deployment_uuid"),
    ("APPLICATION", "application_id"),
    ("STATUS", "status"),
    ("COMMIT", "commit"),
    ("CREATED", "created_at"),
]
TRIGGER_COLUMNS: Columns = [
    ("RESOURCE UUID", "resource_uuid"),
    ("DEPLOYMENT UUID", "deployment_uuid"),
    ("MESSAGE", "message"),
]
ENV_COLUMNS: Columns = [
    ("KEY", "key"),
    ("VALUE", "value"),
    ("BUILD TIME", "is_build_time"),
    ("PREVIEW", "is_preview"),
    ("UUID", "uuid"),
]
PROFILE_COLUMNS: Columns = [("NAME", "name"), ("BASE URL", "base_url"), ("DEFAULT", "default")]
# Search hits carry one kind-specific column in ``detail``
SEARCH_DETAIL = {"applications": "DOMAINS", "servers": "IP"}


# =============================================================================
# INVOCATION STATE
# =============================================================================


def _plain(data: Any) -> Any:
    """Dataclasses (and lists of them) as plain dicts for rendering."""
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return dataclasses.asdict(data)
    if isinstance(data, list):
        return [_plain(item) for item in data]
    return data


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, dict | list):
        return json.dumps(value, default=str)
    return str(value)


@dataclasses.dataclass
class CliState:
    """Everything a command needs, built once by the root group."""

    store: ProfileStore
    overrides: ConfigOverrides
    policy: TimeoutConfig
    config: EffectiveConfig

    # -------------------------------------------------------------------------
    # EXECUTION
    # -------------------------------------------------------------------------

    def run(self, operation: Callable[[PlatformClient], Awaitable[T]]) -> T:
        """Run ``operation`` against a freshly entered client."""

        async def main() -> T:
            async with PlatformClient(self.config, timeout=self.policy.timeout) as client:
                return await operation(client)

        return asyncio.run(main())

    def call(self, operation: Callable[[PlatformClient], Awaitable[T]]) -> T:
        """Run one client call under the timeout and retry policy."""
        return self.run(lambda client: with_timeout(self.policy, lambda: operation(client)))

    # -------------------------------------------------------------------------
    # OUTPUT
    # -------------------------------------------------------------------------

    def emit(
        self,
        data: Any,
        columns: Columns | None = None,
        as_json: bool = False,
        empty: str = "No results found",
    ) -> None:
        """
        Print a result in the selected output format.

        Raw text results (endpoints the Platform answers with opaque bodies)
        are pretty-printed when they parse as JSON and echoed otherwise.
        """
        output_format = "json" if as_json else self.config.output_format
        data = _plain(data)

        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                click.echo(data)
                return

        if output_format == "json":
            click.echo(json.dumps(data, indent=2, default=str))
        elif output_format == "yaml":
            click.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False), nl=False)
        elif isinstance(data, list):
            if not data:
                click.echo(empty)
            elif columns and all(isinstance(row, dict) for row in data):
                self._print_table(columns, data)
            else:
                click.echo(json.dumps(data, indent=2, default=str))
        elif isinstance(data, dict):
            self._print_table(
                [("FIELD", "field"), ("VALUE", "value")],
                [{"field": k, "value": v} for k, v in data.items()],
            )
        else:
            click.echo(_cell(data))

    def _print_table(self, columns: Columns, rows: list[dict[str, Any]]) -> None:
        color = self.config.color
        console = Console(no_color=color is False, force_terminal=True if color else None)
        table = Table(show_header=True, header_style="bold cyan", box=None)
        for header, _ in columns:
            table.add_column(header, overflow="fold")
        for row in rows:
            table.add_row(*(_cell(row.get(key)) for _, key in columns))
        console.print(table)

    def success(self, message: str) -> None:
        click.echo(message)


pass_state = click.make_pass_decorator(CliState)

json_option = click.option("--json", "as_json", is_flag=True, help="Output in JSON format")


def parse_body(data: str | None) -> dict[str, Any]:
    """
    Parse a ``--data`` value into a request body.

    Accepts inline JSON/YAML or ``@path`` to read the body from a file.

    Raises:
        InvalidArgumentError: The value is missing or not a mapping.
    """
    if not data:
        raise InvalidArgumentError("request body is required (use --data)")
    text = safe_read_file(data[1:]) if data.startswith("@") else data
    try:
        body = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise InvalidArgumentError(f"invalid request body: {e}") from e
    if not isinstance(body, dict):
        raise InvalidArgumentError("request body must be a JSON or YAML object")
    return body


data_option = click.option(
    "--data",
    "data",
    required=True,
    help="Request body as JSON/YAML, or @file to read it from a file",
)


# =============================================================================
# ROOT GROUP
# =============================================================================


class CoolifyGroup(click.Group):
    """Root group that turns CoolifyError into ``Error: ...`` and exit 1."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except DeploymentFailedError as e:
            logger.error("Command failed", error=str(e))
            click.echo(f"Error: {e}", err=True)
            if e.logs:
                click.echo("Last log lines:", err=True)
                click.echo(e.logs, err=True)
            ctx.exit(1)
        except CoolifyError as e:
            logger.error("Command failed", error=str(e))
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)


COLOR_CHOICES = {"auto": None, "always": True, "never": False}


def _flag_level(debug: bool, verbose: bool, quiet: bool) -> str | None:
    if debug:
        return "debug"
    if verbose:
        return "info"
    if quiet:
        return "error"
    return None


@click.group(cls=CoolifyGroup)
@click.version_option(version=__version__, prog_name="coolifyme")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default is ~/.config/coolifyme/config.yaml)",
)
@click.option("-p", "--profile", help="Configuration profile to use")
@click.option("-t", "--token", help="API token")
@click.option("-s", "--server", help="Coolify API base URL")
@click.option(
    "-o", "--output", type=click.Choice(["json", "yaml", "table"]), help="Output format"
)
@click.option(
    "--color",
    type=click.Choice(list(COLOR_CHOICES)),
    default="auto",
    show_default=True,
    help="Colorize output",
)
@click.option("--debug", is_flag=True, help="Debug output (shows API calls)")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
@click.option("-q", "--quiet", is_flag=True, help="Quiet output (errors only)")
@click.option("--timeout", type=float, default=30.0, show_default=True, help="Seconds per attempt")
@click.option("--retry", type=int, default=3, show_default=True, help="Retries after a failure")
@click.option(
    "--retry-delay", type=float, default=1.0, show_default=True, help="First backoff in seconds"
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    profile: str | None,
    token: str | None,
    server: str | None,
    output: str | None,
    color: str,
    debug: bool,
    verbose: bool,
    quiet: bool,
    timeout: float,
    retry: int,
    retry_delay: float,
) -> None:
    """
    coolifyme - command-line client for the Coolify API.

    \b
    Quick Start:
      coolifyme config init --token <token>   # Create a profile
      coolifyme applications list             # List applications
      coolifyme deploy application <uuid>     # Trigger a deployment
    """
    flag_level = _flag_level(debug, verbose, quiet)
    # Errors raised while reading the config still need somewhere to go
    configure_logging(level=flag_level or "info")

    env = load_environment()
    store = ProfileStore(config_path or env.config_path)
    overrides = ConfigOverrides(
        profile=profile,
        api_token=token,
        base_url=server,
        output_format=output,
        log_level=flag_level,
        color=COLOR_CHOICES[color],
    )
    policy = TimeoutConfig.build(timeout=timeout, retry_count=retry, retry_delay=retry_delay)
    config = resolve_config(store.load_or_empty(), env, overrides)

    configure_logging(level=config.log_level, json_output=config.output_format == "json")
    ctx.obj = CliState(store=store, overrides=overrides, policy=policy, config=config)


# =============================================================================
# CONFIG
# =============================================================================


@cli.group(name="config")
def config_group() -> None:
    """Manage configuration and profiles."""


@config_group.command(name="show")
@json_option
@pass_state
def config_show(state: CliState, as_json: bool) -> None:
    """Show the effective configuration."""
    config = state.config
    state.emit(
        {
            "config_file": str(state.store.path),
            "profile": config.profile_name,
            "base_url": config.base_url,
            "api_token": MASK if config.has_token else "(not set)",
            "output_format": config.output_format,
            "log_level": config.log_level,
            "color": config.color,
        },
        as_json=as_json,
    )


@config_group.command(name="set")
@click.option("--output", "output_format", type=click.Choice(["json", "yaml", "table"]))
@click.option("--log-level", type=click.Choice(["debug", "info", "warn", "error"]))
@click.option("--color", type=click.Choice(["always", "never"]))
@pass_state
def config_set(
    state: CliState,
    output_format: str | None,
    log_level: str | None,
    color: str | None,
) -> None:
    """Set global configuration values."""
    if output_format is None and log_level is None and color is None:
        raise InvalidArgumentError("nothing to set (use --output, --log-level or --color)")
    state.store.set_global_settings(
        output_format=output_format,
        color_output=COLOR_CHOICES[color] if color else None,
        log_level=log_level,
    )
    state.success("Configuration updated")


@config_group.command(name="init")
@click.option("--token", prompt="API token", hide_input=True, help="API token")
@click.option("--url", help="Base URL (default: https://app.coolify.io/api/v1)")
@click.option("--force", is_flag=True, help="Overwrite an existing configuration")
@pass_state
def config_init(state: CliState, token: str, url: str | None, force: bool) -> None:
    """Initialize the configuration with a default profile."""
    state.store.init(token, base_url=url, force=force)
    state.success(f"Configuration initialized at {state.store.path}")


@config_group.group(name="profile")
def profile_group() -> None:
    """Manage configuration profiles."""


@profile_group.command(name="list")
@json_option
@pass_state
def profile_list(state: CliState, as_json: bool) -> None:
    profiles, default = state.store.list_profiles()
    rows = [
        {"name": p.name, "base_url": p.base_url, "default": p.name == default}
        for p in profiles
    ]
    state.emit(rows, PROFILE_COLUMNS, as_json=as_json, empty="No profiles found")


@profile_group.command(name="create")
@click.argument("name")
@click.option("--token", required=True, help="API token")
@click.option("--url", help="Base URL (default: https://app.coolify.io/api/v1)")
@pass_state
def profile_create(state: CliState, name: str, token: str, url: str | None) -> None:
    state.store.create_profile(name, token, base_url=url)
    state.success(f"Profile '{name}' created")


@profile_group.command(name="use")
@click.argument("name")
@pass_state
def profile_use(state: CliState, name: str) -> None:
    """Set the default profile."""
    state.store.set_default_profile(name)
    state.success(f"Default profile set to '{name}'")


@profile_group.command(name="delete")
@click.argument("name")
@click.confirmation_option(prompt="Delete this profile?")
@pass_state
def profile_delete(state: CliState, name: str) -> None:
    state.store.delete_profile(name)
    state.success(f"Profile '{name}' deleted")


@profile_group.command(name="set")
@click.option("--token", help="Update API token")
@click.option("--url", help="Update base URL")
@pass_state
def profile_set(state: CliState, token: str | None, url: str | None) -> None:
    """Update the selected profile."""
    if not token and not url:
        raise InvalidArgumentError("nothing to update (use --token or --url)")
    name = state.config.profile_name
    state.store.update_profile(name, api_token=token, base_url=url)
    state.success(f"Profile '{name}' updated")


# =============================================================================
# ENVIRONMENT VARIABLES (shared by applications and services)
# =============================================================================


def _env_flags(func: Callable[..., Any]) -> Callable[..., Any]:
    for option in reversed(
        [
            click.option("--build-time/--no-build-time", default=None, help="Available at build time"),
            click.option("--preview/--no-preview", default=None, help="Preview deployments only"),
            click.option("--literal/--no-literal", default=None, help="Do not interpolate"),
            click.option("--multiline/--no-multiline", default=None, help="Multiline value"),
        ]
    ):
        func = option(func)
    return func


def _env_var(
    key: str,
    value: str,
    build_time: bool | None,
    preview: bool | None,
    literal: bool | None,
    multiline: bool | None,
) -> EnvVar:
    return EnvVar(
        key=key,
        value=value,
        is_build_time=build_time,
        is_preview=preview,
        is_literal=literal,
        is_multiline=multiline,
    )


def make_env_group(target: Target) -> click.Group:
    """Build the ``env`` subgroup for applications or services."""
    noun = target.label.lower()

    def envs(client: PlatformClient) -> Any:
        return client.applications if target is Target.APPLICATIONS else client.services

    def sync_call(state: CliState, operation: Callable[[EnvSyncEngine], Awaitable[T]]) -> T:
        return state.call(lambda client: operation(EnvSyncEngine(client, target)))

    @click.group(name="env", help=f"Manage {noun} environment variables.")
    def env_group() -> None:
        pass

    @env_group.command(name="list")
    @click.argument("resource_uuid")
    @click.option("--show-values", is_flag=True, help="Show values instead of masking them")
    @json_option
    @pass_state
    def env_list(state: CliState, resource_uuid: str, show_values: bool, as_json: bool) -> None:
        variables = state.call(lambda client: envs(client).list_envs(resource_uuid))
        rows = [dataclasses.asdict(v) for v in variables]
        if not show_values:
            for row in rows:
                row["value"] = MASK
        state.emit(rows, ENV_COLUMNS, as_json=as_json, empty="No environment variables found")

    @env_group.command(name="create")
    @click.argument("resource_uuid")
    @click.argument("key")
    @click.argument("value")
    @_env_flags
    @pass_state
    def env_create(
        state: CliState,
        resource_uuid: str,
        key: str,
        value: str,
        build_time: bool | None,
        preview: bool | None,
        literal: bool | None,
        multiline: bool | None,
    ) -> None:
        env = _env_var(key, value, build_time, preview, literal, multiline)
        env_uuid = state.call(lambda client: envs(client).create_env(resource_uuid, env))
        state.success(f"Environment variable {key} created ({env_uuid})")

    @env_group.command(name="update")
    @click.argument("resource_uuid")
    @click.argument("key")
    @click.argument("value")
    @_env_flags
    @pass_state
    def env_update(
        state: CliState,
        resource_uuid: str,
        key: str,
        value: str,
        build_time: bool | None,
        preview: bool | None,
        literal: bool | None,
        multiline: bool | None,
    ) -> None:
        env = _env_var(key, value, build_time, preview, literal, multiline)
        state.call(lambda client: envs(client).update_env(resource_uuid, env))
        state.success(f"Environment variable {key} updated")

    @env_group.command(name="delete")
    @click.argument("resource_uuid")
    @click.argument("env_uuid")
    @pass_state
    def env_delete(state: CliState, resource_uuid: str, env_uuid: str) -> None:
        state.call(lambda client: envs(client).delete_env(resource_uuid, env_uuid))
        state.success(f"Environment variable {env_uuid} deleted")

    @env_group.command(name="export")
    @click.argument("resource_uuid")
    @click.option("-f", "--file", "path", default=".env", show_default=True)
    @click.option("--overwrite", is_flag=True, help="Replace an existing file")
    @click.option("--dry-run", is_flag=True, help="Show what would be exported")
    @pass_state
    def env_export(
        state: CliState, resource_uuid: str, path: str, overwrite: bool, dry_run: bool
    ) -> None:
        """Export environment variables to a .env file."""
        report = sync_call(
            state, lambda engine: engine.export(resource_uuid, path, overwrite, dry_run)
        )
        if report.written:
            state.success(f"Exported {report.count} environment variables to {report.path}")
        else:
            state.success(f"Would export {report.count} environment variables to {report.path}")

    @env_group.command(name="import")
    @click.argument("resource_uuid")
    @click.option("-f", "--file", "path", default=".env", show_default=True)
    @click.option("--dry-run", is_flag=True, help="Show what would be imported")
    @pass_state
    def env_import(state: CliState, resource_uuid: str, path: str, dry_run: bool) -> None:
        """Import environment variables from a .env file."""
        report = sync_call(state, lambda engine: engine.import_(resource_uuid, path, dry_run))
        if report.dry_run:
            for key in sorted(report.values):
                click.echo(f"  {key}")
            state.success(f"Would import {report.count} environment variables from {report.path}")
        elif report.count == 0:
            state.success(f"No environment variables found in {report.path}")
        else:
            state.success(f"Imported {report.count} environment variables from {report.path}")

    @env_group.command(name="sync")
    @click.argument("resource_uuid")
    @click.option("-f", "--file", "path", default=".env", show_default=True)
    @click.option("--dry-run", is_flag=True, help="Show changes without applying them")
    @click.option(
        "--prefer",
        type=click.Choice(["file", "remote"]),
        default="file",
        show_default=True,
        help="Which value wins when both sides differ",
    )
    @pass_state
    def env_sync(
        state: CliState, resource_uuid: str, path: str, dry_run: bool, prefer: str
    ) -> None:
        """Synchronize a .env file with the Platform in both directions."""
        report = sync_call(
            state, lambda engine: engine.sync(resource_uuid, path, dry_run, prefer)
        )
        plan = report.plan
        if not plan.has_changes:
            state.success("Already in sync")
            return
        for key in plan.add_to_remote:
            click.echo(f"  + remote: {key}")
        for key in plan.add_to_file:
            click.echo(f"  + file:   {key}")
        for key in plan.update_in_remote:
            side = "remote" if prefer == "file" else "file"
            click.echo(f"  ~ {side}: {key}")
        verb = "Would update" if report.dry_run else "Updated"
        state.success(
            f"{verb} {report.remote_updated} remote and {report.file_updated} file variables"
        )

    @env_group.command(name="cleanup")
    @click.argument("resource_uuid")
    @click.option("-f", "--file", "path", default=".env", show_default=True)
    @click.option("--dry-run", is_flag=True, help="Show what would be removed")
    @click.option("--no-backup", is_flag=True, help="Do not keep a backup copy")
    @pass_state
    def env_cleanup(
        state: CliState, resource_uuid: str, path: str, dry_run: bool, no_backup: bool
    ) -> None:
        """Remove variables from a .env file that the Platform does not have."""
        report = sync_call(
            state,
            lambda engine: engine.cleanup(resource_uuid, path, dry_run, backup=not no_backup),
        )
        if not report.removed:
            state.success("Nothing to clean up")
            return
        for key in report.removed:
            click.echo(f"  - {key}")
        if report.backup_path:
            click.echo(f"Backup written to {report.backup_path}")
        verb = "Would remove" if report.dry_run else "Removed"
        state.success(f"{verb} {len(report.removed)} variables, {report.remaining} remain")

    return env_group


# =============================================================================
# BULK
# =============================================================================


def run_bulk(
    state: CliState,
    uuids: Sequence[str],
    list_all: Callable[[PlatformClient], Awaitable[list[dict[str, Any]]]],
    action: Callable[[PlatformClient, str], Awaitable[Any]],
    concurrency: int,
    dry_run: bool,
) -> None:
    """
    Apply ``action`` to the given UUIDs, or to every listed resource.

    Per-item failures are reported and counted but do not change the exit
    code; the summary line tells the caller how many succeeded.
    """

    def report(result: BulkResult) -> None:
        if result.ok:
            click.echo(f"  ok    {result.id}")
        else:
            click.echo(f"  error {result.id}: {result.error}")

    async def operation(client: PlatformClient) -> Any:
        targets = list(uuids)
        if not targets:
            targets = collect_uuids(await with_timeout(state.policy, lambda: list_all(client)))
        if dry_run:
            return targets
        return await bulk(
            targets,
            lambda item: with_timeout(state.policy, lambda: action(client, item)),
            concurrency=concurrency,
            on_result=report,
        )

    outcome = state.run(operation)
    if dry_run:
        for target in outcome:
            click.echo(f"  would run on {target}")
        click.echo(f"{len(outcome)} resources selected")
        return
    click.echo(outcome.summary_line())


def bulk_options(func: Callable[..., Any]) -> Callable[..., Any]:
    func = click.option("--dry-run", is_flag=True, help="List the targets without acting")(func)
    func = click.option(
        "--concurrent",
        "concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY,
        show_default=True,
        help="Maximum simultaneous operations",
    )(func)
    func = click.confirmation_option(prompt="Run this operation on every selected resource?")(func)
    return click.argument("uuids", nargs=-1)(func)


# =============================================================================
# APPLICATIONS
# =============================================================================


@cli.group(name="applications")
def applications_group() -> None:
    """Manage applications."""


@applications_group.command(name="list")
@json_option
@pass_state
def applications_list(state: CliState, as_json: bool) -> None:
    apps = state.call(lambda client: client.applications.list())
    state.emit(apps, APPLICATION_COLUMNS, as_json=as_json, empty="No applications found")


@applications_group.command(name="get")
@click.argument("app_uuid")
@json_option
@pass_state
def applications_get(state: CliState, app_uuid: str, as_json: bool) -> None:
    state.emit(state.call(lambda client: client.applications.get(app_uuid)), as_json=as_json)


@applications_group.command(name="create")
@click.argument("kind", type=click.Choice(sorted(CREATE_KINDS)))
@data_option
@pass_state
def applications_create(state: CliState, kind: str, data: str) -> None:
    """Create an application of the given source KIND."""
    body = parse_body(data)
    app_uuid = state.call(lambda client: client.applications.create(kind, body))
    state.success(f"Application created: {app_uuid}")


@applications_group.command(name="update")
@click.argument("app_uuid")
@data_option
@pass_state
def applications_update(state: CliState, app_uuid: str, data: str) -> None:
    body = parse_body(data)
    state.call(lambda client: client.applications.update(app_uuid, body))
    state.success(f"Application {app_uuid} updated")


def delete_options(func: Callable[..., Any]) -> Callable[..., Any]:
    for name in reversed(
        ["configurations", "volumes", "docker-cleanup", "connected-networks"]
    ):
        flag = name if name == "docker-cleanup" else f"delete-{name}"
        func = click.option(f"--{flag}/--no-{flag}", default=None)(func)
    return click.confirmation_option(prompt="Are you sure you want to delete this resource?")(func)


@applications_group.command(name="delete")
@click.argument("app_uuid")
@delete_options
@pass_state
def applications_delete(
    state: CliState,
    app_uuid: str,
    delete_configurations: bool | None,
    delete_volumes: bool | None,
    docker_cleanup: bool | None,
    delete_connected_networks: bool | None,
) -> None:
    state.call(
        lambda client: client.applications.delete(
            app_uuid,
            delete_configurations=delete_configurations,
            delete_volumes=delete_volumes,
            docker_cleanup=docker_cleanup,
            delete_connected_networks=delete_connected_networks,
        )
    )
    state.success(f"Application {app_uuid} deleted")


@applications_group.command(name="start")
@click.argument("app_uuid")
@click.option("--force", is_flag=True, help="Rebuild without cache")
@click.option("--instant-deploy", is_flag=True, help="Skip the deployment queue")
@pass_state
def applications_start(state: CliState, app_uuid: str, force: bool, instant_deploy: bool) -> None:
    result = state.call(
        lambda client: client.applications.start(app_uuid, force=force, instant_deploy=instant_deploy)
    )
    state.success(result.message or f"Application {app_uuid} started")
    if result.deployment_uuid:
        click.echo(f"Deployment UUID: {result.deployment_uuid}")


@applications_group.command(name="stop")
@click.argument("app_uuid")
@pass_state
def applications_stop(state: CliState, app_uuid: str) -> None:
    message = state.call(lambda client: client.applications.stop(app_uuid))
    state.success(message or f"Application {app_uuid} stopped")


@applications_group.command(name="restart")
@click.argument("app_uuid")
@pass_state
def applications_restart(state: CliState, app_uuid: str) -> None:
    result = state.call(lambda client: client.applications.restart(app_uuid))
    state.success(result.message or f"Application {app_uuid} restarted")
    if result.deployment_uuid:
        click.echo(f"Deployment UUID: {result.deployment_uuid}")


@applications_group.command(name="logs")
@click.argument("app_uuid")
@click.option("-n", "--lines", type=int, default=100, show_default=True)
@pass_state
def applications_logs(state: CliState, app_uuid: str, lines: int) -> None:
    click.echo(state.call(lambda client: client.applications.logs(app_uuid, lines=lines)))


@applications_group.command(name="start-all")
@bulk_options
@pass_state
def applications_start_all(
    state: CliState, uuids: tuple[str, ...], concurrency: int, dry_run: bool
) -> None:
    """Start the given applications, or every application."""
    run_bulk(
        state,
        uuids,
        lambda client: client.applications.list(),
        lambda client, item: client.applications.start(item),
        concurrency,
        dry_run,
    )


@applications_group.command(name="stop-all")
@bulk_options
@pass_state
def applications_stop_all(
    state: CliState, uuids: tuple[str, ...], concurrency: int, dry_run: bool
) -> None:
    """Stop the given applications, or every application."""
    run_bulk(
        state,
        uuids,
        lambda client: client.applications.list(),
        lambda client, item: client.applications.stop(item),
        concurrency,
        dry_run,
    )


@applications_group.command(name="restart-all")
@bulk_options
@pass_state
def applications_restart_all(
    state: CliState, uuids: tuple[str, ...], concurrency: int, dry_run: bool
) -> None:
    """Restart the given applications, or every application."""
    run_bulk(
        state,
        uuids,
        lambda client: client.applications.list(),
        lambda client, item: client.applications.restart(item),
        concurrency,
        dry_run,
    )


applications_group.add_command(make_env_group(Target.APPLICATIONS))


# =============================================================================
# SERVICES
# =============================================================================


@cli.group(name="services")
def services_group() -> None:
    """Manage services."""


@services_group.command(name="list")
@json_option
@pass_state
def services_list(state: CliState, as_json: bool) -> None:
    services = state.call(lambda client: client.services.list())
    state.emit(services, SERVICE_COLUMNS, as_json=as_json, empty="No services found")


@services_group.command(name="get")
@click.argument("service_uuid")
@json_option
@pass_state
def services_get(state: CliState, service_uuid: str, as_json: bool) -> None:
    state.emit(state.call(lambda client: client.services.get(service_uuid)), as_json=as_json)


@services_group.command(name="create")
@data_option
@pass_state
def services_create(state: CliState, data: str) -> None:
    body = parse_body(data)
    service_uuid = state.call(lambda client: client.services.create(body))
    state.success(f"Service created: {service_uuid}")


@services_group.command(name="update")
@click.argument("service_uuid")
@data_option
@pass_state
def services_update(state: CliState, service_uuid: str, data: str) -> None:
    body = parse_body(data)
    state.call(lambda client: client.services.update(service_uuid, body))
    state.success(f"Service {service_uuid} updated")


@services_group.command(name="delete")
@click.argument("service_uuid")
@delete_options
@pass_state
def services_delete(
    state: CliState,
    service_uuid: str,
    delete_configurations: bool | None,
    delete_volumes: bool | None,
    docker_cleanup: bool | None,
    delete_connected_networks: bool | None,
) -> None:
    state.call(
        lambda client: client.services.delete(
            service_uuid,
            delete_configurations=delete_configurations,
            delete_volumes=delete_volumes,
            docker_cleanup=docker_cleanup,
            delete_connected_networks=delete_connected_networks,
        )
    )
    state.success(f"Service {service_uuid} deleted")


@services_group.command(name="start")
@click.argument("service_uuid")
@pass_state
def services_start(state: CliState, service_uuid: str) -> None:
    message = state.call(lambda client: client.services.start(service_uuid))
    state.success(message or f"Service {service_uuid} started")


@services_group.command(name="stop")
@click.argument("service_uuid")
@pass_state
def services_stop(state: CliState, service_uuid: str) -> None:
    message = state.call(lambda client: client.services.stop(service_uuid))
    state.success(message or f"Service {service_uuid} stopped")


@services_group.command(name="restart")
@click.argument("service_uuid")
@pass_state
def services_restart(state: CliState, service_uuid: str) -> None:
    message = state.call(lambda client: client.services.restart(service_uuid))
    state.success(message or f"Service {service_uuid} restarted")


@services_group.command(name="deploy-all")
@bulk_options
@pass_state
def services_deploy_all(
    state: CliState, uuids: tuple[str, ...], concurrency: int, dry_run: bool
) -> None:
    """Deploy (start) the given services, or every service."""
    run_bulk(
        state,
        uuids,
        lambda client: client.services.list(),
        lambda client, item: client.services.start(item),
        concurrency,
        dry_run,
    )


services_group.add_command(make_env_group(Target.SERVICES))


# =============================================================================
# DEPLOY / DEPLOYMENTS
# =============================================================================


def _print_status(snapshot: Any, state: WatchState) -> None:
    click.echo(f"{snapshot.deployment_uuid}: {snapshot.status} ({state.value})")


def _watch_all(state: CliState, deployment_uuids: list[str], interval: float) -> None:
    async def operation(client: PlatformClient) -> None:
        controller = DeploymentController(client, poll_interval=interval, policy=state.policy)
        for deployment_uuid in deployment_uuids:
            await controller.watch(deployment_uuid, on_status=_print_status)
            click.echo(f"Deployment {deployment_uuid} finished successfully")

    state.run(operation)


def deploy_options(func: Callable[..., Any]) -> Callable[..., Any]:
    func = click.option("--pr", type=int, help="Pull request ID to deploy")(func)
    func = click.option("--branch", help="Branch or tag to deploy")(func)
    return click.option("--force", is_flag=True, help="Rebuild without cache")(func)


@cli.group(name="deploy")
def deploy_group() -> None:
    """Trigger deployments."""


@deploy_group.command(name="application")
@click.argument("app_uuid")
@deploy_options
@click.option("--watch", is_flag=True, help="Follow the deployment until it finishes")
@click.option("--interval", type=float, default=5.0, show_default=True, help="Watch poll seconds")
@json_option
@pass_state
def deploy_application(
    state: CliState,
    app_uuid: str,
    force: bool,
    branch: str | None,
    pr: int | None,
    watch: bool,
    interval: float,
    as_json: bool,
) -> None:
    """Deploy one application."""
    options = DeployOptions(force=force, branch=branch, pr=pr)
    result = state.run(
        lambda client: DeploymentController(client, policy=state.policy).trigger(app_uuid, options)
    )
    state.emit(result.deployments, TRIGGER_COLUMNS, as_json=as_json)
    if watch:
        _watch_all(state, result.deployment_uuids, interval)


@deploy_group.command(name="multiple")
@click.argument("app_uuids", nargs=-1, required=True)
@deploy_options
@json_option
@pass_state
def deploy_multiple(
    state: CliState,
    app_uuids: tuple[str, ...],
    force: bool,
    branch: str | None,
    pr: int | None,
    as_json: bool,
) -> None:
    """Deploy several applications with one request."""
    options = DeployOptions(force=force, branch=branch, pr=pr)
    result = state.run(
        lambda client: DeploymentController(client, policy=state.policy).trigger_multiple(
            list(app_uuids), options
        )
    )
    state.emit(result.deployments, TRIGGER_COLUMNS, as_json=as_json)


@deploy_group.command(name="service")
@click.argument("service_uuid")
@pass_state
def deploy_service(state: CliState, service_uuid: str) -> None:
    message = state.run(
        lambda client: DeploymentController(client, policy=state.policy).deploy_service(
            service_uuid
        )
    )
    state.success(message or f"Service {service_uuid} deployment started")


@cli.group(name="deployments")
def deployments_group() -> None:
    """Inspect deployments."""


@deployments_group.command(name="list")
@json_option
@pass_state
def deployments_list(state: CliState, as_json: bool) -> None:
    """List running deployments."""
    deployments = state.call(lambda client: client.deployments.list_all())
    state.emit(deployments, DEPLOYMENT_COLUMNS, as_json=as_json, empty="No deployments found")


@deployments_group.command(name="get")
@click.argument("deployment_uuid")
@json_option
@pass_state
def deployments_get(state: CliState, deployment_uuid: str, as_json: bool) -> None:
    state.emit(
        state.call(lambda client: client.deployments.get(deployment_uuid)), as_json=as_json
    )


@deployments_group.command(name="list-by-app")
@click.argument("app_uuid")
@click.option("--skip", type=int, default=0, help="Entries to skip")
@click.option("--take", type=int, default=0, help="Entries to return")
@json_option
@pass_state
def deployments_list_by_app(
    state: CliState, app_uuid: str, skip: int, take: int, as_json: bool
) -> None:
    deployments = state.call(
        lambda client: client.deployments.list_for_app(app_uuid, skip=skip, take=take)
    )
    state.emit(deployments, DEPLOYMENT_COLUMNS, as_json=as_json, empty="No deployments found")


@deployments_group.command(name="watch")
@click.argument("deployment_uuid")
@click.option("--interval", type=float, default=5.0, show_default=True, help="Poll seconds")
@pass_state
def deployments_watch(state: CliState, deployment_uuid: str, interval: float) -> None:
    """Follow a deployment until it succeeds or fails."""
    _watch_all(state, [deployment_uuid], interval)


# =============================================================================
# SERVERS
# =============================================================================


@cli.group(name="servers")
def servers_group() -> None:
    """Manage servers."""


@servers_group.command(name="list")
@json_option
@pass_state
def servers_list(state: CliState, as_json: bool) -> None:
    servers = state.call(lambda client: client.servers.list())
    state.emit(servers, SERVER_COLUMNS, as_json=as_json, empty="No servers found")


@servers_group.command(name="get")
@click.argument("server_uuid")
@json_option
@pass_state
def servers_get(state: CliState, server_uuid: str, as_json: bool) -> None:
    state.emit(state.call(lambda client: client.servers.get(server_uuid)), as_json=as_json)


@servers_group.command(name="create")
@data_option
@pass_state
def servers_create(state: CliState, data: str) -> None:
    body = parse_body(data)
    server_uuid = state.call(lambda client: client.servers.create(body))
    state.success(f"Server created: {server_uuid}")


@servers_group.command(name="update")
@click.argument("server_uuid")
@data_option
@pass_state
def servers_update(state: CliState, server_uuid: str, data: str) -> None:
    body = parse_body(data)
    state.call(lambda client: client.servers.update(server_uuid, body))
    state.success(f"Server {server_uuid} updated")


@servers_group.command(name="delete")
@click.argument("server_uuid")
@click.confirmation_option(prompt="Are you sure you want to delete this server?")
@pass_state
def servers_delete(state: CliState, server_uuid: str) -> None:
    state.call(lambda client: client.servers.delete(server_uuid))
    state.success(f"Server {server_uuid} deleted")


@servers_group.command(name="resources")
@click.argument("server_uuid")
@json_option
@pass_state
def servers_resources(state: CliState, server_uuid: str, as_json: bool) -> None:
    state.emit(state.call(lambda client: client.servers.resources(server_uuid)), as_json=as_json)


@servers_group.command(name="domains")
@click.argument("server_uuid")
@json_option
@pass_state
def servers_domains(state: CliState, server_uuid: str, as_json: bool) -> None:
    state.emit(state.call(lambda client: client.servers.domains(server_uuid)), as_json=as_json)


@servers_group.command(name="validate")
@click.argument("server_uuid")
@pass_state
def servers_validate(state: CliState, server_uuid: str) -> None:
    state.success(state.call(lambda client: client.servers.validate(server_uuid)))


# =============================================================================
# PROJECTS
# =============================================================================


@cli.group(name="projects")
def projects_group() -> None:
    """Manage projects."""


@projects_group.command(name="list")
@json_option
@pass_state
def projects_list(state: CliState, as_json: bool) -> None:
    projects = state.call(lambda client: client.projects.list())
    state.emit(projects, PROJECT_COLUMNS, as_json=as_json, empty="No projects found")


@projects_group.command(name="get")
@click.argument("project_uuid")
@json_option
@pass_state
def projects_get(state: CliState, project_uuid: str, as_json: bool) -> None:
    state.emit(state.call(lambda client: client.projects.get(project_uuid)), as_json=as_json)


@projects_group.command(name="create")
@click.option("--name", required=True)
@click.option("--description")
@pass_state
def projects_create(state: CliState, name: str, description: str | None) -> None:
    project_uuid = state.call(lambda client: client.projects.create(name, description))
    state.success(f"Project created: {project_uuid}")


@projects_group.command(name="update")
@click.argument("project_uuid")
@data_option
@pass_state
def projects_update(state: CliState, project_uuid: str, data: str) -> None:
    body = parse_body(data)
    state.call(lambda client: client.projects.update(project_uuid, body))
    state.success(f"Project {project_uuid} updated")


@projects_group.command(name="delete")
@click.argument("project_uuid")
@click.confirmation_option(prompt="Are you sure you want to delete this project?")
@pass_state
def projects_delete(state: CliState, project_uuid: str) -> None:
    state.call(lambda client: client.projects.delete(project_uuid))
    state.success(f"Project {project_uuid} deleted")


@projects_group.command(name="environment")
@click.argument("project_uuid")
@click.argument("environment")
@json_option
@pass_state
def projects_environment(
    state: CliState, project_uuid: str, environment: str, as_json: bool
) -> None:
    """Show one project environment, by name or UUID."""
    state.emit(
        state.call(lambda client: client.projects.environment(project_uuid, environment)),
        as_json=as_json,
    )


# =============================================================================
# TEAMS
# =============================================================================


@cli.group(name="teams")
def teams_group() -> None:
    """Inspect teams."""


@teams_group.command(name="list")
@json_option
@pass_state
def teams_list(state: CliState, as_json: bool) -> None:
    teams = state.call(lambda client: client.teams.list())
    state.emit(teams, TEAM_COLUMNS, as_json=as_json, empty="No teams found")


@teams_group.command(name="get")
@click.argument("team_id", type=int)
@json_option
@pass_state
def teams_get(state: CliState, team_id: int, as_json: bool) -> None:
    state.emit(state.call(lambda client: client.teams.get(team_id)), as_json=as_json)


@teams_group.command(name="members")
@click.argument("team_id", type=int)
@json_option
@pass_state
def teams_members(state: CliState, team_id: int, as_json: bool) -> None:
    members = state.call(lambda client: client.teams.members(team_id))
    state.emit(members, MEMBER_COLUMNS, as_json=as_json, empty="No members found")


@teams_group.command(name="current")
@json_option
@pass_state
def teams_current(state: CliState, as_json: bool) -> None:
    state.emit(state.call(lambda client: client.teams.current()), as_json=as_json)


@teams_group.command(name="current-members")
@json_option
@pass_state
def teams_current_members(state: CliState, as_json: bool) -> None:
    members = state.call(lambda client: client.teams.current_members())
    state.emit(members, MEMBER_COLUMNS, as_json=as_json, empty="No members found")


# =============================================================================
# PRIVATE KEYS
# =============================================================================


@cli.group(name="private-keys")
def keys_group() -> None:
    """Manage private keys."""


@keys_group.command(name="list")
@json_option
@pass_state
def keys_list(state: CliState, as_json: bool) -> None:
    keys = state.call(lambda client: client.private_keys.list())
    state.emit(keys, KEY_COLUMNS, as_json=as_json, empty="No private keys found")


@keys_group.command(name="get")
@click.argument("key_uuid")
@json_option
@pass_state
def keys_get(state: CliState, key_uuid: str, as_json: bool) -> None:
    state.emit(state.call(lambda client: client.private_keys.get(key_uuid)), as_json=as_json)


@keys_group.command(name="create")
@click.option("--name", required=True)
@click.option(
    "--private-key", "private_key", required=True, help="Key material, or @file to read it"
)
@click.option("--description")
@pass_state
def keys_create(state: CliState, name: str, private_key: str, description: str | None) -> None:
    if private_key.startswith("@"):
        private_key = safe_read_file(private_key[1:])
    key_uuid = state.call(lambda client: client.private_keys.create(name, private_key, description))
    state.success(f"Private key created: {key_uuid}")


@keys_group.command(name="update")
@click.argument("key_uuid")
@data_option
@pass_state
def keys_update(state: CliState, key_uuid: str, data: str) -> None:
    body = parse_body(data)
    state.call(lambda client: client.private_keys.update(key_uuid, body))
    state.success(f"Private key {key_uuid} updated")


@keys_group.command(name="delete")
@click.argument("key_uuid")
@click.confirmation_option(prompt="Are you sure you want to delete this private key?")
@pass_state
def keys_delete(state: CliState, key_uuid: str) -> None:
    state.call(lambda client: client.private_keys.delete(key_uuid))
    state.success(f"Private key {key_uuid} deleted")


# =============================================================================
# DATABASES
# =============================================================================


@cli.group(name="databases")
def databases_group() -> None:
    """Manage databases."""


@databases_group.command(name="list")
@json_option
@pass_state
def databases_list(state: CliState, as_json: bool) -> None:
    state.emit(state.call(lambda client: client.databases.list()), as_json=as_json)


@databases_group.command(name="get")
@click.argument("db_uuid")
@json_option
@pass_state
def databases_get(state: CliState, db_uuid: str, as_json: bool) -> None:
    state.emit(state.call(lambda client: client.databases.get(db_uuid)), as_json=as_json)


@databases_group.command(name="create")
@click.argument("engine", type=click.Choice(sorted(ENGINES)))
@data_option
@pass_state
def databases_create(state: CliState, engine: str, data: str) -> None:
    """Create a database of the given ENGINE."""
    body = parse_body(data)
    created = state.call(lambda client: client.databases.create(engine, body))
    state.success(f"Database created: {created.get('uuid', '')}")


@databases_group.command(name="update")
@click.argument("db_uuid")
@data_option
@pass_state
def databases_update(state: CliState, db_uuid: str, data: str) -> None:
    body = parse_body(data)
    state.call(lambda client: client.databases.update(db_uuid, body))
    state.success(f"Database {db_uuid} updated")


@databases_group.command(name="delete")
@click.argument("db_uuid")
@delete_options
@pass_state
def databases_delete(
    state: CliState,
    db_uuid: str,
    delete_configurations: bool | None,
    delete_volumes: bool | None,
    docker_cleanup: bool | None,
    delete_connected_networks: bool | None,
) -> None:
    state.call(
        lambda client: client.databases.delete(
            db_uuid,
            delete_configurations=delete_configurations,
            delete_volumes=delete_volumes,
            docker_cleanup=docker_cleanup,
            delete_connected_networks=delete_connected_networks,
        )
    )
    state.success(f"Database {db_uuid} deleted")


@databases_group.command(name="start")
@click.argument("db_uuid")
@pass_state
def databases_start(state: CliState, db_uuid: str) -> None:
    message = state.call(lambda client: client.databases.start(db_uuid))
    state.success(message or f"Database {db_uuid} started")


@databases_group.command(name="stop")
@click.argument("db_uuid")
@pass_state
def databases_stop(state: CliState, db_uuid: str) -> None:
    message = state.call(lambda client: client.databases.stop(db_uuid))
    state.success(message or f"Database {db_uuid} stopped")


@databases_group.command(name="restart")
@click.argument("db_uuid")
@pass_state
def databases_restart(state: CliState, db_uuid: str) -> None:
    message = state.call(lambda client: client.databases.restart(db_uuid))
    state.success(message or f"Database {db_uuid} restarted")


# =============================================================================
# SEARCH
# =============================================================================


def _warn_failed(errors: dict[str, str]) -> None:
    for kind, error in errors.items():
        click.echo(f"Warning: failed to list {kind}: {error}", err=True)


def show_search(state: CliState, results: SearchResults, as_json: bool) -> None:
    """Print hits grouped by kind; kinds that failed are warned about on stderr."""
    _warn_failed(results.errors)
    if as_json or state.config.output_format != "table":
        state.emit(results.to_dict(), as_json=as_json)
        return
    if not results.total:
        click.echo("No results found")
        return
    for kind in KINDS:
        hits = results.hits.get(kind)
        if not hits:
            continue
        columns = [
            ("UUID", "uuid"),
            ("NAME", "name"),
            ("STATUS", "status"),
            (SEARCH_DETAIL.get(kind, "DESCRIPTION"), "detail"),
        ]
        click.echo(f"{kind.capitalize()} ({len(hits)})")
        state.emit(hits, columns)
    click.echo(f"Total: {results.total} results")


def search_options(func: Callable[..., Any]) -> Callable[..., Any]:
    func = json_option(func)
    func = click.option("--tag", default="", help="Filter by tag")(func)
    func = click.option("--status", default="", help="Filter by status")(func)
    return click.option(
        "-T",
        "--type",
        "kind",
        type=click.Choice(sorted(KIND_ALIASES), case_sensitive=False),
        help="Resource type to search (default: all)",
    )(func)


@cli.command(name="search")
@click.argument("query")
@search_options
@click.option("-c", "--case-sensitive", is_flag=True, help="Case sensitive matching")
@click.option(
    "-L",
    "--limit",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    help="Maximum results (0 = no limit)",
)
@pass_state
def search_command(
    state: CliState,
    query: str,
    kind: str | None,
    status: str,
    tag: str,
    as_json: bool,
    case_sensitive: bool,
    limit: int,
) -> None:
    """Search applications, services, servers and databases.

    QUERY matches names, descriptions, domains, repositories and IPs; use *
    as a wildcard.
    """
    criteria = SearchFilter(query=query, status=status, tag=tag, case_sensitive=case_sensitive)
    kinds = resolve_kinds(kind)
    results = state.run(lambda client: search(client, criteria, kinds, limit, state.policy))
    show_search(state, results, as_json)


@cli.command(name="find")
@click.option("-n", "--name", default="", help="Name pattern (supports * wildcards)")
@search_options
@pass_state
def find_command(
    state: CliState,
    name: str,
    kind: str | None,
    status: str,
    tag: str,
    as_json: bool,
) -> None:
    """Find resources by name, status or tag."""
    if not (name or status or tag):
        raise InvalidArgumentError("at least one filter is required (--name, --status or --tag)")
    criteria = SearchFilter(query=name, status=status, tag=tag)
    kinds = resolve_kinds(kind)
    results = state.run(lambda client: search(client, criteria, kinds, policy=state.policy))
    show_search(state, results, as_json)


# =============================================================================
# MONITOR
# =============================================================================


@cli.group(name="monitor")
def monitor_group() -> None:
    """Resource status overview and health checks."""


@monitor_group.command(name="status")
@json_option
@pass_state
def monitor_status(state: CliState, as_json: bool) -> None:
    """Count applications, services and servers by status."""
    overview = state.run(lambda client: status_overview(client, state.policy))
    _warn_failed(overview.errors)
    if as_json or state.config.output_format != "table":
        state.emit(overview.to_dict(), as_json=as_json)
        return
    for kind, counts in overview.kinds.items():
        click.echo(f"{kind.capitalize()}: {counts.total} total")
        for status, count in counts.by_status.items():
            click.echo(f"  {status}: {count}")


@monitor_group.command(name="health")
@click.option("-v", "--verbose", is_flag=True, help="Also count resources by status")
@json_option
@pass_state
def monitor_health(state: CliState, verbose: bool, as_json: bool) -> None:
    """Check that the API answers authenticated calls."""
    report = state.call(lambda client: health_check(client, verbose=verbose))
    _warn_failed(report.pop("errors", {}))
    state.emit(report, as_json=as_json)


# =============================================================================
# RESOURCES / SYSTEM
# =============================================================================


@cli.group(name="resources")
def resources_group() -> None:
    """Inspect all resources."""


@resources_group.command(name="list")
@json_option
@pass_state
def resources_list(state: CliState, as_json: bool) -> None:
    state.emit(state.call(lambda client: client.resources.list()), as_json=as_json)


@cli.group(name="system")
def system_group() -> None:
    """Platform version, health and API access."""


@system_group.command(name="version")
@pass_state
def system_version(state: CliState) -> None:
    click.echo(state.call(lambda client: client.system.version()))


@system_group.command(name="health")
@pass_state
def system_health(state: CliState) -> None:
    click.echo(state.call(lambda client: client.system.healthcheck()))


@system_group.command(name="enable-api")
@pass_state
def system_enable_api(state: CliState) -> None:
    state.success(state.call(lambda client: client.system.enable_api()) or "API enabled")


@system_group.command(name="disable-api")
@click.confirmation_option(prompt="Disable API access?")
@pass_state
def system_disable_api(state: CliState) -> None:
    state.success(state.call(lambda client: client.system.disable_api()) or "API disabled")


def main() -> None:
    """Console script entry point."""
    cli(prog_name="coolifyme")


if __name__ == "__main__":
    main()
