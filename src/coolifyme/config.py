# ABOUTME: Configuration models and the effective-config resolver for coolifyme
# ABOUTME: Handles profiles, global settings, environment aliases and precedence rules

"""
Configuration management using pydantic and pydantic-settings.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module describes every piece of configuration the client consumes and
decides which value wins when several sources disagree. It:

1. DEFINES the on-disk profile document (profiles, default pointer, globals)
2. READS the COOLIFYME_* / COOLIFY_* environment aliases
3. MERGES defaults, profile, environment and flags into one EffectiveConfig

Persistence of the document lives in ``coolifyme.profiles``; this module never
touches the filesystem.

=============================================================================
PRECEDENCE
=============================================================================

For every field the first source that has a value wins:

    invocation override (--token, --server, --profile, ...)
        > environment variable
            > selected profile (token, base_url)
                > global_settings in the file (output_format, log_level, color)
                    > built-in default

The SELECTED PROFILE is the override/env profile name, else the document's
``default_profile``, else the literal "default". A missing profile is not an
error here; a missing token only becomes one when a client is constructed.

=============================================================================
ENVIRONMENT VARIABLE MAPPING
=============================================================================

    api_token      COOLIFYME_API_TOKEN, COOLIFY_API_TOKEN
    base_url       COOLIFYME_BASE_URL, COOLIFY_BASE_URL, COOLIFY_URL
    profile        COOLIFYME_PROFILE, COOLIFY_PROFILE
    log_level      COOLIFYME_LOG_LEVEL, COOLIFY_LOG_LEVEL
    output_format  COOLIFYME_OUTPUT_FORMAT, COOLIFY_OUTPUT_FORMAT
    color_output   COOLIFYME_COLOR_OUTPUT, COOLIFY_COLOR_OUTPUT
    config_path    COOLIFYME_CONFIG

Aliases are tried left to right; empty values count as unset.
"""

# =============================================================================
# IMPORTS
# =============================================================================

from __future__ import annotations

from pathlib import Path  # noqa: TC003 - Required at runtime for Pydantic
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from coolifyme.errors import ConfigurationError, InvalidArgumentError

# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_BASE_URL = "https://app.coolify.io/api/v1"
DEFAULT_PROFILE_NAME = "default"
DEFAULT_OUTPUT_FORMAT = "table"
DEFAULT_LOG_LEVEL = "info"

OutputFormat = Literal["json", "yaml", "table"]
LogLevel = Literal["debug", "info", "warn", "error"]

# Characters that would break a profile name used as a file or map key
INVALID_PROFILE_CHARS = '/:*?"<>|'


# =============================================================================
# FIELD HELPERS
# =============================================================================


def validate_profile_name(name: str) -> str:
    """
    Reject names that cannot be used as a profile key.

    Empty names are reserved to mean "unset", whitespace would make the name
    ambiguous on the command line, and path-reserved characters are refused.

    Raises:
        InvalidArgumentError: If the name is unusable.
    """
    if not name:
        raise InvalidArgumentError("profile name cannot be empty")
    if any(ch.isspace() for ch in name):
        raise InvalidArgumentError("profile name cannot contain spaces")
    if any(ch in INVALID_PROFILE_CHARS for ch in name):
        raise InvalidArgumentError("profile name contains invalid characters")
    return name


def normalize_base_url(url: str) -> str:
    """Add https:// when no scheme is present and drop trailing slashes."""
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    return url.rstrip("/")


def normalize_log_level(level: str) -> str:
    """Accept the stdlib spelling "warning" and any casing."""
    level = level.strip().lower()
    if level == "warning":
        return "warn"
    return level


# =============================================================================
# PROFILE DOCUMENT
# =============================================================================


class Profile(BaseModel):
    """
    One named connection to a Platform instance.

    The token is a SecretStr so it never shows up in repr() or log output;
    call ``api_token.get_secret_value()`` when the raw value is needed.
    """

    model_config = {"extra": "ignore"}

    name: str = Field(description="Profile identifier")
    api_token: SecretStr = Field(description="Bearer token for the Platform API")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="API base URL")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return validate_profile_name(v)

    @field_validator("base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v:
            return DEFAULT_BASE_URL
        return normalize_base_url(v)

    def to_document(self) -> dict[str, str]:
        """Plain mapping in the shape written to config.yaml."""
        return {
            "name": self.name,
            "api_token": self.api_token.get_secret_value(),
            "base_url": self.base_url,
        }


class GlobalSettings(BaseModel):
    """Preferences that apply regardless of the selected profile."""

    model_config = {"extra": "ignore"}

    output_format: OutputFormat | None = None
    # Tri-state: None means "not configured, detect at runtime"
    color_output: bool | None = None
    log_level: LogLevel | None = None

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return normalize_log_level(v) or None
        return v

    def to_document(self) -> dict[str, Any]:
        """Only explicitly set values are written."""
        return self.model_dump(exclude_none=True)


class ProfileStoreDocument(BaseModel):
    """
    The whole config.yaml file.

    Invariants kept by ``ProfileStore`` (not enforced here so that a slightly
    stale file still loads):

    - ``default_profile`` is None or names an existing profile
    - ``profiles`` keys equal the ``name`` field of their value
    """

    default_profile: str | None = None
    profiles: dict[str, Profile] = Field(default_factory=dict)
    global_settings: GlobalSettings = Field(default_factory=GlobalSettings)

    @classmethod
    def from_document(cls, data: dict[str, Any] | None) -> ProfileStoreDocument:
        """
        Build from a parsed YAML mapping.

        Profile entries may omit ``name``; the mapping key is used instead.
        """
        data = data or {}
        profiles: dict[str, Profile] = {}
        for key, entry in (data.get("profiles") or {}).items():
            entry = dict(entry or {})
            entry.setdefault("name", key)
            profiles[str(key)] = Profile.model_validate(entry)
        return cls(
            default_profile=data.get("default_profile") or None,
            profiles=profiles,
            global_settings=GlobalSettings.model_validate(data.get("global_settings") or {}),
        )

    def to_document(self) -> dict[str, Any]:
        """Mapping in the config.yaml shape."""
        document: dict[str, Any] = {
            "default_profile": self.default_profile or "",
            "profiles": {name: p.to_document() for name, p in self.profiles.items()},
        }
        global_settings = self.global_settings.to_document()
        if global_settings:
            document["global_settings"] = global_settings
        return document


# =============================================================================
# ENVIRONMENT
# =============================================================================


class EnvironmentSettings(BaseSettings):
    """
    Values taken from process environment variables.

    WHY AliasChoices?
    -----------------
    Two prefixes are in circulation (COOLIFYME_ and the shorter COOLIFY_).
    AliasChoices tries each name in order and uses the first one present,
    which gives the documented "COOLIFYME_ wins" behaviour for free.

    Only the prefixed names are read. Field names are not aliases and names
    are matched case-sensitively, so a generic API_TOKEN or BASE_URL
    exported for some other tool never reaches the resolver.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        case_sensitive=True,
        env_ignore_empty=True,
    )

    api_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("COOLIFYME_API_TOKEN", "COOLIFY_API_TOKEN"),
    )
    base_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("COOLIFYME_BASE_URL", "COOLIFY_BASE_URL", "COOLIFY_URL"),
    )
    profile: str | None = Field(
        default=None,
        validation_alias=AliasChoices("COOLIFYME_PROFILE", "COOLIFY_PROFILE"),
    )
    log_level: str | None = Field(
        default=None,
        validation_alias=AliasChoices("COOLIFYME_LOG_LEVEL", "COOLIFY_LOG_LEVEL"),
    )
    output_format: str | None = Field(
        default=None,
        validation_alias=AliasChoices("COOLIFYME_OUTPUT_FORMAT", "COOLIFY_OUTPUT_FORMAT"),
    )
    color_output: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("COOLIFYME_COLOR_OUTPUT", "COOLIFY_COLOR_OUTPUT"),
    )
    config_path: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("COOLIFYME_CONFIG"),
    )

    @field_validator("*", mode="before")
    @classmethod
    def empty_is_unset(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


def load_environment() -> EnvironmentSettings:
    """
    Read the current process environment.

    Raises:
        ConfigurationError: A variable holds a value of the wrong type.
    """
    try:
        return EnvironmentSettings()
    except ValidationError as e:
        raise _config_error(e) from e


# EffectiveConfig fields whose environment field has a different name
_ENV_FIELD_NAMES = {"profile_name": "profile", "color": "color_output"}


def _env_names(field: str) -> list[str]:
    info = EnvironmentSettings.model_fields.get(_ENV_FIELD_NAMES.get(field, field))
    if info is None or not isinstance(info.validation_alias, AliasChoices):
        return []
    return [str(choice) for choice in info.validation_alias.choices]


def _config_error(error: ValidationError) -> ConfigurationError:
    """Turn the first validation failure into a message naming its variables."""
    detail = error.errors()[0]
    loc = detail.get("loc") or ("value",)
    field = str(loc[0])
    # Settings sources report the alias; map it back to the field
    for name in EnvironmentSettings.model_fields:
        if field in _env_names(name):
            field = name
    message = f"invalid {field} {detail.get('input')!r}: {detail['msg']}"
    names = _env_names(field)
    if names:
        message += f" (check {', '.join(names)})"
    return ConfigurationError(message)


# =============================================================================
# EFFECTIVE CONFIG
# =============================================================================


class ConfigOverrides(BaseModel):
    """Invocation-time values, usually from command-line flags."""

    profile: str | None = None
    api_token: str | None = None
    base_url: str | None = None
    output_format: str | None = None
    log_level: str | None = None
    color: bool | None = None


class EffectiveConfig(BaseModel):
    """
    The merged per-invocation view consumed by resource clients.

    Never persisted. ``api_token`` may be empty here; ``require_token()``
    is the single place that turns that into an error.
    """

    api_token: SecretStr = Field(default=SecretStr(""))
    base_url: str = DEFAULT_BASE_URL
    profile_name: str = DEFAULT_PROFILE_NAME
    output_format: OutputFormat = DEFAULT_OUTPUT_FORMAT
    log_level: LogLevel = DEFAULT_LOG_LEVEL
    color: bool | None = None

    @field_validator("base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return normalize_base_url(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any) -> Any:
        return normalize_log_level(v) if isinstance(v, str) else v

    @property
    def has_token(self) -> bool:
        return bool(self.api_token.get_secret_value())

    def require_token(self) -> str:
        """
        Return the raw token or fail.

        Raises:
            ConfigurationError: If no token was configured by any source.
        """
        token = self.api_token.get_secret_value()
        if not token:
            raise ConfigurationError(
                f"API token is required (profile '{self.profile_name}' has none; "
                "set COOLIFY_API_TOKEN or pass --token)"
            )
        return token


def _first(*values: Any) -> Any:
    """First value that is not None or empty."""
    for value in values:
        if value is not None and value != "":
            return value
    return None


def resolve_config(
    document: ProfileStoreDocument | None,
    env: EnvironmentSettings | None = None,
    overrides: ConfigOverrides | None = None,
) -> EffectiveConfig:
    """
    Merge every configuration source into an EffectiveConfig.

    Pure function: the same inputs always produce the same output, nothing
    global is read or written. The caller loads the document and the
    environment and passes them in.

    Args:
        document: Parsed profile store, or None when no file exists.
        env: Environment values; defaults to an empty set.
        overrides: Invocation-time values; defaults to none.

    Returns:
        The merged configuration.

    Raises:
        ConfigurationError: A merged value is out of range (e.g. an unknown
                            output format from COOLIFY_OUTPUT_FORMAT).
    """
    env = env or EnvironmentSettings.model_construct()
    overrides = overrides or ConfigOverrides()
    document = document or ProfileStoreDocument()

    profile_name = _first(
        overrides.profile,
        env.profile,
        document.default_profile,
        DEFAULT_PROFILE_NAME,
    )
    profile = document.profiles.get(profile_name)
    profile_token = profile.api_token.get_secret_value() if profile else None
    profile_url = profile.base_url if profile else None
    settings = document.global_settings

    color = overrides.color
    if color is None:
        color = env.color_output
    if color is None:
        color = settings.color_output

    try:
        return EffectiveConfig(
            api_token=SecretStr(_first(overrides.api_token, env.api_token, profile_token) or ""),
            base_url=_first(overrides.base_url, env.base_url, profile_url, DEFAULT_BASE_URL),
            profile_name=profile_name,
            output_format=_first(
                overrides.output_format,
                env.output_format,
                settings.output_format,
                DEFAULT_OUTPUT_FORMAT,
            ),
            log_level=_first(
                overrides.log_level,
                env.log_level,
                settings.log_level,
                DEFAULT_LOG_LEVEL,
            ),
            color=color,
        )
    except ValidationError as e:
        raise _config_error(e) from e
