# ABOUTME: On-disk profile store for coolifyme (a single YAML document)
# ABOUTME: Profile CRUD, default-profile pointer and global settings with atomic rewrites

"""
Profile store.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

Every named connection lives in ONE YAML file, by default
``~/.config/coolifyme/config.yaml``:

    default_profile: prod
    profiles:
      prod:
        name: prod
        api_token: <secret>
        base_url: https://coolify.example.com/api/v1
    global_settings:
      output_format: table

The store is created lazily on the first write. Reads never create anything.

=============================================================================
ATOMIC REWRITE
=============================================================================

The file is always rewritten whole: the new document goes to a temporary file
in the same directory which is then ``os.replace``d over the old one. A
reader sees either the previous document or the new one, never a mix. There
is no cross-process locking; two concurrent writers can still lose an update.

=============================================================================
DEFAULT POINTER RULES
=============================================================================

- Creating the first profile makes it the default.
- The profile literally named "default" cannot be deleted.
- Deleting the current default promotes "default" if present, otherwise any
  remaining profile, otherwise clears the pointer.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import structlog
import yaml

from coolifyme.config import (
    DEFAULT_BASE_URL,
    DEFAULT_PROFILE_NAME,
    GlobalSettings,
    Profile,
    ProfileStoreDocument,
    validate_profile_name,
)
from coolifyme.errors import (
    ConfigurationError,
    InvalidArgumentError,
    ProfileExistsError,
    ProfileNotFoundError,
)

logger = structlog.get_logger(__name__)

DIR_MODE = 0o750
FILE_MODE = 0o600


def default_config_path() -> Path:
    """``${HOME}/.config/coolifyme/config.yaml``"""
    return Path.home() / ".config" / "coolifyme" / "config.yaml"


class ProfileStore:
    """
    Read and write the profile document.

    Every mutating method loads the current document, applies one change and
    saves it back, so callers never hold a stale copy across operations.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path) if path else default_config_path()

    # -------------------------------------------------------------------------
    # PERSISTENCE
    # -------------------------------------------------------------------------

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> ProfileStoreDocument:
        """
        Read the document.

        Raises:
            ProfileNotFoundError: If the file does not exist.
            ConfigurationError: If the file is not valid YAML or not readable.
        """
        if not self.exists():
            raise ProfileNotFoundError(f"config file not found: {self.path}")
        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"failed to read config file {self.path}: {e}") from e
        if raw is not None and not isinstance(raw, dict):
            raise ConfigurationError(f"config file {self.path} is not a mapping")
        try:
            return ProfileStoreDocument.from_document(raw)
        except ValueError as e:
            raise ConfigurationError(f"invalid config file {self.path}: {e}") from e

    def load_or_empty(self) -> ProfileStoreDocument:
        """Like load() but a missing file yields an empty document."""
        if not self.exists():
            return ProfileStoreDocument()
        return self.load()

    def save(self, document: ProfileStoreDocument) -> None:
        """
        Write the document atomically.

        Creates the parent directory (mode 0750) when needed; the file itself
        is written with mode 0600 since it holds tokens.

        Raises:
            ConfigurationError: If the directory or file cannot be written.
        """
        content = yaml.safe_dump(
            document.to_document(),
            default_flow_style=False,
            sort_keys=False,
        )
        directory = self.path.parent
        tmp_name: str | None = None
        try:
            directory.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, FILE_MODE)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise ConfigurationError(f"failed to write config file {self.path}: {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        logger.debug("Config file written", path=str(self.path))

    # -------------------------------------------------------------------------
    # PROFILE OPERATIONS
    # -------------------------------------------------------------------------

    def create_profile(
        self,
        name: str,
        api_token: str,
        base_url: str | None = None,
    ) -> Profile:
        """
        Add a new profile.

        Args:
            name: Profile name (validated).
            api_token: Bearer token.
            base_url: API URL; the hosted endpoint when omitted.

        Returns:
            The stored profile.

        Raises:
            InvalidArgumentError: If the name is unusable.
            ProfileExistsError: If the name is taken.
        """
        validate_profile_name(name)
        document = self.load_or_empty()
        if name in document.profiles:
            raise ProfileExistsError(f"profile '{name}' already exists")

        profile = Profile(name=name, api_token=api_token, base_url=base_url or DEFAULT_BASE_URL)
        document.profiles[name] = profile
        if len(document.profiles) == 1 or not document.default_profile:
            document.default_profile = name

        self.save(document)
        logger.info("Profile created", profile=name, base_url=profile.base_url)
        return profile

    def get_profile(self, name: str) -> Profile:
        """
        Raises:
            ProfileNotFoundError: If the profile does not exist.
        """
        document = self.load_or_empty()
        try:
            return document.profiles[name]
        except KeyError:
            raise ProfileNotFoundError(f"profile '{name}' not found") from None

    def update_profile(
        self,
        name: str,
        api_token: str | None = None,
        base_url: str | None = None,
    ) -> Profile:
        """
        Change the token and/or URL of an existing profile.

        Omitted values are left as they are.
        """
        document = self.load_or_empty()
        existing = document.profiles.get(name)
        if existing is None:
            raise ProfileNotFoundError(f"profile '{name}' not found")

        updated = Profile(
            name=name,
            api_token=api_token or existing.api_token.get_secret_value(),
            base_url=base_url or existing.base_url,
        )
        document.profiles[name] = updated
        self.save(document)
        logger.info("Profile updated", profile=name)
        return updated

    def delete_profile(self, name: str) -> None:
        """
        Remove a profile and repair the default pointer.

        Raises:
            InvalidArgumentError: If ``name`` is "default".
            ProfileNotFoundError: If the profile (or the store) does not exist.
        """
        if name == DEFAULT_PROFILE_NAME:
            raise InvalidArgumentError("cannot delete the default profile")

        document = self.load()
        if name not in document.profiles:
            raise ProfileNotFoundError(f"profile '{name}' not found")

        del document.profiles[name]

        if document.default_profile == name:
            if DEFAULT_PROFILE_NAME in document.profiles:
                document.default_profile = DEFAULT_PROFILE_NAME
            elif document.profiles:
                document.default_profile = next(iter(document.profiles))
            else:
                document.default_profile = None

        self.save(document)
        logger.info("Profile deleted", profile=name, default_profile=document.default_profile)

    def list_profiles(self) -> tuple[list[Profile], str | None]:
        """All profiles plus the name of the default (None when unset)."""
        document = self.load_or_empty()
        return list(document.profiles.values()), document.default_profile

    def set_default_profile(self, name: str) -> None:
        """
        Raises:
            ProfileNotFoundError: If the profile does not exist.
        """
        document = self.load_or_empty()
        if name not in document.profiles:
            raise ProfileNotFoundError(f"profile '{name}' not found")
        document.default_profile = name
        self.save(document)
        logger.info("Default profile changed", profile=name)

    # -------------------------------------------------------------------------
    # GLOBAL SETTINGS
    # -------------------------------------------------------------------------

    def set_global_settings(
        self,
        output_format: str | None = None,
        color_output: bool | None = None,
        log_level: str | None = None,
    ) -> GlobalSettings:
        """Merge the given values into global_settings; None leaves a value as it is."""
        document = self.load_or_empty()
        merged = document.global_settings.model_dump()
        if output_format is not None:
            merged["output_format"] = output_format
        if color_output is not None:
            merged["color_output"] = color_output
        if log_level is not None:
            merged["log_level"] = log_level
        try:
            document.global_settings = GlobalSettings.model_validate(merged)
        except ValueError as e:
            raise InvalidArgumentError(f"invalid setting: {e}") from e
        self.save(document)
        return document.global_settings

    def init(
        self,
        api_token: str,
        base_url: str | None = None,
        force: bool = False,
    ) -> Profile:
        """
        Create a fresh store holding a single "default" profile.

        Raises:
            ConfigurationError: If a store already exists and ``force`` is False.
        """
        if self.exists() and not force:
            raise ConfigurationError(
                f"config file already exists: {self.path} (use --force to overwrite)"
            )
        profile = Profile(
            name=DEFAULT_PROFILE_NAME,
            api_token=api_token,
            base_url=base_url or DEFAULT_BASE_URL,
        )
        document = ProfileStoreDocument(
            default_profile=DEFAULT_PROFILE_NAME,
            profiles={DEFAULT_PROFILE_NAME: profile},
        )
        self.save(document)
        logger.info("Config initialised", path=str(self.path))
        return profile
