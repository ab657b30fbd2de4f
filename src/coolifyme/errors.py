# ABOUTME: Exception hierarchy for the coolifyme client and CLI
# ABOUTME: Separates invalid input, configuration, remote, transport and protocol failures

"""
Error taxonomy shared by every layer.

Each layer wraps the cause it received with a short prefix naming what it was
doing ("failed to list applications: ...") and chains the original exception
with ``raise ... from``. Callers that only care about "did it work" catch
``CoolifyError``; callers that need to branch catch the specific subclass.

    CoolifyError
    ├── InvalidArgumentError      bad UUID, branch+pr together, bad profile name
    │   └── UnsafePathError       ".." in a path handed to the .env reader
    ├── ConfigurationError        missing token, unwritable config directory
    │   ├── ProfileNotFoundError
    │   └── ProfileExistsError
    ├── RemoteError               non-success HTTP status from the Platform
    ├── EmptyResponseError        success status but the expected payload is missing
    ├── TransportError            DNS, TLS, connection and timeout failures
    ├── LocalFileError            .env or backup file cannot be read or written
    ├── DeploymentFailedError     watch() saw a terminal failure status
    └── OperationFailedError      retry policy gave up
"""

from __future__ import annotations


class CoolifyError(Exception):
    """Base class for all errors raised by coolifyme."""


class InvalidArgumentError(CoolifyError, ValueError):
    """Input rejected before any HTTP call was made."""


class UnsafePathError(InvalidArgumentError):
    """A file path contained a directory traversal component."""


class ConfigurationError(CoolifyError):
    """Configuration is missing or cannot be used."""


class ProfileNotFoundError(ConfigurationError):
    """The named profile (or the whole profile store) does not exist."""


class ProfileExistsError(ConfigurationError):
    """A profile with this name is already stored."""


class RemoteError(CoolifyError):
    """
    Non-success response from the Platform.

    Keeps the status code so callers can tell a 404 from a 500, plus the
    message the Platform returned and any extra detail text.
    """

    def __init__(self, code: int, message: str, details: str | None = None) -> None:
        self.code = code
        self.message = message
        self.details = details
        super().__init__(str(self))

    def __str__(self) -> str:
        base = f"API error ({self.code}): {self.message}"
        if self.details:
            base += f" - {self.details}"
        return base

    @property
    def retryable(self) -> bool:
        """Server-side and throttling failures are worth another attempt."""
        return self.code >= 500 or self.code in (408, 429)


class EmptyResponseError(CoolifyError):
    """The Platform answered with success but without the expected payload."""


class TransportError(CoolifyError):
    """The request never produced an HTTP response."""


class LocalFileError(CoolifyError):
    """A local file could not be read or written."""


class DeploymentFailedError(CoolifyError):
    """A watched deployment reached a terminal failure status."""

    def __init__(self, deployment_uuid: str, status: str, logs: str | None = None) -> None:
        self.deployment_uuid = deployment_uuid
        self.status = status
        self.logs = logs
        super().__init__(f"deployment {deployment_uuid} failed with status: {status}")


class OperationFailedError(CoolifyError):
    """All attempts allowed by the retry policy failed."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"operation failed after {attempts} attempts: {last_error}")
