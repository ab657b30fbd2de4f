# ABOUTME: Secret masking for strings, mappings and HTTP headers
# ABOUTME: Used by the logging pipeline so tokens never reach log output

"""
Secret redaction helpers.

Only LOG EVENTS are masked. Data returned to callers (environment variable
values, profile tokens) is never altered, otherwise an export followed by an
import would write "***MASKED***" back to the Platform.

Three shapes are handled:

    headers    Authorization -> "[REDACTED]"
    mappings   values of keys named like a secret -> "***MASKED***"
    strings    token=..., password: ..., "Bearer abc" -> value masked
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

MASK = "***MASKED***"
REDACTED = "[REDACTED]"

# (pattern, replacement) pairs applied to free text
SECRET_PATTERNS = [
    (re.compile(r"(token[\"']?\s*[:=]\s*[\"']?)[^\"'\s,}]+", re.I), rf"\1{MASK}"),
    (re.compile(r"(password[\"']?\s*[:=]\s*[\"']?)[^\"'\s,}]+", re.I), rf"\1{MASK}"),
    (re.compile(r"(secret[\"']?\s*[:=]\s*[\"']?)[^\"'\s,}]+", re.I), rf"\1{MASK}"),
    (re.compile(r"(api[_-]?key[\"']?\s*[:=]\s*[\"']?)[^\"'\s,}]+", re.I), rf"\1{MASK}"),
    (re.compile(r"(bearer\s+)[^\s\"']+", re.I), rf"\1{MASK}"),
]

# Mapping keys whose values are always masked (compared lower-cased)
SENSITIVE_KEYS = frozenset(
    [
        "token",
        "api_token",
        "access_token",
        "password",
        "secret",
        "api_key",
        "apikey",
        "api-key",
        "authorization",
        "credential",
        "credentials",
        "private_key",
    ]
)

# Header names whose values are replaced wholesale
SENSITIVE_HEADERS = frozenset(["authorization", "proxy-authorization", "cookie", "set-cookie"])

# Environment variable names that carry a secret (DB_PASSWORD, GITHUB_TOKEN, ...)
SECRET_NAME = re.compile(r"token|passw(or)?d|secret|api[_-]?key|private[_-]?key|credential", re.I)

# Fields of a {"key": ..., "value": ...} entry that hold the variable's value
ENV_VALUE_FIELDS = frozenset(["value", "real_value"])


def looks_secret(name: str) -> bool:
    return bool(SECRET_NAME.search(name))


def redact_text(text: str) -> str:
    """Apply every SECRET_PATTERNS substitution to a string."""
    for pattern, replacement in SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def redact_headers(headers: Mapping[str, str] | Any) -> dict[str, str]:
    """
    Copy headers into a plain dict with credentials replaced.

    Accepts anything with ``.items()``, including ``httpx.Headers``.
    """
    return {
        name: REDACTED if name.lower() in SENSITIVE_HEADERS else value
        for name, value in headers.items()
    }


def redact(data: Any) -> Any:
    """
    Recursively mask sensitive values in arbitrary data.

    Dicts are masked by key, lists are traversed, strings are scrubbed with
    the text patterns. Everything else is returned unchanged.

    Environment variable entries (``{"key": "DB_PASSWORD", "value": ...}``)
    have their value masked when the variable name looks like a secret.
    """
    if isinstance(data, str):
        return redact_text(data)
    if isinstance(data, Mapping):
        name = data.get("key")
        secret_entry = isinstance(name, str) and looks_secret(name)
        masked: dict[Any, Any] = {}
        for key, value in data.items():
            if isinstance(key, str) and key.lower() in SENSITIVE_KEYS:
                # Header values already redacted by redact_headers stay as they are
                masked[key] = value if value == REDACTED else MASK
            elif secret_entry and key in ENV_VALUE_FIELDS and value is not None:
                masked[key] = MASK
            else:
                masked[key] = redact(value)
        return masked
    if isinstance(data, list | tuple):
        return [redact(item) for item in data]
    return data


def redact_body(text: str) -> str:
    """
    Mask secrets in an HTTP body before it is logged.

    JSON bodies are masked structurally and re-serialised only when something
    changed; anything else gets the free-text patterns.
    """
    try:
        data = json.loads(text)
    except ValueError:
        return redact_text(text)
    masked = redact(data)
    if masked == data:
        return text
    return json.dumps(masked)
