# ABOUTME: .env file parsing, rendering and safe file access
# ABOUTME: Multiline-aware parser, deterministic writer, atomic writes and timestamped backups

"""
.env file handling.

=============================================================================
FORMAT
=============================================================================

    # comment
    KEY=value
    QUOTED="two words"
    SINGLE='it\\'s'
    CERT="-----BEGIN-----
    line two
    -----END-----"

Parse rules:

1. Each line is trimmed; empty lines and lines starting with # are skipped
2. The line is split at the FIRST "=", key and value are trimmed
3. A value wrapped in double quotes loses them and has \\\\ and \\" decoded
   (any other backslash is kept); a value wrapped in single quotes loses
   them and has \\' decoded
4. A double-quoted value without its closing quote continues on the next
   physical lines (kept verbatim) up to the line whose only unescaped quote
   is its last character. A line with an unescaped quote anywhere else
   (e.g. ``NEXT="x"``) cannot be a continuation: the opening quote is then
   treated as unterminated, that one value is kept as written and parsing
   resumes on the following line
5. Keys that are not identifiers ([A-Za-z_][A-Za-z0-9_]*) are dropped
6. For duplicate keys the last one wins

The writer quotes only when it has to (newlines, surrounding whitespace, a
leading quote character), escaping \\ as \\\\ and " as \\". Keys are written
in sorted order so repeated writes of the same map produce identical files.
"""

from __future__ import annotations

import os
import re
import shutil
import tempfile
from collections.abc import Iterable, Mapping
from datetime import datetime
from pathlib import Path

import structlog

from coolifyme.errors import LocalFileError, UnsafePathError

logger = structlog.get_logger(__name__)

IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
FILE_MODE = 0o600
BACKUP_TIMESTAMP = "%Y%m%d-%H%M%S"


# =============================================================================
# PARSING
# =============================================================================


def _closing_quote(text: str) -> int:
    """Index of the first unescaped double quote in ``text``, or -1."""
    escaped = False
    for index, char in enumerate(text):
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == '"':
            return index
    return -1


def _closes_value(line: str) -> bool | None:
    """
    Classify a physical line following an unterminated double-quoted value.

    True: the line closes the value (its only unescaped quote is its last
    character). False: a plain continuation line. None: the line cannot
    belong to the value, so the opening quote was never closed.
    """
    text = line.rstrip()
    index = _closing_quote(text)
    if index == -1:
        return False
    if index == len(text) - 1:
        return True
    return None


def _unescape(text: str) -> str:
    r"""Decode \\ and \" inside a double-quoted value; other backslashes stay."""
    out: list[str] = []
    i = 0
    while i < len(text):
        char = text[i]
        if char == "\\" and i + 1 < len(text) and text[i + 1] in ('"', "\\"):
            out.append(text[i + 1])
            i += 2
            continue
        out.append(char)
        i += 1
    return "".join(out)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return _unescape(value[1:-1])
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1].replace("\\'", "'")
    return value


def parse_env(content: str) -> dict[str, str]:
    """
    Parse .env text into a dict.

    Malformed lines (no "=", invalid key) are skipped silently. A double
    quote that is never closed only affects its own key: the value is kept
    as written on that line and parsing resumes on the next line.
    """
    values: dict[str, str] = {}
    lines = content.splitlines()
    i = 0
    while i < len(lines):
        line = lines[i].strip()
        i += 1
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        value = value.strip()

        if value.startswith('"') and _closing_quote(value[1:]) == -1:
            for j in range(i, len(lines)):
                closes = _closes_value(lines[j])
                if closes is None:
                    break
                if closes:
                    first = lines[i - 1].partition("=")[2].lstrip()
                    value = "\n".join([first, *lines[i:j], lines[j].rstrip()])
                    i = j + 1
                    break

        if IDENTIFIER.match(key):
            values[key] = _unquote(value)
    return values



# =============================================================================
# RENDERING
# =============================================================================


def format_value(value: str) -> str:
    """Quote and escape a value only when a bare value would not parse back."""
    needs_quotes = (
        "\n" in value
        or value != value.strip()
        or value[:1] in ("'", '"')
    )
    if not needs_quotes:
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def render_env(values: Mapping[str, str], header: Iterable[str] = ()) -> str:
    """
    Render a map as .env text.

    Args:
        values: Variables to write; sorted by key.
        header: Comment lines without the leading "# "; followed by a blank line.
    """
    lines = [f"# {line}" for line in header]
    if lines:
        lines.append("")
    lines.extend(f"{key}={format_value(values[key])}" for key in sorted(values))
    return "\n".join(lines) + "\n"


def header_lines(
    title: str,
    resource_label: str,
    resource_uuid: str,
    stamp_label: str,
    when: datetime,
) -> list[str]:
    """
    Standard three-line header, e.g.::

        # Environment variables exported from Coolify
        # Application UUID: <uuid>
        # Exported at: 2024-01-15 10:30:00
    """
    return [
        title,
        f"{resource_label} UUID: {resource_uuid}",
        f"{stamp_label}: {when.strftime('%Y-%m-%d %H:%M:%S')}",
    ]


# =============================================================================
# FILE ACCESS
# =============================================================================


def clean_path(path: str | os.PathLike[str]) -> Path:
    """
    Normalise a path and refuse traversal.

    Raises:
        UnsafePathError: If the normalised path still contains "..".
    """
    cleaned = os.path.normpath(os.fspath(path))
    if ".." in Path(cleaned).parts:
        raise UnsafePathError(f"invalid file path: {path}")
    return Path(cleaned)


def safe_read_file(path: str | os.PathLike[str]) -> str:
    """
    Read a text file after path cleaning.

    Raises:
        UnsafePathError: Path traversal attempt.
        LocalFileError: The file cannot be read.
    """
    cleaned = clean_path(path)
    try:
        return cleaned.read_text(encoding="utf-8")
    except OSError as e:
        raise LocalFileError(f"failed to read {cleaned}: {e.strerror or e}") from e


def read_env_file(path: str | os.PathLike[str]) -> dict[str, str]:
    return parse_env(safe_read_file(path))


def write_file_atomic(path: str | os.PathLike[str], content: str) -> None:
    """
    Replace ``path`` with ``content`` (mode 0600) via a same-directory temp file.

    Raises:
        LocalFileError: The file cannot be written.
    """
    target = Path(path)
    directory = target.parent
    tmp_name: str | None = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=directory)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(tmp_name, FILE_MODE)
        os.replace(tmp_name, target)
        tmp_name = None
    except OSError as e:
        raise LocalFileError(f"failed to write {target}: {e.strerror or e}") from e
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
    logger.debug("File written", path=str(target))


def backup_file(path: str | os.PathLike[str], when: datetime) -> Path:
    """
    Copy ``path`` to ``<path>.backup.<YYYYmmdd-HHMMSS>`` with mode 0600.

    An existing backup is never overwritten: a second backup within the same
    second gets a ``.1`` suffix, the next ``.2`` and so on.

    Returns:
        The backup path.
    """
    source = Path(path)
    stamp = when.strftime(BACKUP_TIMESTAMP)
    attempt = 0
    while True:
        suffix = f".{attempt}" if attempt else ""
        backup = source.with_name(f"{source.name}.backup.{stamp}{suffix}")
        try:
            with open(source, "rb") as src, open(backup, "xb") as dst:
                shutil.copyfileobj(src, dst)
            os.chmod(backup, FILE_MODE)
        except FileExistsError:
            attempt += 1
            continue
        except OSError as e:
            raise LocalFileError(f"failed to create backup {backup}: {e.strerror or e}") from e
        logger.info("Backup created", path=str(backup))
        return backup
