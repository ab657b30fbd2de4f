# ABOUTME: Unit tests for .env parsing, rendering and file access
# ABOUTME: Tests quoting, multiline values, path checks, atomic writes and backups

import os
import stat
from datetime import datetime

import pytest

from coolifyme.errors import LocalFileError, UnsafePathError
from coolifyme.utils.envfile import (
    backup_file,
    clean_path,
    format_value,
    header_lines,
    parse_env,
    read_env_file,
    render_env,
    safe_read_file,
    write_file_atomic,
)

WHEN = datetime(2024, 1, 15, 10, 30, 0)


def mode_of(path) -> int:
    return stat.S_IMODE(os.stat(path).st_mode)


@pytest.mark.unit
class TestParse:
    """Tests for parse_env."""

    def test_basic(self):
        """Test comments, blank lines and plain assignments."""
        content = "# header\n\nA=1\n  B = two  \n"

        assert parse_env(content) == {"A": "1", "B": "two"}

    def test_split_at_first_equals(self):
        """Test that later equals signs belong to the value."""
        assert parse_env("URL=postgres://u:p@h/db?sslmode=require") == {
            "URL": "postgres://u:p@h/db?sslmode=require"
        }

    def test_quotes_removed(self):
        """Test that one outer pair of matching quotes is removed."""
        content = "A=\"two words\"\nB='single'\nC=\"mismatched'\n"

        assert parse_env(content) == {"A": "two words", "B": "single", "C": "\"mismatched'"}

    def test_escaped_quotes(self):
        """Test that escaped quotes inside a quoted value are unescaped."""
        assert parse_env('A="say \\"hi\\""') == {"A": 'say "hi"'}

    def test_multiline(self):
        """Test a double-quoted value spanning several lines."""
        content = 'CERT="-----BEGIN-----\nabc\n-----END-----"\nNEXT=1\n'

        assert parse_env(content) == {
            "CERT": "-----BEGIN-----\nabc\n-----END-----",
            "NEXT": "1",
        }

    def test_unterminated_quote(self):
        """Test that a quote never closed stays a single-line value."""
        assert parse_env('A="open\nB=2\n') == {"A": '"open', "B": "2"}

    def test_unterminated_quote_keeps_later_keys(self):
        """Test that a broken quote does not swallow the assignments after it."""
        content = 'A="oops\nB=2\nC="x"\n'

        assert parse_env(content) == {"A": '"oops', "B": "2", "C": "x"}

    def test_unterminated_quote_before_multiline_value(self):
        """Test that a later quoted multiline value still parses on its own."""
        content = 'A="oops\nCERT="-----BEGIN-----\nabc\n-----END-----"\n'

        assert parse_env(content) == {
            "A": '"oops',
            "CERT": "-----BEGIN-----\nabc\n-----END-----",
        }

    def test_backslashes_decoded(self):
        """Test that \\\\ and \\" are decoded and other backslashes kept."""
        content = 'A="C:\\\\dir\\\\"\nB="a\\nb"\nC="it\\\'s"\n'

        assert parse_env(content) == {"A": "C:\\dir\\", "B": "a\\nb", "C": "it\\'s"}

    def test_bare_backslashes_literal(self):
        """Test that unquoted values are taken literally."""
        assert parse_env("A=C:\\dir\\\n") == {"A": "C:\\dir\\"}

    def test_invalid_keys_dropped(self):
        """Test that non-identifier keys and lines without = are skipped."""
        content = "1BAD=x\nBAD-KEY=y\nnoequals\nGOOD_1=z\n"

        assert parse_env(content) == {"GOOD_1": "z"}

    def test_last_duplicate_wins(self):
        """Test that repeated keys keep the last value."""
        assert parse_env("A=1\nA=2\n") == {"A": "2"}

    def test_empty_value(self):
        """Test that an empty value is kept."""
        assert parse_env("A=\n") == {"A": ""}


@pytest.mark.unit
class TestRender:
    """Tests for format_value and render_env."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("plain", "plain"),
            ("two words", "two words"),
            ("", ""),
            (" padded", '" padded"'),
            ('"quoted"', '"\\"quoted\\""'),
            ("line1\nline2", '"line1\nline2"'),
            ("C:\\dir", "C:\\dir"),
            ("line1\nC:\\dir\\", '"line1\nC:\\\\dir\\\\"'),
        ],
    )
    def test_format_value(self, value: str, expected: str):
        """Test that values are quoted only when necessary."""
        assert format_value(value) == expected

    def test_sorted_with_header(self):
        """Test that keys are sorted and the header is commented."""
        text = render_env({"B": "2", "A": "1"}, ["Title", "Sub"])

        assert text == "# Title\n# Sub\n\nA=1\nB=2\n"

    def test_round_trip(self):
        """Test the documented rendering example parses back unchanged."""
        values = {"A": "1", "B": "two words", "C": "line1\nline2"}

        text = render_env(values)

        assert "A=1\n" in text
        assert "B=two words\n" in text
        assert 'C="line1\nline2"\n' in text
        assert parse_env(text) == values

    def test_round_trip_backslashes_and_quotes(self):
        """Test that backslashes and quotes survive a write and read back."""
        values = {
            "K": "line1\nC:\\dir\\",
            "PATH_ONLY": "C:\\dir\\",
            "ESCAPE_LIKE": "a\\nb\\",
            "QUOTED_TAIL": 'line1\nsay "hi"',
            "SINGLE": "  it\\'s  ",
            "MIXED": '\\"\nx\\\\"',
            "Z": "1",
        }

        assert parse_env(render_env(values)) == values

    def test_deterministic(self):
        """Test that rendering the same map twice gives identical text."""
        values = {"Z": "1", "A": "2", "M": "3"}

        assert render_env(values) == render_env(dict(reversed(list(values.items()))))

    def test_header_lines(self):
        """Test the standard three-line header."""
        lines = header_lines("Exported", "Application", "u1", "Exported at", WHEN)

        assert lines == [
            "Exported",
            "Application UUID: u1",
            "Exported at: 2024-01-15 10:30:00",
        ]


@pytest.mark.unit
class TestFileAccess:
    """Tests for path cleaning, reads, writes and backups."""

    def test_clean_path_normalises(self, tmp_path):
        """Test that redundant separators are removed."""
        assert clean_path(f"{tmp_path}//sub/./.env") == tmp_path / "sub" / ".env"

    @pytest.mark.parametrize("path", ["../.env", "a/../../b", "../../etc/passwd"])
    def test_clean_path_refuses_traversal(self, path: str):
        """Test that paths escaping upwards are refused."""
        with pytest.raises(UnsafePathError, match="invalid file path"):
            clean_path(path)

    def test_resolved_traversal_allowed(self):
        """Test that a .. cancelled out by normalisation is fine."""
        assert str(clean_path("a/../b/.env")) == os.path.join("b", ".env")

    def test_read_missing(self, tmp_path):
        """Test that a missing file is a local file error."""
        with pytest.raises(LocalFileError, match="failed to read"):
            safe_read_file(tmp_path / "missing.env")

    def test_read_env_file(self, tmp_path):
        """Test reading and parsing in one step."""
        path = tmp_path / ".env"
        path.write_text("A=1\n")

        assert read_env_file(path) == {"A": "1"}

    def test_atomic_write(self, tmp_path):
        """Test that writes replace the file with mode 0600 and no leftovers."""
        path = tmp_path / ".env"
        path.write_text("old\n")

        write_file_atomic(path, "A=1\n")

        assert path.read_text() == "A=1\n"
        assert mode_of(path) == 0o600
        assert sorted(p.name for p in tmp_path.iterdir()) == [".env"]

    def test_atomic_write_missing_dir(self, tmp_path):
        """Test that an unwritable location is a local file error."""
        with pytest.raises(LocalFileError, match="failed to write"):
            write_file_atomic(tmp_path / "nope" / ".env", "A=1\n")

    def test_backup(self, tmp_path):
        """Test the backup name, content and mode."""
        path = tmp_path / ".env"
        path.write_text("A=1\n")

        backup = backup_file(path, WHEN)

        assert backup == tmp_path / ".env.backup.20240115-103000"
        assert backup.read_text() == "A=1\n"
        assert mode_of(backup) == 0o600

    def test_backup_same_second_keeps_earlier(self, tmp_path):
        """Test that repeated backups within one second never overwrite each other."""
        path = tmp_path / ".env"
        path.write_text("A=1\n")
        first = backup_file(path, WHEN)
        path.write_text("A=2\n")

        second = backup_file(path, WHEN)
        third = backup_file(path, WHEN)

        assert first.read_text() == "A=1\n"
        assert second == tmp_path / ".env.backup.20240115-103000.1"
        assert second.read_text() == "A=2\n"
        assert third == tmp_path / ".env.backup.20240115-103000.2"
        assert mode_of(second) == 0o600

    def test_backup_missing_source(self, tmp_path):
        """Test that backing up a missing file fails."""
        with pytest.raises(LocalFileError, match="failed to create backup"):
            backup_file(tmp_path / ".env", WHEN)
