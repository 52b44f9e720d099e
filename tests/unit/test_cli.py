"""Tests for the command line interface."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
import structlog

from filing_desk.cli import main, parse_args

THREAD_TEXT = (
    "Email from Freddie to Sam, 03/04/24\nQuote attached.\n"
    + "." * 30
    + "\nEmail from Sam to Freddie, 04/04/24\nThanks, received.\n"
    + "." * 30
    + "\n"
)


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Restore logging state after each CLI run."""
    yield
    structlog.reset_defaults()
    logging.getLogger("filing_desk").handlers.clear()


@pytest.fixture
def text_file(tmp_path: Path) -> Callable[[str], str]:
    """Write text to a temporary file and return its path."""

    def _write(content: str) -> str:
        path = tmp_path / "paste.txt"
        path.write_text(content, encoding="utf-8")
        return str(path)

    return _write


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return int(exc_info.value.code or 0)


class TestParseArgs:
    """Tests for argument parsing."""

    def test_format_split_default_is_unset(self) -> None:
        """Test the split choice is left to thread detection by default."""
        assert parse_args(["format", "x.txt"]).split is None
        assert parse_args(["format", "x.txt", "--split"]).split is True
        assert parse_args(["format", "x.txt", "--no-split"]).split is False

    def test_split_flags_exclusive(self) -> None:
        """Test --split and --no-split cannot be combined."""
        with pytest.raises(SystemExit):
            parse_args(["format", "x.txt", "--split", "--no-split"])


class TestMain:
    """Tests for main."""

    def test_no_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test usage is printed without a command."""
        assert _run([]) == 2
        assert "Usage" in capsys.readouterr().err

    def test_detect(
        self, text_file: Callable[[str], str], capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test thread signals are printed as JSON."""
        code = _run(["detect", text_file(THREAD_TEXT)])

        output = json.loads(capsys.readouterr().out)
        assert code == 0
        assert output["looks_like_thread"] is True
        assert output["confidence"] == "high"
        assert output["default_split"] is True

    def test_missing_file(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test unreadable input exits 1."""
        assert _run(["detect", "/nonexistent/paste.txt"]) == 1
        assert "Cannot read input" in capsys.readouterr().err

    def test_extract_contacts(
        self, text_file: Callable[[str], str], capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test contacts are printed."""
        document = "Contacts:\nTom Baker - Director\ntom@baker.co.uk\n" + "." * 30 + "\nHi"

        code = _run(["extract-contacts", text_file(document)])

        output = json.loads(capsys.readouterr().out)
        assert code == 0
        assert output["contacts"][0]["name"] == "Tom Baker"
        assert output["contacts"][0]["email"] == "tom@baker.co.uk"

    def test_format_success(
        self,
        text_file: Callable[[str], str],
        make_client: Callable[..., Any],
        single_entry_json: str,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test a formatted entry is printed and the exit code is 0."""
        client = make_client(single_entry_json)
        with patch("filing_desk.cli.AnthropicFormattingClient", return_value=client):
            code = _run(["format", text_file("hi sam, quote attached"), "--no-split"])

        output = json.loads(capsys.readouterr().out)
        assert code == 0
        assert output["success"] is True
        assert output["data"]["kind"] == "single"

    def test_format_failure(
        self,
        text_file: Callable[[str], str],
        make_client: Callable[..., Any],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test a formatting failure exits 1 with the failure printed."""
        client = make_client("not json at all")
        with patch("filing_desk.cli.AnthropicFormattingClient", return_value=client):
            code = _run(["format", text_file("hi sam")])

        output = json.loads(capsys.readouterr().out)
        assert code == 1
        assert output["success"] is False
        assert output["should_save_unformatted"] is True

    def test_format_split_follows_detection(
        self,
        text_file: Callable[[str], str],
        make_client: Callable[..., Any],
        make_entry: Callable[..., dict[str, Any]],
    ) -> None:
        """Test thread-like text asks for a split when no flag is given."""
        split = json.dumps(
            {"entries": [make_entry(), make_entry(formatted_text="Thanks")], "warnings": []}
        )
        client = make_client(split)
        with patch("filing_desk.cli.AnthropicFormattingClient", return_value=client):
            code = _run(["format", text_file(THREAD_TEXT)])

        assert code == 0
        assert client.instructions[0].user.startswith("Format and split")
