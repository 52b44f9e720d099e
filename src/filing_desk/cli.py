"""CLI entry point for filing-desk.

Usage:
    filing-desk detect FILE               # Thread signals for pasted text
    filing-desk format FILE [--split]     # Format pasted text via the formatting service
    filing-desk extract-contacts FILE     # Contacts found in a legacy document
    filing-desk serve                     # Run the HTTP API
    filing-desk --help                    # Show all options

FILE may be ``-`` to read from stdin. Results are printed as JSON on stdout;
logs go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from pydantic import BaseModel

from filing_desk.core.config import get_pipeline_config
from filing_desk.core.logging import configure_structlog, setup_logging
from filing_desk.integrations.anthropic.client import AnthropicFormattingClient
from filing_desk.services.contact_extraction import dedupe_contacts, extract_contacts
from filing_desk.services.formatter import CorrespondenceFormatter
from filing_desk.services.thread_detection import detect_thread_signals, should_default_to_split


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Normalize pasted correspondence into structured entries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log at DEBUG level",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for rolling log files (default: no file logging)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    detect = subparsers.add_parser("detect", help="Detect thread signals in pasted text")
    detect.add_argument("file", help="Text file, or - for stdin")

    fmt = subparsers.add_parser("format", help="Format pasted text")
    fmt.add_argument("file", help="Text file, or - for stdin")
    split_group = fmt.add_mutually_exclusive_group()
    split_group.add_argument(
        "--split",
        dest="split",
        action="store_true",
        default=None,
        help="Ask the formatting service to split the text into messages",
    )
    split_group.add_argument(
        "--no-split",
        dest="split",
        action="store_false",
        help="Format as a single entry",
    )

    extract = subparsers.add_parser("extract-contacts", help="Extract contacts from a document")
    extract.add_argument("file", help="Text file, or - for stdin")
    extract.add_argument(
        "--no-dedupe",
        action="store_true",
        help="Keep repeated contacts",
    )

    subparsers.add_parser("serve", help="Run the HTTP API")

    return parser.parse_args(argv)


def read_input(source: str) -> str:
    """Read text from a file path or stdin."""
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def print_model(model: BaseModel) -> None:
    """Print a pydantic model as indented JSON."""
    print(json.dumps(model.model_dump(mode="json"), indent=2))


def run_detect(args: argparse.Namespace) -> int:
    """Print thread signals for the input text."""
    print_model(detect_thread_signals(read_input(args.file)))
    return 0


def run_format(args: argparse.Namespace) -> int:
    """Format the input text once; exit 1 when formatting failed."""
    raw_text = read_input(args.file)
    should_split = args.split
    if should_split is None:
        should_split = should_default_to_split(raw_text)

    config = get_pipeline_config()
    formatter = CorrespondenceFormatter(
        AnthropicFormattingClient(config), self_aliases=config.self_aliases
    )
    result = asyncio.run(formatter.format(raw_text, should_split))
    print_model(result)
    return 0 if result.success else 1


def run_extract_contacts(args: argparse.Namespace) -> int:
    """Print contacts found in the input document."""
    result = extract_contacts(read_input(args.file))
    if not args.no_dedupe:
        result = result.model_copy(update={"contacts": dedupe_contacts(result.contacts)})
    print_model(result)
    return 0


def run_serve(args: argparse.Namespace) -> int:
    """Run the API server."""
    from filing_desk.api.main import run_server

    run_server()
    return 0


COMMANDS = {
    "detect": run_detect,
    "format": run_format,
    "extract-contacts": run_extract_contacts,
    "serve": run_serve,
}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = parse_args(argv)
    if args.command is None:
        print("Usage: filing-desk {detect|format|extract-contacts|serve} ...", file=sys.stderr)
        sys.exit(2)

    level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(
        level=level,
        log_dir=args.log_dir,
        file_logging=args.log_dir is not None,
    )
    configure_structlog(
        json_format=False,
        log_level=logging.getLevelName(level),
        use_stdlib=True,
    )

    try:
        exit_code = COMMANDS[args.command](args)
    except OSError as e:
        print(f"Cannot read input: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
