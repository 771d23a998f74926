"""
Main CLI entry point for askstream.

Asks one question and renders the streamed answer.
"""

import argparse
import logging
import signal
import sys
from typing import Any

from rich.console import Console

from askstream import __version__

from .._client import AskClient
from .._exceptions import AskStreamError
from ..streaming import CancelToken
from .display import create_display

CANCELLED_EXIT = 130  # 128 + SIGINT


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="askstream",
        description="Ask a question and stream the answer with sources",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("question", nargs="+", help="Question to ask")
    parser.add_argument(
        "--base-url", help="Streaming endpoint (or set ASKSTREAM_BASE_URL environment variable)"
    )
    parser.add_argument(
        "--api-key", help="Bearer token, if required (or set ASKSTREAM_API_KEY)"
    )
    parser.add_argument("--timeout", type=int, default=300, help="Request timeout in seconds")
    parser.add_argument(
        "--format",
        choices=["verbose", "compact", "json"],
        default="verbose",
        help="Output format (default: verbose)",
    )
    parser.add_argument("--debug", action="store_true", help="Log frame-level diagnostics")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _run(argv: list[str], cancel_token: CancelToken) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    client = AskClient(base_url=args.base_url, api_key=args.api_key, timeout=args.timeout)
    display = create_display(args.format)
    question = " ".join(args.question)

    try:
        stream = client.ask(question, cancel_token=cancel_token)
    except AskStreamError as e:
        display.on_error(e)
        return 1

    display.start()
    try:
        with stream:
            for event in stream:
                display.on_event(event)
    finally:
        display.finish()
        client.close()

    return 1 if display.error is not None else 0


def _raise_interrupt(_signum: int, _frame: Any) -> None:
    raise KeyboardInterrupt()


def run_cancellable(argv: list[str], cancel_token: CancelToken) -> int:
    """
    Run the CLI so that Ctrl-C or SIGTERM abandons the in-flight stream.

    The token is cancelled before the exit code is returned, so no further
    answer output follows the cancellation notice.

    Returns:
        The command's exit code, or CANCELLED_EXIT when interrupted
    """
    previous = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        return _run(argv, cancel_token)
    except KeyboardInterrupt:
        cancel_token.cancel()
        Console(stderr=True).print("\n[yellow]✖ Cancelled[/yellow]")
        return CANCELLED_EXIT
    finally:
        signal.signal(signal.SIGTERM, previous)


def main() -> None:
    """Main CLI entry point."""
    raise SystemExit(run_cancellable(sys.argv[1:], CancelToken()))


if __name__ == "__main__":
    main()
