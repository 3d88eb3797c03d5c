"""
Command line entry point: stream an assistant run to the terminal.

Provides two output formats for run updates:
- RunDisplay: Rich terminal output with status transitions and live message text
- JsonDisplay: One JSON object per update for scripting and debugging
"""

import argparse
from dataclasses import fields, is_dataclass
from enum import Enum
import json
import logging
import sys
from typing import Any

from rich.console import Console

from . import __version__
from ._client import AssistantsClient
from ._exceptions import StreamProtocolError, ThreadstreamError
from ._streaming import RunStream, StreamUpdate
from ._types import ErrorObject, Message, Run, RunStep
from ._variants import ChatResponseFormat, RunStatus
from .streaming import Envelope

_FAILED = {RunStatus.FAILED, RunStatus.EXPIRED, RunStatus.CANCELLED, RunStatus.INCOMPLETE}


class RunDisplay:
    """Renders run updates as they arrive."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self._statuses: dict[str, Any] = {}
        self._printed: dict[str, int] = {}

    def _status_changed(self, obj_id: str, status: Any) -> bool:
        if self._statuses.get(obj_id) is status:
            return False
        self._statuses[obj_id] = status
        return True

    def on_event(self, update: StreamUpdate) -> None:
        if isinstance(update, Run):
            if self._status_changed(update.id, update.status):
                self.console.print(f"[bold cyan]run[/] {update.id} [bold]{update.status}[/]")
        elif isinstance(update, RunStep):
            if self._status_changed(update.id, update.status):
                self.console.print(f"[dim]step {update.id} ({update.type}) {update.status}[/]")
        elif isinstance(update, Message):
            text = update.text
            printed = self._printed.get(update.id, 0)
            if len(text) > printed:
                self.console.print(text[printed:], end="", markup=False, emoji=False, highlight=False)
                self._printed[update.id] = len(text)
            if update.status.is_terminal and self._status_changed(update.id, update.status):
                self.console.print()
        elif isinstance(update, ErrorObject):
            self.console.print(f"[bold red]error[/] {update.message}")
        elif isinstance(update, StreamProtocolError):
            self.console.print(f"[yellow]warning[/] {update.message}")
        elif isinstance(update, Envelope):
            self.console.print(f"[dim]unhandled event {update.event}[/]")

    def finish(self, run: Run | None) -> None:
        if run is None:
            self.console.print("[yellow]Stream ended before any run event[/]")
            return
        line = f"[bold]{run.id}[/] finished as [bold]{run.status}[/]"
        if run.usage is not None:
            line += (
                f" ({run.usage.prompt_tokens} prompt + {run.usage.completion_tokens} completion"
                f" = {run.usage.total_tokens} tokens)"
            )
        self.console.print(line)


def _jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _jsonable(getattr(value, f.name)) for f in fields(value) if f.name != "fields_set"}
    if isinstance(value, Enum):
        return str(value) if not isinstance(value, str) else value.value
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    return value


class JsonDisplay(RunDisplay):
    """Prints every update as a single JSON line."""

    def on_event(self, update: StreamUpdate) -> None:
        if isinstance(update, StreamProtocolError):
            data: Any = {"message": update.message, "kind": update.kind}
        else:
            data = _jsonable(update)
        line = json.dumps({"type": type(update).__name__, "data": data})
        self.console.print(line, markup=False, emoji=False, highlight=False, soft_wrap=True)

    def finish(self, run: Run | None) -> None:
        pass


def _consume(stream: RunStream, display: RunDisplay) -> int:
    try:
        with stream:
            run = stream.until_done()
    except KeyboardInterrupt:
        stream.cancel()
        display.console.print("\n✖ Cancelled by user")
        return 130
    display.finish(run)
    if run is None or run.status in _FAILED:
        return 1
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="threadstream",
        description="Stream assistant runs to the terminal",
    )
    parser.add_argument("--api-key", help="API key (or set OPENAI_API_KEY environment variable)")
    parser.add_argument("--base-url", help="Custom API base URL")
    parser.add_argument("--json", action="store_true", help="Print updates as JSON lines")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run = subparsers.add_parser("run", help="Run an assistant on an existing thread")
    run.add_argument("--thread-id", required=True)
    run.add_argument("--assistant-id", required=True)
    run.add_argument("--instructions", help="Override the assistant instructions")
    run.add_argument(
        "--response-format",
        choices=["auto", "text", "json_object"],
        default=None,
        help="Response format for this run",
    )

    ask = subparsers.add_parser("ask", help="Start a new thread with one user message")
    ask.add_argument("--assistant-id", required=True)
    ask.add_argument("message", help="User message")
    return parser


def _real_main(argv: list[str]) -> int:
    """Parse arguments, open the stream and render it."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    display = JsonDisplay() if args.json else RunDisplay()
    try:
        client = AssistantsClient(api_key=args.api_key, base_url=args.base_url)
        if args.command == "run":
            options: dict[str, Any] = {}
            if args.instructions:
                options["instructions"] = args.instructions
            if args.response_format:
                options["response_format"] = ChatResponseFormat.decode(args.response_format)
            stream = client.runs.stream(
                args.thread_id,
                assistant_id=args.assistant_id,
                on_event=display.on_event,
                **options,
            )
        else:
            stream = client.runs.stream_thread_and_run(
                assistant_id=args.assistant_id,
                thread={"messages": [{"role": "user", "content": args.message}]},
                on_event=display.on_event,
            )
        return _consume(stream, display)
    except ThreadstreamError as e:
        display.console.print(f"[bold red]❌ {e.message}[/]")
        return 1


def main() -> None:
    """CLI entry point."""
    raise SystemExit(_real_main(sys.argv[1:]))


if __name__ == "__main__":
    main()
