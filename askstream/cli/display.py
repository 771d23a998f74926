"""
CLI display components for streamed answers.

Provides different output formats for rendering stream events:
- VerboseDisplay: Rich live view of the answer, then sources and related queries
- CompactDisplay: Plain text answer only
- JsonDisplay: One JSON line per event for scripting and debugging
"""

from abc import ABC, abstractmethod
import json
from typing import Any

from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from .._types import ChatStreamResponse
from ..streaming import ChunkEvent, CompleteEvent, ErrorEvent, StreamEvent


class StreamDisplay(ABC):
    """Base class for stream display renderers."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self.answer = ""
        self.response: ChatStreamResponse | None = None
        self.error: Exception | None = None

    def on_event(self, event: StreamEvent) -> None:
        """Record the event, then render it."""
        if isinstance(event, ChunkEvent):
            previous, self.answer = self.answer, event.answer
            self.on_chunk(previous, event.answer)
        elif isinstance(event, CompleteEvent):
            self.response = event.response
            self.on_complete(event.response)
        elif isinstance(event, ErrorEvent):
            self.error = event.error
            self.on_error(event.error)

    @abstractmethod
    def on_chunk(self, previous: str, answer: str) -> None:
        """Render an answer update. Answers are full snapshots, not deltas."""

    @abstractmethod
    def on_complete(self, response: ChatStreamResponse) -> None:
        """Render the final response."""

    def on_error(self, error: Exception) -> None:
        self.console.print(f"\n[red]❌ Error: {error}[/red]")

    def start(self) -> None:
        """Start the display (called before first event)."""

    def finish(self) -> None:
        """Finish the display (called after last event or on error)."""


class CompactDisplay(StreamDisplay):
    """
    Compact display showing only the answer text.

    Prints only the new tail while the answer grows; if the server rewrites
    the answer, the whole new text is printed on a fresh line.
    """

    def on_chunk(self, previous: str, answer: str) -> None:
        if answer.startswith(previous):
            print(answer[len(previous) :], end="", flush=True)
        else:
            print("\n" + answer, end="", flush=True)

    def on_complete(self, response: ChatStreamResponse) -> None:
        if self.answer:
            print()  # Final newline after text


class VerboseDisplay(StreamDisplay):
    """
    Verbose display with rich terminal UI.

    Shows:
    - The answer re-rendered live as markdown on each update
    - A sources table once the stream completes
    - Related queries as suggestions
    """

    def __init__(self, console: Console | None = None) -> None:
        super().__init__(console=console)
        self.live: Live | None = None

    def start(self) -> None:
        self.live = Live(
            Markdown(""), console=self.console, refresh_per_second=8, vertical_overflow="visible"
        )
        self.live.start()

    def on_chunk(self, previous: str, answer: str) -> None:
        if self.live is not None:
            self.live.update(Markdown(answer))

    def on_complete(self, response: ChatStreamResponse) -> None:
        self._stop_live()
        if response.sources:
            table = Table(title="Sources", show_lines=False, expand=False)
            table.add_column("#", style="dim", justify="right")
            table.add_column("Title", style="cyan")
            table.add_column("URL", style="blue")
            for i, source in enumerate(response.sources, 1):
                table.add_row(str(i), source.title, source.url)
            self.console.print()
            self.console.print(table)
        if response.related_queries:
            self.console.print("\n[bold magenta]Related[/bold magenta]")
            for query in response.related_queries:
                self.console.print(f"  • {query}")

    def on_error(self, error: Exception) -> None:
        self._stop_live()
        self.console.print(
            Panel(f"[red]{error}[/red]", title="[red]❌ Error[/red]", border_style="red")
        )

    def finish(self) -> None:
        self._stop_live()

    def _stop_live(self) -> None:
        if self.live is not None:
            self.live.stop()
            self.live = None


class JsonDisplay(StreamDisplay):
    """Outputs each event as a JSON line for machine consumption."""

    def _emit(self, output: dict[str, Any]) -> None:
        print(json.dumps(output), flush=True)

    def on_chunk(self, previous: str, answer: str) -> None:
        self._emit({"type": "chunk", "answer": answer})

    def on_complete(self, response: ChatStreamResponse) -> None:
        self._emit({"type": "complete", **response.to_dict()})

    def on_error(self, error: Exception) -> None:
        self._emit({"type": "error", "error": str(error)})


def create_display(format: str = "verbose", console: Console | None = None) -> StreamDisplay:
    """
    Factory function to create appropriate display.

    Args:
        format: Display format ("verbose", "compact", or "json")

    Returns:
        StreamDisplay instance
    """
    if format == "compact":
        return CompactDisplay(console=console)
    elif format == "json":
        return JsonDisplay(console=console)
    else:  # "verbose" is default
        return VerboseDisplay(console=console)
