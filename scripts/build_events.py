"""
Leveled event stream and error kinds shared by the packaging steps.

Steps never print. They report through an ``EventLog``; the CLI layer attaches a
sink that renders events with rich. Fatal conditions are raised as
``PipelineError`` carrying an ``ErrorKind`` so calling automation can branch on
what went wrong.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel


class EventLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ErrorKind(str, Enum):
    FILESYSTEM = "filesystem"
    BUILD = "build"
    VALIDATION = "validation"
    ARCHIVE = "archive"
    CONFIG = "config"


@dataclass(frozen=True)
class BuildEvent:
    level: EventLevel
    message: str
    step: str = ""


class PipelineError(Exception):
    """Fatal pipeline failure.

    Args:
        kind: Category of failure
        message: Human-readable summary
        details: Extra lines (e.g. schema violations, duplicate names)
    """

    def __init__(self, kind: ErrorKind, message: str, details: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details: tuple[str, ...] = tuple(details)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return self.message + "\n" + "\n".join(f"  - {d}" for d in self.details)


EventSink = Callable[[BuildEvent], None]


@dataclass
class EventLog:
    """Ordered collection of events, forwarded to sinks as they arrive."""

    sinks: list[EventSink] = field(default_factory=list)
    events: list[BuildEvent] = field(default_factory=list)
    step: str = ""

    def emit(self, level: EventLevel, message: str) -> BuildEvent:
        event = BuildEvent(level=level, message=message, step=self.step)
        self.events.append(event)
        for sink in self.sinks:
            sink(event)
        return event

    def debug(self, message: str) -> BuildEvent:
        return self.emit(EventLevel.DEBUG, message)

    def info(self, message: str) -> BuildEvent:
        return self.emit(EventLevel.INFO, message)

    def success(self, message: str) -> BuildEvent:
        return self.emit(EventLevel.SUCCESS, message)

    def warning(self, message: str) -> BuildEvent:
        return self.emit(EventLevel.WARNING, message)

    def error(self, message: str) -> BuildEvent:
        return self.emit(EventLevel.ERROR, message)

    def by_level(self, level: EventLevel) -> list[BuildEvent]:
        return [e for e in self.events if e.level == level]

    def messages(self, level: EventLevel | None = None) -> list[str]:
        return [e.message for e in self.events if level is None or e.level == level]

    @property
    def has_errors(self) -> bool:
        return any(e.level == EventLevel.ERROR for e in self.events)

    def set_step(self, step: str) -> None:
        self.step = step


# Markup per level, matching the status glyphs used in the summaries.
_LEVEL_STYLES: dict[EventLevel, tuple[str, str]] = {
    EventLevel.DEBUG: ("dim", "[DEBUG]"),
    EventLevel.INFO: ("", ""),
    EventLevel.SUCCESS: ("green", "✓"),
    EventLevel.WARNING: ("yellow", "⚠"),
    EventLevel.ERROR: ("red", "✗"),
}


def console_sink(console: Console, *, debug: bool = False) -> EventSink:
    """Build a sink that prints events to a rich console."""

    def _sink(event: BuildEvent) -> None:
        if event.level == EventLevel.DEBUG and not debug:
            return
        style, glyph = _LEVEL_STYLES[event.level]
        text = f"{glyph} {event.message}" if glyph else event.message
        if style:
            console.print(f"[{style}]{escape(text)}[/{style}]")
        else:
            console.print(text, markup=False, highlight=False)

    return _sink


def report_failure(console: Console, error: PipelineError) -> None:
    """Print a fatal error the way the CLI entry points report it."""
    body = f"[bold red]✗ {escape(error.message)}[/bold red]"
    if error.details:
        body += "\n" + "\n".join(f"  [red]• {escape(d)}[/red]" for d in error.details)
    body += f"\n[dim]error kind: {error.kind.value}[/dim]"
    console.print(Panel.fit(body, border_style="red"))
