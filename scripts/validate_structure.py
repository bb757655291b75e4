#!/usr/bin/env -S uv run --script --quiet
# /// script
# requires-python = ">=3.11"
# dependencies = [
#   "jsonschema>=4.20.0",
#   "pyyaml>=6.0.0",
#   "rich>=13.0.0",
# ]
# ///
"""
Validate the server-side entry file of the WordPress plugin.

The plugin's PHP entry file (<plugin-slug>/<plugin-slug>.php) declares its
handler functions with a fixed prefix (``names_fusion_`` for names-fusion).
Declaring the same handler twice is a fatal error in PHP, so packaging is
blocked when any prefixed function name is declared more than once.

The check is lexical, not a PHP parse: unusual formatting can hide a
declaration. Scanning sits behind ``HandlerScanner`` so a real parser can
replace ``RegexHandlerScanner`` without touching callers.

Usage:
    ./scripts/validate_structure.py

Exit codes:
    0 - No duplicate handler declarations
    1 - Duplicates found, entry file missing, or configuration error
"""

from __future__ import annotations

import argparse
import re
import sys
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from rich.console import Console
from rich.table import Table

from build_events import (
    ErrorKind,
    EventLog,
    PipelineError,
    console_sink,
    report_failure,
)
from plugin_config import PluginConfig, default_project_root, load_config


class HandlerScanner(Protocol):
    def scan(self, text: str) -> list[str]:
        """Return every declared handler name in source order, repeats included."""
        ...


class RegexHandlerScanner:
    """Find ``function <prefix>...`` declarations with a regular expression."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        self.pattern = re.compile(rf"\bfunction\s+({re.escape(prefix)}\w*)")

    def scan(self, text: str) -> list[str]:
        return self.pattern.findall(text)


def find_duplicates(names: list[str]) -> list[str]:
    """Names declared more than once, in first-seen order."""
    counts = Counter(names)
    return [name for name in dict.fromkeys(names) if counts[name] > 1]


@dataclass
class StructureReport:
    entry_file: Path
    declared: list[str] = field(default_factory=list)
    distinct: list[str] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)
    problems: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems


def read_entry_file(entry_file: Path) -> tuple[str | None, str | None]:
    """Read the entry file as UTF-8.

    Returns:
        Tuple of (content, error_message). If error, content is None.
    """
    if not entry_file.exists():
        return None, f"Plugin PHP file not found: {entry_file}"

    try:
        return entry_file.read_text(encoding="utf-8"), None
    except PermissionError:
        return None, f"Permission denied reading file: {entry_file}"
    except UnicodeDecodeError as e:
        return None, (
            f"File is not valid UTF-8: {entry_file}\n"
            f"  Error at byte {e.start}: {e.reason}"
        )
    except OSError as e:
        return None, f"Cannot read file: {e}"


def validate_structure(
    config: PluginConfig,
    events: EventLog,
    scanner: HandlerScanner | None = None,
    *,
    strict: bool | None = None,
) -> StructureReport:
    """Check that every prefixed handler is declared exactly once.

    Args:
        config: Plugin configuration
        events: Event stream for progress and problems
        scanner: Declaration scanner; defaults to a regex scanner for the handler prefix
        strict: Raise on problems. Defaults to ``config.strict_structure_validation``.

    Raises:
        PipelineError: VALIDATION kind on problems in strict mode
    """
    if strict is None:
        strict = config.strict_structure_validation
    if scanner is None:
        scanner = RegexHandlerScanner(config.handler_pattern_prefix)

    events.set_step("validate")
    events.info("Validating plugin structure...")
    report = StructureReport(entry_file=config.entry_file)

    content, error = read_entry_file(report.entry_file)
    if error:
        report.problems.append(error)
    else:
        report.declared = scanner.scan(content or "")
        report.distinct = list(dict.fromkeys(report.declared))
        events.debug(f"Handler declarations found: {len(report.declared)}")

        if len(report.declared) != len(report.distinct):
            report.duplicates = find_duplicates(report.declared)
            report.problems.append(
                "Duplicate handler functions detected in PHP file: "
                + ", ".join(report.duplicates)
            )
            events.info(f"Functions found: {', '.join(report.distinct)}")
        else:
            events.success(
                f"{len(report.distinct)} handler function(s) declared once each in "
                f"{report.entry_file.name}"
            )

    for problem in report.problems:
        events.error(problem)

    if report.problems and strict:
        if report.duplicates:
            details = [f"Functions found: {', '.join(report.distinct)}"]
            details += [f"Declared more than once: {name}" for name in report.duplicates]
        else:
            details = report.problems
        raise PipelineError(ErrorKind.VALIDATION, "Plugin structure validation failed", details)

    return report


def main() -> int:
    """Validate the plugin entry file."""
    parser = argparse.ArgumentParser(
        description="Check the plugin entry file for duplicate handler declarations"
    )
    parser.add_argument("--root", type=Path, default=default_project_root(), help="Project root")
    parser.add_argument("--config", type=Path, help="Path to wp-plugin.yaml")
    parser.add_argument("--debug", action="store_true", help="Show debug events")
    args = parser.parse_args()

    console = Console()
    events = EventLog(sinks=[console_sink(console, debug=args.debug)])

    try:
        config = load_config(args.root, args.config)
        report = validate_structure(config, events)
    except PipelineError as e:
        report_failure(console, e)
        return 1

    if report.distinct:
        table = Table(title="Handler Declarations", show_header=True, header_style="bold cyan")
        table.add_column("Function", style="cyan")
        table.add_column("Declarations", justify="center")
        for name, count in Counter(report.declared).items():
            table.add_row(name, "[green]1[/green]" if count == 1 else f"[red]{count}[/red]")
        console.print(table)

    if not report.ok:
        console.print("\n[yellow]Problems found (advisory mode, not failing)[/yellow]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
