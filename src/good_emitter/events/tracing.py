"""Emission tracing with Rich console output.

When enabled, every ``emit`` produces one trace line with the event name,
listener count, duration and number of captured errors. Verbosity 2 adds a
table of arguments and results. With ``use_rich=False`` the same data goes
to ``logger.debug`` as a plain string.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .protocols import EventName

logger = logging.getLogger(__name__)

# Trace output goes to stderr
_console = Console(stderr=True)

_VERBOSITY_NAMES = ["minimal", "normal", "verbose"]


def _truncate(value: Any, limit: int) -> str:
    text = repr(value)
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


class EventTracer:
    """Formats and prints per-emit trace records."""

    def __init__(
        self,
        enabled: bool = False,
        verbosity: int = 1,
        use_rich: bool = True,
        console: Console | None = None,
    ):
        self.enabled = enabled
        self.verbosity = verbosity
        self.use_rich = use_rich
        self.console = console or _console

    def configure(
        self, enabled: bool, verbosity: int = 1, use_rich: bool = True, owner: str = ""
    ) -> None:
        """Enable or disable tracing and announce the change."""
        self.enabled = enabled
        self.verbosity = max(0, min(verbosity, 2))
        self.use_rich = use_rich

        state = "enabled" if enabled else "disabled"
        msg = f"Event tracing {state} for {owner}".rstrip()
        if not use_rich:
            logger.info(f"{msg} (verbosity={self.verbosity})")
        elif enabled:
            self.console.print(
                Panel(
                    f"[bold green]✓[/bold green] {msg}\n"
                    f"[dim]Verbosity: {_VERBOSITY_NAMES[self.verbosity]}[/dim]",
                    title="Event Tracing",
                    border_style="green",
                )
            )
        else:
            self.console.print(f"[yellow]ℹ[/yellow] {msg}")

    def format(
        self,
        event: EventName,
        args: Sequence[Any],
        listener_count: int,
        duration_ms: float,
        results: Sequence[Any],
    ) -> tuple[Text | str, Table | None]:
        """Build the trace line and, at verbosity 2, the detail table."""
        errors = [r for r in results if isinstance(r, Exception)]

        text: Text | str
        if self.use_rich:
            text = Text()
            text.append("⚡ ", style="bold")
            text.append(event, style="bold blue")
            text.append(" | ")
            if listener_count > 0:
                text.append(f"listeners: {listener_count}", style="green")
            else:
                text.append("no listeners", style="dim red")

            text.append(" | ")
            if duration_ms < 10:
                dur_style = "green"
            elif duration_ms < 100:
                dur_style = "yellow"
            else:
                dur_style = "red"
            text.append(f"{duration_ms:.2f}ms", style=f"bold {dur_style}")

            if errors:
                text.append(" | ")
                text.append(f"errors: {len(errors)}", style="bold red")

            if self.verbosity == 1 and args:
                summary = ", ".join(_truncate(a, 20) for a in list(args)[:3])
                if len(args) > 3:
                    summary += f", +{len(args) - 3} more"
                text.append(f" [{summary}]", style="dim")
        else:
            parts = [
                "[EVENT TRACE]",
                f"event={event!r}",
                f"listeners={listener_count}",
                f"duration={duration_ms:.2f}ms",
            ]
            if errors:
                parts.append(f"errors={len(errors)}")
            if args:
                parts.append(f"args={_truncate(tuple(args), 200)}")
            if results:
                parts.append(f"results={_truncate(list(results), 100)}")
            text = " | ".join(parts)

        table = None
        if self.verbosity >= 2 and self.use_rich:
            table = Table(show_header=True, header_style="bold cyan", box=None)
            table.add_column("Field", style="cyan", width=15)
            table.add_column("Value", overflow="fold")
            for index, value in enumerate(args):
                table.add_row(f"arg:{index}", _truncate(value, 100))
            for index, value in enumerate(results):
                style = "red" if isinstance(value, Exception) else "green"
                table.add_row(f"result:{index}", _truncate(value, 200), style=style)

        return text, table

    def record(
        self,
        event: EventName,
        args: Sequence[Any],
        listener_count: int,
        duration_ms: float,
        results: Sequence[Any],
    ) -> None:
        if not self.enabled:
            return

        text, table = self.format(event, args, listener_count, duration_ms, results)
        if not self.use_rich:
            logger.debug(text)
            return

        self.console.print(text)
        if table is not None:
            self.console.print(table)
