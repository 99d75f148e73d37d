# display.py
# All console output for the plan runner.
#
# This module owns presentation entirely. The executor, harness and server
# never format strings for the terminal: they call named functions here.
#
# Colour language:
#   cyan    — routing and planning events
#   blue    — model calls
#   yellow  — argument resolution and sanitization
#   green   — success
#   red     — halts, unknown tools, upstream failures
#   magenta — tool invocations and their results

import json
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from plan_runner.models import Step

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    if len(value) > max_len:
        value = value[:max_len] + "…"
    return escape(value)


def _json(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Request entry
# ---------------------------------------------------------------------------


def banner(host: str, port: int) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Plan Runner[/bold cyan]\n"
            "[dim]Route → Plan → Resolve → Sanitize → Invoke[/dim]\n\n"
            f"[dim]Listening on :[/dim] [white]http://{host}:{port}/api/chat[/white]",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def request_received(message: str) -> None:
    console.print()
    console.print(Rule("[cyan]NEW REQUEST[/cyan]", style="cyan"))
    console.print(
        Panel(
            f"[white]{escape(message)}[/white]",
            title=_label("USER MESSAGE", "cyan"),
            border_style="cyan",
            padding=(0, 2),
        )
    )


# ---------------------------------------------------------------------------
# Routing and planning
# ---------------------------------------------------------------------------


def calling_model(purpose: str) -> None:
    console.print(_label("MODEL", "blue"), f"[blue] → Requesting {purpose}…[/blue]")


def router_selected(name: str, reason: str | None) -> None:
    console.print(
        _label("ROUTER", "cyan"),
        f"[cyan] Selected[/cyan] [bold white]{escape(name)}[/bold white]"
        f"[dim] → {escape(reason or 'no reason provided')}[/dim]",
    )


def router_fallback(name: str, reason: str) -> None:
    console.print(
        _label("ROUTER", "yellow"),
        f"[yellow] Falling back to[/yellow] [bold white]{escape(name)}[/bold white]"
        f"[dim] ({_mono(reason, 100)})[/dim]",
    )


def plan_parsed(steps: list[Step]) -> None:
    console.print()
    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="cyan",
        show_header=True,
        header_style="bold cyan",
        padding=(0, 1),
    )
    table.add_column("#", justify="center", width=4)
    table.add_column("Tool", style="bold white", width=24)
    table.add_column("Args", style="dim white")

    for index, step in enumerate(steps):
        table.add_row(str(index), escape(step.tool), _mono(_json(step.args or {}), 60))

    console.print(
        Panel(
            table,
            title=_label("PLAN PARSED", "cyan"),
            border_style="cyan",
            padding=(0, 1),
        )
    )


def plan_rejected(detail: str) -> None:
    console.print(
        _label("PLANNER", "red"),
        f"[red] Plan could not be parsed:[/red] [dim]{_mono(detail, 200)}[/dim]",
    )


def upstream_error(detail: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold red]Model call failed.[/bold red]\n[dim]{_mono(detail, 300)}[/dim]",
            title=_label("UPSTREAM ERROR ✗", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )


# ---------------------------------------------------------------------------
# Execution loop
# ---------------------------------------------------------------------------


def execution_start(total: int) -> None:
    console.print()
    console.print(Rule(f"[cyan]EXECUTION — {total} step(s)[/cyan]", style="cyan"))


def step_start(index: int, total: int, tool: str) -> None:
    console.print()
    console.print(f"[bold cyan]  STEP [{index + 1}/{total}][/bold cyan]  [white]{escape(tool)}[/white]")


def args_dropped(tool: str, keys: list[str]) -> None:
    console.print(
        f"  [yellow]↳ Dropped undeclared args for {escape(tool)}:[/yellow] "
        f"[dim yellow]{escape(', '.join(keys))}[/dim yellow]"
    )


def tool_invoked(tool: str, args: dict) -> None:
    console.print(
        f"  [magenta]Invoke[/magenta]   [bold white]{escape(tool)}[/bold white]  [dim]{_mono(_json(args))}[/dim]"
    )


def tool_result(result: Any) -> None:
    console.print(f"  [magenta]Result[/magenta]   [white]{_mono(_json(result), 140)}[/white]")


def tool_not_found(tool_name: str) -> None:
    console.print(
        Panel(
            f"[bold red]Tool [white]{escape(repr(tool_name))}[/white] is not registered.[/bold red]\n"
            "[dim]The plan requested a tool outside this assistant's registry. Halting.[/dim]",
            title=_label("TOOL NOT FOUND ✗", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )


def execution_summary(records: list) -> None:
    console.print()
    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="dim",
        show_header=True,
        header_style="bold dim",
        padding=(0, 1),
    )
    table.add_column("Step", justify="center", width=6)
    table.add_column("Tool", width=24)
    table.add_column("Result", style="dim white")

    for record in records:
        table.add_row(str(record.index), escape(record.tool), _mono(_json(record.result), 60))

    console.print(
        Panel(
            table,
            title="[dim]EXECUTION SUMMARY[/dim]",
            border_style="dim",
            padding=(0, 1),
        )
    )


# ---------------------------------------------------------------------------
# Final result
# ---------------------------------------------------------------------------


def final_result(result: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[white]{escape(result)}[/white]",
            title=_label("RESULT", "green"),
            border_style="green",
            padding=(1, 2),
        )
    )
    console.print()


def halt(reason: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold white]{escape(reason)}[/bold white]",
            title=_label("HALT", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )
    console.print()
