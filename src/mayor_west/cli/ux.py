"""
CLI UX utilities built on rich and questionary.

Environment handling:
- Automatically detects TTY vs pipe/CI
- Respects NO_COLOR and FORCE_COLOR environment variables
- Prompts are only shown in interactive terminals; callers pass --yes in CI
"""

from __future__ import annotations

import os
import sys
from contextlib import contextmanager
from typing import Iterator

import questionary
from questionary import Style as QStyle
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.theme import Theme

# Mayor West palette: civic blue, sash gold, and alert red
MAYOR_THEME = Theme(
    {
        "info": "#6CA0DC",
        "success": "#5FB760",
        "warning": "#E8B83F",
        "error": "#D9534F bold",
        "highlight": "#C9A227",
        "muted": "#A0A8B0",
    }
)

CI_ENV_VARS = ("CI", "GITHUB_ACTIONS", "JENKINS_URL", "GITLAB_CI", "CIRCLECI", "TRAVIS")


def is_interactive() -> bool:
    """Check if we're in an interactive terminal environment."""
    if any(os.environ.get(var) for var in CI_ENV_VARS):
        return False
    return sys.stdin.isatty() and sys.stdout.isatty()


console = Console(
    theme=MAYOR_THEME,
    force_terminal=os.environ.get("FORCE_COLOR") is not None,
    no_color=os.environ.get("NO_COLOR") is not None,
    highlight=False,
)

PROMPT_STYLE = QStyle(
    [
        ("qmark", "fg:#C9A227 bold"),
        ("question", "bold"),
        ("answer", "fg:#5FB760"),
        ("pointer", "fg:#6CA0DC bold"),
        ("highlighted", "fg:#6CA0DC bold"),
        ("selected", "fg:#5FB760"),
    ]
)


# === Spinners ===


@contextmanager
def spinner(message: str) -> Iterator[None]:
    """Show a transient spinner while work is in progress."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(description=message, total=None)
        yield


# === Output Formatting ===


def success(message: str) -> None:
    console.print(f"[success]✓ {escape(message)}[/success]")


def error(message: str) -> None:
    console.print(f"[error]✗ {escape(message)}[/error]")


def warning(message: str) -> None:
    console.print(f"[warning]⚠ {escape(message)}[/warning]")


def info(message: str) -> None:
    console.print(f"[info]ℹ {escape(message)}[/info]")


def muted(message: str) -> None:
    console.print(f"[muted]{escape(message)}[/muted]")


def header(title: str) -> None:
    """Print a section header."""
    console.print()
    console.print(Panel(f"[bold]{title}[/bold]", border_style="#6CA0DC"))


def print_table(
    title: str | None,
    columns: list[str],
    rows: list[list[str]],
    show_header: bool = True,
) -> None:
    """Print a formatted table."""
    table = Table(title=title, show_header=show_header)

    for col in columns:
        table.add_column(col)

    for row in rows:
        table.add_row(*(escape(cell) for cell in row))

    console.print(table)


def print_key_value(items: dict[str, str], title: str | None = None) -> None:
    """Print key-value pairs."""
    if title:
        console.print(f"\n[bold]{title}[/bold]")

    for key, value in items.items():
        console.print(f"  [info]{key}:[/info] {escape(value)}")


def wizard_intro(title: str, description: str) -> None:
    """Show wizard introduction."""
    console.print()
    console.print(
        Panel(
            f"[bold highlight]{title}[/bold highlight]\n\n{description}",
            border_style="#C9A227",
            padding=(1, 4),
        )
    )
    console.print()


# === Interactive Prompts ===


def confirm(message: str, default: bool = False) -> bool:
    """Ask for confirmation."""
    answer = questionary.confirm(message, default=default, style=PROMPT_STYLE).ask()
    if answer is None:
        raise KeyboardInterrupt
    return answer


def text_input(message: str, default: str = "", validate=None) -> str:
    """Get text input from user."""
    answer = questionary.text(
        message,
        default=default,
        validate=validate,
        style=PROMPT_STYLE,
    ).ask()
    if answer is None:
        raise KeyboardInterrupt
    return answer or default


def select(message: str, choices: list[str], default: str | None = None) -> str:
    """Select from a list of choices."""
    answer = questionary.select(
        message,
        choices=choices,
        default=default,
        style=PROMPT_STYLE,
    ).ask()
    if answer is None:
        raise KeyboardInterrupt
    return answer


def multi_select(message: str, choices: list[str], defaults: list[str] | None = None) -> list[str]:
    """Select multiple items from a list."""
    answer = questionary.checkbox(
        message,
        choices=[questionary.Choice(c, checked=c in (defaults or [])) for c in choices],
        style=PROMPT_STYLE,
    ).ask()
    if answer is None:
        raise KeyboardInterrupt
    return answer
