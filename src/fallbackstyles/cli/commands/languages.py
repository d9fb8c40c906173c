"""``languages`` command: list the packaged language catalog."""

from __future__ import annotations

from typing import Annotated

from rich import box
from rich.table import Table
import typer

from fallbackstyles.languages import languages_by_group

from ..state import get_cli_state


def languages(
    search: Annotated[
        str,
        typer.Option("--search", "-s", help="Filter by name or id."),
    ] = "",
) -> None:
    """List the preview languages grouped by region."""
    table = Table(title="Languages", box=box.SQUARE, header_style="bold cyan")
    table.add_column("Group")
    table.add_column("Id", style="magenta")
    table.add_column("Name")
    table.add_column("Set")

    grouped = languages_by_group(search=search)
    if not grouped:
        table.add_row("-", "-", "No languages found", "-")
    for group, items in grouped.items():
        for index, language in enumerate(items):
            table.add_row(group if index == 0 else "", language.id, language.name, language.sample)

    get_cli_state().console.print(table)
