"""``stack`` command: show the font cascade of one language."""

from __future__ import annotations

from typing import Annotated

from rich import box
from rich.table import Table
import typer

from fallbackstyles.models import ResolvedSettings
from fallbackstyles.resolver import resolve_typeface
from fallbackstyles.stack import build_stack, primary_family, primary_for_language

from .._options import ConfigArgument, FontsOption, StyleOption
from ..state import get_cli_state
from ..utils import format_value, load_workspace, select_style


def _settings_cells(settings: ResolvedSettings) -> list[str]:
    return [
        format_value(settings.font_size),
        format_value(settings.scale),
        format_value(settings.line_height),
        format_value(settings.letter_spacing),
        format_value(settings.weight),
    ]


def stack(
    config: ConfigArgument,
    language: Annotated[
        str | None,
        typer.Option("--lang", "-l", help="Language id (omit for the general cascade)."),
    ] = None,
    style_id: StyleOption = None,
    fonts: FontsOption = None,
) -> None:
    """Print the resolved font stack of a language."""
    workspace = load_workspace(config, fonts)
    style = select_style(workspace, style_id)
    primary = primary_for_language(style, language)

    table = Table(
        title=f"Font stack: {style.id} / {language or 'default'}",
        box=box.SQUARE,
        header_style="bold cyan",
    )
    table.add_column("#", justify="right")
    table.add_column("Family", style="magenta")
    table.add_column("Typeface")
    table.add_column("Size", justify="right")
    table.add_column("Scale", justify="right")
    table.add_column("Line height", justify="right")
    table.add_column("Spacing", justify="right")
    table.add_column("Weight", justify="right")

    table.add_row(
        "0",
        primary_family(style, language) or "-",
        primary.label,
        *_settings_cells(resolve_typeface(style, primary)),
    )
    for index, entry in enumerate(build_stack(style, language), start=1):
        label = entry.typeface.label if entry.typeface is not None else entry.typeface_id
        table.add_row(str(index), entry.family, label, *_settings_cells(entry.settings))

    get_cli_state().console.print(table)
