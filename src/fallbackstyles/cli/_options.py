"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


INPUTS_PANEL = "Input Handling"
OUTPUT_PANEL = "Output"
DIAGNOSTICS_PANEL = "Diagnostics"

ConfigArgument = Annotated[
    Path,
    typer.Argument(
        metavar="CONFIG",
        help="Exported configuration document (.json), versioned or legacy.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
    ),
]

FontsOption = Annotated[
    Path | None,
    typer.Option(
        "--fonts",
        help="Directory holding the font binaries referenced by fileName.",
        exists=True,
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

StyleOption = Annotated[
    str | None,
    typer.Option(
        "--style",
        help="Style id to inspect (defaults to the active style of the document).",
        rich_help_panel=INPUTS_PANEL,
    ),
]

LanguagesOption = Annotated[
    list[str] | None,
    typer.Option(
        "--lang",
        "-l",
        help="Language id; repeat the option to select several.",
        rich_help_panel=INPUTS_PANEL,
    ),
]

OutputOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="Write to this file instead of stdout.",
        dir_okay=False,
        resolve_path=True,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Show full tracebacks when an unexpected error occurs.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

SettingsOption = Annotated[
    Path | None,
    typer.Option(
        "--settings",
        help="Engine settings file (YAML). Defaults to $FALLBACKSTYLES_CONFIG.",
        dir_okay=False,
        resolve_path=True,
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]
