"""``check`` command: validate a document and optionally re-export it."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer

from fallbackstyles.config import (
    normalize_config,
    validate_config,
    workspace_from_data,
    write_export,
)
from fallbackstyles.exceptions import FallbackStylesError

from .._options import ConfigArgument
from ..state import emit_error, get_cli_state


def check(
    config: ConfigArgument,
    export: Annotated[
        Path | None,
        typer.Option(
            "--export",
            help="Write a cleaned, versioned copy into this directory.",
            file_okay=False,
            resolve_path=True,
        ),
    ] = None,
) -> None:
    """Validate a configuration document and list the repairs it needs."""
    state = get_cli_state()
    try:
        raw = json.loads(config.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        emit_error(f"Unable to read configuration '{config}': {exc}", exception=exc)
        raise typer.Exit(code=1) from exc

    data = normalize_config(raw)
    if data is None:
        emit_error(f"'{config}' is not a configuration document.")
        raise typer.Exit(code=1)

    cleaned, warnings = validate_config(data)
    try:
        workspace = workspace_from_data(cleaned or {})
    except FallbackStylesError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    styles = len(workspace.styles)
    typefaces = sum(len(style.typefaces) for style in workspace.styles.values())
    status = "repaired" if warnings else "valid"
    state.console.print(
        f"[bold green]{config.name}[/]: {status} "
        f"({styles} style(s), {typefaces} typeface(s), {len(warnings)} repair(s))"
    )

    if export is not None:
        try:
            target = write_export(workspace, export, app_name=state.settings.app_name)
        except OSError as exc:
            emit_error(f"Unable to write export: {exc}", exception=exc)
            raise typer.Exit(code=1) from exc
        state.console.print(f"Exported {target}")
