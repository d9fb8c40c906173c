"""Helpers shared by the CLI commands."""

from __future__ import annotations

from pathlib import Path

import typer

from fallbackstyles.config import attach_fonts, load_config_file, required_font_files
from fallbackstyles.exceptions import FallbackStylesError, FontParseError
from fallbackstyles.loader import ParsedFont
from fallbackstyles.models import Style
from fallbackstyles.sandbox import SafeFontLoader
from fallbackstyles.utils import format_number
from fallbackstyles.workspace import Workspace

from .state import emit_error, emit_warning, get_cli_state


def load_fonts(workspace: Workspace, fonts_dir: Path) -> dict[str, ParsedFont]:
    """Validate and parse every referenced binary found in ``fonts_dir``."""
    state = get_cli_state()
    parsed: dict[str, ParsedFont] = {}
    with SafeFontLoader(timeout=state.settings.validation_timeout) as loader:
        for file_name in required_font_files(workspace):
            path = fonts_dir / file_name
            if not path.is_file():
                continue
            try:
                parsed[file_name] = loader.load_file(path)
            except FontParseError as exc:
                emit_warning(f"Rejected font '{file_name}': {exc}", exception=exc)
    return parsed


def load_workspace(config: Path, fonts_dir: Path | None = None) -> Workspace:
    """Load a configuration document, attaching binaries from ``fonts_dir``.

    Failures are reported and turned into exit code 1.
    """
    try:
        workspace = load_config_file(config)
    except FallbackStylesError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    if fonts_dir is not None:
        missing = attach_fonts(workspace, load_fonts(workspace, fonts_dir))
        for file_name in missing:
            emit_warning(f"Font file '{file_name}' was not found in {fonts_dir}.")
    return workspace


def select_style(workspace: Workspace, style_id: str | None) -> Style:
    try:
        return workspace.style(style_id)
    except KeyError as exc:
        known = ", ".join(sorted(workspace.styles)) or "-"
        emit_error(f"Unknown style '{style_id}' (available: {known}).")
        raise typer.Exit(code=1) from exc


def format_value(value: object) -> str:
    if value is None:
        return "-"
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return format_number(value)
    return str(value)
