"""``coverage`` command: glyph coverage per language."""

from __future__ import annotations

from rich import box
from rich.table import Table

from fallbackstyles.coverage import language_coverage
from fallbackstyles.languages import Language, get_language, load_languages

from .._options import ConfigArgument, FontsOption, LanguagesOption, StyleOption
from ..state import emit_warning, get_cli_state
from ..utils import load_workspace, select_style


def _selected_languages(language_ids: list[str]) -> list[Language]:
    selected: list[Language] = []
    for language_id in language_ids:
        try:
            selected.append(get_language(language_id))
        except KeyError:
            emit_warning(f"Unknown language '{language_id}' skipped.")
    return selected


def coverage(
    config: ConfigArgument,
    languages: LanguagesOption = None,
    style_id: StyleOption = None,
    fonts: FontsOption = None,
) -> None:
    """Report which characters of each language no loaded typeface can draw."""
    workspace = load_workspace(config, fonts)
    style = select_style(workspace, style_id)
    requested = list(languages or workspace.visible_language_ids)
    selected = _selected_languages(requested) if requested else list(load_languages())

    table = Table(title=f"Coverage: {style.id}", box=box.SQUARE, header_style="bold cyan")
    table.add_column("Language", style="magenta")
    table.add_column("Name")
    table.add_column("Coverage", justify="right")
    table.add_column("Missing")

    for language in selected:
        report = language_coverage(style, language, workspace.text_overrides.get(language.id))
        percent = report.describe()
        if language.is_representative and report.verifiable:
            percent = f"{percent} (sample)"
        missing = "".join(report.missing_chars[:24])
        if len(report.missing_chars) > 24:
            missing += "…"
        table.add_row(language.id, language.name, percent, missing or "-")

    get_cli_state().console.print(table)
