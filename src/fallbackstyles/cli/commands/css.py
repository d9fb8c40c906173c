"""``css`` command: emit the stylesheet of a configuration."""

from __future__ import annotations

from typing import Annotated

import typer

from fallbackstyles.stylesheet import emit_document

from .._options import ConfigArgument, FontsOption, LanguagesOption, OutputOption
from ..state import emit_error
from ..utils import load_workspace


def css(
    config: ConfigArgument,
    fonts: FontsOption = None,
    languages: LanguagesOption = None,
    output: OutputOption = None,
    no_comments: Annotated[
        bool,
        typer.Option("--no-comments", help="Omit the section comments."),
    ] = False,
) -> None:
    """Emit @font-face rules, variables, heading and language rules."""
    workspace = load_workspace(config, fonts)
    stylesheet = emit_document(
        workspace,
        languages or None,
        include_comments=not no_comments,
    )
    if output is None:
        typer.echo(stylesheet, nl=False)
        return
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(stylesheet, encoding="utf-8")
    except OSError as exc:
        emit_error(f"Unable to write '{output}': {exc}", exception=exc)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Wrote {output}")
