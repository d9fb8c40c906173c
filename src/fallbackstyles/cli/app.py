"""Typer application wiring for the fallbackstyles CLI."""

from __future__ import annotations

import typer

from fallbackstyles.exceptions import FallbackStylesError
from fallbackstyles.settings import load_settings

from ._options import DebugOption, SettingsOption, VerboseOption
from .commands import check, coverage, css, languages, stack
from .state import configure_logging, debug_enabled, emit_error, get_cli_state, set_cli_state


app = typer.Typer(
    help="Inspect multilingual font fallback configurations and emit their CSS.",
    context_settings={"help_option_names": ["-h", "--help"]},
    no_args_is_help=True,
)


@app.callback()
def _configure(
    ctx: typer.Context,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
    settings: SettingsOption = None,
) -> None:
    """Load engine settings and configure diagnostics for every command."""
    state = set_cli_state(ctx=ctx, verbosity=verbose, debug=debug)
    configure_logging(state.verbosity)
    try:
        state.settings = load_settings(settings)
    except FallbackStylesError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


app.command()(stack)
app.command()(coverage)
app.command()(css)
app.command()(check)
app.command()(languages)


def main() -> None:
    """Entry point compatible with console scripts."""
    try:
        app()
    except typer.Exit:
        raise
    except KeyboardInterrupt as exc:
        if debug_enabled():
            raise
        emit_error("Operation cancelled by user.", exception=exc)
        raise typer.Exit(code=1) from exc
    except SystemExit:
        raise
    except Exception as exc:  # pragma: no cover - last-resort reporting
        state = get_cli_state()
        if state.show_tracebacks:
            from rich.traceback import Traceback

            tb = Traceback.from_exception(
                type(exc),
                exc,
                exc.__traceback__,
                show_locals=state.verbosity >= 2,
            )
            state.err_console.print(tb)
        else:
            emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


__all__ = ["app", "main"]
