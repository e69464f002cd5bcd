from collections.abc import Sequence
from pathlib import Path
from sys import exit
from typing import Annotated, Any, final, override

import typer
from typer.core import TyperGroup

from livediff.exceptions import LiveDiffError


@final
class ErrorReportingGroup(TyperGroup):
    @override
    def main(  # pyright: ignore[reportAny]
        self,
        args: Sequence[str] | None = None,
        prog_name: str | None = None,
        complete_var: str | None = None,
        standalone_mode: bool = True,
        windows_expand_args: bool = True,
        **extra: Any,  # pyright: ignore[reportAny, reportExplicitAny]
    ) -> Any:  # pyright: ignore[reportExplicitAny]
        try:
            return super().main(args, prog_name, complete_var, standalone_mode, windows_expand_args, **extra)  #  pyright: ignore[reportAny]
        except LiveDiffError as e:
            typer.secho(f"Error: {e.message}", err=True, fg=typer.colors.RED)
            exit(e.exit_code)
        except Exception as e:
            typer.secho("Unexpected Internal Error", err=True, fg=typer.colors.RED)
            typer.echo(str(e), err=True)
            exit(1)


app = typer.Typer(cls=ErrorReportingGroup, no_args_is_help=True)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log session steps to stderr.")] = False,
) -> None:
    """
    Stream generated file content into a live diff view, then save or revert it.
    """
    from livediff.console import configure_logging

    configure_logging(verbose)


@app.command("apply")
def apply(
    target: Annotated[str, typer.Argument(help="File to create or modify, relative to the workspace root.")],
    source: Annotated[
        Path | None,
        typer.Argument(help="File holding the new content. Reads stdin when omitted or '-'."),
    ] = None,
    chunk_size: Annotated[
        int,
        typer.Option("--chunk-size", help="Characters added per streamed update."),
    ] = 64,
    revert: Annotated[
        bool,
        typer.Option("--revert", help="Revert the file after streaming instead of saving it."),
    ] = False,
    review: Annotated[
        bool,
        typer.Option("--edit", help="Open $EDITOR on the result before saving it."),
    ] = False,
    format_cmd: Annotated[
        str | None,
        typer.Option("--format-cmd", help="Command that formats the file on save (reads stdin, writes stdout)."),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print the save result as JSON."),
    ] = False,
) -> None:
    """
    Stream new content into TARGET, then save it and report edits, formatting and new problems.
    """
    from livediff.commands import apply

    apply.apply(target, source, chunk_size, revert, review, format_cmd, json_output)


@app.command("config")
def config(
    json_output: Annotated[bool, typer.Option("--json", help="Print the settings as JSON.")] = False,
) -> None:
    """
    Show the effective settings.
    """
    from livediff.commands import config

    config.show_config(json_output)


if __name__ == "__main__":
    app()
