from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import click
import typer
from typer.core import TyperGroup

from tagcut import __version__
from tagcut.cli.commands.next_cmd import next_version
from tagcut.cli.commands.release_cmd import release
from tagcut.core.errors import ErrorCode


@contextmanager
def _usage_errors_exit_as_user_error() -> Iterator[None]:
    try:
        yield
    except click.UsageError as e:
        e.exit_code = int(ErrorCode.USER_ERROR)
        raise


class TagcutGroup(TyperGroup):
    """Command group whose flag and argument errors exit with USER_ERROR."""

    def make_context(
        self,
        info_name: str | None,
        args: list[str],
        parent: click.Context | None = None,
        **extra: Any,
    ) -> click.Context:
        with _usage_errors_exit_as_user_error():
            return super().make_context(info_name, args, parent, **extra)

    def invoke(self, ctx: click.Context) -> Any:
        # Subcommand options are parsed here.
        with _usage_errors_exit_as_user_error():
            return super().invoke(ctx)


app = typer.Typer(
    cls=TagcutGroup,
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(release)
app.command("next")(next_version)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True, help="Show version and exit."
    ),
) -> None:
    del version


def main() -> None:
    app()
