from __future__ import annotations

import os
from pathlib import Path

import typer

from branchflow import __version__
from branchflow.cli.commands.branches import feature, hotfix, release, sync, sync_feature
from branchflow.cli.commands.commits import install_hook, lint_commit
from branchflow.cli.commands.promote import ship, tag, to_staging
from branchflow.cli.commands.status import status
from branchflow.cli.context import REPO_ENV
from branchflow.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Feature -> release -> staging -> main branch workflow.",
)


# Branches
app.command()(feature)
app.command()(hotfix)
app.command()(sync)
app.command()(release)
app.command("sync-feature")(sync_feature)

# Promotion
app.command("to-staging")(to_staging)
app.command()(ship)
app.command()(tag)

# Inspection and commits
app.command()(status)
app.command("lint-commit")(lint_commit)
app.command("install-hook")(install_hook)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_print_version,
        is_eager=True,
        help="Show version and exit.",
    ),
    repo: Path | None = typer.Option(
        None,
        "--repo",
        help="Repository to operate on (default: current directory)",
    ),
) -> None:
    if repo is not None:
        try:
            root = repo.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --repo: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not root.is_dir():
            typer.echo(f"error: --repo '{root}' is not a directory", err=True)
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

        os.environ[REPO_ENV] = str(root)


def main() -> None:
    app()
