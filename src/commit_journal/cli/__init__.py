"""CLI entry point: registers all subcommands."""

from pathlib import Path
from typing import Optional

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="commit-journal",
    help="Commit Journal - evolutionary file-journey analysis of git repositories",
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"commit-journal {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="Config file"),
    data_dir: Optional[str] = typer.Option(
        None, "--data-dir", help="Directory for stores and checkouts"
    ),
    backend: Optional[str] = typer.Option(
        None, "--backend", help="Store backend: sqlite, diskcache or memory"
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging"),
    quiet: bool = typer.Option(False, "-q", "--quiet", help="Only log errors"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Commit Journal - learn how a repository's key files evolved."""
    obj = ctx.ensure_object(dict)
    obj.update(
        config=config,
        data_dir=data_dir,
        store_backend=backend,
        verbose=verbose,
        quiet=quiet,
    )


# Import subcommands to register them
from .analyze import analyze as _analyze  # noqa: F401, E402
from .analyze_commit import analyze_commit as _analyze_commit  # noqa: F401, E402
from .fetch import fetch as _fetch  # noqa: F401, E402
from .files import files as _files  # noqa: F401, E402
from .serve import serve as _serve  # noqa: F401, E402
from .show import show as _show  # noqa: F401, E402
from .usage import usage as _usage  # noqa: F401, E402
