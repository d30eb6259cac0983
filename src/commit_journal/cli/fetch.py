"""``commit-journal fetch``: ingest a repository's commits."""

import typer

from . import app
from ._common import console, open_service


@app.command()
def fetch(
    ctx: typer.Context,
    repo: str = typer.Argument(..., help="Local path or clone URL"),
    refresh: bool = typer.Option(False, "--refresh", help="Re-read history even if stored"),
    max_commits: int = typer.Option(0, "--max-commits", min=0, help="Limit commits (0 = all)"),
) -> None:
    """Read a repository's history into the commit store.

    [bold cyan]Examples:[/bold cyan]

      commit-journal fetch https://github.com/org/repo

      commit-journal fetch . --refresh
    """
    with open_service(ctx) as service:
        with console.status(f"[cyan]Fetching {repo}..."):
            result = service.fetch(repo, refresh=refresh, max_commits=max_commits)

    source = "stored" if result.was_cached else "fetched"
    console.print(f"[green]{len(result.commits)}[/green] commit(s) {source} for [bold]{repo}[/bold]")
