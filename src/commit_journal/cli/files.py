"""``commit-journal files``: list file evolutions by change count."""

import json

import typer
from rich.table import Table

from . import app
from ._common import console, open_service


@app.command()
def files(
    ctx: typer.Context,
    repo: str = typer.Argument(..., help="Repository id used with fetch"),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Rows to show"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Show the most frequently changed files of a fetched repository."""
    with open_service(ctx) as service:
        evolutions = service.file_evolutions(repo)

    if json_output:
        print(json.dumps([e.to_dict() for e in evolutions[:limit]], indent=2))
        return

    if not evolutions:
        console.print(
            "[yellow]No history found.[/yellow] "
            f"Run [bold]commit-journal fetch {repo}[/bold] first."
        )
        raise typer.Exit(0)

    table = Table(title=f"File evolutions for {repo}")
    table.add_column("Path", style="bold")
    table.add_column("Changes", justify="right")
    table.add_column("Authors", justify="right")
    table.add_column("Last changed")
    for evolution in evolutions[:limit]:
        table.add_row(
            evolution.path,
            str(evolution.change_count),
            str(len(evolution.authors)),
            evolution.last_changed,
        )
    console.print(table)
