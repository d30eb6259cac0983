"""``commit-journal show``: print the last stored analysis."""

import json

import typer

from . import app
from ._common import console, open_service
from ._render import render_result


@app.command()
def show(
    ctx: typer.Context,
    repo: str = typer.Argument(..., help="Repository id used with fetch"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Show the stored analysis without calling the model."""
    with open_service(ctx) as service:
        view = service.analysis(repo)

    if json_output:
        print(json.dumps(view.to_dict(), indent=2))
        return

    if not view.has_full_analysis:
        console.print(
            f"[yellow]No analysis stored for {repo}.[/yellow] "
            f"{len(view.result.file_evolutions)} file(s) have history; "
            f"run [bold]commit-journal analyze {repo}[/bold]."
        )
        raise typer.Exit(0)
    render_result(view.result)
