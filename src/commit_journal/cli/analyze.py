"""``commit-journal analyze``: run the evolution analysis."""

import json
from contextlib import nullcontext
from typing import Optional

import typer

from . import app
from ._common import console, open_service
from ._render import render_result


@app.command()
def analyze(
    ctx: typer.Context,
    repo: str = typer.Argument(..., help="Repository id used with fetch"),
    file: Optional[list[str]] = typer.Option(
        None, "--file", "-f", help="File to analyze (repeatable; default: top changed)"
    ),
    force_refresh: bool = typer.Option(
        False, "--force-refresh", help="Refetch every diff snapshot"
    ),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model id"),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", min=1, max=4, help="Concurrent journey calls"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Analyze how the selected files evolved and what they teach.

    [bold cyan]Examples:[/bold cyan]

      commit-journal analyze https://github.com/org/repo

      commit-journal analyze . -f src/app.py -f src/db.py --force-refresh
    """
    status = nullcontext() if json_output else console.status("[cyan]Analyzing file journeys...")
    with open_service(ctx, model_id=model, journey_workers=workers) as service:
        with status:
            result = service.analyze(repo, selected_files=file or None, force_refresh=force_refresh)

    if json_output:
        print(json.dumps(result.to_dict(), indent=2))
        return
    render_result(result)
