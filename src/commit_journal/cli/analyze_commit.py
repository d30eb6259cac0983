"""``commit-journal analyze-commit``: journal entry for one commit."""

import json
from contextlib import nullcontext
from typing import Optional

import typer
from rich.markup import escape

from . import app
from ._common import console, open_service
from ._render import render_commit_analysis


@app.command("analyze-commit")
def analyze_commit(
    ctx: typer.Context,
    repo: str = typer.Argument(..., help="Repository id used with fetch"),
    commit: str = typer.Argument(..., help="Commit hash (abbreviations accepted)"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model id"),
    prompt: Optional[str] = typer.Option(None, "--prompt", "-p", help="Prompt id"),
    reanalyze: bool = typer.Option(
        False, "--reanalyze", help="Ask the model again and replace the cached entry"
    ),
    delete: bool = typer.Option(False, "--delete", help="Delete the cached entry and exit"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Summarize one commit: what it did, its key decisions and callouts.

    Entries are cached per commit, model and prompt.

    [bold cyan]Examples:[/bold cyan]

      commit-journal analyze-commit . 1a2b3c4

      commit-journal analyze-commit . 1a2b3c4 --model Qwen/Qwen2.5-7B-Instruct --reanalyze
    """
    if delete and reanalyze:
        console.print("[red]Error:[/red] --delete and --reanalyze cannot be combined")
        raise typer.Exit(2)

    with open_service(ctx) as service:
        if delete:
            service.delete_commit_analysis(repo, commit, model_id=model, prompt_id=prompt)
            console.print(f"Deleted the cached analysis of [bold]{escape(commit)}[/bold]")
            return

        status = (
            nullcontext() if json_output else console.status(f"[cyan]Analyzing {escape(commit)}...")
        )
        with status:
            outcome = service.analyze_commit(
                repo, commit, model_id=model, prompt_id=prompt, reanalyze=reanalyze
            )

    if json_output:
        print(json.dumps(outcome.to_dict(), indent=2))
        return
    render_commit_analysis(outcome.analysis, outcome.was_cached)
