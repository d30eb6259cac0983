"""``commit-journal usage``: token totals over stored analyses."""

import json

import typer
from rich.table import Table

from . import app
from ._common import console, open_service


@app.command()
def usage(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Show the tokens recorded by every stored analysis."""
    with open_service(ctx) as service:
        totals = service.usage_totals()

    if json_output:
        print(json.dumps(totals.to_dict(), indent=2))
        return

    table = Table(title="Token usage")
    table.add_column("Analyses")
    table.add_column("Count", justify="right")
    table.add_column("Input", justify="right")
    table.add_column("Output", justify="right")
    table.add_column("Total", justify="right")
    rows = [
        ("Commit", totals.commit_analysis_count, totals.commit_analyses),
        ("Evolution", totals.evolution_analysis_count, totals.evolution_analyses),
    ]
    for label, count, tokens in rows:
        table.add_row(
            label,
            str(count),
            str(tokens.input_tokens),
            str(tokens.output_tokens),
            str(tokens.total_tokens),
        )
    total = totals.total
    table.add_row(
        "[bold]All[/bold]",
        str(totals.commit_analysis_count + totals.evolution_analysis_count),
        str(total.input_tokens),
        str(total.output_tokens),
        f"[bold]{total.total_tokens}[/bold]",
    )
    console.print(table)
