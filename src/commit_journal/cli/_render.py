"""Rich rendering of evolution analyses and commit journal entries."""

from rich.panel import Panel
from rich.table import Table

from ..evolution import EvolutionAnalysisResult
from ..journal import CommitAnalysis
from ._common import console

_IMPACT_STYLE = {"high": "red", "medium": "yellow", "low": "green"}


def render_result(result: EvolutionAnalysisResult) -> None:
    console.print(Panel(result.summary or "(no summary)", title=f"Evolution of {result.repo}"))

    if result.hotspots:
        console.print("\n[bold red]Hotspots[/bold red]")
        for hotspot in result.hotspots:
            console.print(f"  [bold]{hotspot.path}[/bold]")
            for lesson in hotspot.evolutionary_lessons:
                console.print(f"    - {lesson}")

    if result.foundations:
        console.print("\n[bold green]Foundations[/bold green]")
        for foundation in result.foundations:
            console.print(f"  [bold]{foundation.path}[/bold]: {foundation.description}")
            console.print(f"    [dim]{foundation.reinforcement}[/dim]")

    if result.architectural_lessons:
        table = Table(title="Architectural lessons")
        table.add_column("Impact")
        table.add_column("Title", style="bold")
        table.add_column("Lesson")
        for lesson in result.architectural_lessons:
            style = _IMPACT_STYLE.get(lesson.impact, "white")
            table.add_row(f"[{style}]{lesson.impact}[/{style}]", lesson.title, lesson.lesson)
        console.print(table)

    for piece in result.named_pieces:
        console.print(f"[cyan]{piece.name}[/cyan]: {piece.description} ({', '.join(piece.files)})")

    tokens = result.tokens
    console.print(
        f"\n[dim]{result.model_id or 'unknown model'} · {tokens.total_tokens} tokens "
        f"({tokens.input_tokens} in / {tokens.output_tokens} out) · {result.generated_at}[/dim]"
    )


def render_commit_analysis(analysis: CommitAnalysis, was_cached: bool) -> None:
    source = "cached" if was_cached else "new"
    console.print(
        Panel(analysis.summary or "(no summary)", title=f"Commit {analysis.commit_hash[:7]}")
    )

    if analysis.key_decisions:
        console.print("\n[bold]Key decisions[/bold]")
        for decision in analysis.key_decisions:
            console.print(f"  - {decision}")

    if analysis.callouts:
        table = Table(title="Architectural callouts")
        table.add_column("Type", style="cyan")
        table.add_column("Title", style="bold")
        table.add_column("Description")
        for callout in analysis.callouts:
            table.add_row(callout.type, callout.title, callout.description)
        console.print(table)

    tokens = analysis.tokens
    console.print(
        f"\n[dim]{analysis.model_id} · prompt {analysis.prompt_id} · {source} · "
        f"{tokens.total_tokens} tokens · {analysis.duration_ms} ms[/dim]"
    )
