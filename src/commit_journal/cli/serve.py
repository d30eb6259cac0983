"""``commit-journal serve``: HTTP API over the evolution analysis."""

import typer

from . import app
from ._common import console, open_service


@app.command()
def serve(
    ctx: typer.Context,
    port: int = typer.Option(8765, help="Port to listen on"),
    host: str = typer.Option("127.0.0.1", help="Host to bind to"),
) -> None:
    """Serve /api/evolution, /api/analyze-commit and /api/analysis-total."""
    try:
        from ..server import _check_deps

        _check_deps()
    except ImportError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    import uvicorn

    from ..server.app import create_app

    verbose = (ctx.obj or {}).get("verbose", False)
    with open_service(ctx) as service:
        url = f"http://{host}:{port}"
        console.print(f"[bold]API[/bold] → [link={url}/api/evolution]{url}/api/evolution[/link]")
        console.print("[dim]Press Ctrl+C to stop[/dim]")
        try:
            uvicorn.run(
                create_app(service),
                host=host,
                port=port,
                log_level="info" if verbose else "warning",
            )
        except KeyboardInterrupt:
            pass
    console.print("\n[dim]Stopped.[/dim]")
