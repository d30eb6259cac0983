"""Shared CLI helpers."""

from contextlib import contextmanager
from typing import Iterator

import typer
from rich.console import Console
from rich.markup import escape

from ..config import JournalConfig, load_config
from ..exceptions import JournalError
from ..logging_config import setup_logging
from ..service import EvolutionService

console = Console()


def resolve_config(ctx: typer.Context, **overrides) -> JournalConfig:
    """Build configuration from the global options plus command overrides."""
    obj = ctx.obj or {}
    return load_config(
        config_file=obj.get("config"),
        data_dir=obj.get("data_dir"),
        store_backend=obj.get("store_backend"),
        verbose=obj.get("verbose", False),
        quiet=obj.get("quiet", False),
        **overrides,
    )


@contextmanager
def open_service(ctx: typer.Context, **overrides) -> Iterator[EvolutionService]:
    """Yield a service for one command; domain errors exit with status 1.

    ``ctx.obj["service_factory"]`` replaces the production wiring when set.
    """
    try:
        config = resolve_config(ctx, **overrides)
        setup_logging(verbose=config.verbosity == "verbose", quiet=config.verbosity == "quiet")
        factory = (ctx.obj or {}).get("service_factory") or EvolutionService.from_config
        service = factory(config)
    except JournalError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    try:
        yield service
    except JournalError as e:
        console.print(f"[red]Error:[/red] {escape(e.message)}")
        for key, value in e.details.items():
            console.print(f"  [dim]{key}:[/dim] {escape(str(value))}")
        raise typer.Exit(1)
    finally:
        service.close()
