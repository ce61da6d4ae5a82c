"""Command line entry point.

    python -m bearpaw serve [--host H] [--port P] [--reload]
    python -m bearpaw project             # projected items as JSON
    python -m bearpaw check-config
"""

import asyncio
from typing import Optional

import typer
import uvicorn
from pydantic import TypeAdapter

from bearpaw.audit import configure_logging
from bearpaw.config import get_settings, validate_all_settings
from bearpaw.models.projection import ProjectedItem
from bearpaw.orchestrator import create_app_components
from bearpaw.projections import ProjectionError

cli = typer.Typer(help="Run and inspect the Bearpaw cabin manager.")


@cli.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host interface to bind."),
    port: Optional[int] = typer.Option(None, help="Port to listen on."),
    reload: bool = typer.Option(False, help="Restart on code changes."),
) -> None:
    """Start the JSON API with uvicorn."""
    app_settings = get_settings().app
    effective_host = host or app_settings.host
    effective_port = port or app_settings.port
    configure_logging(app_settings.log_level)

    browser_host = "127.0.0.1" if effective_host in {"0.0.0.0", "::"} else effective_host
    typer.echo(f"Starting Bearpaw API on http://{browser_host}:{effective_port}/docs")
    uvicorn.run(
        "bearpaw.api.app:create_app",
        host=effective_host,
        port=effective_port,
        factory=True,
        reload=reload,
    )


@cli.command()
def project() -> None:
    """Print the current projected items as JSON."""
    app_settings = get_settings().app
    configure_logging(app_settings.log_level)
    components = create_app_components(app_settings=app_settings)

    try:
        items = asyncio.run(components.aggregator.project())
    except ProjectionError as e:
        typer.echo(f"Projection failed: {e}", err=True)
        raise typer.Exit(code=1)

    adapter = TypeAdapter(list[ProjectedItem])
    typer.echo(adapter.dump_json(items, indent=2).decode())


@cli.command("check-config")
def check_config() -> None:
    """Validate settings; exits non-zero if any section is invalid."""
    results = validate_all_settings()
    failed = False
    for name, ok in results.items():
        if name.endswith("_error"):
            continue
        if ok:
            typer.echo(f"{name}: ok")
        else:
            failed = True
            typer.echo(f"{name}: {results.get(f'{name}_error', 'invalid')}", err=True)
    if failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    cli()
