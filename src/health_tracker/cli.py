"""Command-line interface for the Health Tracker."""

from datetime import date
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .clients import APIError, HealthTrackerClient
from .services import DashboardViewModel
from .utils.config import get_settings

app = typer.Typer(
    name="health",
    help="Health Tracker - Log daily steps and heart rate",
    no_args_is_help=True,
)
console = Console()

BAR_WIDTH = 20


def get_client() -> HealthTrackerClient:
    """Client for the configured API."""
    return HealthTrackerClient(settings=get_settings())


def load_dashboard(start: Optional[str] = None, end: Optional[str] = None) -> DashboardViewModel:
    """Build a view-model and load entries for the given range."""
    with get_client() as client:
        dashboard = DashboardViewModel(client)
        dashboard.set_date_range(start, end)
    if dashboard.error:
        console.print(f"[red]{dashboard.error}[/red]")
        raise typer.Exit(1)
    return dashboard


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Host to bind to"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Start the API server."""
    from .web import run

    settings = get_settings()
    console.print(
        f"[green]Server listening on http://{host or settings.host}:{port or settings.port}[/green]"
    )
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")
    run(host=host, port=port, reload=reload)


@app.command()
def add(
    date_str: Optional[str] = typer.Argument(
        None,
        help="Date for entry (YYYY-MM-DD). Defaults to today.",
    ),
    steps: str = typer.Option(..., "--steps", "-s", help="Step count"),
    heart_rate: str = typer.Option(..., "--heart-rate", "-r", help="Heart rate (bpm)"),
):
    """Add a new entry."""
    with get_client() as client:
        dashboard = DashboardViewModel(client)
        dashboard.update_draft(
            date=date_str or date.today().isoformat(),
            steps=steps,
            heart_rate=heart_rate,
        )
        saved = dashboard.submit()

    if not saved:
        console.print(f"[red]{dashboard.error}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ {dashboard.success}[/green]")
    console.print(
        f"[dim]{dashboard.total_entries} entries, "
        f"avg {dashboard.avg_steps:,} steps, avg {dashboard.avg_heart_rate} bpm[/dim]"
    )


@app.command(name="list")
def list_entries(
    start: Optional[str] = typer.Option(None, "--start", help="Start date (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(None, "--end", help="End date (YYYY-MM-DD)"),
):
    """Show entries with quick-glance averages."""
    dashboard = load_dashboard(start, end)

    console.print(Panel(
        f"Total entries: [bold]{dashboard.total_entries}[/bold]   "
        f"Avg steps: [bold]{dashboard.avg_steps:,}[/bold]   "
        f"Avg heart rate: [bold]{dashboard.avg_heart_rate} bpm[/bold]",
        title="🏃 Health Tracker",
    ))

    if not dashboard.entries:
        console.print("[yellow]No entries yet. Start tracking![/yellow]")
        return

    table = Table(title="All Entries")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Steps", justify="right")
    table.add_column("Heart rate", justify="right")

    for m in dashboard.entries:
        table.add_row(str(m.id), m.date, f"{m.steps:,}", f"{m.heart_rate} bpm")

    console.print(table)


@app.command()
def show(metric_id: int = typer.Argument(..., help="Entry id")):
    """Show a single entry."""
    with get_client() as client:
        try:
            metric = client.get_metric(metric_id)
        except APIError as e:
            console.print(f"[red]{e.message}[/red]")
            raise typer.Exit(1)

    created = metric.created_at.strftime("%Y-%m-%d %H:%M") if metric.created_at else "-"
    console.print(Panel(
        f"Steps: {metric.steps:,}\nHeart rate: {metric.heart_rate} bpm\n[dim]Logged {created}[/dim]",
        title=f"#{metric.id} · {metric.date}",
    ))


@app.command()
def delete(metric_id: int = typer.Argument(..., help="Entry id")):
    """Delete an entry."""
    with get_client() as client:
        try:
            result = client.delete_metric(metric_id)
        except APIError as e:
            console.print(f"[red]{e.message}[/red]")
            raise typer.Exit(1)

    console.print(f"[green]✓ {result.message}[/green]")


@app.command()
def stats():
    """Show aggregate statistics across all entries."""
    with get_client() as client:
        try:
            summary = client.get_stats()
        except APIError as e:
            console.print(f"[red]{e.message}[/red]")
            raise typer.Exit(1)

    table = Table(title="Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Avg", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    table.add_row(
        "Steps", f"{summary.avg_steps:,}", f"{summary.min_steps:,}", f"{summary.max_steps:,}",
    )
    table.add_row(
        "Heart rate",
        str(summary.avg_heart_rate),
        str(summary.min_heart_rate),
        str(summary.max_heart_rate),
    )

    console.print(table)
    console.print(f"\n[dim]Total entries: {summary.total_entries}[/dim]")


@app.command()
def trends(
    start: Optional[str] = typer.Option(None, "--start", help="Start date (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(None, "--end", help="End date (YYYY-MM-DD)"),
    overlay: bool = typer.Option(False, "--overlay", help="Scale both series to 0-1"),
):
    """Show step and heart-rate trends."""
    dashboard = load_dashboard(start, end)
    points = dashboard.trend_series(overlay=overlay)

    if not points:
        console.print("[yellow]No data yet. Add your first entry to see trends![/yellow]")
        return

    table = Table(title="Trends (normalized)" if overlay else "Trends")
    table.add_column("Date", style="cyan")
    table.add_column("Steps", justify="right")
    table.add_column("Heart rate", justify="right")

    if overlay:
        for p in points:
            table.add_row(
                p["date"],
                "[blue]" + "█" * round(p["steps"] * BAR_WIDTH) + "[/blue]",
                "[green]" + "█" * round(p["heart_rate"] * BAR_WIDTH) + "[/green]",
            )
    else:
        for p in points:
            table.add_row(p["date"], f"{p['steps']:,}", f"{p['heart_rate']} bpm")

    console.print(table)
    console.print(f"\n[dim]{len(points)} points loaded[/dim]")


@app.command()
def status():
    """Check the API and show configuration."""
    settings = get_settings()

    table = Table(title="Configuration")
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("API URL", settings.resolved_api_url)
    table.add_row("Storage backend", settings.storage_backend)
    table.add_row("Database file", str(settings.database_file))
    console.print(table)

    with get_client() as client:
        try:
            health = client.health()
        except APIError as e:
            console.print(f"[red]✗ API unreachable: {e.message}[/red]")
            raise typer.Exit(1)

    console.print(f"[green]✓ {health.message}[/green]")


if __name__ == "__main__":
    app()
