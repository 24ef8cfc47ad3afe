"""runlog CLI — talks to the daemon over HTTP."""

import json
from datetime import datetime
from typing import Optional

import httpx
import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from runlog import __version__
from runlog.core.config import get_client_settings
from runlog.core.pagination import MAX_LIMIT

app = typer.Typer(
    name="runlog",
    help="Process run history for batch ingestion pipelines",
    no_args_is_help=True,
)
console = Console()


def _client() -> httpx.Client:
    settings = get_client_settings()
    return httpx.Client(
        base_url=settings.host,
        headers={"Authorization": f"Bearer {settings.api_key}"},
        timeout=30,
    )


def _api(method: str, path: str, **kwargs) -> dict:
    """Make an API call to the daemon."""
    with _client() as client:
        try:
            resp = client.request(method, f"/api/v1{path}", **kwargs)
        except httpx.ConnectError:
            settings = get_client_settings()
            console.print(f"[red]Error:[/red] Cannot connect to runlog daemon at {settings.host}")
            console.print("Start the daemon with: [bold]runlogd[/bold]")
            raise typer.Exit(1)

        if resp.status_code >= 400:
            detail = resp.json().get("detail", resp.text) if resp.headers.get("content-type", "").startswith("application/json") else resp.text
            console.print(f"[red]Error {resp.status_code}:[/red] {detail}")
            raise typer.Exit(1)

        return resp.json()


def _status_color(status: str) -> str:
    return "green" if status == "completed" else "red" if status == "failed" else "yellow"


def _runs_path(start: Optional[datetime], end: Optional[datetime]) -> str:
    if end and not start:
        console.print("[red]--to requires --from[/red]")
        raise typer.Exit(1)
    path = "/process/runs"
    if start:
        path += f"/{start.isoformat()}"
    if end:
        path += f"/{end.isoformat()}"
    return path


@app.command()
def runs(
    start: Optional[datetime] = typer.Option(None, "--from", help="Window start (default: 7 days ago)"),
    end: Optional[datetime] = typer.Option(None, "--to", help="Window end (default: now)"),
    full: bool = typer.Option(False, "--full", help="Include runs that recorded no units"),
    detail: bool = typer.Option(False, "--detail", help="Show the first units of each run"),
    limit: int = typer.Option(100, "--limit", "-l", min=1, max=MAX_LIMIT, help="Runs per page"),
    offset: int = typer.Option(0, "--offset", help="Runs to skip"),
):
    """List process runs within a time window."""
    params = {"full": full, "detail": detail, "limit": limit, "offset": offset}
    result = _api("GET", _runs_path(start, end), params=params)

    if not result["runs"]:
        console.print("[dim]No process runs in this window[/dim]")
        return

    table = Table(title=f"Process runs ({result['offset'] + 1}-{result['offset'] + len(result['runs'])} of {result['total']})")
    table.add_column("ID", style="bold")
    table.add_column("Status")
    table.add_column("Started")
    table.add_column("Ended")
    table.add_column("Invoked By")
    if detail:
        table.add_column("Units")

    for item in result["runs"]:
        r = item["run"] if detail else item
        color = _status_color(r["status"])
        row = [
            str(r["process_id"]),
            f"[{color}]{r['status']}[/{color}]",
            r["start_time"],
            r.get("end_time") or "—",
            r.get("invoked_by") or "—",
        ]
        if detail:
            row.append(str(item["units"]["total"]))
        table.add_row(*row)

    console.print(table)
    if result["has_more"]:
        next_offset = result["offset"] + len(result["runs"])
        console.print(f"[dim]More runs available: --offset {next_offset}[/dim]")


@app.command()
def show(
    process_id: int = typer.Argument(..., help="Process run id"),
    limit: int = typer.Option(100, "--limit", "-l", min=1, max=MAX_LIMIT, help="Units per page"),
    offset: int = typer.Option(0, "--offset", help="Units to skip"),
):
    """Show a single process run and its units."""
    result = _api("GET", f"/process/runs/{process_id}", params={"limit": limit, "offset": offset})
    run = result["run"]
    units = result["units"]

    console.print(Panel(json.dumps(run, indent=2, default=str), title=f"Process run {process_id}"))

    table = Table(title=f"Units ({units['total']} total)")
    table.add_column("Key", style="bold")
    table.add_column("Outcome")
    table.add_column("Type")
    table.add_column("Action")
    table.add_column("Time")
    table.add_column("Message")

    for u in units["results"]:
        outcome = "[green]success[/green]" if u["success"] else "[red]failure[/red]"
        table.add_row(
            u["unit_key"],
            outcome,
            u.get("unit_type") or "—",
            u.get("action") or "—",
            u["timestamp"],
            (u.get("message") or "")[:80],
        )

    console.print(table)


@app.command()
def version():
    """Show runlog version."""
    console.print(f"runlog v{__version__}")


@app.command()
def status():
    """Show daemon status."""
    with _client() as client:
        try:
            resp = client.get("/health")
            data = resp.json()
            console.print(f"[green]●[/green] runlog daemon v{data['version']} — running")
        except httpx.ConnectError:
            settings = get_client_settings()
            console.print(f"[red]●[/red] Daemon not running at {settings.host}")


if __name__ == "__main__":
    app()
