"""Command-line interface for Audit Trail."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from audittrail.exceptions import AuditTrailError
from audittrail.history.summary import relative_time
from audittrail.history.version_history import utc_now
from audittrail.logging_config import configure_logging
from audittrail.models import Settings
from audittrail.service import AuditTrailService

app = typer.Typer(
    name="audittrail",
    help="Audit Trail - Append-only version history with word-level change summaries",
    add_completion=False,
)
console = Console()

DATA_DIR_OPTION = typer.Option(
    None, "--data-dir", "-d", help="Directory holding task documents (default: $AUDITTRAIL_DATA_DIR or ./.audittrail)"
)
JSON_OPTION = typer.Option(False, "--json", help="Print raw JSON instead of tables")


def _service(data_dir: Optional[Path]) -> AuditTrailService:
    settings = Settings()
    if data_dir is not None:
        settings = settings.model_copy(update={"data_dir": data_dir, "store": "json"})
    return AuditTrailService.from_settings(settings)


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2))


def _fail(error: Exception) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level (DEBUG, INFO, WARNING, ...)"),
    log_json: bool = typer.Option(False, "--log-json", help="Emit JSON log lines"),
) -> None:
    """Configure logging before any command runs."""
    settings = Settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_logs=log_json or settings.log_json,
    )


@app.command()
def record(
    task_id: str = typer.Argument(..., help="Task identifier"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Task title"),
    content: Optional[str] = typer.Option(None, "--content", "-c", help="Task content"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read content from a file"),
    data_dir: Optional[Path] = DATA_DIR_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Record a new version of a task."""
    if content is not None and file is not None:
        console.print("[bold red]Error:[/bold red] Use either --content or --file, not both")
        raise typer.Exit(1)

    try:
        if file is not None:
            content = file.read_text(encoding="utf-8")

        payload = {}
        if title is not None:
            payload["title"] = title
        if content is not None:
            payload["content"] = content

        result = _service(data_dir).create_version(task_id, payload)
    except (AuditTrailError, OSError) as e:
        _fail(e)

    if as_json:
        _echo_json(result)
        return

    version = result["version"]
    diff = version["diff"]
    console.print(f"[bold green]✓[/bold green] {result['message']}")
    console.print(f"[cyan]Summary:[/cyan] {version['summary']}")
    console.print(f"[cyan]Diff:[/cyan] +{diff['added']} -{diff['removed']} ({diff['changed']} changed)")


@app.command()
def tasks(
    data_dir: Optional[Path] = DATA_DIR_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """List all tracked tasks."""
    try:
        task_list = _service(data_dir).list_tasks()
    except AuditTrailError as e:
        _fail(e)

    if as_json:
        _echo_json(task_list)
        return

    if not task_list:
        console.print("[yellow]No tasks recorded yet.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Task", style="cyan")
    table.add_column("Title", style="white")

    for task in task_list:
        table.add_row(task["taskId"], task["title"])

    console.print(table)


@app.command()
def show(
    task_id: str = typer.Argument(..., help="Task identifier"),
    data_dir: Optional[Path] = DATA_DIR_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Show the full version history of a task."""
    try:
        task = _service(data_dir).get_task(task_id)
    except AuditTrailError as e:
        _fail(e)

    if as_json:
        _echo_json(task)
        return

    if "taskId" not in task:
        console.print(f"[yellow]{task['message']}:[/yellow] {task_id}")
        return

    console.print(f"\n[bold]Task[/bold] [cyan]{task['taskId']}[/cyan]")
    console.print(
        f"[cyan]Head:[/cyan] {task['headVersion']}  "
        f"[cyan]Tail:[/cyan] {task['tailVersion']}  "
        f"[cyan]Versions:[/cyan] {task['totalVersions']}\n"
    )

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Version", justify="right", style="cyan")
    table.add_column("Title", style="white")
    table.add_column("Summary", style="green")
    table.add_column("+/-", justify="right", style="yellow")
    table.add_column("When", style="blue")

    now = utc_now()
    for version in task["versions"]:
        created_at = _parse_instant(version["createdAt"])
        table.add_row(
            str(version["versionNumber"]),
            str(version["data"].get("title") or "")[:40],
            version["summary"],
            f"+{version['diff']['added']} -{version['diff']['removed']}",
            relative_time(created_at, now),
        )

    console.print(table)


@app.command()
def get(
    task_id: str = typer.Argument(..., help="Task identifier"),
    version_number: int = typer.Argument(..., help="Version number (starting at 1)"),
    data_dir: Optional[Path] = DATA_DIR_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Show a single version and its neighbors."""
    try:
        version = _service(data_dir).get_version(task_id, version_number)
    except AuditTrailError as e:
        _fail(e)

    if as_json:
        _echo_json(version)
        return

    navigation = version["navigation"]
    data = version["data"]

    console.print(f"\n[bold]Version {version['versionNumber']}[/bold] of [cyan]{task_id}[/cyan]")
    console.print(f"[cyan]Created:[/cyan] {version['createdAt']}")
    console.print(f"[cyan]Summary:[/cyan] {version['summary']}")
    console.print(
        f"[cyan]Diff:[/cyan] +{version['diff']['added']} -{version['diff']['removed']}"
    )
    console.print(f"[cyan]Previous:[/cyan] {navigation['prev'] if navigation['prev'] is not None else '-'}")
    console.print(f"[cyan]Next:[/cyan] {navigation['next'] if navigation['next'] is not None else '-'}")
    console.print(f"[cyan]Title:[/cyan] {data.get('title') or ''}")

    body = data.get("content")
    if body:
        lines = str(body).split("\n")[:15]
        console.print("\n  " + "\n  ".join(lines))
        if len(str(body).split("\n")) > 15:
            console.print("  [dim]... (truncated)[/dim]")


@app.command()
def stats(
    data_dir: Optional[Path] = DATA_DIR_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Show counts across all tasks and the latest activity."""
    try:
        summary = _service(data_dir).stats()
    except AuditTrailError as e:
        _fail(e)

    if as_json:
        _echo_json(summary)
        return

    console.print("\n[bold]Audit Trail Statistics[/bold]")
    console.print(f"[cyan]Tasks:[/cyan] {summary['totalTasks']}")
    console.print(f"[cyan]Versions:[/cyan] {summary['totalVersions']}")

    latest = summary["latestTask"]
    if latest:
        console.print(f"[cyan]Latest:[/cyan] {latest['title']} [dim]({latest['timeAgo']})[/dim]")
    else:
        console.print("[cyan]Latest:[/cyan] [dim]none[/dim]")


@app.command()
def version() -> None:
    """Show version information."""
    from audittrail import __version__

    console.print(f"[bold]Audit Trail[/bold] version {__version__}")


def _parse_instant(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
