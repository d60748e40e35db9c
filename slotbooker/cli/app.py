"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
import uvicorn
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.credentials import build_credential_provider, refresh_credentials
from ..adapters.google_calendar_client import GoogleCalendarClient
from ..api.app import build_app, build_calendar_client
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import ConfigurationError, SlotBookerError, SlotConflictError
from ..services.booking_service import BookingRequest, BookingService

app = typer.Typer(
    name="slotbooker",
    help="Compute bookable appointment slots and book them on Google Calendar",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="YAML config file. Environment variables override it."),
]
MockOption = Annotated[bool, typer.Option("--mock", help="Use mock calendar data and skip Google authentication.")]
MockDataOption = Annotated[Optional[Path], typer.Option("--mock-data", help="JSON file with mock calendar events.")]


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """
    Load configuration from the environment, layered over a YAML file when one exists.
    """
    config_path = config_file
    if config_path is None:
        default_path = get_default_config_path()
        config_path = default_path if default_path.exists() else None

    return AppConfig.from_env(config_path=config_path)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _build_service(config: AppConfig, mock: bool, mock_data: Optional[Path]) -> BookingService:
    client = build_calendar_client(config, mock=mock, mock_data=mock_data)
    return BookingService.from_config(config, client)


@app.command()
def serve(
    config_file: ConfigOption = None,
    host: Annotated[str, typer.Option("--host", help="Interface to bind")] = "0.0.0.0",
    port: Annotated[Optional[int], typer.Option("--port", "-p", help="Listen port, defaults to PORT")] = None,
    mock: MockOption = False,
    mock_data: MockDataOption = None,
):
    """
    Run the HTTP API.

    Examples:

        # Serve using environment configuration
        slotbooker serve

        # Local development without Google credentials
        slotbooker serve --mock --port 8000
    """
    try:
        config = _load_config(config_file)
        _configure_logging(config.log_level)
        api = build_app(config, mock=mock, mock_data=mock_data)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(1)

    uvicorn.run(api, host=host, port=port or config.port, log_config=None)


@app.command()
def slots(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    duration: Annotated[int, typer.Option("--duration", "-d", help="Service duration in minutes")] = 60,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    mock_data: MockDataOption = None,
):
    """
    List bookable start times for a date.

    Examples:

        slotbooker slots 2024-06-10 --duration 60
        slotbooker slots 2024-06-10 -d 30 --mock
    """
    try:
        config = _load_config(config_file)
        service = _build_service(config, mock, mock_data)
        found = asyncio.run(service.find_slots(date=date, duration=duration))
    except SlotBookerError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print()
    if not found:
        console.print(
            f"[yellow]⚠ No bookable slots on {date} for {duration} minutes.[/yellow]\n"
            "Try another date or a shorter duration."
        )
        return

    table = Table(
        title=f"Slots on {date} ({duration} min, {config.buffer_minutes} min buffer)",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("#", style="dim", justify="right")
    table.add_column("Start", style="bold yellow")

    for index, start in enumerate(found, 1):
        table.add_row(str(index), start)

    console.print(table)
    console.print()


@app.command()
def book(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    time: Annotated[str, typer.Argument(help="Start time (HH:mm)")],
    name: Annotated[str, typer.Option("--name", "-n", help="Client name")],
    duration: Annotated[int, typer.Option("--duration", "-d", help="Service duration in minutes")] = 60,
    email: Annotated[Optional[str], typer.Option("--email", help="Client email")] = None,
    phone: Annotated[Optional[str], typer.Option("--phone", help="Client phone")] = None,
    notes: Annotated[Optional[str], typer.Option("--notes", help="Free-form notes")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    mock_data: MockDataOption = None,
):
    """
    Book an appointment after re-checking availability.
    """
    request = BookingRequest(
        date=date,
        time=time,
        duration=duration,
        name=name,
        email=email,
        phone=phone,
        notes=notes,
    )

    try:
        config = _load_config(config_file)
        service = _build_service(config, mock, mock_data)
        event_id = asyncio.run(service.book(request))
    except SlotConflictError:
        console.print(f"[bold red]✗ {date} {time} is no longer available.[/bold red]")
        raise typer.Exit(1)
    except SlotBookerError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"\n[bold green]✓ Booked {date} {time} for {name}[/bold green] (event {event_id})\n")


@app.command()
def check_config(config_file: ConfigOption = None):
    """
    Validate configuration and credentials without contacting Google.
    """
    try:
        config = _load_config(config_file)
        provider = build_credential_provider(config.credentials)
    except ConfigurationError as e:
        console.print(f"[bold red]✗ Configuration error:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(title="Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="bold yellow")
    table.add_column("Value")

    table.add_row("Port", str(config.port))
    table.add_row("Timezone", config.timezone)
    table.add_row("Calendar", config.calendar_id)
    table.add_row("Work hours", f"{config.work_start} - {config.work_end}")
    table.add_row("Buffer", f"{config.buffer_minutes} min")
    table.add_row("CORS origins", ", ".join(config.cors_origins))
    table.add_row("Credentials", provider.scheme)

    console.print()
    console.print(table)
    console.print()


@app.command()
def test_auth(config_file: ConfigOption = None):
    """
    Test Google authentication and calendar access.
    """
    try:
        config = _load_config(config_file)
        provider = build_credential_provider(config.credentials)

        console.print("\n[bold]Testing Google Calendar authentication...[/bold]\n")

        credentials = refresh_credentials(provider.get_credentials())
        client = GoogleCalendarClient.from_credentials(credentials, timezone=config.timezone)
        calendar_info = asyncio.run(client.test_connection(config.calendar_id))

        console.print(Panel.fit(
            f"[bold green]✓ Authentication successful![/bold green]\n\n"
            f"[bold]Calendar:[/bold] {calendar_info.get('summary', 'N/A')}\n"
            f"[bold]ID:[/bold] {calendar_info.get('id', config.calendar_id)}\n"
            f"[bold]Timezone:[/bold] {calendar_info.get('timeZone', 'N/A')}",
            title="✓ Connection test"
        ))
        console.print()

    except SlotBookerError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}\n")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotbooker[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
