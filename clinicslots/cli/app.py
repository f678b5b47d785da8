"""
Main CLI application using Typer.
"""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import AppConfig, load_config
from ..domain.exceptions import DataSourceError, RequestValidationError
from ..factory import build_service
from ..logging_config import configure_logging
from ..services.availability import AvailabilityService
from ..services.schemas import DaySlotsRequest, MonthAvailabilityRequest, parse_request

app = typer.Typer(
    name="clinicslots",
    help="Consultar disponibilidad de citas por médico o calendario compartido",
    add_completion=False
)

console = Console()

WEEKDAY_NAMES = {
    0: "Domingo",
    1: "Lunes",
    2: "Martes",
    3: "Miércoles",
    4: "Jueves",
    5: "Viernes",
    6: "Sábado",
}

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Usar datos de prueba en lugar de Supabase."),
]
CalendarOption = Annotated[
    Optional[str],
    typer.Option("--calendar", help="ID del calendario compartido (opcional)."),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Imprimir la respuesta como JSON."),
]


def _load(config_file: Optional[Path], mock: bool) -> tuple[AppConfig, AvailabilityService]:
    """Load configuration, set up logging and build the service, exiting on failure."""
    try:
        config = load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error de configuración:[/bold red] {e}")
        raise typer.Exit(1)

    configure_logging(config.log_level)

    try:
        service = build_service(config, mock=mock)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    return config, service


def _print_validation_errors(error: RequestValidationError) -> None:
    console.print("[bold red]Datos de entrada inválidos:[/bold red]")
    for field_error in error.errors:
        console.print(f"  • [yellow]{field_error.field}[/yellow]: {field_error.message}")


@app.command()
def days(
    clinician: Annotated[str, typer.Argument(help="ID del médico (UUID)")],
    month: Annotated[str, typer.Argument(help="Mes a consultar (YYYY-MM)")],
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Duración de la cita en minutos")] = None,
    timezone: Annotated[Optional[str], typer.Option("--timezone", "-z", help="Zona horaria IANA")] = None,
    calendar: CalendarOption = None,
    as_json: JsonOption = False,
    mock: MockOption = False,
    config_file: ConfigOption = None,
):
    """
    Show which days of a month can still fit an appointment.

    Examples:

        clinicslots days 11111111-1111-4111-8111-111111111111 2026-11 --mock

        clinicslots days <clinician> 2026-11 --duration 90 --calendar <calendar>
    """
    config, service = _load(config_file, mock)

    raw = {
        "clinicianId": clinician,
        "month": month,
        "durationMinutes": duration if duration is not None else config.defaults.month_duration_minutes,
        "timezone": timezone,
        "calendarId": calendar,
    }

    try:
        request = parse_request(MonthAvailabilityRequest, raw)
        response = service.month_availability(request)
    except RequestValidationError as e:
        _print_validation_errors(e)
        raise typer.Exit(2)
    except DataSourceError as e:
        console.print(f"[bold red]Error al consultar datos:[/bold red] {e}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(response.model_dump()))
        return

    table = Table(
        title=f"Disponibilidad {response.month} · {response.durationMinutes} min · {response.timezone}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Fecha", style="bold")
    table.add_column("Día")
    table.add_column("Laborable")
    table.add_column("Disponible")

    for day in response.days:
        if not day.isWorkingDay:
            available = "[dim]-[/dim]"
        elif day.canFitRequestedDuration:
            available = "[green]✓ sí[/green]"
        else:
            available = "[red]✗ lleno[/red]"

        table.add_row(
            day.date,
            WEEKDAY_NAMES[day.weekday],
            "sí" if day.isWorkingDay else "[dim]no[/dim]",
            available,
        )

    console.print()
    console.print(table)
    free_days = sum(1 for day in response.days if day.canFitRequestedDuration)
    console.print(f"\n[bold green]{free_days}[/bold green] día(s) con espacio disponible.\n")


@app.command()
def slots(
    clinician: Annotated[str, typer.Argument(help="ID del médico (UUID)")],
    date: Annotated[str, typer.Argument(help="Fecha a consultar (YYYY-MM-DD)")],
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Duración de la cita en minutos")] = None,
    calendar: CalendarOption = None,
    as_json: JsonOption = False,
    mock: MockOption = False,
    config_file: ConfigOption = None,
):
    """
    List bookable start times on one day.

    Examples:

        clinicslots slots 11111111-1111-4111-8111-111111111111 2026-11-02 --mock
    """
    config, service = _load(config_file, mock)

    raw = {
        "clinicianId": clinician,
        "date": date,
        "durationMinutes": duration if duration is not None else config.defaults.slot_duration_minutes,
        "calendarId": calendar,
    }

    try:
        request = parse_request(DaySlotsRequest, raw)
        response = service.day_slots(request)
    except RequestValidationError as e:
        _print_validation_errors(e)
        raise typer.Exit(2)
    except DataSourceError as e:
        console.print(f"[bold red]Error al consultar datos:[/bold red] {e}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(response.model_dump()))
        return

    console.print()
    if not response.slots:
        console.print(
            "[yellow]⚠ No hay horarios disponibles para esa fecha.[/yellow]\n"
            "Pruebe otra fecha o una duración más corta."
        )
    else:
        console.print(f"[bold green]✓ {len(response.slots)} horario(s) disponible(s) el {date}:[/bold green]\n")
        for start in response.slots:
            console.print(f"  {start}")
    console.print()


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", help="Bind port")] = 8000,
    mock: MockOption = False,
    config_file: ConfigOption = None,
):
    """
    Run the HTTP API.
    """
    import uvicorn

    from ..api.app import create_app

    config, service = _load(config_file, mock)
    console.print(f"[bold cyan]clinicslots[/bold cyan] escuchando en http://{host}:{port}")
    uvicorn.run(create_app(config=config, service=service), host=host, port=port, log_config=None)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]clinicslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
