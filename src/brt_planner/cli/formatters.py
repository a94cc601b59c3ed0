"""Output formatters for CLI display."""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..core.models import CostEstimate, EstimateSource, Journey, PlanResult
from ..utils.geo import format_distance, format_duration

console = Console()


def _fare_text(fare: int | None) -> str:
    return f"Rs. {fare}" if fare else "Free"


def format_journey_table(journeys: Journey | list[Journey], verbose: bool = False) -> None:
    """Display journey(s) as a rich table."""
    if isinstance(journeys, Journey):
        journeys = [journeys]

    if not journeys:
        console.print("No journeys found.")
        return

    for idx, journey in enumerate(journeys, 1):
        if len(journeys) > 1:
            console.print(f"\n[bold cyan]Option {idx}:[/bold cyan]")

        console.print(
            f"[bold]Journey: {journey.boarding_stop.name} → {journey.alighting_stop.name}[/bold]"
        )
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Property", style="cyan", no_wrap=True)
        table.add_column("Value", style="green")

        table.add_row("Routes", " + ".join(journey.route_names))
        if journey.transfer_stop is not None:
            table.add_row("Transfer at", journey.transfer_stop.name)
        table.add_row("Duration", format_duration(journey.total_duration_min))
        table.add_row("Distance", format_distance(journey.total_distance_m))
        table.add_row("Fare", _fare_text(journey.total_fare))
        table.add_row("Transfers", "1" if journey.requires_transfer else "0")

        console.print(table)

        if verbose:
            console.print()
            leg_table = Table(
                title="Legs", show_header=True, header_style="bold blue"
            )
            leg_table.add_column("Leg", style="cyan")
            leg_table.add_column("Mode", style="yellow")
            leg_table.add_column("Distance", style="green")
            leg_table.add_column("Duration", style="green")
            leg_table.add_column("Fare", style="magenta")
            leg_table.add_column("Source", style="dim blue")

            for name, leg in (
                ("First mile", journey.first_mile),
                ("Bus", journey.bus_leg),
                ("Last mile", journey.last_mile),
            ):
                leg_table.add_row(
                    name,
                    leg.mode.label,
                    format_distance(leg.distance_m),
                    format_duration(leg.duration_min),
                    _fare_text(leg.fare),
                    leg.source.value,
                )

            console.print(leg_table)


def format_journey_detailed(journeys: Journey | list[Journey]) -> None:
    """Display journey(s) with step-by-step instructions."""
    if isinstance(journeys, Journey):
        journeys = [journeys]

    if not journeys:
        console.print("No journeys found.")
        return

    for idx, journey in enumerate(journeys, 1):
        if len(journeys) > 1:
            console.print(f"\n[bold cyan]Option {idx}:[/bold cyan]")

        summary_text = f"""[bold]Board at:[/bold] {journey.boarding_stop.name}
[bold]Get off at:[/bold] {journey.alighting_stop.name}
[bold]Routes:[/bold] {" + ".join(journey.route_names)}
[bold]Duration:[/bold] {format_duration(journey.total_duration_min)}
[bold]Distance:[/bold] {format_distance(journey.total_distance_m)}
[bold]Fare:[/bold] {_fare_text(journey.total_fare)}
[bold]Departure:[/bold] {journey.departure_time:%Y-%m-%d %H:%M}"""
        if journey.transfer_stop is not None:
            summary_text += f"\n[bold]Transfer at:[/bold] {journey.transfer_stop.name}"

        console.print(Panel(summary_text, title="Journey Summary", border_style="blue"))

        console.print()
        console.print("[bold]Directions:[/bold]")
        console.print(
            Panel(
                "\n".join(journey.instructions()),
                title="Step by step",
                border_style="green",
            )
        )


def estimate_to_dict(estimate: CostEstimate) -> dict[str, Any]:
    return {
        "mode": estimate.mode.value,
        "distance_m": round(estimate.distance_m, 1),
        "duration_min": round(estimate.duration_min, 1),
        "fare": estimate.fare,
        "source": estimate.source.value,
    }


def journey_to_dict(journey: Journey) -> dict[str, Any]:
    """Plain dictionary view of a journey for JSON output."""
    return {
        "boarding_stop": {
            "id": journey.boarding_stop.id,
            "name": journey.boarding_stop.name,
        },
        "alighting_stop": {
            "id": journey.alighting_stop.id,
            "name": journey.alighting_stop.name,
        },
        "transfer_stop": {
            "id": journey.transfer_stop.id,
            "name": journey.transfer_stop.name,
        }
        if journey.transfer_stop
        else None,
        "routes": journey.route_names,
        "requires_transfer": journey.requires_transfer,
        "walk_to_board_m": round(journey.walk_to_board_m, 1),
        "walk_from_alight_m": round(journey.walk_from_alight_m, 1),
        "bus_distance_m": round(journey.bus_distance_m, 1),
        "bus_duration_min": round(journey.bus_duration_min, 1),
        "total_distance_m": round(journey.total_distance_m, 1),
        "total_duration_min": round(journey.total_duration_min, 1),
        "total_fare": journey.total_fare,
        "departure_time": journey.departure_time.isoformat(),
        "legs": {
            "first_mile": estimate_to_dict(journey.first_mile),
            "bus": estimate_to_dict(journey.bus_leg),
            "last_mile": estimate_to_dict(journey.last_mile),
        },
        "instructions": journey.instructions(),
    }


def format_journey_json(journeys: Journey | list[Journey]) -> str:
    """Format journey(s) as JSON."""
    if isinstance(journeys, Journey):
        journeys = [journeys]

    return json.dumps(
        [journey_to_dict(journey) for journey in journeys],
        ensure_ascii=False,
        indent=2,
    )


def format_plan_json(result: PlanResult) -> str:
    """Format a planning result (including failures) as JSON."""
    return json.dumps(
        {
            "status": result.status.value,
            "origin": str(result.origin),
            "destination": str(result.destination),
            "message": result.message,
            "journey": journey_to_dict(result.journey) if result.journey else None,
        },
        ensure_ascii=False,
        indent=2,
    )


def format_estimate(estimate: CostEstimate) -> None:
    """Display a single leg estimate."""
    table = Table(
        title=f"{estimate.mode.label} estimate",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Property", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")

    table.add_row("Distance", format_distance(estimate.distance_m))
    table.add_row("Duration", format_duration(estimate.duration_min))
    table.add_row("Fare", _fare_text(estimate.fare))
    table.add_row(
        "Source",
        "Road routing"
        if estimate.source == EstimateSource.ROAD_ROUTING
        else "Local estimate",
    )

    console.print(table)
