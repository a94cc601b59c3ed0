"""CLI main entry point for BRT journey planning."""

import json
import logging
import sys
from datetime import datetime as dt_module
from pathlib import Path

import click
from rich.console import Console

from ..core import (
    ConfigurationError,
    CostingModel,
    InvalidCoordinateError,
    JourneyPlanner,
    JsonFileNetworkSource,
    NetworkLoadError,
    NetworkRepository,
    PlannerSettings,
    TransportMode,
    ValidationError,
    load_settings,
    save_settings,
)
from ..directions import LegEstimator, MapboxDirectionsClient
from ..utils.geo import (
    Coordinate,
    distance_between,
    parse_coordinate,
)
from .formatters import (
    estimate_to_dict,
    format_estimate,
    format_journey_detailed,
    format_journey_json,
    format_journey_table,
    format_plan_json,
)
from .network_commands import network

console = Console()
error_console = Console(stderr=True)

DEFAULT_DATA_PATH = "data/network.json"
DEFAULT_CONFIG_PATH = "config/planner.json"


def _parse_point(text: str, label: str) -> Coordinate:
    try:
        return parse_coordinate(text)
    except ValueError:
        error_console.print(
            f"[red]Invalid {label} '{text}'. Use LAT,LON (e.g. 24.8607,67.0011)[/red]"
        )
        sys.exit(1)


def _parse_departure(datetime_str: str | None) -> dt_module | None:
    if not datetime_str:
        return None
    try:
        return dt_module.strptime(datetime_str, "%Y-%m-%d %H:%M")
    except ValueError:
        error_console.print("[red]Invalid datetime format. Use YYYY-MM-DD HH:MM[/red]")
        sys.exit(1)


def _load_settings_option(config_path: str | None) -> PlannerSettings:
    if not config_path:
        return PlannerSettings()
    return load_settings(Path(config_path))


@click.group()
@click.version_option(version="0.1.0")
def cli() -> None:
    """BRT Journey Planner - Plan bus trips between two points."""
    pass


@cli.command()
@click.argument("origin")
@click.argument("destination")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json", "detailed"]),
    default="table",
    help="Output format",
)
@click.option(
    "--departure",
    "-d",
    "datetime_str",
    help="Departure datetime (YYYY-MM-DD HH:MM format)",
    type=str,
)
@click.option(
    "--alternatives",
    "-a",
    type=click.IntRange(1, 10),
    default=1,
    help="Number of journey options to show",
)
@click.option(
    "--data",
    type=click.Path(),
    default=DEFAULT_DATA_PATH,
    help="Network JSON file",
)
@click.option("--config", "-c", "config_path", type=click.Path(), help="Settings file")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed information")
def plan(
    origin: str,
    destination: str,
    output_format: str,
    datetime_str: str | None,
    alternatives: int,
    data: str,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Plan a bus journey between two coordinates.

    Examples:
        brt-planner plan 24.9180,67.0971 24.8607,67.0011
        brt-planner plan 24.9180,67.0971 24.8607,67.0011 --format json
        brt-planner plan 24.9180,67.0971 24.8607,67.0011 --departure "2025-03-01 08:30"
        brt-planner plan 24.9180,67.0971 24.8607,67.0011 --alternatives 3 --verbose
    """
    if verbose:
        logging.basicConfig(level=logging.INFO)

    origin_point = _parse_point(origin, "origin")
    destination_point = _parse_point(destination, "destination")
    departure = _parse_departure(datetime_str)

    try:
        settings = _load_settings_option(config_path)
        with console.status("[bold green]Loading network..."):
            repository = NetworkRepository.from_source(JsonFileNetworkSource(data))
        planner = JourneyPlanner(repository, settings)

        with console.status(
            f"[bold green]Planning journey from {origin_point} to {destination_point}..."
        ):
            result = planner.plan(origin_point, destination_point, departure)
            journeys = [result.journey] if result.journey else []
            if result.found and alternatives > 1:
                journeys = planner.plan_alternatives(
                    origin_point, destination_point, departure, alternatives
                )

        if output_format == "json":
            if alternatives > 1 and journeys:
                click.echo(format_journey_json(journeys))
            else:
                click.echo(format_plan_json(result))
            if not result.found:
                sys.exit(1)
            return

        if not result.found:
            error_console.print(f"[yellow]No journey found:[/yellow] {result.message}")
            sys.exit(1)

        if output_format == "detailed":
            format_journey_detailed(journeys)
        else:
            format_journey_table(journeys, verbose=verbose)

    except InvalidCoordinateError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    except ConfigurationError as e:
        error_console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)
    except NetworkLoadError as e:
        error_console.print(f"[red]Network data error:[/red] {e}")
        sys.exit(1)


@cli.command()
@click.argument("start")
@click.argument("end")
@click.option(
    "--mode",
    "-m",
    type=click.Choice([mode.value for mode in TransportMode]),
    default=None,
    help="Transport mode (default: suggested by distance)",
)
@click.option(
    "--departure",
    "-d",
    "datetime_str",
    help="Departure datetime (YYYY-MM-DD HH:MM format)",
    type=str,
)
@click.option(
    "--mapbox-token",
    envvar="MAPBOX_ACCESS_TOKEN",
    help="Mapbox token for road distances (env: MAPBOX_ACCESS_TOKEN)",
)
@click.option("--timeout", "-t", default=30, help="Request timeout in seconds")
@click.option("--config", "-c", "config_path", type=click.Path(), help="Settings file")
@click.option(
    "--json", "as_json", is_flag=True, help="Print the estimate as JSON"
)
def estimate(
    start: str,
    end: str,
    mode: str | None,
    datetime_str: str | None,
    mapbox_token: str | None,
    timeout: int,
    config_path: str | None,
    as_json: bool,
) -> None:
    """Estimate distance, duration and fare for a single leg.

    Examples:
        brt-planner estimate 24.9180,67.0971 24.9100,67.0900
        brt-planner estimate 24.9180,67.0971 24.8607,67.0011 --mode rickshaw
        brt-planner estimate 24.9180,67.0971 24.8607,67.0011 --mapbox-token pk.xxx
    """
    start_point = _parse_point(start, "start")
    end_point = _parse_point(end, "end")
    departure = _parse_departure(datetime_str) or dt_module.now()

    try:
        settings = _load_settings_option(config_path)
        costing = CostingModel(settings.costing)
        provider = (
            MapboxDirectionsClient(mapbox_token, timeout=timeout)
            if mapbox_token
            else None
        )
        estimator = LegEstimator(costing, provider)

        leg_mode = (
            TransportMode(mode)
            if mode
            else costing.suggest_mode(distance_between(start_point, end_point))
        )

        with console.status(f"[bold green]Estimating {leg_mode.label} leg..."):
            result = estimator.estimate(start_point, end_point, leg_mode, departure)

        if as_json:
            click.echo(json.dumps(estimate_to_dict(result), indent=2))
        else:
            format_estimate(result)

    except ValidationError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    except ConfigurationError as e:
        error_console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)


# Add the imported network command group to the main CLI
cli.add_command(network)


@cli.group()
def config() -> None:
    """Configuration management."""
    pass


@config.command("show")
@click.option(
    "--config", "-c", "config_path", type=click.Path(), help="Settings file to show"
)
def show_config(config_path: str | None) -> None:
    """Show current configuration."""
    try:
        settings = _load_settings_option(config_path)
    except ConfigurationError as e:
        error_console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)

    source = config_path or "built-in defaults"
    console.print(f"[bold]Current Configuration[/bold] ({source}):")
    console.print(f"• Nearest stops considered: {settings.max_candidates}")
    console.print(f"• Search radius: {settings.max_search_radius_m:.0f}m")
    console.print(f"• Boarding wait: {settings.boarding_wait_min:g} min")
    console.print(f"• Bus fare: Rs. {settings.costing.bus_base_fare}")
    console.print(f"• Transfer delay: {settings.costing.transfer_delay_min:g} min")
    for mode, speed in settings.costing.speeds_kmh.items():
        factor = settings.costing.road_factors[mode]
        console.print(f"• {mode.label}: {speed:g} km/h, road factor x{factor:g}")


@config.command("init")
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default=DEFAULT_CONFIG_PATH,
    help="Where to write the settings file",
)
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init_config(output: str, force: bool) -> None:
    """Write the default settings to a JSON file for editing.

    Examples:
        brt-planner config init
        brt-planner config init --output my_settings.json --force
    """
    output_path = Path(output)
    if output_path.exists() and not force:
        error_console.print(
            f"[yellow]{output_path} already exists. Use --force to overwrite.[/yellow]"
        )
        sys.exit(1)

    save_settings(PlannerSettings(), output_path)
    console.print(f"[green]✓ Default settings written to:[/green] {output_path}")


if __name__ == "__main__":
    cli()
