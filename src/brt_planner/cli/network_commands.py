"""CLI commands for inspecting the transit network."""

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from ..core import (
    JourneyPlanner,
    JsonFileNetworkSource,
    NetworkLoadError,
    NetworkRepository,
    Stop,
    ValidationError,
)
from ..utils.geo import format_distance, parse_coordinate

console = Console()

DATA_OPTION_HELP = "Network JSON file"


def _load_repository(data: str) -> NetworkRepository | None:
    data_path = Path(data)

    if not data_path.exists():
        console.print(f"[red]Network data file not found:[/red] {data_path}")
        return None

    try:
        return NetworkRepository.from_source(JsonFileNetworkSource(data_path))
    except NetworkLoadError as e:
        console.print(f"[red]Error loading network:[/red] {e}")
        return None


def _stop_table(title: str, stops: list[Stop]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="yellow", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Lat", style="dim cyan", no_wrap=True)
    table.add_column("Lon", style="dim cyan", no_wrap=True)
    table.add_column("Routes", style="blue")

    for stop in stops:
        table.add_row(
            stop.id,
            stop.name,
            f"{stop.lat:.5f}",
            f"{stop.lon:.5f}",
            ", ".join(stop.routes),
        )
    return table


@click.group()
def network() -> None:
    """Transit network commands."""
    pass


@network.command("stops")
@click.option("--data", type=click.Path(), default="data/network.json", help=DATA_OPTION_HELP)
@click.option("--limit", "-l", default=50, help="Maximum number of stops to show")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
def list_stops(data: str, limit: int, output_format: str) -> None:
    """List stops in the network.

    Examples:
        brt-planner network stops
        brt-planner network stops --limit 10 --format json
    """
    repository = _load_repository(data)
    if repository is None:
        return

    stops = repository.all_stops()
    if not stops:
        console.print("[yellow]No stops found[/yellow]")
        return

    shown = stops[:limit]
    if output_format == "json":
        click.echo(
            json.dumps(
                [stop.model_dump(mode="json") for stop in shown],
                ensure_ascii=False,
                indent=2,
            )
        )
        return

    console.print(_stop_table(f"Stops ({len(shown)} of {len(stops)})", shown))


@network.command("search")
@click.argument("query")
@click.option("--data", type=click.Path(), default="data/network.json", help=DATA_OPTION_HELP)
@click.option("--limit", "-l", default=10, help="Maximum number of results")
def search_stops(query: str, data: str, limit: int) -> None:
    """Search for stops by name (case-insensitive substring).

    Examples:
        brt-planner network search "numaish"
        brt-planner network search "chowk" --limit 5
    """
    repository = _load_repository(data)
    if repository is None:
        return

    results = repository.search_stops(query)[:limit]
    if not results:
        console.print(f"[yellow]No stops found matching '{query}'[/yellow]")
        return

    console.print(_stop_table(f"Stop Search Results: '{query}'", results))


@network.command("nearest")
@click.argument("point")
@click.option("--data", type=click.Path(), default="data/network.json", help=DATA_OPTION_HELP)
@click.option("--count", "-k", default=5, help="Number of stops to return")
@click.option(
    "--radius", "-r", default=3000.0, help="Maximum distance in meters"
)
def nearest_stops(point: str, data: str, count: int, radius: float) -> None:
    """Show the stops nearest to a LAT,LON point.

    Examples:
        brt-planner network nearest 24.9180,67.0971
        brt-planner network nearest 24.9180,67.0971 --count 3 --radius 1000
    """
    try:
        coordinate = parse_coordinate(point)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        return

    repository = _load_repository(data)
    if repository is None:
        return

    try:
        results = JourneyPlanner(repository).nearest_stops(coordinate, count, radius)
    except ValidationError as e:
        console.print(f"[red]Error:[/red] {e}")
        return

    if not results:
        console.print(
            f"[yellow]No stops within {format_distance(radius)} of {coordinate}[/yellow]"
        )
        return

    console.print(f"[bold magenta]Nearest stops to {coordinate}[/bold magenta]")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="yellow", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Distance", style="green", no_wrap=True)
    table.add_column("Routes", style="blue")

    for stop, distance in results:
        table.add_row(stop.id, stop.name, format_distance(distance), ", ".join(stop.routes))

    console.print(table)


@network.command("routes")
@click.option("--data", type=click.Path(), default="data/network.json", help=DATA_OPTION_HELP)
def list_routes(data: str) -> None:
    """List routes in display order.

    Examples:
        brt-planner network routes
    """
    repository = _load_repository(data)
    if repository is None:
        return

    table = Table(title="Routes", show_header=True, header_style="bold magenta")
    table.add_column("Route", style="yellow", no_wrap=True)
    table.add_column("Stops", style="green", justify="right")
    table.add_column("From", style="cyan")
    table.add_column("To", style="cyan")
    table.add_column("Length", style="blue", no_wrap=True)

    for name in repository.all_route_names():
        route = repository.route_by_name(name)
        if route is None:
            continue
        stops = repository.stops_on_route(name)
        length = repository.segment_distance(name, route.stop_ids[0], route.stop_ids[-1])
        table.add_row(
            name,
            str(len(stops)),
            stops[0].name,
            stops[-1].name,
            format_distance(length),
        )

    console.print(table)


@network.command("route")
@click.argument("name")
@click.option("--data", type=click.Path(), default="data/network.json", help=DATA_OPTION_HELP)
def show_route(name: str, data: str) -> None:
    """Show the stops of a single route.

    Examples:
        brt-planner network route R1
    """
    repository = _load_repository(data)
    if repository is None:
        return

    route = repository.route_by_name(name)
    if route is None:
        console.print(f"[yellow]Route '{name}' not found[/yellow]")
        available = ", ".join(repository.all_route_names())
        console.print(f"[dim]Available routes: {available}[/dim]")
        return

    table = Table(
        title=f"Route {route.name}", show_header=True, header_style="bold magenta"
    )
    table.add_column("#", style="dim", justify="right")
    table.add_column("ID", style="yellow", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("From start", style="green", no_wrap=True)

    first = route.stop_ids[0]
    for idx, stop in enumerate(repository.stops_on_route(name), 1):
        offset = repository.segment_distance(name, first, stop.id)
        table.add_row(str(idx), stop.id, stop.name, format_distance(offset))

    console.print(table)


@network.command("validate")
@click.argument("path", type=click.Path())
def validate_network(path: str) -> None:
    """Check that a network file loads cleanly.

    Examples:
        brt-planner network validate data/network.json
    """
    try:
        repository = NetworkRepository.from_source(JsonFileNetworkSource(path))
    except NetworkLoadError as e:
        console.print(f"[red]✗ Invalid network:[/red] {e}")
        sys.exit(1)

    network_data = repository.network
    transfer_stops = [
        stop for stop in network_data.stops.values() if len(stop.routes) > 1
    ]
    console.print(f"[green]✓ Network is valid:[/green] {path}")
    console.print(f"• Stops: {len(network_data.stops)}")
    console.print(f"• Routes: {len(network_data.routes)}")
    console.print(f"• Interchange stops: {len(transfer_stops)}")
