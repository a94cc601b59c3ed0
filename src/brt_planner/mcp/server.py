"""MCP Server for BRT journey planning.

This module implements a Model Context Protocol (MCP) server that exposes
journey planning, nearest-stop lookup, route listing and leg estimates over
the loaded bus network.
"""

import asyncio
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any

from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.types import (
    TextContent,
    Tool,
)

from ..cli.formatters import estimate_to_dict, journey_to_dict
from ..core.config import PlannerSettings
from ..core.exceptions import (
    NetworkLoadError,
    NetworkNotLoadedError,
    ValidationError,
)
from ..core.models import TransportMode
from ..core.planner import JourneyPlanner
from ..core.repository import JsonFileNetworkSource, NetworkRepository
from ..directions import LegEstimator, MapboxDirectionsClient, RoadRoutingProvider
from ..utils.geo import Coordinate, distance_between, format_distance, format_duration

logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = Path("data/network.json")

_COORDINATE_SCHEMA = {"type": "number", "description": "Degrees (WGS84)"}


class TransitMCPServer:
    """MCP Server for BRT journey planning functionality."""

    def __init__(
        self,
        data_path: Path | str = DEFAULT_DATA_PATH,
        settings: PlannerSettings | None = None,
        directions_provider: RoadRoutingProvider | None = None,
        require_network: bool = False,
    ) -> None:
        """Initialize the Transit MCP Server.

        Args:
            data_path: Network JSON file, loaded read-only at startup
            settings: Planner settings (defaults if omitted)
            directions_provider: Optional road-routing service for leg estimates
            require_network: Raise instead of starting without a network

        Raises:
            NetworkLoadError: If require_network is set and the network cannot be loaded
        """
        self.server = Server("brt-planner")
        self.repository = NetworkRepository()
        self.planner = JourneyPlanner(self.repository, settings)
        self.estimator = LegEstimator(self.planner.costing, directions_provider)

        self._load_network(Path(data_path), require_network)

        # Register handlers
        self._register_handlers()

    def _load_network(self, data_path: Path, require_network: bool) -> None:
        """Load the network (read-only); tools report when nothing is loaded."""
        if not data_path.exists() and not require_network:
            logger.warning(
                f"No network file found at {data_path}. Planning tools are unavailable."
            )
            return

        try:
            self.repository.load(JsonFileNetworkSource(data_path))
        except NetworkLoadError as e:
            logger.error(f"Failed to load network from {data_path}: {e}")
            if require_network:
                raise

    def _register_handlers(self) -> None:
        """Register MCP protocol handlers."""

        @self.server.list_tools()
        async def handle_list_tools() -> list[Tool]:
            """List available tools."""
            return [
                Tool(
                    name="plan_journey",
                    description="Plan a bus journey between two coordinates, with walking or ride-hailing legs to and from the stops",
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "origin_lat": _COORDINATE_SCHEMA,
                            "origin_lon": _COORDINATE_SCHEMA,
                            "destination_lat": _COORDINATE_SCHEMA,
                            "destination_lon": _COORDINATE_SCHEMA,
                            "departure_time": {
                                "type": "string",
                                "description": "Departure time in ISO format (YYYY-MM-DDTHH:MM). Defaults to now",
                            },
                            "alternatives": {
                                "type": "integer",
                                "description": "Number of journey options to return",
                                "default": 1,
                                "minimum": 1,
                                "maximum": 10,
                            },
                        },
                        "required": [
                            "origin_lat",
                            "origin_lon",
                            "destination_lat",
                            "destination_lon",
                        ],
                    },
                ),
                Tool(
                    name="nearest_stops",
                    description="Find the bus stops nearest to a coordinate",
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "lat": _COORDINATE_SCHEMA,
                            "lon": _COORDINATE_SCHEMA,
                            "limit": {
                                "type": "integer",
                                "description": "Maximum number of stops to return",
                                "default": 5,
                                "minimum": 1,
                                "maximum": 50,
                            },
                            "radius_m": {
                                "type": "number",
                                "description": "Search radius in meters",
                                "default": 3000,
                            },
                        },
                        "required": ["lat", "lon"],
                    },
                ),
                Tool(
                    name="list_routes",
                    description="List bus routes, or the stops of one route",
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "route": {
                                "type": "string",
                                "description": "Route name to show stops for (optional)",
                            },
                        },
                    },
                ),
                Tool(
                    name="estimate_leg",
                    description="Estimate distance, duration and fare for a single leg by a given mode",
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "start_lat": _COORDINATE_SCHEMA,
                            "start_lon": _COORDINATE_SCHEMA,
                            "end_lat": _COORDINATE_SCHEMA,
                            "end_lon": _COORDINATE_SCHEMA,
                            "mode": {
                                "type": "string",
                                "description": "Transport mode. Defaults to the mode suggested for the distance",
                                "enum": [mode.value for mode in TransportMode],
                            },
                            "departure_time": {
                                "type": "string",
                                "description": "Departure time in ISO format. Defaults to now",
                            },
                        },
                        "required": ["start_lat", "start_lon", "end_lat", "end_lon"],
                    },
                ),
            ]

        @self.server.call_tool()
        async def handle_call_tool(
            name: str, arguments: dict[str, Any]
        ) -> list[TextContent]:
            """Handle tool calls."""
            try:
                if name == "plan_journey":
                    return await self._plan_journey(arguments)
                elif name == "nearest_stops":
                    return await self._nearest_stops(arguments)
                elif name == "list_routes":
                    return await self._list_routes(arguments)
                elif name == "estimate_leg":
                    return await self._estimate_leg(arguments)
                else:
                    return [TextContent(type="text", text=f"Unknown tool: {name}")]

            except Exception as e:
                logger.error(f"Error in tool {name}: {e}")
                return [TextContent(type="text", text=f"Error: {str(e)}")]

    @staticmethod
    def _departure(arguments: dict[str, Any]) -> datetime:
        value = arguments.get("departure_time")
        if not value:
            return datetime.now()
        try:
            return datetime.fromisoformat(value)
        except ValueError as e:
            raise ValidationError(f"Invalid departure_time '{value}'") from e

    async def _plan_journey(self, arguments: dict[str, Any]) -> list[TextContent]:
        """Plan a journey between two coordinates."""
        origin = Coordinate(
            float(arguments["origin_lat"]), float(arguments["origin_lon"])
        )
        destination = Coordinate(
            float(arguments["destination_lat"]), float(arguments["destination_lon"])
        )
        alternatives = int(arguments.get("alternatives", 1))

        try:
            departure = self._departure(arguments)
            result = self.planner.plan(origin, destination, departure)
            if not result.found:
                return [
                    TextContent(
                        type="text",
                        text=f"No journey found ({result.status.value}): {result.message}",
                    )
                ]

            journeys = (
                self.planner.plan_alternatives(
                    origin, destination, departure, alternatives
                )
                if alternatives > 1
                else [result.journey]
            )

            result_text = f"**Found {len(journeys)} journey option(s) from {origin} to {destination}:**\n\n"
            for idx, journey in enumerate(journeys, 1):
                result_text += f"{idx}. **{' + '.join(journey.route_names)}**: {journey.boarding_stop.name} → {journey.alighting_stop.name}\n"
                result_text += (
                    f"   • Duration: {format_duration(journey.total_duration_min)}\n"
                )
                result_text += (
                    f"   • Distance: {format_distance(journey.total_distance_m)}\n"
                )
                result_text += f"   • Fare: Rs. {journey.total_fare}\n"
                if journey.transfer_stop is not None:
                    result_text += f"   • Transfer at: {journey.transfer_stop.name}\n"
                result_text += "   Steps:\n"
                for step in journey.instructions():
                    result_text += f"     {step}\n"
                result_text += "\n"

            journeys_data = [journey_to_dict(journey) for journey in journeys]

            return [
                TextContent(type="text", text=result_text),
                TextContent(
                    type="text",
                    text=f"JSON Data:\n```json\n{json.dumps(journeys_data, indent=2, ensure_ascii=False)}\n```",
                ),
            ]

        except (ValidationError, NetworkNotLoadedError) as e:
            return [TextContent(type="text", text=f"Journey planning failed: {str(e)}")]

    async def _nearest_stops(self, arguments: dict[str, Any]) -> list[TextContent]:
        """Find the stops nearest to a point."""
        point = Coordinate(float(arguments["lat"]), float(arguments["lon"]))
        limit = int(arguments.get("limit", 5))
        radius = float(arguments.get("radius_m", 3000))

        try:
            results = self.planner.nearest_stops(point, limit, radius)
        except (ValidationError, NetworkNotLoadedError) as e:
            return [TextContent(type="text", text=f"Stop lookup failed: {str(e)}")]

        if not results:
            return [
                TextContent(
                    type="text",
                    text=f"No stops within {format_distance(radius)} of {point}",
                )
            ]

        result_text = f"**Found {len(results)} stops near {point}:**\n\n"
        for i, (stop, distance) in enumerate(results, 1):
            result_text += f"{i}. **{stop.name}** ({stop.id}) - {format_distance(distance)}\n"
            result_text += f"   Routes: {', '.join(stop.routes)}\n"

        stops_data = [
            {
                "id": stop.id,
                "name": stop.name,
                "lat": stop.lat,
                "lon": stop.lon,
                "routes": list(stop.routes),
                "distance_m": round(distance, 1),
            }
            for stop, distance in results
        ]

        return [
            TextContent(type="text", text=result_text),
            TextContent(
                type="text",
                text=f"JSON Data:\n```json\n{json.dumps(stops_data, indent=2, ensure_ascii=False)}\n```",
            ),
        ]

    async def _list_routes(self, arguments: dict[str, Any]) -> list[TextContent]:
        """List routes or the stops of a single route."""
        route_name = arguments.get("route")

        try:
            if route_name:
                route = self.repository.route_by_name(route_name)
                if route is None:
                    return [
                        TextContent(
                            type="text", text=f"Route '{route_name}' not found"
                        )
                    ]

                stops = self.repository.stops_on_route(route_name)
                result_text = f"**Route {route.name} ({len(stops)} stops):**\n\n"
                for i, stop in enumerate(stops, 1):
                    result_text += f"{i}. {stop.name} ({stop.id})\n"
                return [TextContent(type="text", text=result_text)]

            names = self.repository.all_route_names()
        except NetworkNotLoadedError as e:
            return [TextContent(type="text", text=f"Failed to list routes: {str(e)}")]

        result_text = f"**Bus routes ({len(names)}):**\n\n"
        for name in names:
            stops = self.repository.stops_on_route(name)
            result_text += (
                f"• **{name}**: {stops[0].name} → {stops[-1].name} ({len(stops)} stops)\n"
            )

        return [TextContent(type="text", text=result_text)]

    async def _estimate_leg(self, arguments: dict[str, Any]) -> list[TextContent]:
        """Estimate a single leg."""
        start = Coordinate(float(arguments["start_lat"]), float(arguments["start_lon"]))
        end = Coordinate(float(arguments["end_lat"]), float(arguments["end_lon"]))

        try:
            departure = self._departure(arguments)
            mode = (
                TransportMode(arguments["mode"])
                if arguments.get("mode")
                else self.planner.costing.suggest_mode(distance_between(start, end))
            )
            estimate = self.estimator.estimate(start, end, mode, departure)
        except (ValidationError, ValueError) as e:
            return [TextContent(type="text", text=f"Estimate failed: {str(e)}")]

        result_text = f"**{mode.label} from {start} to {end}:**\n"
        result_text += f"• Distance: {format_distance(estimate.distance_m)}\n"
        result_text += f"• Duration: {format_duration(estimate.duration_min)}\n"
        result_text += f"• Fare: {f'Rs. {estimate.fare}' if estimate.fare else 'Free'}\n"
        result_text += f"• Source: {estimate.source.value}\n"

        return [
            TextContent(type="text", text=result_text),
            TextContent(
                type="text",
                text=f"JSON Data:\n```json\n{json.dumps(estimate_to_dict(estimate), indent=2)}\n```",
            ),
        ]


async def main() -> None:
    """Main entry point for the MCP server."""
    # Configure logging
    logging.basicConfig(level=logging.INFO)
    logger.info("Starting BRT Journey Planner MCP Server")

    token = os.environ.get("MAPBOX_ACCESS_TOKEN")
    provider = MapboxDirectionsClient(token) if token else None
    configured_path = os.environ.get("BRT_NETWORK_PATH")
    data_path = Path(configured_path) if configured_path else DEFAULT_DATA_PATH

    # An explicitly configured network must load
    server_instance = TransitMCPServer(
        data_path,
        directions_provider=provider,
        require_network=bool(configured_path),
    )

    from mcp.server.stdio import stdio_server

    async with stdio_server() as (read_stream, write_stream):
        logger.info("MCP Server running with stdio transport")
        await server_instance.server.run(
            read_stream,
            write_stream,
            InitializationOptions(
                server_name="brt-planner",
                server_version="0.1.0",
                capabilities=server_instance.server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
            ),
        )


def main_sync() -> None:
    """Synchronous wrapper for the async main function - used as entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    main_sync()
