"""MCP (Model Context Protocol) server module for BRT journey planning.

This module provides an MCP server implementation that exposes journey
planning and network lookups through the Model Context Protocol.
"""

from .server import TransitMCPServer, main

__all__ = ["TransitMCPServer", "main"]
