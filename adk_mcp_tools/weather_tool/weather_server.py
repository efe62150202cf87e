"""
MCP Server for Weather Tools

Exposes the WeatherTool capabilities via Model Context Protocol (MCP) so ADK
agents, or any other MCP client, can call them over stdio.

Each capability is wrapped as an ADK FunctionTool and advertised with the MCP
schema ADK derives from its signature.
"""

import asyncio
import json
import logging
import sys
from typing import Any, Dict, Mapping, Optional

# MCP Server Imports
from mcp import types as mcp_types
from mcp.server.lowlevel import NotificationOptions, Server
from mcp.server.models import InitializationOptions
import mcp.server.stdio

# ADK Tool Imports
from google.adk.tools.function_tool import FunctionTool
from google.adk.tools.mcp_tool.conversion_utils import adk_to_mcp_tool_type

from .config import load_settings
from .models import WeatherEvent
from .tool_implementation import VERSION, WeatherTool, build_weather_tool
from .tool_schema import to_json_schema, validate_arguments

logger = logging.getLogger(__name__)

SERVER_NAME = "weather-mcp-server"


def build_weather_tools(weather: WeatherTool) -> Dict[str, FunctionTool]:
    """Wrap each weather capability as an ADK FunctionTool, keyed by tool name."""
    tools = {name: FunctionTool(func) for name, func in weather.capabilities().items()}
    logger.info(f"Initialized {len(tools)} weather tools: {', '.join(tools)}")
    return tools


def advertised_tool(tool: FunctionTool) -> mcp_types.Tool:
    """MCP tool definition for `tool`, with enums and ranges taken from TOOL_SCHEMA."""
    definition = adk_to_mcp_tool_type(tool)
    return definition.model_copy(update={"inputSchema": to_json_schema(tool.name)["parameters"]})


def log_weather_event(event: WeatherEvent) -> None:
    """Event handler that writes one log line per weather call."""
    duration = event.data.get("duration", 0)
    if event.failed:
        logger.warning(f"[{event.type}] {event.operation} failed in {duration:.1f}ms: {event.error.message}")
    else:
        logger.info(f"[{event.type}] {event.operation} succeeded in {duration:.1f}ms")


def _error_content(payload: Dict[str, Any]) -> list[mcp_types.TextContent]:
    return [mcp_types.TextContent(type="text", text=json.dumps(payload, indent=2, default=str))]


async def call_weather_tool(
    tools: Mapping[str, Any], name: str, arguments: Optional[Dict[str, Any]]
) -> list[mcp_types.TextContent]:
    """
    Execute one weather tool call and format the outcome as MCP text content.

    Failures never escape: unknown tools, invalid arguments and provider
    errors all come back as a JSON error payload.

    Args:
        tools: Tool name to ADK tool (anything with `run_async(args=..., tool_context=...)`)
        name: Tool name to execute
        arguments: Arguments for the tool

    Returns:
        List of MCP Content objects with the tool result or error
    """
    arguments = arguments or {}
    logger.info(f"Received call_tool request for '{name}' with arguments {arguments}")

    # Check if the requested tool exists
    if name not in tools:
        logger.warning(f"Tool '{name}' not found")
        return _error_content({
            "error": f"Tool '{name}' not found",
            "available_tools": list(tools.keys()),
        })

    problems = validate_arguments(name, arguments)
    if problems:
        logger.warning(f"Rejected arguments for '{name}': {problems}")
        return _error_content({
            "error": f"Invalid arguments for tool '{name}'",
            "problems": problems,
            "tool_name": name,
            "arguments": arguments,
        })

    try:
        # tool_context is None because we're running outside a full ADK Runner
        response = await tools[name].run_async(args=arguments, tool_context=None)
        logger.info(f"Tool '{name}' executed successfully")
        return [mcp_types.TextContent(type="text", text=json.dumps(response, indent=2, default=str))]

    except Exception as e:
        logger.error(f"Error executing tool '{name}': {e}")
        return _error_content({
            "error": f"Failed to execute tool '{name}'",
            "error_type": type(e).__name__,
            "error_message": str(e),
            "tool_name": name,
            "arguments": arguments,
        })


def create_server(weather: WeatherTool) -> Server:
    """Create an MCP server instance advertising the weather tools."""
    tools = build_weather_tools(weather)
    app = Server(SERVER_NAME)

    @app.list_tools()
    async def list_mcp_tools() -> list[mcp_types.Tool]:
        """MCP handler to list all available weather tools."""
        schemas = [advertised_tool(tool) for tool in tools.values()]
        logger.info(f"Advertising tools: {[schema.name for schema in schemas]}")
        return schemas

    @app.call_tool()
    async def call_mcp_tool(name: str, arguments: dict) -> list[mcp_types.Content]:
        """MCP handler to execute a weather tool call."""
        return await call_weather_tool(tools, name, arguments)

    return app


# --- MCP Server Runner ---
async def run_mcp_stdio_server(app: Server) -> None:
    """Run the MCP server, listening for connections over standard input/output."""
    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        logger.info("MCP stdio server: starting handshake with client")
        await app.run(
            read_stream,
            write_stream,
            InitializationOptions(
                server_name=app.name,
                server_version=VERSION,
                capabilities=app.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
            ),
        )
        logger.info("MCP stdio server: run loop finished or client disconnected")


def main():
    """Main entry point for the Weather MCP Server."""
    # stdout carries the MCP protocol, so logs go to stderr
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    weather = build_weather_tool(load_settings())
    weather.on("weather.*", log_weather_event)
    app = create_server(weather)

    logger.info("Launching Weather MCP Server via stdio")
    try:
        asyncio.run(run_mcp_stdio_server(app))
    except KeyboardInterrupt:
        logger.info("Weather MCP Server stopped by user")
    finally:
        logger.info("Weather MCP Server process exiting")


if __name__ == "__main__":
    main()
