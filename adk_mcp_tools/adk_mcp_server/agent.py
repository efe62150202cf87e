import os
import sys

from dotenv import load_dotenv
from google.adk.agents import LlmAgent
from google.adk.tools.mcp_tool.mcp_toolset import MCPToolset, \
                    StdioServerParameters, StdioConnectionParams

# Load environment variables
load_dotenv()

# Settings the weather MCP server reads from its own environment
SERVER_ENV_VARS = (
    "OPENWEATHER_API_KEY",
    "WEATHER_TIMEOUT_MS",
    "WEATHER_DEFAULT_UNITS",
    "OPENWEATHER_BASE_URL",
    "OPENWEATHER_LANGUAGE",
)

server_env = {name: os.environ[name] for name in SERVER_ENV_VARS if os.getenv(name)}

if "OPENWEATHER_API_KEY" not in server_env:
    print("WARNING: OPENWEATHER_API_KEY is not set. The weather MCP server will fail to start.")

root_agent = LlmAgent(
    model=os.getenv("MODEL", "gemini-2.0-flash"),
    name='weather_mcp_client_agent',
    instruction="Use the weather tools to answer questions about current conditions and forecasts. "
                "Use 'get_current_weather' for a city name, 'get_weather_by_coords' for coordinates, "
                "and 'get_forecast' for multi-day outlooks.",
    tools=[
    MCPToolset(
    connection_params=StdioConnectionParams(
        server_params=StdioServerParameters(
            command=sys.executable,
            args=[
                "-m",
                "adk_mcp_tools.weather_tool.weather_server",
            ],
            env=server_env,
        ),
        timeout=15,
        ),
    )
],

)
