from google.adk.agents.llm_agent import Agent
from google.adk.agents import SequentialAgent
from google.adk.agents.callback_context import CallbackContext
from google.adk.models import LlmResponse, LlmRequest
import logging
import os

from adk_mcp_tools.weather_tool import get_current_weather, get_forecast, get_weather_by_coords
from adk_mcp_tools.weather_tool.tool_implementation import default_weather_tool

if os.getenv("ENABLE_CLOUD_LOGGING"):
    import google.cloud.logging
    cloud_logging_client = google.cloud.logging.Client()
    cloud_logging_client.setup_logging()

MODEL = os.getenv("MODEL", "gemini-2.0-flash")


def log_query_to_model(callback_context: CallbackContext, llm_request: LlmRequest):
    if llm_request.contents and llm_request.contents[-1].role == 'user':
        for part in llm_request.contents[-1].parts:
            if part.text:
                logging.info("[query to %s]: %s", callback_context.agent_name, part.text)

def log_model_response(callback_context: CallbackContext, llm_response: LlmResponse):
    if llm_response.content and llm_response.content.parts:
        for part in llm_response.content.parts:
            if part.text:
                logging.info("[response from %s]: %s", callback_context.agent_name, part.text)
            elif part.function_call:
                logging.info("[function call from %s]: %s", callback_context.agent_name, part.function_call.name)


async def validate_weather_connection() -> dict:
    """Checks whether the weather provider is reachable and the API key is accepted."""
    return {"connected": await default_weather_tool().validate_connection()}


# Root Agent - Query Parser
query_parser_agent = Agent(
    model=MODEL,
    name='query_parser_agent',
    before_model_callback=log_query_to_model,
    after_model_callback=log_model_response,
    description='Parses weather questions into a location, a timeframe and the preferred units.',
    instruction="""You are the Query Parser Agent. Your role is to extract what the downstream agents need.

## CRITICAL: INTERNAL PROCESSING ONLY
- DO NOT answer the weather question yourself
- Simply output: "Processing your request..." and the JSON structure

## YOUR TASK
Parse the query and generate a JSON object with:
- location (name as written, coordinates if the user gave them)
- timeframe (current or forecast, and number of days up to 5)
- units (metric, imperial or kelvin; use metric unless the user implies otherwise)
- focus (temperature, rain, wind, general)

Output format:
Processing your request...
[JSON structure here - for internal use only]
"""
)

# Forecast Agent - Real-time Weather Data
forecast_agent = Agent(
    model=MODEL,
    name='forecast_agent',
    before_model_callback=log_query_to_model,
    after_model_callback=log_model_response,
    description='Fetches current conditions and forecasts from OpenWeatherMap.',
    instruction="""You are the Forecast Agent. Use the weather tools to get current conditions and forecasts.

## YOUR TASKS
1. For current conditions in a named place, call get_current_weather(location, units)
2. For current conditions at coordinates, call get_weather_by_coords(latitude, longitude, units)
3. For a multi-day outlook, call get_forecast(latitude, longitude, units, days); when only a city name is
   known, use the coordinates from the parsed query or the city's well-known coordinates
4. If a tool fails, say which location failed and why; do not invent numbers

## OUTPUT FORMAT
Provide a short factual summary of the tool results relevant to the user's question.
Do NOT output raw JSON.
""",
    tools=[get_current_weather, get_weather_by_coords, get_forecast, validate_weather_connection],
)

# Insights Agent - Final Answer
insights_agent = Agent(
    model=MODEL,
    name='insights_agent',
    before_model_callback=log_query_to_model,
    after_model_callback=log_model_response,
    description='Turns forecast data into a clear, direct answer for the user.',
    instruction="""You are the Insights Agent. Your role is to provide the FINAL answer to the user's question.

## CRITICAL RULES
1. This is the FINAL response - make it clean and user-friendly
2. Answer the user's specific question directly in 2-4 sentences
3. Use natural language, NOT JSON or structured formats
4. Mention the units you are reporting in

## WHAT NOT TO DO
- Do NOT repeat information from the Forecast Agent verbatim
- Do NOT list every forecast day unless specifically asked
"""
)

# Root Agent - Sequential Coordinator
root_agent = SequentialAgent(
    name="root_agent",
    sub_agents=[
        query_parser_agent,
        forecast_agent,
        insights_agent,
    ],
    description="Weather assistant: parses the question, fetches live conditions or forecasts, and answers concisely. Don't return intermediate response."
)
