"""
Weather Tool Schema

Parameter and response descriptions for each weather tool, in the shape the
agent side consumes. `to_json_schema` renders one entry as a JSON Schema
object and `validate_arguments` checks a call's arguments against it.
"""

import math
from numbers import Real
from typing import Any, Dict, List, Mapping

UNITS_PARAMETER = {
    "type": "string",
    "required": False,
    "enum": ["metric", "imperial", "kelvin"],
    "description": "Unit system for temperatures and wind speed. Defaults to the tool's configured units.",
}

LATITUDE_PARAMETER = {
    "type": "number",
    "required": True,
    "description": "Latitude in decimal degrees (e.g., 35.6762)",
    "range": [-90, 90],
}

LONGITUDE_PARAMETER = {
    "type": "number",
    "required": True,
    "description": "Longitude in decimal degrees (e.g., 139.6503)",
    "range": [-180, 180],
}

TOOL_SCHEMA: Dict[str, Any] = {
    "tool_name": "weather",
    "description": "Current conditions and multi-day forecasts from OpenWeatherMap, by place name or coordinates.",

    "functions": [
        {
            "name": "get_current_weather",
            "description": "Get current weather conditions for a specific location.",
            "parameters": {
                "location": {
                    "type": "string",
                    "required": True,
                    "description": 'City name, e.g. "London", "New York", "Tokyo"',
                },
                "units": UNITS_PARAMETER,
            },
            "response": {
                "location": {"type": "string", "description": "Location name"},
                "temperature": {"type": "number", "description": "Temperature value"},
                "humidity": {"type": "number", "description": "Humidity percentage"},
                "description": {"type": "string", "description": "Weather description"},
            },
        },

        {
            "name": "get_forecast",
            "description": "Get a daily weather forecast (up to 5 days) for geographic coordinates.",
            "parameters": {
                "latitude": LATITUDE_PARAMETER,
                "longitude": LONGITUDE_PARAMETER,
                "units": UNITS_PARAMETER,
                "days": {
                    "type": "integer",
                    "required": False,
                    "default": 5,
                    "description": "Number of forecast days to return",
                    "range": [1, 5],
                },
            },
            "response": {
                "location": {"type": "string", "description": "Location name"},
                "forecasts": {"type": "array", "description": "Daily high/low, description, icon and precipitation"},
            },
        },

        {
            "name": "get_weather_by_coords",
            "description": "Get current weather conditions for geographic coordinates.",
            "parameters": {
                "latitude": LATITUDE_PARAMETER,
                "longitude": LONGITUDE_PARAMETER,
                "units": UNITS_PARAMETER,
            },
            "response": {
                "location": {"type": "string", "description": "Location name"},
                "temperature": {"type": "number", "description": "Temperature value"},
            },
        },
    ],
}

_JSON_TYPES = {"string", "number", "integer", "array", "object", "boolean"}


def get_function_schema(name: str) -> Dict[str, Any]:
    """Look up the schema entry for one weather function."""
    for function in TOOL_SCHEMA["functions"]:
        if function["name"] == name:
            return function
    raise KeyError(f"Unknown weather function: {name}")


def to_json_schema(name: str) -> Dict[str, Any]:
    """Render a function's parameters as a JSON Schema object."""
    function = get_function_schema(name)
    properties = {}
    required = []
    for param_name, spec in function["parameters"].items():
        prop = {"type": spec["type"], "description": spec["description"]}
        if "enum" in spec:
            prop["enum"] = list(spec["enum"])
        if "range" in spec:
            prop["minimum"], prop["maximum"] = spec["range"]
        if "default" in spec:
            prop["default"] = spec["default"]
        properties[param_name] = prop
        if spec.get("required"):
            required.append(param_name)
    return {
        "name": function["name"],
        "description": function["description"],
        "parameters": {"type": "object", "properties": properties, "required": required},
    }


def _type_matches(expected: str, value: Any) -> bool:
    if expected == "string":
        return isinstance(value, str)
    if expected == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if expected == "number":
        return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)
    return expected in _JSON_TYPES


def validate_arguments(name: str, arguments: Mapping[str, Any]) -> List[str]:
    """
    Check tool-call arguments against a function's schema.

    Args:
        name: Weather function name
        arguments: Arguments as received from the agent

    Returns:
        List of human-readable problems; empty when the arguments are valid
    """
    function = get_function_schema(name)
    parameters = function["parameters"]
    problems = []

    for param_name, spec in parameters.items():
        if param_name not in arguments or arguments[param_name] is None:
            if spec.get("required"):
                problems.append(f"Missing required parameter '{param_name}'")
            continue

        value = arguments[param_name]
        if not _type_matches(spec["type"], value):
            problems.append(f"Parameter '{param_name}' must be of type {spec['type']}")
            continue
        if "enum" in spec and value not in spec["enum"]:
            problems.append(f"Parameter '{param_name}' must be one of {spec['enum']}")
        if "range" in spec:
            low, high = spec["range"]
            if not low <= value <= high:
                problems.append(f"Parameter '{param_name}' must be between {low} and {high}")

    for param_name in arguments:
        if param_name not in parameters:
            problems.append(f"Unknown parameter '{param_name}'")

    return problems


__all__ = ["TOOL_SCHEMA", "get_function_schema", "to_json_schema", "validate_arguments"]
