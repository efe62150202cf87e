from setuptools import setup, find_packages

setup(
    name="adk_weather_tools",
    version="1.0.1",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "google-adk",
        "aiohttp>=3.8.0",
        "mcp>=1.0,<2",
        "pydantic>=2.0",
        "python-dotenv",
        "google-cloud-logging",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "weather-mcp-server=adk_mcp_tools.weather_tool.weather_server:main",
        ],
    },
    python_requires=">=3.9",
)
