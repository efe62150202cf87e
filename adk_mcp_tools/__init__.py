"""ADK tools and MCP servers."""
