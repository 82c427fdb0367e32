"""component-mcp: an MCP server that adds registry UI components to projects."""

__version__ = "0.1.0"
