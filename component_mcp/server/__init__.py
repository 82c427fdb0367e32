"""MCP server surface: tool schemas, handlers and the stdio entry point."""
