"""Library for setting up and maintaining the Strategic Claude Basic framework layout, settings, MCP servers and Codex config in a project."""

__version__ = "0.1.0"