"""GitHub file operations MCP server: atomic commits and deletions over the git database API."""

__version__ = "0.1.0"
