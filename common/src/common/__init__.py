"""Shared helpers for the astra MCP servers."""
