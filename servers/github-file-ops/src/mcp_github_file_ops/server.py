# File: servers/github-file-ops/src/mcp_github_file_ops/server.py
from __future__ import annotations

import json
from typing import Optional

from mcp.server.fastmcp import FastMCP

from common.logging import get_logger

from .operations import FileOperations
from .settings import Settings
from .tools import register as register_tools

log = get_logger("mcp.github.file_ops.server")

mcp = FastMCP("github-file-ops")

_OPERATIONS: Optional[FileOperations] = None


def configure(operations: FileOperations) -> FileOperations:
    """Install the FileOperations the tools delegate to (the entrypoint does this once)."""
    global _OPERATIONS
    _OPERATIONS = operations
    log.info("server.configured", cfg=json.dumps(operations.describe(), ensure_ascii=False))
    return operations


def get_operations() -> FileOperations:
    if _OPERATIONS is None:
        return configure(FileOperations(Settings.from_env()))
    return _OPERATIONS


# Register tools once at import time
register_tools(mcp, get_operations)
