# servers/github-file-ops/src/mcp_github_file_ops/tools/__init__.py
from __future__ import annotations

from typing import Callable

from mcp.server.fastmcp import FastMCP

from ..operations import FileOperations
from .file_ops import register_file_ops


def register(mcp: FastMCP, get_operations: Callable[[], FileOperations]) -> None:
    register_file_ops(mcp, get_operations)
