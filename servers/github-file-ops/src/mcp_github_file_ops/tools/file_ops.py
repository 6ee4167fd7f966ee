from __future__ import annotations

import time
from typing import Annotated, Any, Callable, Dict, List, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from common.logging import get_logger
from common.mcp.errors import handle_exception

from ..errors import FileOpsError
from ..operations import FileOperations

log = get_logger("mcp.github.file_ops.tools")


def _log_failure(tool: str, e: Exception, t0: float) -> None:
    elapsed_ms = int((time.time() - t0) * 1000)
    if isinstance(e, FileOpsError):
        log.error("tool.failed", tool=tool, elapsed_ms=elapsed_ms, **e.to_dict())
    else:
        log.exception("tool.crashed", tool=tool, elapsed_ms=elapsed_ms, error=handle_exception(e)["error"])


def register_file_ops(mcp: FastMCP, get_operations: Callable[[], FileOperations]) -> None:
    """
    commit_files / delete_files. Failures propagate as exceptions; FastMCP turns
    them into tool errors whose text is the (never empty) error message.
    """

    @mcp.tool(
        name="commit_files",
        description=(
            "Commit one or more files to a repository in a single commit "
            "(this will commit them atomically in the remote repository)"
        ),
    )
    async def commit_files(
        files: Annotated[List[str], Field(
            description='Array of file paths relative to repository root (e.g. ["src/main.js", "README.md"]). '
                        "All files must exist locally."
        )],
        message: Annotated[str, Field(description="Commit message")],
    ) -> Dict[str, Any]:
        t0 = time.time()
        log.info("tool.call", tool="commit_files", files=files)
        try:
            result = await get_operations().commit(files, message)
        except Exception as e:
            _log_failure("commit_files", e, t0)
            raise
        log.info("tool.ok", tool="commit_files", sha=result.sha, elapsed_ms=int((time.time() - t0) * 1000))
        return result.to_payload()

    @mcp.tool(
        name="delete_files",
        description="Delete one or more files from a repository in a single commit",
    )
    async def delete_files(
        paths: Annotated[List[str], Field(
            description="Array of file paths to delete relative to repository root "
                        '(e.g. ["src/old-file.js", "docs/deprecated.md"])'
        )],
        message: Annotated[str, Field(description="Commit message")],
    ) -> Dict[str, Any]:
        t0 = time.time()
        log.info("tool.call", tool="delete_files", paths=paths)
        try:
            result = await get_operations().delete(paths, message)
        except Exception as e:
            _log_failure("delete_files", e, t0)
            raise
        log.info("tool.ok", tool="delete_files", sha=result.sha, elapsed_ms=int((time.time() - t0) * 1000))
        return result.to_payload()

    @mcp.tool(
        name="create_branch",
        description="Create a new branch pointing at the current tip of an existing branch",
    )
    async def create_branch(
        branch: Annotated[str, Field(description="Name of the branch to create, e.g. 'feature/docs-update'")],
        source_branch: Annotated[Optional[str], Field(description="Branch to start from (defaults to the configured branch)")] = None,
    ) -> Dict[str, Any]:
        t0 = time.time()
        log.info("tool.call", tool="create_branch", branch=branch, source_branch=source_branch)
        try:
            result = await get_operations().create_branch(branch, source_branch)
        except Exception as e:
            _log_failure("create_branch", e, t0)
            raise
        log.info("tool.ok", tool="create_branch", branch=result.branch, sha=result.sha)
        return result.to_payload()
