# servers/github-file-ops/src/mcp_github_file_ops/__main__.py
from __future__ import annotations

import os
import sys

from common.logging import configure_logging, get_logger

from .errors import ConfigError
from .operations import FileOperations
from .server import configure, mcp
from .settings import Settings


def main() -> None:
    """
    Entry point for running the server via the official SDK runner.

    Examples:
      # stdio (what the CI entrypoint launches)
      REPO_OWNER=o REPO_NAME=r BRANCH_NAME=b GITHUB_TOKEN=... python -m mcp_github_file_ops

      # streamable HTTP on 0.0.0.0:8000, mounted at /mcp
      MCP_TRANSPORT=streamable-http python -m mcp_github_file_ops
    """
    if any(a in ("-h", "--help") for a in sys.argv[1:]):
        sys.stderr.write("mcp-github-file-ops: GitHub file operations MCP server (commit_files, delete_files, create_branch).\n")
        sys.stderr.flush()
        return

    configure_logging(
        level=os.getenv("LOG_LEVEL", "INFO"),
        service_name=os.getenv("SERVICE_NAME", "mcp.github.file_ops"),
        structured=os.getenv("LOG_FORMAT", "json").strip().lower() != "console",
    )
    log = get_logger("mcp.github.file_ops.main")

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        log.error("server.config_invalid", **e.to_dict())
        sys.exit(1)
    configure(FileOperations(settings))

    transport = os.getenv("MCP_TRANSPORT", "stdio").strip().lower()

    # Configure settings BEFORE run()
    host = os.getenv("MCP_HOST", "0.0.0.0")
    port = int(os.getenv("MCP_PORT", "8000"))
    mcp.settings.host = host
    mcp.settings.port = port

    if transport == "streamable-http":
        mcp.settings.streamable_http_path = os.getenv("MCP_MOUNT_PATH", "/mcp")
    elif transport == "sse":
        mcp.settings.sse_path = os.getenv("MCP_SSE_PATH", "/sse")

    # Optional: stateless JSON mode for quick curl tests
    if os.getenv("MCP_STATELESS_JSON", "").lower() in {"1", "true", "yes"}:
        mcp.settings.stateless_http = True
        mcp.settings.json_response = True

    log.info(
        "server.start",
        transport=transport,
        host=host,
        port=port,
        repo=settings.repo_slug,
        branch=settings.branch_name,
    )
    mcp.run(transport=transport)


if __name__ == "__main__":
    main()
