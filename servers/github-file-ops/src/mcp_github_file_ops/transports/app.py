from __future__ import annotations

import contextlib

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Mount, Route

from common.logging import get_logger

from ..errors import ConfigError
from ..server import get_operations, mcp

logger = get_logger("mcp.github.file_ops.app")

# Leave FastMCP's default streamable_http_path="/mcp" and mount at "/" so the
# final URL is exactly "/mcp"
mcp_app = mcp.streamable_http_app()


async def health(_request: Request) -> JSONResponse:
    payload = {
        "status": "ok",
        "name": "mcp-github-file-ops",
        "transport": "streamable-http",
        "endpoint": "/mcp",
    }
    try:
        ops = get_operations()
    except ConfigError as e:
        payload.update(status="misconfigured", error=e.message)
        return JSONResponse(payload, status_code=503)
    payload.update(repo=ops.settings.repo_slug, branch=ops.settings.branch_name)
    return JSONResponse(payload, status_code=200)


async def root(_request: Request) -> PlainTextResponse:
    return PlainTextResponse("mcp-github-file-ops\ntransport: streamable-http at /mcp")


# Lifespan: start/stop the MCP session manager so POST /mcp works
@contextlib.asynccontextmanager
async def lifespan(_app: Starlette):
    async with contextlib.AsyncExitStack() as stack:
        await stack.enter_async_context(mcp.session_manager.run())
        logger.info("app.started", endpoint="/mcp")
        yield


routes = [
    Route("/health", endpoint=health, methods=["GET"]),
    Route("/", endpoint=root, methods=["GET"]),
    Mount("/", app=mcp_app),
]

app = Starlette(routes=routes, lifespan=lifespan)
