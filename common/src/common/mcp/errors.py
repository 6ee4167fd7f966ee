"""MCP-specific error definitions."""

from typing import Any, Dict, Optional

# JSON-RPC error codes used by the MCP servers
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
RESOURCE_ERROR = -32002
NOT_FOUND = -32003
UPSTREAM_ERROR = -32007


class MCPError(Exception):
    """Base exception for MCP-related errors.

    The message is never empty: callers get ``fallback`` when the cause had nothing to say.
    """

    fallback_message = "Unknown error occurred"

    def __init__(
        self,
        message: Optional[str],
        code: int = INTERNAL_ERROR,
        data: Optional[Dict[str, Any]] = None
    ):
        message = normalize_message(message, self.fallback_message)
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data or {}

    def to_json_rpc_error(self, request_id: Optional[str] = None) -> Dict[str, Any]:
        """Convert to JSON-RPC error response."""
        error_response = {
            "jsonrpc": "2.0",
            "error": {
                "code": self.code,
                "message": self.message,
            },
            "id": request_id,
        }

        if self.data:
            error_response["error"]["data"] = self.data

        return error_response


def normalize_message(message: Any, fallback: str) -> str:
    """Return ``message`` as text, or ``fallback`` when it is blank or a placeholder repr."""
    text = "" if message is None else str(message).strip()
    if not text or text in ("None", "undefined", "[object Object]"):
        return fallback
    return text


def handle_exception(
    exception: Exception,
    request_id: Optional[str] = None,
    default_message: str = "Internal server error"
) -> Dict[str, Any]:
    """Convert any exception to an MCP error response.

    Args:
        exception: Exception to convert
        request_id: Request ID for the response
        default_message: Default error message

    Returns:
        JSON-RPC error response
    """
    if isinstance(exception, MCPError):
        return exception.to_json_rpc_error(request_id)

    if isinstance(exception, ValueError):
        error = MCPError(normalize_message(exception, default_message), code=INVALID_PARAMS)
    elif isinstance(exception, FileNotFoundError):
        error = MCPError(normalize_message(exception, default_message), code=NOT_FOUND)
    elif isinstance(exception, OSError):
        error = MCPError(normalize_message(exception, default_message), code=RESOURCE_ERROR)
    else:
        error = MCPError(default_message, data={
            "original_error": normalize_message(exception, type(exception).__name__),
        })

    return error.to_json_rpc_error(request_id)
