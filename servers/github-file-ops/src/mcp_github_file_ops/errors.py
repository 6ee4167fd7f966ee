# File: servers/github-file-ops/src/mcp_github_file_ops/errors.py
"""
Closed error taxonomy for the file-ops server.

Every failure carries the stage it happened in. Failures after the tree/commit
objects were created also carry their shas: those objects persist on the remote
even though no reference points at them.
"""
from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Optional

from common.mcp.errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    NOT_FOUND,
    RESOURCE_ERROR,
    UPSTREAM_ERROR,
    MCPError,
)


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    PATH_OUTSIDE_REPO = "path_outside_repo"
    IO = "io"
    NOT_FOUND = "not_found"
    REMOTE_READ = "remote_read"
    OBJECT_CREATION = "object_creation"
    REF_UPDATE = "ref_update"
    TRANSPORT = "transport"
    CONFIG = "config"


class Stage(str, Enum):
    VALIDATE = "validate"
    READ_FILES = "read_files"
    GET_REF = "get_ref"
    GET_COMMIT = "get_commit"
    CREATE_TREE = "create_tree"
    CREATE_COMMIT = "create_commit"
    UPDATE_REF = "update_ref"
    VERIFY_REF = "verify_ref"
    CREATE_REF = "create_ref"


class FileOpsError(MCPError):
    kind: ErrorKind = ErrorKind.VALIDATION
    code: int = INTERNAL_ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        stage: Optional[Stage] = None,
        status: Optional[int] = None,
        body: Optional[str] = None,
        tree_sha: Optional[str] = None,
        commit_sha: Optional[str] = None,
        **details: Any,
    ):
        self.stage = stage
        self.status = status
        self.body = body
        self.tree_sha = tree_sha
        self.commit_sha = commit_sha
        self.details = details
        self.fallback_message = f"{self.kind.value} failure during {self._stage_name() or 'unknown stage'}"
        super().__init__(message, code=type(self).code, data=self.to_dict(include_message=False))
        self.data["message"] = self.message

    def _stage_name(self) -> Optional[str]:
        return self.stage.value if self.stage is not None else None

    @property
    def orphaned_objects(self) -> Dict[str, str]:
        """Remote objects this failure left behind without a reference."""
        out: Dict[str, str] = {}
        if self.tree_sha:
            out["tree"] = self.tree_sha
        if self.commit_sha:
            out["commit"] = self.commit_sha
        return out

    def to_dict(self, include_message: bool = True) -> Dict[str, Any]:
        out: Dict[str, Any] = {"kind": self.kind.value}
        if include_message:
            out["message"] = self.message
        if self.stage is not None:
            out["stage"] = self._stage_name()
        if self.status is not None:
            out["status"] = self.status
        if self.body is not None:
            out["body"] = self.body
        if self.orphaned_objects:
            out["orphaned_objects"] = self.orphaned_objects
        for key, value in self.details.items():
            if value is not None:
                out[key] = value
        return out


class ValidationError(FileOpsError):
    kind = ErrorKind.VALIDATION
    code = INVALID_PARAMS


class PathOutsideRepoError(ValidationError):
    kind = ErrorKind.PATH_OUTSIDE_REPO


class ConfigError(FileOpsError):
    kind = ErrorKind.CONFIG
    code = INVALID_PARAMS


class FileReadError(FileOpsError):
    """A local file could not be read as text. Raised before any remote call."""
    kind = ErrorKind.IO
    code = RESOURCE_ERROR


class NotFoundError(FileOpsError):
    kind = ErrorKind.NOT_FOUND
    code = NOT_FOUND


class RemoteReadError(FileOpsError):
    kind = ErrorKind.REMOTE_READ
    code = UPSTREAM_ERROR


class ObjectCreationError(FileOpsError):
    """Tree or commit creation was rejected. The branch has not moved."""
    kind = ErrorKind.OBJECT_CREATION
    code = UPSTREAM_ERROR


class RefUpdateError(FileOpsError):
    """
    The reference update was rejected. Tree and commit already exist remotely
    and are orphaned until a later update reaches them.
    """
    kind = ErrorKind.REF_UPDATE
    code = UPSTREAM_ERROR

    @property
    def request_id(self) -> Optional[str]:
        return self.details.get("request_id")

    @property
    def parsed_body(self) -> Any:
        return self.details.get("parsed_body")

    @property
    def retryable(self) -> bool:
        """Server-side faults may clear up; 4xx (e.g. not a fast forward) will not."""
        return self.status is not None and self.status >= 500


class TransportError(FileOpsError):
    """The request never completed, so nothing is known about its server-side effect."""
    kind = ErrorKind.TRANSPORT
    code = UPSTREAM_ERROR


def parse_error_body(text: Optional[str]) -> Any:
    """Structured view of an error body when it is a JSON object or array."""
    if not text:
        return None
    stripped = text.strip()
    if not stripped.startswith(("{", "[")):
        return None
    try:
        parsed = json.loads(stripped)
    except ValueError:
        return None
    return parsed if isinstance(parsed, (dict, list)) else None


def describe_failure(prefix: str, status: Optional[int], body: Optional[str]) -> str:
    if status is None:
        return prefix
    if body:
        return f"{prefix}: {status} - {body}"
    return f"{prefix}: {status}"
