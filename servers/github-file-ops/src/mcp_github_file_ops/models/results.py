# File: servers/github-file-ops/src/mcp_github_file_ops/models/results.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class CommitResult(BaseModel):
    """
    Outcome of commit_files / delete_files.
    `files` is filled for writes, `deleted_files` for removals.
    """
    sha: str
    message: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None
    tree_sha: str
    base_sha: str
    branch: str
    files: List[str] = Field(default_factory=list)
    deleted_files: List[str] = Field(default_factory=list)
    # True: read-back matched; False: mismatch was logged; None: not checked / read-back failed
    verified: Optional[bool] = None
    attempts: int = 1

    def to_payload(self) -> Dict[str, Any]:
        """Shape returned to MCP callers."""
        out: Dict[str, Any] = {
            "commit": {
                "sha": self.sha,
                "message": self.message,
                "author": self.author,
                "date": self.date,
            },
        }
        if self.deleted_files:
            out["deletedFiles"] = [{"path": p} for p in self.deleted_files]
        else:
            out["files"] = [{"path": p} for p in self.files]
        out["tree"] = {"sha": self.tree_sha}
        return out


class BranchResult(BaseModel):
    branch: str
    ref: str
    sha: str
    source_branch: str

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump()
