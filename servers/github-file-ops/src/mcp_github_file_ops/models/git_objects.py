# File: servers/github-file-ops/src/mcp_github_file_ops/models/git_objects.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

BLOB_MODE = "100644"


class _Wire(BaseModel):
    # GitHub responses carry many more fields than we read
    model_config = ConfigDict(extra="ignore")


class ShaRef(_Wire):
    sha: str = Field(min_length=1)


class GitRef(_Wire):
    """GET/PATCH /git/refs/heads/{branch} -> { ref, object: { sha } }"""
    ref: Optional[str] = None
    object: ShaRef


class GitCommit(_Wire):
    """GET /git/commits/{sha} -> { sha, tree: { sha }, parents: [...] }"""
    sha: Optional[str] = None
    tree: ShaRef
    parents: List[ShaRef] = Field(default_factory=list)
    message: Optional[str] = None


class GitTree(_Wire):
    sha: str = Field(min_length=1)


class CommitAuthor(_Wire):
    name: Optional[str] = None
    date: Optional[str] = None


class NewCommit(_Wire):
    """POST /git/commits -> { sha, message, author: { name, date } }"""
    sha: str = Field(min_length=1)
    message: Optional[str] = None
    author: CommitAuthor = Field(default_factory=CommitAuthor)


class TreeEntry(BaseModel):
    """
    One entry of a POST /git/trees payload.
    Exactly one of `content` (write) or `sha` is sent; `sha=None` removes the path.
    """
    path: str = Field(min_length=1)
    mode: str = BLOB_MODE
    type: Literal["blob"] = "blob"
    content: Optional[str] = None
    sha: Optional[str] = None
    delete: bool = Field(default=False, exclude=True)

    @model_validator(mode="after")
    def _one_payload(self) -> "TreeEntry":
        if self.delete and self.content is not None:
            raise ValueError("a deletion entry cannot carry content")
        if not self.delete and self.content is None and self.sha is None:
            raise ValueError("a write entry needs content or a blob sha")
        return self

    @classmethod
    def write(cls, path: str, content: str) -> "TreeEntry":
        return cls(path=path, content=content)

    @classmethod
    def removal(cls, path: str) -> "TreeEntry":
        return cls(path=path, sha=None, delete=True)

    def to_payload(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"path": self.path, "mode": self.mode, "type": self.type}
        if self.delete:
            out["sha"] = None
        elif self.content is not None:
            out["content"] = self.content
        else:
            out["sha"] = self.sha
        return out
