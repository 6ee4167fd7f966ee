#servers/github-file-ops/src/mcp_github_file_ops/models/params.py

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class CommitFilesParams(BaseModel):
    """
    Input parameters for commit_files:
      - files: paths relative to the repository root (a leading "/" is treated as root-relative)
      - message: commit message, forwarded verbatim
    """

    files: List[str] = Field(min_length=1)
    message: str

    @field_validator("files")
    @classmethod
    def _no_blank_paths(cls, v: List[str]) -> List[str]:
        if any(not p.strip() for p in v):
            raise ValueError("file paths must be non-empty")
        return v


class DeleteFilesParams(BaseModel):
    """
    Input parameters for delete_files:
      - paths: repository-relative paths, or absolute paths under the working directory
      - message: commit message, forwarded verbatim
    """

    paths: List[str] = Field(min_length=1)
    message: str

    @field_validator("paths")
    @classmethod
    def _no_blank_paths(cls, v: List[str]) -> List[str]:
        if any(not p.strip() for p in v):
            raise ValueError("paths must be non-empty")
        return v


class CreateBranchParams(BaseModel):
    branch: str = Field(min_length=1)
    source_branch: Optional[str] = None

    @field_validator("branch", "source_branch")
    @classmethod
    def _valid_branch_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if v != v.strip() or any(ch.isspace() for ch in v):
            raise ValueError(f"branch name '{v}' must not contain whitespace")
        if v.startswith(("/", "refs/")) or v.endswith(("/", ".lock")):
            raise ValueError(f"branch name '{v}' must be a short name like 'feature/x'")
        if ".." in v or "//" in v or any(ch in v for ch in "~^:?*[\\"):
            raise ValueError(f"branch name '{v}' is not a valid git ref name")
        return v
