# File: servers/github-file-ops/src/mcp_github_file_ops/settings.py
from __future__ import annotations

from pathlib import Path

from pydantic import Field, SecretStr, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.os_paths import PathError, get_current_working_directory, normalize_root

from .errors import ConfigError

_REQUIRED_ENV = {
    "repo_owner": "REPO_OWNER",
    "repo_name": "REPO_NAME",
    "branch_name": "BRANCH_NAME",
}


class Settings(BaseSettings):
    """
    Everything the file-ops server needs, read once by the entrypoint and then
    passed explicitly into FileOperations.
    """

    model_config = SettingsConfigDict(extra="ignore", case_sensitive=False)

    # target repository
    repo_owner: str = Field(min_length=1)
    repo_name: str = Field(min_length=1)
    branch_name: str = Field(min_length=1)

    # local checkout used to read file contents for commits
    repo_dir: Path = Field(default_factory=lambda: Path(get_current_working_directory()))
    # absolute delete paths must live under this directory
    working_dir: Path = Field(default_factory=lambda: Path(get_current_working_directory()))

    # GitHub API
    github_api_url: str = "https://api.github.com"
    github_token: SecretStr | None = None
    github_api_version: str = "2022-11-28"
    http_timeout_seconds: float = Field(default=30.0, gt=0)

    # composer / protocol tuning
    read_concurrency: int = Field(default=8, ge=1)
    verify_ref_update: bool = True
    ref_update_retries: int = Field(default=0, ge=0)
    ref_update_backoff_seconds: float = Field(default=1.0, ge=0)
    ref_update_backoff_max_seconds: float = Field(default=8.0, ge=0)

    @field_validator("repo_owner", "repo_name", "branch_name", mode="before")
    @classmethod
    def _strip(cls, v: str | None) -> str | None:
        return v.strip() if isinstance(v, str) else v

    @field_validator("repo_dir", "working_dir", mode="before")
    @classmethod
    def _resolve_dir(cls, v: str | Path | None) -> Path:
        # an empty REPO_DIR / WORKING_DIR means "not set"
        if not str(v or "").strip():
            return Path(get_current_working_directory())
        try:
            return normalize_root(v)
        except PathError as e:
            raise ValueError(str(e)) from e

    @field_validator("github_api_url")
    @classmethod
    def _trim_url(cls, v: str) -> str:
        return (v or "").strip().rstrip("/") or "https://api.github.com"

    @field_validator("github_token", mode="before")
    @classmethod
    def _blank_token(cls, v: str | None) -> str | None:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def repo_slug(self) -> str:
        return f"{self.repo_owner}/{self.repo_name}"

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """
        Build settings from the process environment.
        Missing REPO_OWNER / REPO_NAME / BRANCH_NAME is fatal.
        """
        try:
            return cls(**overrides)
        except PydanticValidationError as e:
            missing = sorted({
                _REQUIRED_ENV[str(err["loc"][0])]
                for err in e.errors()
                if err.get("loc") and str(err["loc"][0]) in _REQUIRED_ENV
            })
            if missing:
                raise ConfigError(
                    f"{', '.join(missing)} environment variable(s) are required",
                    missing=missing,
                ) from e
            raise ConfigError(f"Invalid configuration: {e}") from e

    def snapshot(self) -> dict:
        """Loggable view of the configuration (no secrets)."""
        return {
            "repo": self.repo_slug,
            "branch": self.branch_name,
            "repo_dir": str(self.repo_dir),
            "working_dir": str(self.working_dir),
            "github_api_url": self.github_api_url,
            "github_token": "present" if self.github_token else "missing",
            "read_concurrency": self.read_concurrency,
            "verify_ref_update": self.verify_ref_update,
            "ref_update_retries": self.ref_update_retries,
        }
