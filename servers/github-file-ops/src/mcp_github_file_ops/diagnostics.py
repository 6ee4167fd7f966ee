# File: servers/github-file-ops/src/mcp_github_file_ops/diagnostics.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable

from common.logging import get_logger

from .errors import FileOpsError, Stage


@dataclass(frozen=True)
class VerificationMismatch:
    """The ref read back after a confirmed update points somewhere else. Logged, not raised."""
    branch: str
    expected_sha: str
    observed_sha: str


@runtime_checkable
class Diagnostics(Protocol):
    def stage_begin(self, stage: Stage, **fields: Any) -> None: ...
    def stage_ok(self, stage: Stage, **fields: Any) -> None: ...
    def stage_failed(self, error: FileOpsError) -> None: ...
    def verification_mismatch(self, mismatch: VerificationMismatch) -> None: ...
    def retry_scheduled(self, stage: Stage, attempt: int, delay: float, error: FileOpsError) -> None: ...


class LoggingDiagnostics:
    """Default collaborator: structured log events via structlog."""

    def __init__(self, logger: Optional[Any] = None, **context: Any):
        self.log = logger or get_logger("mcp.github.file_ops.protocol", **context)

    def stage_begin(self, stage: Stage, **fields: Any) -> None:
        self.log.debug("stage.begin", stage=stage.value, **fields)

    def stage_ok(self, stage: Stage, **fields: Any) -> None:
        self.log.info("stage.ok", stage=stage.value, **fields)

    def stage_failed(self, error: FileOpsError) -> None:
        event = "stage.failed"
        if error.stage is Stage.UPDATE_REF:
            event = "ref.update.transport_failed" if error.status is None else "ref.update.rejected"
        level = "error" if error.orphaned_objects else "warning"
        getattr(self.log, level)(event, **error.to_dict())

    def verification_mismatch(self, mismatch: VerificationMismatch) -> None:
        self.log.warning(
            "ref.update.verification_mismatch",
            branch=mismatch.branch,
            expected_sha=mismatch.expected_sha,
            observed_sha=mismatch.observed_sha,
        )

    def retry_scheduled(self, stage: Stage, attempt: int, delay: float, error: FileOpsError) -> None:
        self.log.warning(
            "stage.retry",
            stage=stage.value,
            attempt=attempt,
            delay_seconds=round(delay, 3),
            status=error.status,
            error=error.message,
        )
