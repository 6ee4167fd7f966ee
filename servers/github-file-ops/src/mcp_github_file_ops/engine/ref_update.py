# File: servers/github-file-ops/src/mcp_github_file_ops/engine/ref_update.py
"""
Fast-forward-only reference update.

Per attempt: IDLE -> REQUEST_SENT -> CONFIRMED | REJECTED | TRANSPORT_FAILED.

A rejection here is the dangerous failure: the tree and commit were already
created, so the error always carries their shas. The known intermittent 500 on
this call lands in REJECTED with the GitHub request id attached.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from ..diagnostics import Diagnostics, VerificationMismatch
from ..errors import FileOpsError, RefUpdateError, Stage, TransportError, describe_failure, parse_error_body
from ..github.client import REQUEST_ID_HEADER, GitHubClient
from .composer import ComposedCommit


class RefUpdateState(str, Enum):
    IDLE = "idle"
    REQUEST_SENT = "request_sent"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    TRANSPORT_FAILED = "transport_failed"


@dataclass
class RetryPolicy:
    """
    Re-sends only the PATCH for the same commit, so no duplicate objects are
    created. Only server faults (5xx) and transport failures qualify.
    `max_retries=0` disables it.
    """
    max_retries: int = 0
    backoff_seconds: float = 1.0
    backoff_max_seconds: float = 8.0

    def should_retry(self, error: FileOpsError, attempt: int) -> bool:
        if attempt > self.max_retries:
            return False
        if isinstance(error, TransportError):
            return True
        return isinstance(error, RefUpdateError) and error.retryable

    def delay(self, attempt: int) -> float:
        return min(self.backoff_seconds * (2 ** (attempt - 1)), self.backoff_max_seconds)


@dataclass
class RefUpdateOutcome:
    state: RefUpdateState
    sha: str
    attempts: int
    verified: Optional[bool] = None
    history: List[RefUpdateState] = field(default_factory=list)


class ReferenceUpdateProtocol:
    def __init__(
        self,
        client: GitHubClient,
        diagnostics: Diagnostics,
        *,
        verify: bool = True,
        retry: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.diagnostics = diagnostics
        self.verify = verify
        self.retry = retry or RetryPolicy()
        self._sleep = sleep

    async def advance(self, composed: ComposedCommit) -> RefUpdateOutcome:
        """Move `composed.branch` from `composed.base_sha` to the new commit, or raise."""
        history: List[RefUpdateState] = []
        attempt = 0
        while True:
            attempt += 1
            try:
                await self._attempt(composed, history)
                break
            except (RefUpdateError, TransportError) as e:
                self.diagnostics.stage_failed(e)
                if not self.retry.should_retry(e, attempt):
                    raise
                delay = self.retry.delay(attempt)
                self.diagnostics.retry_scheduled(Stage.UPDATE_REF, attempt, delay, e)
                await self._sleep(delay)

        self.diagnostics.stage_ok(
            Stage.UPDATE_REF,
            branch=composed.branch,
            sha=composed.commit_sha,
            base_sha=composed.base_sha,
            attempts=attempt,
        )
        verified = await self._verify(composed) if self.verify else None
        return RefUpdateOutcome(
            state=RefUpdateState.CONFIRMED,
            sha=composed.commit_sha,
            attempts=attempt,
            verified=verified,
            history=history,
        )

    async def _attempt(self, composed: ComposedCommit, history: List[RefUpdateState]) -> None:
        history.append(RefUpdateState.IDLE)
        self.diagnostics.stage_begin(
            Stage.UPDATE_REF, branch=composed.branch, sha=composed.commit_sha, base_sha=composed.base_sha,
        )
        history.append(RefUpdateState.REQUEST_SENT)
        try:
            resp = await self.client.update_ref(composed.branch, composed.commit_sha, tree_sha=composed.tree_sha)
        except TransportError:
            history.append(RefUpdateState.TRANSPORT_FAILED)
            raise

        if resp.is_success:
            history.append(RefUpdateState.CONFIRMED)
            return

        history.append(RefUpdateState.REJECTED)
        try:
            body = resp.text
        except UnicodeDecodeError:
            body = "Unable to read error response"
        raise RefUpdateError(
            describe_failure("Failed to update reference", resp.status_code, body),
            stage=Stage.UPDATE_REF,
            status=resp.status_code,
            body=body,
            tree_sha=composed.tree_sha,
            commit_sha=composed.commit_sha,
            base_sha=composed.base_sha,
            branch=composed.branch,
            parsed_body=parse_error_body(body),
            request_id=resp.headers.get(REQUEST_ID_HEADER),
        )

    async def _verify(self, composed: ComposedCommit) -> Optional[bool]:
        """Read the ref back. The write was acknowledged, so nothing here raises."""
        try:
            ref = await self.client.get_ref(composed.branch, stage=Stage.VERIFY_REF)
        except FileOpsError as e:
            self.diagnostics.stage_failed(e)
            return None
        observed = ref.object.sha
        if observed != composed.commit_sha:
            self.diagnostics.verification_mismatch(
                VerificationMismatch(branch=composed.branch, expected_sha=composed.commit_sha, observed_sha=observed)
            )
            return False
        self.diagnostics.stage_ok(Stage.VERIFY_REF, branch=composed.branch, sha=observed)
        return True
