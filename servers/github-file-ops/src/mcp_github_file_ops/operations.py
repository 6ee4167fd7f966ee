# File: servers/github-file-ops/src/mcp_github_file_ops/operations.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import ValidationError as PydanticValidationError

from .diagnostics import Diagnostics, LoggingDiagnostics
from .engine.composer import ComposedCommit, GitObjectComposer, removal_entries, write_entries
from .engine.file_reader import read_files
from .engine.paths import resolve_delete_paths, resolve_write_paths
from .engine.ref_update import ReferenceUpdateProtocol, RefUpdateOutcome, RetryPolicy
from .errors import FileOpsError, Stage, ValidationError
from .github.client import GitHubClient
from .models.git_objects import TreeEntry
from .models.params import CommitFilesParams, CreateBranchParams, DeleteFilesParams
from .models.results import BranchResult, CommitResult
from .settings import Settings


def _validated(model, **data: Any):
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<input>'}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid arguments: {problems}", stage=Stage.VALIDATE) from e


class FileOperations:
    """
    commit / delete / create_branch against one configured repository and branch.

    Every call is self-contained: it opens its own HTTP client, reads the token
    from `settings` at that moment and never retries tree/commit creation.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        diagnostics: Optional[Diagnostics] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.diagnostics = diagnostics or LoggingDiagnostics(repo=settings.repo_slug)
        self._transport = transport

    def _client(self) -> GitHubClient:
        return GitHubClient(self.settings, transport=self._transport)

    def _retry_policy(self) -> RetryPolicy:
        s = self.settings
        return RetryPolicy(
            max_retries=s.ref_update_retries,
            backoff_seconds=s.ref_update_backoff_seconds,
            backoff_max_seconds=s.ref_update_backoff_max_seconds,
        )

    def _require_token(self) -> None:
        if self.settings.github_token is None:
            raise ValidationError("GITHUB_TOKEN environment variable is required", stage=Stage.VALIDATE)

    async def _publish(self, message: str, entries: List[TreeEntry]) -> tuple[ComposedCommit, RefUpdateOutcome]:
        branch = self.settings.branch_name
        async with self._client() as client:
            composed = await GitObjectComposer(client, self.diagnostics).compose(branch, message, entries)
            protocol = ReferenceUpdateProtocol(
                client,
                self.diagnostics,
                verify=self.settings.verify_ref_update,
                retry=self._retry_policy(),
            )
            outcome = await protocol.advance(composed)
        return composed, outcome

    def _result(self, composed: ComposedCommit, outcome: RefUpdateOutcome, **paths: List[str]) -> CommitResult:
        commit = composed.commit
        return CommitResult(
            sha=commit.sha,
            message=commit.message,
            author=commit.author.name,
            date=commit.author.date,
            tree_sha=composed.tree_sha,
            base_sha=composed.base_sha,
            branch=composed.branch,
            verified=outcome.verified,
            attempts=outcome.attempts,
            **paths,
        )

    async def commit(self, files: Sequence[str], message: str) -> CommitResult:
        """
        Write the current local contents of `files` to the branch in one commit.
        All validation and local reads finish before the first remote call.
        """
        params = _validated(CommitFilesParams, files=list(files), message=message)
        self._require_token()
        resolved = resolve_write_paths(params.files, self.settings.repo_dir)
        try:
            contents = await read_files(resolved, self.settings.read_concurrency)
        except FileOpsError as e:
            self.diagnostics.stage_failed(e)
            raise

        composed, outcome = await self._publish(params.message, write_entries(contents))
        return self._result(composed, outcome, files=list(contents))

    async def delete(self, paths: Sequence[str], message: str) -> CommitResult:
        """Remove `paths` from the branch in one commit."""
        params = _validated(DeleteFilesParams, paths=list(paths), message=message)
        self._require_token()
        resolved = resolve_delete_paths(params.paths, self.settings.working_dir)

        composed, outcome = await self._publish(params.message, removal_entries(resolved))
        return self._result(composed, outcome, deleted_files=resolved)

    async def create_branch(self, branch: str, source_branch: Optional[str] = None) -> BranchResult:
        """Create `branch` pointing at the current tip of `source_branch` (default: configured branch)."""
        params = _validated(CreateBranchParams, branch=branch, source_branch=source_branch)
        self._require_token()
        source = params.source_branch or self.settings.branch_name

        async with self._client() as client:
            self.diagnostics.stage_begin(Stage.GET_REF, branch=source)
            try:
                base = await client.get_ref(source)
                created = await client.create_ref(params.branch, base.object.sha)
            except FileOpsError as e:
                self.diagnostics.stage_failed(e)
                raise
        self.diagnostics.stage_ok(Stage.CREATE_REF, branch=params.branch, sha=created.object.sha, source=source)
        return BranchResult(
            branch=params.branch,
            ref=created.ref or f"refs/heads/{params.branch}",
            sha=created.object.sha,
            source_branch=source,
        )

    def describe(self) -> Dict[str, Any]:
        return self.settings.snapshot()
