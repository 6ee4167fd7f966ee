# File: servers/github-file-ops/src/mcp_github_file_ops/github/client.py
from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from common.logging import get_logger

from ..errors import (
    NotFoundError,
    ObjectCreationError,
    RefUpdateError,
    RemoteReadError,
    Stage,
    TransportError,
    ValidationError,
    describe_failure,
    parse_error_body,
)
from ..models.git_objects import GitCommit, GitRef, GitTree, NewCommit, TreeEntry
from ..settings import Settings

log = get_logger("mcp.github.file_ops.client")

REQUEST_ID_HEADER = "x-github-request-id"


class GitHubClient:
    """
    Thin async wrapper over the GitHub git database endpoints.

    One instance per operation; the bearer token is read from settings when the
    client is opened. Non-2xx responses become typed errors tagged with the stage.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if settings.github_token is None:
            raise ValidationError("GITHUB_TOKEN environment variable is required", stage=Stage.VALIDATE)
        self.settings = settings
        self._repo_path = f"/repos/{quote(settings.repo_owner, safe='')}/{quote(settings.repo_name, safe='')}"
        self._http = httpx.AsyncClient(
            base_url=settings.github_api_url,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {settings.github_token.get_secret_value()}",
                "X-GitHub-Api-Version": settings.github_api_version,
            },
            timeout=httpx.Timeout(settings.http_timeout_seconds),
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ---------------- low level ----------------

    def _ref_path(self, branch: str) -> str:
        return f"{self._repo_path}/git/refs/heads/{quote(branch, safe='/')}"

    async def _send(
        self,
        stage: Stage,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        tree_sha: Optional[str] = None,
        commit_sha: Optional[str] = None,
    ) -> httpx.Response:
        log.debug("http.request", stage=stage.value, method=method, path=path)
        try:
            resp = await self._http.request(method, path, json=json)
        except httpx.TransportError as e:
            detail = str(e) or type(e).__name__
            raise TransportError(
                f"Network error during {stage.value}: {detail}",
                stage=stage,
                tree_sha=tree_sha,
                commit_sha=commit_sha,
                error_type=type(e).__name__,
            ) from e
        log.debug("http.response", stage=stage.value, status=resp.status_code, request_id=resp.headers.get(REQUEST_ID_HEADER))
        return resp

    @staticmethod
    def _body_text(resp: httpx.Response) -> str:
        try:
            return resp.text
        except (UnicodeDecodeError, httpx.HTTPError):
            return "Unable to read error response"

    @staticmethod
    def _parse(model, resp: httpx.Response, stage: Stage, error_cls, **error_fields: Any):
        try:
            return model.model_validate(resp.json())
        except (ValueError, PydanticValidationError) as e:
            raise error_cls(
                f"Unexpected response during {stage.value}: {e}",
                stage=stage,
                status=resp.status_code,
                body=GitHubClient._body_text(resp),
                **error_fields,
            ) from e

    def _read_failure(self, stage: Stage, what: str, resp: httpx.Response) -> Exception:
        body = self._body_text(resp)
        request_id = resp.headers.get(REQUEST_ID_HEADER)
        if resp.status_code == 404:
            return NotFoundError(
                describe_failure(f"Failed to get {what}", resp.status_code, body),
                stage=stage, status=resp.status_code, body=body, request_id=request_id,
            )
        return RemoteReadError(
            describe_failure(f"Failed to get {what}", resp.status_code, body),
            stage=stage, status=resp.status_code, body=body, request_id=request_id,
        )

    # ---------------- git database ----------------

    async def get_ref(self, branch: str, *, stage: Stage = Stage.GET_REF) -> GitRef:
        resp = await self._send(stage, "GET", self._ref_path(branch))
        if not resp.is_success:
            raise self._read_failure(stage, "branch reference", resp)
        return self._parse(GitRef, resp, stage, RemoteReadError)

    async def get_commit(self, sha: str) -> GitCommit:
        stage = Stage.GET_COMMIT
        resp = await self._send(stage, "GET", f"{self._repo_path}/git/commits/{sha}")
        if not resp.is_success:
            raise self._read_failure(stage, "base commit", resp)
        return self._parse(GitCommit, resp, stage, RemoteReadError)

    async def create_tree(self, base_tree: str, entries: List[TreeEntry]) -> GitTree:
        stage = Stage.CREATE_TREE
        resp = await self._send(
            stage,
            "POST",
            f"{self._repo_path}/git/trees",
            json={"base_tree": base_tree, "tree": [e.to_payload() for e in entries]},
        )
        if not resp.is_success:
            body = self._body_text(resp)
            raise ObjectCreationError(
                describe_failure("Failed to create tree", resp.status_code, body),
                stage=stage, status=resp.status_code, body=body,
                request_id=resp.headers.get(REQUEST_ID_HEADER),
            )
        return self._parse(GitTree, resp, stage, ObjectCreationError)

    async def create_commit(self, message: str, tree_sha: str, parent_sha: str) -> NewCommit:
        stage = Stage.CREATE_COMMIT
        resp = await self._send(
            stage,
            "POST",
            f"{self._repo_path}/git/commits",
            json={"message": message, "tree": tree_sha, "parents": [parent_sha]},
            tree_sha=tree_sha,
        )
        if not resp.is_success:
            body = self._body_text(resp)
            raise ObjectCreationError(
                describe_failure("Failed to create commit", resp.status_code, body),
                stage=stage, status=resp.status_code, body=body, tree_sha=tree_sha,
                request_id=resp.headers.get(REQUEST_ID_HEADER),
            )
        return self._parse(NewCommit, resp, stage, ObjectCreationError, tree_sha=tree_sha)

    async def update_ref(self, branch: str, sha: str, *, tree_sha: Optional[str] = None) -> httpx.Response:
        """
        PATCH the branch to `sha` with force=false. Returns the raw response so the
        reference update protocol can classify it; only transport failures raise here.
        """
        return await self._send(
            Stage.UPDATE_REF,
            "PATCH",
            self._ref_path(branch),
            json={"sha": sha, "force": False},
            tree_sha=tree_sha,
            commit_sha=sha,
        )

    async def create_ref(self, branch: str, sha: str) -> GitRef:
        stage = Stage.CREATE_REF
        resp = await self._send(
            stage,
            "POST",
            f"{self._repo_path}/git/refs",
            json={"ref": f"refs/heads/{branch}", "sha": sha},
        )
        if not resp.is_success:
            body = self._body_text(resp)
            raise RefUpdateError(
                describe_failure(f"Failed to create branch '{branch}'", resp.status_code, body),
                stage=stage, status=resp.status_code, body=body,
                parsed_body=parse_error_body(body),
                request_id=resp.headers.get(REQUEST_ID_HEADER),
            )
        return self._parse(GitRef, resp, stage, RefUpdateError)
