# File: servers/github-file-ops/src/mcp_github_file_ops/engine/composer.py
"""
Git object composition: base ref -> base commit -> new tree -> new commit.

Nothing here moves the branch. Once `create_tree` succeeds the remote holds
objects no reference points to; callers must hand the composed commit to the
reference update protocol or report the orphaned shas.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from ..diagnostics import Diagnostics
from ..errors import FileOpsError, Stage
from ..github.client import GitHubClient
from ..models.git_objects import NewCommit, TreeEntry


@dataclass(frozen=True)
class BaseState:
    base_sha: str
    base_tree_sha: str


@dataclass(frozen=True)
class ComposedCommit:
    branch: str
    base_sha: str
    base_tree_sha: str
    tree_sha: str
    commit: NewCommit

    @property
    def commit_sha(self) -> str:
        return self.commit.sha


def write_entries(contents: Dict[str, str]) -> List[TreeEntry]:
    return [TreeEntry.write(path, content) for path, content in contents.items()]


def removal_entries(paths: List[str]) -> List[TreeEntry]:
    return [TreeEntry.removal(path) for path in paths]


class GitObjectComposer:
    def __init__(self, client: GitHubClient, diagnostics: Diagnostics):
        self.client = client
        self.diagnostics = diagnostics

    async def _stage(self, stage: Stage, coro, **fields):
        self.diagnostics.stage_begin(stage, **fields)
        try:
            result = await coro
        except FileOpsError as e:
            self.diagnostics.stage_failed(e)
            raise
        return result

    async def read_base(self, branch: str) -> BaseState:
        ref = await self._stage(Stage.GET_REF, self.client.get_ref(branch), branch=branch)
        base_sha = ref.object.sha
        self.diagnostics.stage_ok(Stage.GET_REF, branch=branch, sha=base_sha)

        commit = await self._stage(Stage.GET_COMMIT, self.client.get_commit(base_sha), sha=base_sha)
        self.diagnostics.stage_ok(Stage.GET_COMMIT, sha=base_sha, tree_sha=commit.tree.sha)
        return BaseState(base_sha=base_sha, base_tree_sha=commit.tree.sha)

    async def compose(self, branch: str, message: str, entries: List[TreeEntry]) -> ComposedCommit:
        base = await self.read_base(branch)

        tree = await self._stage(
            Stage.CREATE_TREE,
            self.client.create_tree(base.base_tree_sha, entries),
            base_tree=base.base_tree_sha,
            entries=len(entries),
        )
        self.diagnostics.stage_ok(Stage.CREATE_TREE, tree_sha=tree.sha)

        commit = await self._stage(
            Stage.CREATE_COMMIT,
            self.client.create_commit(message, tree.sha, base.base_sha),
            tree_sha=tree.sha,
            parent=base.base_sha,
        )
        self.diagnostics.stage_ok(Stage.CREATE_COMMIT, commit_sha=commit.sha, tree_sha=tree.sha)

        return ComposedCommit(
            branch=branch,
            base_sha=base.base_sha,
            base_tree_sha=base.base_tree_sha,
            tree_sha=tree.sha,
            commit=commit,
        )
