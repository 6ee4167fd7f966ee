import hashlib
import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from mcp_github_file_ops.errors import FileOpsError, Stage
from mcp_github_file_ops.operations import FileOperations
from mcp_github_file_ops.settings import Settings

OWNER = "acme"
REPO = "widgets"
BRANCH = "main"
PREFIX = f"/repos/{OWNER}/{REPO}/git"


def _sha(kind: str, payload: Any) -> str:
    raw = kind.encode() + b"\0" + json.dumps(payload, sort_keys=True).encode()
    return hashlib.sha1(raw).hexdigest()


class FakeGitHub:
    """
    In-memory git database speaking the GitHub REST shapes.

    Faults are queued per stage; hooks run before a stage is served, which is
    how tests move the branch under a running operation.
    """

    def __init__(self, files: Optional[Dict[str, str]] = None, branch: str = BRANCH):
        self.blobs: Dict[str, str] = {}
        self.trees: Dict[str, Dict[str, str]] = {}
        self.commits: Dict[str, Dict[str, Any]] = {}
        self.refs: Dict[str, str] = {}
        self.calls: List[Dict[str, Any]] = []
        self._faults: Dict[str, List[Callable[[httpx.Request], httpx.Response]]] = {}
        self._hooks: Dict[str, List[Callable[[], None]]] = {}
        self._commit_counter = 0

        tree_sha = self._store_tree(self._blobify(files or {}))
        self.refs[branch] = self._store_commit(tree_sha, [], "initial commit")

    # ---------------- storage ----------------

    def _blobify(self, files: Dict[str, str]) -> Dict[str, str]:
        out = {}
        for path, content in files.items():
            blob_sha = _sha("blob", content)
            self.blobs[blob_sha] = content
            out[path] = blob_sha
        return out

    def _store_tree(self, entries: Dict[str, str]) -> str:
        tree_sha = _sha("tree", entries)
        self.trees[tree_sha] = dict(entries)
        return tree_sha

    def _store_commit(self, tree_sha: str, parents: List[str], message: str) -> str:
        self._commit_counter += 1
        commit_sha = _sha("commit", [tree_sha, parents, message, self._commit_counter])
        self.commits[commit_sha] = {
            "tree": tree_sha,
            "parents": list(parents),
            "message": message,
            "author": {"name": "github-actions[bot]", "date": f"2026-10-17T12:00:{self._commit_counter:02d}Z"},
        }
        return commit_sha

    def _is_ancestor(self, ancestor: str, descendant: str) -> bool:
        stack = [descendant]
        while stack:
            sha = stack.pop()
            if sha == ancestor:
                return True
            stack.extend(self.commits.get(sha, {}).get("parents", []))
        return False

    # ---------------- test helpers ----------------

    def head(self, branch: str = BRANCH) -> str:
        return self.refs[branch]

    def files_at(self, commit_sha: str) -> Dict[str, str]:
        tree = self.trees[self.commits[commit_sha]["tree"]]
        return {path: self.blobs[blob] for path, blob in tree.items()}

    def external_commit(self, files: Dict[str, str], message: str = "someone else", branch: str = BRANCH) -> str:
        """Simulate another writer pushing to `branch`."""
        base = self.refs[branch]
        entries = dict(self.trees[self.commits[base]["tree"]])
        entries.update(self._blobify(files))
        sha = self._store_commit(self._store_tree(entries), [base], message)
        self.refs[branch] = sha
        return sha

    def fail(self, stage: Stage, status: int, body: Any = "", headers: Optional[Dict[str, str]] = None) -> None:
        content = body if isinstance(body, str) else json.dumps(body)
        self._faults.setdefault(stage.value, []).append(
            lambda request: httpx.Response(status, text=content, headers=headers or {})
        )

    def break_connection(self, stage: Stage, message: str = "connection reset by peer") -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError(message, request=request)
        self._faults.setdefault(stage.value, []).append(_raise)

    def before(self, stage: Stage, hook: Callable[[], None]) -> None:
        self._hooks.setdefault(stage.value, []).append(hook)

    def calls_for(self, stage: Stage) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["stage"] == stage.value]

    @property
    def mutations(self) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["method"] != "GET"]

    # ---------------- HTTP ----------------

    def _stage_of(self, method: str, path: str) -> str:
        if path.startswith(f"{PREFIX}/refs/heads/"):
            return Stage.UPDATE_REF.value if method == "PATCH" else Stage.GET_REF.value
        if path == f"{PREFIX}/refs":
            return Stage.CREATE_REF.value
        if path.startswith(f"{PREFIX}/commits"):
            return Stage.CREATE_COMMIT.value if method == "POST" else Stage.GET_COMMIT.value
        if path == f"{PREFIX}/trees":
            return Stage.CREATE_TREE.value
        return "unknown"

    def handler(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        body = json.loads(request.content) if request.content else None
        stage = self._stage_of(method, path)
        self.calls.append({"method": method, "path": path, "json": body, "stage": stage, "headers": request.headers})

        for hook in self._hooks.pop(stage, []):
            hook()
        faults = self._faults.get(stage)
        if faults:
            return faults.pop(0)(request)

        if stage == Stage.GET_REF.value:
            branch = path[len(f"{PREFIX}/refs/heads/"):]
            if branch not in self.refs:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, json=self._ref_json(branch))
        if stage == Stage.GET_COMMIT.value:
            sha = path.rsplit("/", 1)[-1]
            if sha not in self.commits:
                return httpx.Response(404, json={"message": "Not Found"})
            c = self.commits[sha]
            return httpx.Response(200, json={
                "sha": sha,
                "tree": {"sha": c["tree"]},
                "parents": [{"sha": p} for p in c["parents"]],
                "message": c["message"],
            })
        if stage == Stage.CREATE_TREE.value:
            return self._create_tree(body)
        if stage == Stage.CREATE_COMMIT.value:
            return self._create_commit(body)
        if stage == Stage.UPDATE_REF.value:
            return self._update_ref(path[len(f"{PREFIX}/refs/heads/"):], body)
        if stage == Stage.CREATE_REF.value:
            return self._create_ref(body)
        return httpx.Response(404, json={"message": "Not Found"})

    def _ref_json(self, branch: str) -> Dict[str, Any]:
        return {"ref": f"refs/heads/{branch}", "object": {"sha": self.refs[branch], "type": "commit"}}

    def _create_tree(self, body: Dict[str, Any]) -> httpx.Response:
        base = body.get("base_tree")
        if base not in self.trees:
            return httpx.Response(422, json={"message": "Invalid tree info"})
        entries = dict(self.trees[base])
        for entry in body["tree"]:
            if "content" in entry:
                entries.update(self._blobify({entry["path"]: entry["content"]}))
            elif entry.get("sha") is None:
                entries.pop(entry["path"], None)
            else:
                entries[entry["path"]] = entry["sha"]
        return httpx.Response(201, json={"sha": self._store_tree(entries)})

    def _create_commit(self, body: Dict[str, Any]) -> httpx.Response:
        if body["tree"] not in self.trees or any(p not in self.commits for p in body["parents"]):
            return httpx.Response(422, json={"message": "Tree SHA does not exist"})
        sha = self._store_commit(body["tree"], body["parents"], body["message"])
        c = self.commits[sha]
        return httpx.Response(201, json={
            "sha": sha,
            "message": c["message"],
            "author": c["author"],
            "tree": {"sha": c["tree"]},
            "parents": [{"sha": p} for p in c["parents"]],
        })

    def _update_ref(self, branch: str, body: Dict[str, Any]) -> httpx.Response:
        if branch not in self.refs:
            return httpx.Response(422, json={"message": "Reference does not exist"})
        new_sha = body["sha"]
        if new_sha not in self.commits:
            return httpx.Response(422, json={"message": "Object does not exist"})
        if not body.get("force") and not self._is_ancestor(self.refs[branch], new_sha):
            return httpx.Response(422, json={"message": "Update is not a fast forward"})
        self.refs[branch] = new_sha
        return httpx.Response(200, json=self._ref_json(branch))

    def _create_ref(self, body: Dict[str, Any]) -> httpx.Response:
        name = body["ref"][len("refs/heads/"):]
        if name in self.refs:
            return httpx.Response(422, json={"message": "Reference already exists"})
        if body["sha"] not in self.commits:
            return httpx.Response(422, json={"message": "Object does not exist"})
        self.refs[name] = body["sha"]
        return httpx.Response(201, json=self._ref_json(name))

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class RecordingDiagnostics:
    def __init__(self):
        self.events: List[tuple] = []

    def stage_begin(self, stage: Stage, **fields: Any) -> None:
        self.events.append(("begin", stage, fields))

    def stage_ok(self, stage: Stage, **fields: Any) -> None:
        self.events.append(("ok", stage, fields))

    def stage_failed(self, error: FileOpsError) -> None:
        self.events.append(("failed", error.stage, error))

    def verification_mismatch(self, mismatch) -> None:
        self.events.append(("mismatch", Stage.VERIFY_REF, mismatch))

    def retry_scheduled(self, stage: Stage, attempt: int, delay: float, error: FileOpsError) -> None:
        self.events.append(("retry", stage, {"attempt": attempt, "delay": delay, "error": error}))

    def of(self, kind: str) -> List[tuple]:
        return [e for e in self.events if e[0] == kind]


@pytest.fixture
def repo_dir(tmp_path):
    d = tmp_path / "checkout"
    d.mkdir()
    return d


@pytest.fixture
def settings(repo_dir):
    return Settings(
        repo_owner=OWNER,
        repo_name=REPO,
        branch_name=BRANCH,
        repo_dir=repo_dir,
        working_dir=repo_dir,
        github_api_url="https://api.github.test",
        github_token="ghs_test_token",
        ref_update_retries=0,
    )


@pytest.fixture
def github():
    return FakeGitHub({"README.md": "hello\n", "src/app.py": "print('v1')\n", "docs/old.md": "stale\n"})


@pytest.fixture
def diagnostics():
    return RecordingDiagnostics()


@pytest.fixture
def ops(settings, github, diagnostics):
    return FileOperations(settings, diagnostics=diagnostics, transport=github.transport())


def write(root, rel, content):
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path
