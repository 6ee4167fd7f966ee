# File: servers/github-file-ops/src/mcp_github_file_ops/engine/paths.py
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Tuple

from common.os_paths import PathError, PathOutsideRootError, safe_join_path, strip_root_prefix, to_repo_relative

from ..errors import PathOutsideRepoError, Stage, ValidationError


def _dedupe(paths: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    out: List[str] = []
    for p in paths:
        if p not in seen:
            seen.add(p)
            out.append(p)
    return out


def resolve_write_paths(files: Iterable[str], repo_dir: Path) -> List[Tuple[str, Path]]:
    """
    Map commit inputs to (repo-relative path, local file). A leading "/" means
    repository-root-relative; nothing may resolve outside `repo_dir`.
    """
    resolved: List[Tuple[str, Path]] = []
    seen: set[str] = set()
    for raw in files:
        try:
            rel = to_repo_relative(raw)
            local = safe_join_path(repo_dir, rel)
        except PathOutsideRootError as e:
            raise PathOutsideRepoError(str(e), stage=Stage.VALIDATE, path=raw) from e
        except PathError as e:
            raise ValidationError(str(e), stage=Stage.VALIDATE, path=raw) from e
        if rel in seen:
            continue
        seen.add(rel)
        resolved.append((rel, local))
    return resolved


def resolve_delete_paths(paths: Iterable[str], working_dir: Path) -> List[str]:
    """
    Map delete inputs to repo-relative paths. Absolute paths are only accepted
    under `working_dir`, whose prefix is stripped.
    """
    out: List[str] = []
    for raw in paths:
        try:
            if raw.startswith("/"):
                out.append(strip_root_prefix(raw, working_dir))
            else:
                out.append(to_repo_relative(raw))
        except PathOutsideRootError as e:
            raise PathOutsideRepoError(str(e), stage=Stage.VALIDATE, path=raw) from e
        except PathError as e:
            raise ValidationError(str(e), stage=Stage.VALIDATE, path=raw) from e
    return _dedupe(out)
