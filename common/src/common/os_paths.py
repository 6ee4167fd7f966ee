"""OS and path utilities for safe file system operations."""

import os
from pathlib import Path, PurePosixPath
from typing import Union

from .logging import get_logger

logger = get_logger(__name__)


class PathError(Exception):
    """Exception for path-related errors."""
    pass


class PathOutsideRootError(PathError):
    """The path resolves to a location outside the allowed root."""
    pass


def normalize_root(root_path: Union[str, Path]) -> Path:
    """Normalize a root directory path to an absolute, resolved path.

    Args:
        root_path: Raw root path

    Returns:
        Resolved absolute path

    Raises:
        PathError: If path is empty
    """
    if not str(root_path or "").strip():
        raise PathError("Root path cannot be empty")

    return Path(root_path).expanduser().resolve()


def safe_join_path(base_path: Union[str, Path], *path_components: str) -> Path:
    """Safely join path components, preventing directory traversal.

    Leading slashes on components are dropped so they stay relative to ``base_path``.

    Raises:
        PathOutsideRootError: If the resulting path would escape the base path
    """
    base = Path(base_path).resolve()

    joined = base
    for component in path_components:
        clean_component = str(component).lstrip('/').lstrip('\\')
        if clean_component in ('', '.'):
            continue
        joined = joined / clean_component

    resolved = joined.resolve()

    try:
        resolved.relative_to(base)
    except ValueError:
        raise PathOutsideRootError(f"Path traversal detected: {'/'.join(path_components)}")

    return resolved


def to_repo_relative(path: str) -> str:
    """Normalize a repository path into root-relative POSIX form.

    ``/src/a.py`` and ``./src//a.py`` both become ``src/a.py``.

    Raises:
        PathOutsideRootError: If ``..`` segments climb above the root
        PathError: If nothing is left after normalization
    """
    raw = str(path or "").replace("\\", "/").lstrip("/")
    parts: list = []
    for part in PurePosixPath(raw).parts:
        if part in ("", "."):
            continue
        if part == "..":
            if not parts:
                raise PathOutsideRootError(f"Path '{path}' escapes the repository root")
            parts.pop()
            continue
        parts.append(part)

    if not parts:
        raise PathError(f"Path '{path}' does not name a file inside the repository")
    return "/".join(parts)


def strip_root_prefix(path: str, root: Union[str, Path]) -> str:
    """Turn an absolute path under ``root`` into a root-relative POSIX path.

    The prefix check is component-wise, so ``/work/repo-other/x`` is not under ``/work/repo``.

    Raises:
        PathOutsideRootError: If ``path`` is not located under ``root``
    """
    root_posix = PurePosixPath(str(root).replace("\\", "/"))
    candidate = PurePosixPath(os.path.normpath(str(path).replace("\\", "/")))
    try:
        relative = candidate.relative_to(root_posix)
    except ValueError:
        raise PathOutsideRootError(
            f"Path '{path}' must be relative to repository root or within current working directory"
        )
    logger.debug("Stripped root prefix", path=str(path), root=str(root_posix), relative=str(relative))
    return to_repo_relative(str(relative))


def get_current_working_directory() -> str:
    """Get the current working directory safely.

    Returns:
        Current working directory path
    """
    try:
        return str(Path.cwd().resolve())
    except OSError as e:
        raise PathError(f"Cannot determine current working directory: {e}")
