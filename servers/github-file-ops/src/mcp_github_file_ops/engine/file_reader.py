# File: servers/github-file-ops/src/mcp_github_file_ops/engine/file_reader.py
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from common.logging import get_logger

from ..errors import FileReadError, Stage

log = get_logger("mcp.github.file_ops.reader")


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise FileReadError(
            f"Failed to read file '{path}': not valid UTF-8 text ({e.reason})",
            stage=Stage.READ_FILES, path=str(path),
        ) from e
    except OSError as e:
        raise FileReadError(
            f"Failed to read file '{path}': {e.strerror or e}",
            stage=Stage.READ_FILES, path=str(path),
        ) from e


async def read_files(files: Sequence[Tuple[str, Path]], concurrency: int) -> Dict[str, str]:
    """
    Read every (repo_path, local_path) pair as UTF-8 text, at most `concurrency`
    at a time. After the first failure no queued read starts, the rest are
    cancelled, and that failure is raised with the offending path named.
    """
    sem = asyncio.Semaphore(max(1, concurrency))
    failed = asyncio.Event()

    async def _one(repo_path: str, local_path: Path) -> Tuple[str, str]:
        async with sem:
            # a waiter woken by the failing read's release must not start reading
            if failed.is_set():
                raise asyncio.CancelledError()
            try:
                content = await asyncio.to_thread(_read_text, local_path)
            except Exception:
                failed.set()
                raise
        log.debug("file.read", path=repo_path, chars=len(content))
        return repo_path, content

    tasks: List[asyncio.Task] = [asyncio.create_task(_one(rp, lp)) for rp, lp in files]
    if not tasks:
        return {}

    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    errors = [t.exception() for t in tasks if t in done and not t.cancelled()]
    errors = [e for e in errors if e is not None]
    if errors:
        for t in pending:
            t.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        raise errors[0]

    contents = dict(t.result() for t in tasks)
    log.info("files.read", count=len(contents))
    return contents
