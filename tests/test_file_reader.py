import asyncio

import pytest

from mcp_github_file_ops.engine import file_reader
from mcp_github_file_ops.engine.file_reader import read_files
from mcp_github_file_ops.errors import ErrorKind, FileReadError, Stage

from conftest import write


@pytest.mark.asyncio
async def test_reads_all_files_as_text(tmp_path):
    a = write(tmp_path, "a.txt", "alpha\n")
    b = write(tmp_path, "nested/b.txt", "béta\n")

    contents = await read_files([("a.txt", a), ("nested/b.txt", b)], concurrency=2)

    assert contents == {"a.txt": "alpha\n", "nested/b.txt": "béta\n"}
    assert list(contents) == ["a.txt", "nested/b.txt"]


@pytest.mark.asyncio
async def test_empty_input_reads_nothing():
    assert await read_files([], concurrency=4) == {}


@pytest.mark.asyncio
async def test_missing_file_names_the_path(tmp_path):
    a = write(tmp_path, "a.txt", "alpha")

    with pytest.raises(FileReadError) as exc:
        await read_files([("a.txt", a), ("gone.txt", tmp_path / "gone.txt")], concurrency=4)

    err = exc.value
    assert err.kind is ErrorKind.IO
    assert err.stage is Stage.READ_FILES
    assert "gone.txt" in err.message
    assert err.details["path"].endswith("gone.txt")


@pytest.mark.asyncio
async def test_binary_file_is_rejected(tmp_path):
    blob = tmp_path / "logo.png"
    blob.write_bytes(b"\x89PNG\r\n\x1a\n\xff\xfe")

    with pytest.raises(FileReadError) as exc:
        await read_files([("logo.png", blob)], concurrency=1)
    assert "UTF-8" in exc.value.message


@pytest.mark.asyncio
async def test_concurrency_is_bounded(tmp_path, monkeypatch):
    files = [(f"f{i}.txt", write(tmp_path, f"f{i}.txt", str(i))) for i in range(6)]
    active = 0
    peak = 0

    original = asyncio.to_thread

    async def tracking_to_thread(fn, *args):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        try:
            await asyncio.sleep(0.01)
            return await original(fn, *args)
        finally:
            active -= 1

    monkeypatch.setattr(file_reader.asyncio, "to_thread", tracking_to_thread)

    contents = await read_files(files, concurrency=2)

    assert len(contents) == 6
    assert peak == 2


@pytest.mark.asyncio
async def test_first_failure_cancels_pending_reads(tmp_path, monkeypatch):
    later = [(f"later{i}.txt", write(tmp_path, f"later{i}.txt", "x")) for i in range(4)]
    attempted = []
    original = file_reader._read_text

    def counting_read(path):
        attempted.append(path.name)
        return original(path)

    monkeypatch.setattr(file_reader, "_read_text", counting_read)

    with pytest.raises(FileReadError) as exc:
        await read_files([("gone.txt", tmp_path / "gone.txt"), *later], concurrency=1)

    assert exc.value.details["path"].endswith("gone.txt")
    assert attempted == ["gone.txt"]
