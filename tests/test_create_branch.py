import pytest

from mcp_github_file_ops.errors import NotFoundError, RefUpdateError, Stage, ValidationError


@pytest.mark.asyncio
async def test_create_branch_from_configured_branch(ops, github):
    result = await ops.create_branch("feature/docs")

    assert github.refs["feature/docs"] == github.head()
    assert result.sha == github.head()
    assert result.ref == "refs/heads/feature/docs"
    assert result.source_branch == "main"
    post = github.calls_for(Stage.CREATE_REF)[0]
    assert post["json"] == {"ref": "refs/heads/feature/docs", "sha": github.head()}


@pytest.mark.asyncio
async def test_create_branch_from_other_source(ops, github):
    first = await ops.create_branch("release")
    github.external_commit({"README.md": "on main"})

    result = await ops.create_branch("hotfix", source_branch="release")

    assert result.sha == first.sha
    assert result.source_branch == "release"


@pytest.mark.asyncio
async def test_existing_branch_is_rejected(ops, github):
    await ops.create_branch("feature/docs")

    with pytest.raises(RefUpdateError) as exc:
        await ops.create_branch("feature/docs")
    assert exc.value.stage is Stage.CREATE_REF
    assert exc.value.status == 422
    assert exc.value.parsed_body == {"message": "Reference already exists"}
    assert exc.value.orphaned_objects == {}


@pytest.mark.asyncio
async def test_unknown_source_branch(ops, github):
    with pytest.raises(NotFoundError):
        await ops.create_branch("feature/x", source_branch="missing")
    assert github.mutations == []


@pytest.mark.parametrize("name", ["bad name", "refs/heads/x", "a..b", "x.lock", "trailing/", "what?"])
@pytest.mark.asyncio
async def test_invalid_branch_names(ops, github, name):
    with pytest.raises(ValidationError):
        await ops.create_branch(name)
    assert github.calls == []
