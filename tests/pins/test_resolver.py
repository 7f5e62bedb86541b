import pytest

from altfinder.pins.bookmarks import BookmarkResolver, HelperBookmarkBackend, InodeBookmarkBackend
from altfinder.pins.bookmarks.base import BookmarkBackend
from altfinder.pins.models import BookmarkResult, ResolveResult


class FakeHelper(BookmarkBackend):
    """Helper stand-in: succeeds only for paths in ``known``."""

    name = "fake"

    def __init__(self, known=()):
        self.known = set(known)
        self.resolved = []

    async def create(self, path):
        if path in self.known:
            return BookmarkResult(path=path, bookmark="FAKE:" + path)
        return BookmarkResult(path=path, error="helper refused")

    async def resolve(self, token):
        self.resolved.append(token)
        if token.startswith("FAKE:"):
            return ResolveResult(bookmark=token, path=token[5:])
        return ResolveResult(bookmark=token, error="Invalid base64 data")


@pytest.fixture
def resolver(config):
    return BookmarkResolver(None, config)


@pytest.mark.asyncio
async def test_default_backend_is_inode(resolver):
    await resolver.initialize()
    assert [b.name for b in resolver.backends] == ["inode"]


@pytest.mark.asyncio
async def test_helper_backend_gets_inode_fallback(resolver, config):
    config.data.bookmarks.backend = "helper"
    await resolver.initialize()
    primary, fallback = resolver.backends
    assert isinstance(primary, HelperBookmarkBackend)
    assert isinstance(fallback, InodeBookmarkBackend)


@pytest.mark.asyncio
async def test_create_uses_primary_when_it_succeeds(resolver, project):
    path = str(project / "readme.md")
    resolver.set_backends(FakeHelper(known=[path]), fallback=InodeBookmarkBackend())

    result = await resolver.create(path)
    assert result.bookmark == "FAKE:" + path


@pytest.mark.asyncio
async def test_create_falls_back_to_inode(resolver, project):
    path = str(project / "readme.md")
    resolver.set_backends(FakeHelper(), fallback=InodeBookmarkBackend())

    result = await resolver.create(path)
    assert result.ok
    assert InodeBookmarkBackend().claims(result.bookmark)


@pytest.mark.asyncio
async def test_create_without_fallback_reports_error(resolver, project):
    resolver.set_backends(FakeHelper())
    result = await resolver.create(str(project / "readme.md"))
    assert not result.ok
    assert result.error == "helper refused"


@pytest.mark.asyncio
async def test_resolve_routes_native_tokens_to_inode(resolver, project):
    helper = FakeHelper()
    native = InodeBookmarkBackend()
    resolver.set_backends(helper, fallback=native)

    token = (await native.create(str(project / "notes.txt"))).bookmark
    resolved = await resolver.resolve(token)

    assert resolved.path == str(project / "notes.txt")
    # Anything the native format does not claim goes to the helper
    helper_token = "FAKE:" + str(project / "readme.md")
    assert (await resolver.resolve(helper_token)).path == str(project / "readme.md")
    assert helper_token in helper.resolved


@pytest.mark.asyncio
async def test_resolve_foreign_token_with_inode_only(resolver):
    resolver.set_backends(InodeBookmarkBackend())
    resolved = await resolver.resolve("opaque-os-data")
    assert not resolved.ok
    assert resolved.error == "Invalid bookmark data"


@pytest.mark.asyncio
async def test_batch_create_fills_gaps_from_fallback(resolver, project):
    readme = str(project / "readme.md")
    report = str(project / "report.txt")
    missing = str(project / "missing.txt")
    resolver.set_backends(FakeHelper(known=[readme]), fallback=InodeBookmarkBackend())

    tokens = await resolver.batch_create([readme, report, missing])

    assert tokens[readme] == "FAKE:" + readme
    assert report in tokens
    assert missing not in tokens


@pytest.mark.asyncio
async def test_identity(resolver, project):
    await resolver.initialize()
    token = (await resolver.create(str(project / "sub"))).bookmark

    assert resolver.identity(token)
    assert resolver.identity(None) is None
    assert resolver.identity("") is None
    assert resolver.identity("garbage") is None
