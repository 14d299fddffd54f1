import base64
from datetime import datetime, timezone

import httpx
import pytest

from common.errors import ContentSourceError
from sources.github_client import GitHubContentSource
from sources.ratelimit import parse_rate_limit_reset


def make_source(handler, **kwargs) -> GitHubContentSource:
    client = httpx.AsyncClient(
        base_url="https://api.github.com", transport=httpx.MockTransport(handler)
    )
    return GitHubContentSource("aframevr", "aframe", client=client, **kwargs)


@pytest.mark.asyncio
async def test_list_directory():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/repos/aframevr/aframe/contents/docs"
        return httpx.Response(
            200,
            json=[
                {"name": "core", "path": "docs/core", "type": "dir"},
                {"name": "README.md", "path": "docs/README.md", "type": "file"},
            ],
        )

    async with make_source(handler) as source:
        entries = await source.list_directory("docs")

    assert [(e.path, e.type) for e in entries] == [
        ("docs/core", "dir"),
        ("docs/README.md", "file"),
    ]


@pytest.mark.asyncio
async def test_list_directory_on_a_file_returns_one_entry():
    def handler(request):
        return httpx.Response(
            200, json={"name": "a.md", "path": "docs/a.md", "type": "file"}
        )

    async with make_source(handler) as source:
        entries = await source.list_directory("docs/a.md")

    assert len(entries) == 1
    assert entries[0].type == "file"


@pytest.mark.asyncio
async def test_get_file_content_decodes_wrapped_base64():
    body = "# Intro\nHello\n" * 20
    encoded = base64.encodebytes(body.encode("utf-8")).decode("ascii")
    assert "\n" in encoded

    def handler(request):
        return httpx.Response(
            200,
            json={"type": "file", "encoding": "base64", "content": encoded},
        )

    async with make_source(handler) as source:
        content = await source.get_file_content("docs/a.md")

    assert content.decode("utf-8") == body


@pytest.mark.asyncio
async def test_get_file_content_on_a_directory_raises():
    def handler(request):
        return httpx.Response(200, json=[])

    async with make_source(handler) as source:
        with pytest.raises(ContentSourceError):
            await source.get_file_content("docs")


@pytest.mark.asyncio
async def test_not_found_raises_with_status():
    def handler(request):
        return httpx.Response(404, json={"message": "Not Found"})

    async with make_source(handler) as source:
        with pytest.raises(ContentSourceError) as info:
            await source.list_directory("missing")

    assert info.value.status_code == 404


@pytest.mark.asyncio
async def test_auth_and_version_headers():
    seen = {}

    def handler(request):
        seen.update(request.headers)
        return httpx.Response(200, json=[])

    async with make_source(handler, token="secret") as source:
        await source.list_directory("docs")

    assert seen["authorization"] == "Bearer secret"
    assert seen["x-github-api-version"] == "2022-11-28"


@pytest.mark.asyncio
async def test_changed_files_follow_pagination():
    pages = {
        "1": [{"filename": "docs/a.md", "status": "modified"}, {"filename": "docs/b.md", "status": "added"}],
        "2": [{"filename": "docs/c.md", "status": "removed"}],
    }
    requested = []

    def handler(request):
        assert request.url.path == "/repos/aframevr/aframe/pulls/7/files"
        page = request.url.params["page"]
        requested.append(page)
        assert request.url.params["per_page"] == "2"
        return httpx.Response(200, json=pages[page])

    async with make_source(handler, per_page=2) as source:
        files = await source.list_changed_files(7)

    assert requested == ["1", "2"]
    assert [(f.filename, f.status) for f in files] == [
        ("docs/a.md", "modified"),
        ("docs/b.md", "added"),
        ("docs/c.md", "removed"),
    ]


@pytest.mark.asyncio
async def test_rate_limited_request_is_replayed():
    calls = []

    def handler(request):
        calls.append(str(request.url))
        if len(calls) == 1:
            return httpx.Response(
                403,
                headers={"x-ratelimit-remaining": "0", "x-ratelimit-reset": "0"},
                json={"message": "API rate limit exceeded"},
            )
        return httpx.Response(200, json=[{"name": "a.md", "path": "docs/a.md", "type": "file"}])

    async with make_source(handler) as source:
        entries = await source.list_directory("docs")

    assert len(calls) == 2
    assert calls[0] == calls[1]
    assert entries[0].path == "docs/a.md"


@pytest.mark.asyncio
async def test_plain_forbidden_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(403, headers={"x-ratelimit-remaining": "12"})

    async with make_source(handler) as source:
        with pytest.raises(ContentSourceError) as info:
            await source.list_directory("docs")

    assert len(calls) == 1
    assert info.value.status_code == 403


def test_parse_rate_limit_reset_epoch():
    reset = parse_rate_limit_reset({"x-ratelimit-reset": "1700000000"})
    assert reset == datetime.fromtimestamp(1700000000, tz=timezone.utc)


def test_parse_rate_limit_reset_retry_after_seconds():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    reset = parse_rate_limit_reset({"retry-after": "30"}, now=now)
    assert (reset - now).total_seconds() == 30


def test_parse_rate_limit_reset_missing():
    assert parse_rate_limit_reset({}) is None


@pytest.mark.asyncio
async def test_secondary_rate_limit_is_replayed():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(
                403,
                headers={"retry-after": "0", "x-ratelimit-remaining": "4000"},
                json={"message": "You have exceeded a secondary rate limit"},
            )
        return httpx.Response(200, json=[])

    async with make_source(handler) as source:
        entries = await source.list_directory("docs")

    assert len(calls) == 2
    assert entries == []


@pytest.mark.asyncio
async def test_changed_files_carry_previous_filename():
    def handler(request):
        return httpx.Response(
            200,
            json=[
                {
                    "filename": "docs/new.md",
                    "status": "renamed",
                    "previous_filename": "docs/old.md",
                },
                {"filename": "docs/a.md", "status": "modified"},
            ],
        )

    async with make_source(handler) as source:
        files = await source.list_changed_files(3)

    assert files[0].previous_filename == "docs/old.md"
    assert files[1].previous_filename is None
