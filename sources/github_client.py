from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from common.errors import ContentSourceError, RateLimitedError
from common.logger import get_logger
from sources.ratelimit import parse_rate_limit_reset, rate_limit_retry

log = get_logger(__name__)


@dataclass(frozen=True)
class RepoEntry:
    name: str
    path: str
    type: str  # "dir" | "file" | "symlink" | "submodule"


@dataclass(frozen=True)
class ChangedFile:
    filename: str
    status: str = "modified"  # "added" | "modified" | "removed" | "renamed" ...
    previous_filename: Optional[str] = None  # set for renames


def _is_rate_limited(response: httpx.Response) -> bool:
    if response.status_code == 429:
        return True
    if response.status_code != 403:
        return False
    # Secondary limits keep a non-zero remaining count and send retry-after.
    return (
        response.headers.get("x-ratelimit-remaining") == "0"
        or "retry-after" in response.headers
    )


class GitHubContentSource:
    """
    Read-only view of a GitHub repository: directory listings, file bodies
    and pull-request file lists. Every request goes through `_get`, which
    carries the rate-limit retry.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: Optional[str] = None,
        api_url: str = "https://api.github.com",
        api_version: str = "2022-11-28",
        per_page: int = 100,
        timeout: int = 30,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.owner = owner
        self.repo = repo
        self.per_page = per_page
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": api_version,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.AsyncClient(base_url=api_url, timeout=timeout)
        self._headers = headers

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GitHubContentSource":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    @rate_limit_retry()
    async def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            resp = await self._client.get(url, params=params, headers=self._headers)
        except httpx.HTTPError as e:
            raise ContentSourceError(f"GET {url} failed: {e}") from e

        if _is_rate_limited(resp):
            reset_at = parse_rate_limit_reset(resp.headers)
            if reset_at is not None:
                log.warning("Rate limited on %s until %s", url, reset_at.isoformat())
                raise RateLimitedError(reset_at, status_code=resp.status_code)
        if resp.status_code >= 400:
            raise ContentSourceError(
                f"GET {url} returned {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        return resp.json()

    def _contents_url(self, path: str) -> str:
        return f"/repos/{self.owner}/{self.repo}/contents/{path.strip('/')}"

    async def list_directory(self, path: str) -> List[RepoEntry]:
        """
        List a repository path. A file path yields a single entry, like the
        contents API itself does.
        """
        data = await self._get(self._contents_url(path))
        items = data if isinstance(data, list) else [data]
        return [
            RepoEntry(name=i.get("name", ""), path=i.get("path", ""), type=i.get("type", ""))
            for i in items
        ]

    async def get_file_content(self, path: str) -> bytes:
        data = await self._get(self._contents_url(path))
        if isinstance(data, list):
            raise ContentSourceError(f"{path} is a directory, not a file")
        encoding = data.get("encoding")
        if encoding != "base64":
            raise ContentSourceError(f"Unsupported content encoding for {path}: {encoding}")
        return base64.b64decode(data.get("content", ""))

    async def list_changed_files(self, pr_number: int) -> List[ChangedFile]:
        """All files touched by a pull request, following pagination."""
        url = f"/repos/{self.owner}/{self.repo}/pulls/{pr_number}/files"
        out: List[ChangedFile] = []
        page = 1
        while True:
            batch = await self._get(url, params={"per_page": self.per_page, "page": page})
            out.extend(
                ChangedFile(
                    filename=f["filename"],
                    status=f.get("status", "modified"),
                    previous_filename=f.get("previous_filename"),
                )
                for f in batch
            )
            if len(batch) < self.per_page:
                break
            page += 1
        log.info("Pull request #%s touches %d files", pr_number, len(out))
        return out
