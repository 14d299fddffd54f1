from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from common.errors import ContentSourceError, RepositoryPathError
from common.logger import get_logger
from ingestion.document_models import Document
from ingestion.reindexer import Reindexer, ReindexResult
from ingestion.sectionizer import sectionize
from ingestion.source_locator import SourceLocator
from sources.github_client import ChangedFile, RepoEntry

log = get_logger(__name__)


class ContentSource(Protocol):
    async def list_directory(self, path: str) -> List[RepoEntry]: ...

    async def get_file_content(self, path: str) -> bytes: ...

    async def list_changed_files(self, pr_number: int) -> List[ChangedFile]: ...


@dataclass
class CrawlSettings:
    docs_path: str = "docs"
    file_ext: str = "md"
    delimiter: str = "#"
    max_concurrency: int = 4
    skip_blank_sections: bool = False


@dataclass
class CrawlReport:
    results: List[ReindexResult] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)  # path -> error

    @property
    def ok(self) -> bool:
        return not self.failures and all(r.ok for r in self.results)

    @property
    def chunks_written(self) -> int:
        return sum(r.inserted for r in self.results)

    def merge(self, other: "CrawlReport") -> None:
        self.results.extend(other.results)
        self.failures.update(other.failures)


def _has_ext(path: str, file_ext: str) -> bool:
    return path.lower().endswith(f".{file_ext.lstrip('.').lower()}")


def _dedupe(paths: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(paths))


class CrawlDriver:
    """
    Walks the documentation tree (or a change list) and pushes every matched
    file through sectionize -> locate -> re-index.
    """

    def __init__(
        self,
        source: ContentSource,
        reindexer: Reindexer,
        locator: SourceLocator,
        settings: CrawlSettings | None = None,
        on_file_done: Optional[Callable[[str], None]] = None,
    ):
        self.source = source
        self.reindexer = reindexer
        self.locator = locator
        self.settings = settings or CrawlSettings()
        self.on_file_done = on_file_done

    async def reindex_file(self, path: str) -> ReindexResult:
        """Fetch one document and replace its chunks."""
        raw = await self.source.get_file_content(path)
        document = Document(
            path=path,
            raw_content=raw.decode("utf-8"),
            extension=path.rsplit(".", 1)[-1] if "." in path else "",
        )
        sectionized = sectionize(document.raw_content, self.settings.delimiter)
        source_url = self.locator.locate(document.path, sectionized)
        log.info(
            "Processing %s -> %s (%d sections)",
            document.path,
            source_url,
            len(sectionized.sections),
        )
        return await self.reindexer.reindex(
            sectionized.sections,
            source_url,
            skip_blank=self.settings.skip_blank_sections,
        )

    async def reindex_all(
        self, root_path: Optional[str] = None, file_extension: Optional[str] = None
    ) -> CrawlReport:
        """
        Re-index every document under `root_path`. Top-level files are taken
        as-is; directories are walked breadth-first and filtered by extension.
        Raises RepositoryPathError for entries that are neither.
        """
        root_path = root_path or self.settings.docs_path
        file_ext = file_extension or self.settings.file_ext

        try:
            entries = await self.source.list_directory(root_path)
        except ContentSourceError as e:
            if e.status_code == 404:
                raise RepositoryPathError(root_path) from e
            raise
        files: List[str] = []
        pending: deque[str] = deque()
        for entry in entries:
            if entry.type == "dir":
                pending.append(entry.path)
            elif entry.type == "file":
                files.append(entry.path)
            else:
                raise RepositoryPathError(entry.path or root_path, entry.type)

        while pending:
            directory = pending.popleft()
            log.info("Listing directory %s", directory)
            for entry in await self.source.list_directory(directory):
                if entry.type == "dir":
                    pending.append(entry.path)
                elif entry.type == "file" and _has_ext(entry.name, file_ext):
                    files.append(entry.path)
                elif entry.type not in ("dir", "file"):
                    log.warning("Skipping %s entry %s", entry.type, entry.path)

        log.info("Discovered %d documents under %s", len(files), root_path)
        return await self._process(files)

    async def reindex_changed_files(self, changed_paths: Iterable[str]) -> CrawlReport:
        """Re-index an explicit list of files; directories are not expanded."""
        return await self._process(changed_paths)

    async def reindex_pull_request(self, pr_number: int) -> CrawlReport:
        """
        Refresh the documents a pull request touched. Files removed by the PR,
        and the old path of renamed files, have their chunks purged instead.
        """
        prefix = f"{self.settings.docs_path.strip('/')}/"

        def is_doc(path: Optional[str]) -> bool:
            return bool(path) and path.startswith(prefix) and _has_ext(
                path, self.settings.file_ext
            )

        changed = await self.source.list_changed_files(pr_number)
        stale = [
            f.filename for f in changed if f.status == "removed" and is_doc(f.filename)
        ]
        stale += [
            f.previous_filename
            for f in changed
            if f.status == "renamed" and is_doc(f.previous_filename)
        ]
        updated = [
            f.filename for f in changed if f.status != "removed" and is_doc(f.filename)
        ]

        report = CrawlReport()
        for path in _dedupe(stale):
            report.results.append(await self.reindexer.purge(self.locator.locate(path)))
        report.merge(await self.reindex_changed_files(updated))
        return report

    async def _process(self, paths: Iterable[str]) -> CrawlReport:
        report = CrawlReport()
        semaphore = asyncio.Semaphore(self.settings.max_concurrency)

        async def run(path: str) -> None:
            async with semaphore:
                try:
                    report.results.append(await self.reindex_file(path))
                except Exception as e:
                    log.error("Failed to re-index %s: %s", path, e, exc_info=True)
                    report.failures[path] = str(e)
                finally:
                    if self.on_file_done is not None:
                        self.on_file_done(path)

        await asyncio.gather(*(run(p) for p in _dedupe(paths)))
        return report
