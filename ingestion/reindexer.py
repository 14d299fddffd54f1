from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from langchain_core.embeddings import Embeddings
from tenacity import retry, stop_after_attempt, wait_exponential

from common.logger import get_logger
from ingestion.cleaners import collapse_newlines
from ingestion.document_models import IndexedChunk, Section
from ingestion.keyed_lock import KeyedLock
from vectorstore.base import VectorStore

log = get_logger(__name__)


def chunk_id(source_url: str, section_index: int) -> str:
    return hashlib.sha1(f"{source_url}::{section_index}".encode("utf-8")).hexdigest()


def _to_sections(
    texts: Sequence[str], source_url: str, skip_blank: bool
) -> List[Section]:
    # Ordinal indices follow the sectionizer output even when blanks are skipped.
    return [
        Section(text=t, ordinal_index=i, source_url=source_url)
        for i, t in enumerate(texts)
        if not (skip_blank and not t.strip())
    ]


@dataclass
class ReindexResult:
    source_url: str
    deleted: int = 0
    inserted: int = 0
    failed_sections: List[int] = field(default_factory=list)
    error: Optional[str] = None  # set when the delete step failed

    @property
    def ok(self) -> bool:
        return self.error is None and not self.failed_sections


class Reindexer:
    """
    Replaces every stored chunk of one document with a fresh generation.

    Work on the same sourceUrl is serialized through a KeyedLock, so two
    overlapping refreshes cannot interleave their delete and insert steps.
    """

    def __init__(
        self,
        store: VectorStore,
        embeddings: Embeddings,
        locks: KeyedLock | None = None,
    ):
        self.store = store
        self.embeddings = embeddings
        self.locks = locks or KeyedLock()

    async def reindex(
        self, sections: Sequence[str], source_url: str, skip_blank: bool = False
    ) -> ReindexResult:
        result = ReindexResult(source_url=source_url)
        async with self.locks.acquire(source_url):
            try:
                existing = await self.store.find_by_source_url(source_url)
                if existing:
                    result.deleted = await self.store.delete_by_source_url(source_url)
            except Exception as e:
                log.error(
                    "Delete failed for %s, leaving document untouched: %s",
                    source_url,
                    e,
                    exc_info=True,
                )
                result.error = f"delete failed: {e}"
                return result

            for section in _to_sections(sections, source_url, skip_blank):
                try:
                    await self._insert_section(section)
                    result.inserted += 1
                except Exception as e:
                    log.error(
                        "Failed to index section %d of %s: %s",
                        section.ordinal_index,
                        source_url,
                        e,
                        exc_info=True,
                    )
                    result.failed_sections.append(section.ordinal_index)

        log.info(
            "Re-indexed %s: deleted=%d inserted=%d failed=%d",
            source_url,
            result.deleted,
            result.inserted,
            len(result.failed_sections),
        )
        return result

    async def purge(self, source_url: str) -> ReindexResult:
        """Drop every chunk of a document that no longer exists."""
        return await self.reindex([], source_url)

    async def _insert_section(self, section: Section) -> None:
        vector = await self.embeddings.aembed_query(collapse_newlines(section.text))
        chunk = IndexedChunk(
            chunk_id=chunk_id(section.source_url, section.ordinal_index),
            content=section.text,
            embedding=vector,
            metadata={
                "sourceUrl": section.source_url,
                "sectionIndex": section.ordinal_index,
            },
        )
        await self._upsert_with_retry(chunk)

    @retry(
        reraise=True,
        wait=wait_exponential(multiplier=1, min=1, max=8),
        stop=stop_after_attempt(3),
    )
    async def _upsert_with_retry(self, chunk: IndexedChunk) -> int:
        """
        Retry wrapper around store upserts with exponential backoff.
        """
        return await self.store.upsert([chunk])
