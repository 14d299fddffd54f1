from __future__ import annotations

import asyncio
import math
from typing import Dict, Iterable, List, Optional, Sequence, Union

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding, Embeddings

from common.errors import ContentSourceError
from ingestion.document_models import IndexedChunk, RetrievalCandidate
from sources.github_client import ChangedFile, RepoEntry


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(y * y for y in b))
    if not na or not nb:
        return 0.0
    return dot / (na * nb)


class InMemoryVectorStore:
    """Dict-backed VectorStore; every call yields to the loop like real I/O."""

    def __init__(self) -> None:
        self.chunks: Dict[str, IndexedChunk] = {}
        self.calls: List[str] = []

    async def find_by_source_url(self, source_url: str) -> List[str]:
        await asyncio.sleep(0)
        self.calls.append("find")
        return [cid for cid, c in self.chunks.items() if c.source_url == source_url]

    async def delete_by_source_url(self, source_url: str) -> int:
        await asyncio.sleep(0)
        self.calls.append("delete")
        ids = [cid for cid, c in self.chunks.items() if c.source_url == source_url]
        for cid in ids:
            del self.chunks[cid]
        return len(ids)

    async def upsert(self, chunks: Sequence[IndexedChunk]) -> int:
        await asyncio.sleep(0)
        self.calls.append("upsert")
        for c in chunks:
            self.chunks[c.chunk_id] = c
        return len(chunks)

    async def nearest_neighbors(
        self, embedding: Sequence[float], threshold: float, limit: int
    ) -> List[RetrievalCandidate]:
        await asyncio.sleep(0)
        scored = [
            RetrievalCandidate(c.content, c.source_url, _cosine(embedding, c.embedding))
            for c in self.chunks.values()
        ]
        scored = [s for s in scored if s.similarity >= threshold]
        scored.sort(key=lambda s: s.similarity, reverse=True)
        return scored[:limit]

    def contents_for(self, source_url: str) -> List[str]:
        chunks = [c for c in self.chunks.values() if c.source_url == source_url]
        chunks.sort(key=lambda c: c.metadata["sectionIndex"])
        return [c.content for c in chunks]


class FlakyEmbeddings(Embeddings):
    """Deterministic embeddings that fail for any text containing `poison`."""

    def __init__(self, poison: str = "BOOM", size: int = 16):
        self.poison = poison
        self._inner = DeterministicFakeEmbedding(size=size)

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        return [self.embed_query(t) for t in texts]

    def embed_query(self, text: str) -> List[float]:
        if self.poison in text:
            raise RuntimeError("embedding service unavailable")
        return self._inner.embed_query(text)


class FakeContentSource:
    def __init__(
        self,
        tree: Dict[str, List[RepoEntry]],
        files: Dict[str, Union[str, bytes]],
        changed: Optional[Dict[int, List[ChangedFile]]] = None,
        broken: Iterable[str] = (),
    ):
        self.tree = tree
        self.files = files
        self.changed = changed or {}
        self.broken = set(broken)
        self.fetched: List[str] = []

    async def __aenter__(self) -> "FakeContentSource":
        return self

    async def __aexit__(self, *exc) -> None:
        return None

    async def list_directory(self, path: str) -> List[RepoEntry]:
        await asyncio.sleep(0)
        if path in self.tree:
            return list(self.tree[path])
        if path in self.files:
            return [RepoEntry(name=path.rsplit("/", 1)[-1], path=path, type="file")]
        raise ContentSourceError(f"{path} not found", status_code=404)

    async def get_file_content(self, path: str) -> bytes:
        await asyncio.sleep(0)
        self.fetched.append(path)
        if path in self.broken:
            raise ContentSourceError(f"GET {path} returned 500", status_code=500)
        body = self.files[path.lstrip("/")]
        return body if isinstance(body, bytes) else body.encode("utf-8")

    async def list_changed_files(self, pr_number: int) -> List[ChangedFile]:
        await asyncio.sleep(0)
        return list(self.changed.get(pr_number, []))


def file_entry(path: str) -> RepoEntry:
    return RepoEntry(name=path.rsplit("/", 1)[-1], path=path, type="file")


def dir_entry(path: str) -> RepoEntry:
    return RepoEntry(name=path.rsplit("/", 1)[-1], path=path, type="dir")


@pytest.fixture
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def embeddings() -> DeterministicFakeEmbedding:
    return DeterministicFakeEmbedding(size=16)
