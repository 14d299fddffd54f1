from __future__ import annotations

from typing import List, Protocol, Sequence

from ingestion.document_models import IndexedChunk, RetrievalCandidate


class VectorStore(Protocol):
    """
    What the pipeline needs from a vector store. All calls suspend; the
    store is the only shared mutable resource in the system.
    """

    async def find_by_source_url(self, source_url: str) -> List[str]:
        """Ids of every chunk whose metadata.sourceUrl equals `source_url`."""
        ...

    async def delete_by_source_url(self, source_url: str) -> int:
        ...

    async def upsert(self, chunks: Sequence[IndexedChunk]) -> int:
        ...

    async def nearest_neighbors(
        self, embedding: Sequence[float], threshold: float, limit: int
    ) -> List[RetrievalCandidate]:
        """Candidates with similarity >= threshold, best first."""
        ...
