from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Sequence

from langchain_chroma.vectorstores import Chroma

from common.logger import get_logger
from ingestion.document_models import IndexedChunk, RetrievalCandidate
from retrieval.filters import SOURCE_URL_KEY, build_where_filter

log = get_logger(__name__)


class ChromaStore:
    def __init__(self, persist_dir: Path | str, collection_name: str = "lore"):
        """
        Chroma-backed chunk store. Embeddings are computed by the caller, so
        no embedding function is attached to the collection.
        """
        self.persist_dir = str(persist_dir)
        self.collection_name = collection_name
        self._db = Chroma(
            collection_name=self.collection_name,
            persist_directory=self.persist_dir,
            collection_metadata={"hnsw:space": "cosine"},
        )

    @property
    def db(self) -> Chroma:
        return self._db

    async def find_by_source_url(self, source_url: str) -> List[str]:
        res = await asyncio.to_thread(
            self._db.get,
            where=build_where_filter(source_url=source_url),
            include=["metadatas"],
        )
        return list(res.get("ids", []))

    async def delete_by_source_url(self, source_url: str) -> int:
        """
        Delete all chunks whose metadata.sourceUrl matches the given string.
        """
        ids = await self.find_by_source_url(source_url)
        if ids:
            await asyncio.to_thread(
                self._db._collection.delete,
                where=build_where_filter(source_url=source_url),
            )
        log.info("Deleted %d chunks for source '%s'", len(ids), source_url)
        return len(ids)

    async def upsert(self, chunks: Sequence[IndexedChunk]) -> int:
        ids: List[str] = []
        documents: List[str] = []
        embeddings: List[List[float]] = []
        metadatas: List[Dict[str, Any]] = []

        for c in chunks:
            ids.append(c.chunk_id)
            documents.append(c.content)
            embeddings.append(list(c.embedding))
            metadatas.append(dict(c.metadata))

        if not ids:
            return 0

        await asyncio.to_thread(
            self._db._collection.upsert,
            ids=ids,
            embeddings=embeddings,
            documents=documents,
            metadatas=metadatas,
        )
        log.debug(
            "Upserted %d chunks into collection '%s'", len(ids), self.collection_name
        )
        return len(ids)

    async def nearest_neighbors(
        self, embedding: Sequence[float], threshold: float, limit: int
    ) -> List[RetrievalCandidate]:
        """
        Cosine space: Chroma reports distance, similarity is 1 - distance.
        """
        hits = await asyncio.to_thread(
            self._db.similarity_search_by_vector_with_relevance_scores,
            list(embedding),
            k=limit,
        )
        out: List[RetrievalCandidate] = []
        for doc, distance in hits:
            similarity = 1.0 - float(distance)
            if similarity < threshold:
                continue
            out.append(
                RetrievalCandidate(
                    content=doc.page_content,
                    source_url=doc.metadata.get(SOURCE_URL_KEY, ""),
                    similarity=similarity,
                )
            )
        return out
