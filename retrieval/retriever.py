from __future__ import annotations

from typing import List, Optional

from langchain_core.embeddings import Embeddings

from common.logger import get_logger
from ingestion.document_models import RetrievalCandidate
from vectorstore.base import VectorStore

log = get_logger(__name__)


class Retriever:
    """
    Nearest-neighbour lookup of stored sections for a question.

    The embedding model must be the one used at index time; a mismatch does
    not fail, it just returns unrelated or no candidates.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        store: VectorStore,
        match_threshold: float = 0.6,
        match_count: int = 5,
    ):
        self.embeddings = embeddings
        self.store = store
        self.match_threshold = match_threshold
        self.match_count = match_count

    async def retrieve(self, question: str) -> Optional[List[RetrievalCandidate]]:
        """
        Return candidates best-first, or None when embedding or search failed
        (the caller answers without grounding).
        """
        try:
            vector = await self.embeddings.aembed_query(question)
            found = await self.store.nearest_neighbors(
                vector, threshold=self.match_threshold, limit=self.match_count
            )
        except Exception as e:
            log.error("Retrieval failed for question %r: %s", question, e, exc_info=True)
            return None
        log.info("Found %d candidate sections for %r", len(found), question)
        return found
