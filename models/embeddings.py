from __future__ import annotations

from langchain_core.embeddings import Embeddings
from langchain_huggingface.embeddings import HuggingFaceEmbeddings

from common.config import VectorStoreConfig


def load_embeddings(cfg: VectorStoreConfig) -> Embeddings:
    # Index time and query time must share this model.
    return HuggingFaceEmbeddings(model_name=cfg.embedding_model)
