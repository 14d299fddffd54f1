"""
Composition root: builds the shared client handles once per process and wires
them into the pipeline objects. Nothing below this module reads config or
creates clients on its own.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Callable, Optional

from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseLanguageModel

from app.answer_log import AnswerLog
from app.chat_handler import SlashCommandHandler
from chains.answerer import DocsAnswerer
from chains.prompts import build_preamble
from common.config import GlobalYAMLConfig, secrets, yaml_config
from ingestion.crawl_driver import CrawlDriver, CrawlSettings
from ingestion.keyed_lock import KeyedLock
from ingestion.reindexer import Reindexer
from ingestion.source_locator import SourceLocator, docs_root_prefix
from models.embeddings import load_embeddings
from models.llm import load_local_llm
from retrieval.retriever import Retriever
from sources.github_client import GitHubContentSource
from vectorstore.chroma_store import ChromaStore


@lru_cache(maxsize=1)
def get_store() -> ChromaStore:
    cfg = yaml_config.vectorstore
    cfg.persist_dir.mkdir(parents=True, exist_ok=True)
    return ChromaStore(persist_dir=cfg.persist_dir, collection_name=cfg.collection)


@lru_cache(maxsize=1)
def get_embeddings() -> Embeddings:
    return load_embeddings(yaml_config.vectorstore)


@lru_cache(maxsize=1)
def get_qa_llm() -> BaseLanguageModel:
    return load_local_llm(yaml_config.llm_qa)


@lru_cache(maxsize=1)
def get_reindex_locks() -> KeyedLock:
    return KeyedLock()


def build_content_source(cfg: GlobalYAMLConfig = yaml_config) -> GitHubContentSource:
    # httpx clients are bound to the event loop that uses them, so callers own
    # and close this one.
    gh = cfg.github
    return GitHubContentSource(
        owner=gh.repo_owner,
        repo=gh.repo_name,
        token=secrets.github_auth_token,
        api_url=gh.api_url,
        api_version=gh.api_version,
        per_page=gh.per_page,
        timeout=gh.timeout,
    )


def build_crawl_driver(
    source: GitHubContentSource,
    cfg: GlobalYAMLConfig = yaml_config,
    on_file_done: Optional[Callable[[str], None]] = None,
) -> CrawlDriver:
    reindexer = Reindexer(get_store(), get_embeddings(), get_reindex_locks())
    locator = SourceLocator(
        base_url=cfg.sectioning.source_documentation_url,
        path_prefix_to_strip=docs_root_prefix(cfg.github.docs_path),
        use_front_matter_path=cfg.sectioning.use_front_matter_path,
    )
    settings = CrawlSettings(
        docs_path=cfg.github.docs_path,
        file_ext=cfg.github.file_ext,
        delimiter=cfg.sectioning.delimiter,
        max_concurrency=cfg.crawl.max_concurrency,
        skip_blank_sections=cfg.crawl.skip_blank_sections,
    )
    return CrawlDriver(source, reindexer, locator, settings, on_file_done=on_file_done)


def build_answerer(cfg: GlobalYAMLConfig = yaml_config) -> DocsAnswerer:
    retriever = Retriever(
        get_embeddings(),
        get_store(),
        match_threshold=cfg.retrieval.match_threshold,
        match_count=cfg.retrieval.match_count,
    )
    return DocsAnswerer(
        retriever,
        get_qa_llm(),
        preamble=build_preamble(cfg.assistant.topic, cfg.assistant.topic_url),
        char_budget=cfg.retrieval.char_budget,
    )


@lru_cache(maxsize=1)
def get_answer_log() -> AnswerLog:
    return AnswerLog(yaml_config.app.cache_dir / yaml_config.app.answers_log)


def build_chat_handler(cfg: GlobalYAMLConfig = yaml_config) -> SlashCommandHandler:
    """Entry point for a chat transport: wire its slash command to `handle`."""
    return SlashCommandHandler(
        build_answerer(cfg), topic=cfg.assistant.topic, answer_log=get_answer_log()
    )
