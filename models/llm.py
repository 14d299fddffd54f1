from __future__ import annotations

from langchain_core.language_models import BaseLanguageModel
from langchain_ollama import OllamaLLM

from common.config import LLMConfig
from common.logger import get_logger

log = get_logger(__name__)


def load_local_llm(cfg: LLMConfig) -> BaseLanguageModel:
    """
    Load the completion model described by an `llm_*` config section.
    """
    if cfg.provider == "ollama":
        log.info("Using Ollama model %s", cfg.model_name)
        return OllamaLLM(model=cfg.model_name, temperature=cfg.temperature)
    raise ValueError(f"Unsupported provider: {cfg.provider}")
