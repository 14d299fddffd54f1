from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "config.yaml"


class AppConfig(BaseModel):
    cache_dir: Path = Path("data/cache")
    answers_log: str = "answers.jsonl"


class GitHubConfig(BaseModel):
    api_url: str = "https://api.github.com"
    api_version: str = "2022-11-28"
    repo_owner: str = "aframevr"
    repo_name: str = "aframe"
    docs_path: str = "docs"
    file_ext: str = "md"
    per_page: int = Field(default=100, ge=1, le=100)
    timeout: int = 30


class SectioningConfig(BaseModel):
    delimiter: str = "#"
    source_documentation_url: str = "https://aframe.io/docs/master/"
    use_front_matter_path: bool = False


class VectorStoreConfig(BaseModel):
    persist_dir: Path = Path("data/chroma")
    collection: str = "lore"
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"


class RetrievalConfig(BaseModel):
    match_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    match_count: int = Field(default=5, ge=1)
    char_budget: int = Field(default=2000, ge=1)


class AssistantConfig(BaseModel):
    topic: str = "A-Frame"
    topic_url: str = "https://aframe.io/"


class LLMConfig(BaseModel):
    provider: str = "ollama"
    model_name: str = "mistral"
    temperature: float = 0.2


class CrawlConfig(BaseModel):
    max_concurrency: int = Field(default=4, ge=1)
    skip_blank_sections: bool = False


class GlobalYAMLConfig(BaseModel):
    app: AppConfig = AppConfig()
    github: GitHubConfig = GitHubConfig()
    sectioning: SectioningConfig = SectioningConfig()
    vectorstore: VectorStoreConfig = VectorStoreConfig()
    retrieval: RetrievalConfig = RetrievalConfig()
    assistant: AssistantConfig = AssistantConfig()
    llm_qa: LLMConfig = LLMConfig()
    crawl: CrawlConfig = CrawlConfig()


def load_yaml_config(path: Path | None = None) -> GlobalYAMLConfig:
    path = path or Path(os.environ.get("DOCS_LORE_CONFIG", DEFAULT_CONFIG_PATH))
    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}
    return GlobalYAMLConfig(**raw)


class Secrets(BaseSettings):
    github_auth_token: str | None = None

    class Config:
        env_file = ".env"
        extra = "ignore"


yaml_config = load_yaml_config()
secrets = Secrets()
