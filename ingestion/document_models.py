from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class Document:
    path: str  # repository path, e.g. docs/components/camera.md
    raw_content: str  # decoded UTF-8 text
    extension: str  # without the leading dot


@dataclass(frozen=True)
class Section:
    text: str
    ordinal_index: int
    source_url: str


@dataclass(frozen=True)
class SectionizedDocument:
    sections: List[str]
    url_path: str = ""  # from the front-matter source_code field


@dataclass
class IndexedChunk:
    chunk_id: str
    content: str  # original section text, newlines preserved
    embedding: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)  # {"sourceUrl": ..., "sectionIndex": ...}

    @property
    def source_url(self) -> str:
        return self.metadata.get("sourceUrl", "")


@dataclass(frozen=True)
class RetrievalCandidate:
    content: str
    source_url: str
    similarity: float
