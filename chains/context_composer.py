from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ingestion.cleaners import collapse_newlines
from ingestion.document_models import RetrievalCandidate


@dataclass(frozen=True)
class ComposedContext:
    prompt_header: str
    source_urls: List[str] = field(default_factory=list)


def compose(
    candidates: Optional[Sequence[RetrievalCandidate]],
    question: str,
    char_budget: int,
    preamble: str,
) -> ComposedContext:
    """
    Fold retrieved sections into one prompt header.

    Order: preamble, the question verbatim, then each candidate's content in
    the order received. The header is cut at `char_budget` characters, possibly
    mid-sentence. Source URLs are unique, in first-seen order.
    """
    parts: List[str] = [preamble, f"Question: {question}"]
    urls: dict[str, None] = {}
    for c in candidates or ():
        parts.append(collapse_newlines(c.content))
        if c.source_url:
            urls.setdefault(c.source_url, None)

    header = " ".join(p for p in parts if p)
    return ComposedContext(prompt_header=header[:char_budget], source_urls=list(urls))
