from __future__ import annotations

from typing import Dict, Iterable, Optional

SOURCE_URL_KEY = "sourceUrl"


def build_where_filter(
    source_url: Optional[str] = None,
    source_urls: Optional[Iterable[str]] = None,
) -> Dict:
    """
    Construct a Chroma 'where' filter on the metadata written at index time:
      - metadata.sourceUrl (the replacement key of a document's chunks)
    """
    if source_url is not None:
        return {SOURCE_URL_KEY: {"$eq": source_url}}
    if source_urls is not None:
        return {SOURCE_URL_KEY: {"$in": list(source_urls)}}
    return {}
