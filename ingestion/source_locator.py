from __future__ import annotations

import re

from ingestion.document_models import SectionizedDocument

MD_SUFFIX_RE = re.compile(r"\.md(?=$|[#?])")


def resolve_source_url(
    document_path: str, base_url: str, path_prefix_to_strip: str = ""
) -> str:
    """
    Build the citable URL for a repository document. This string is the
    identity every stored chunk of the document is keyed on.

    >>> resolve_source_url("docs/core/entity.md", "https://aframe.io/docs/master/", "docs/")
    'https://aframe.io/docs/master/core/entity.md'
    """
    path = document_path.lstrip("/")
    if path_prefix_to_strip and path.startswith(path_prefix_to_strip):
        path = path[len(path_prefix_to_strip) :]
    return base_url + path


def docs_root_prefix(docs_path: str) -> str:
    """`docs` -> `docs/`; the prefix stripped from every document path."""
    docs_path = docs_path.strip("/")
    return f"{docs_path}/" if docs_path else ""


def to_html_link(source_url: str) -> str:
    """Published docs are rendered to HTML; cite those instead of the .md source."""
    return MD_SUFFIX_RE.sub(".html", source_url)


class SourceLocator:
    def __init__(
        self,
        base_url: str,
        path_prefix_to_strip: str,
        use_front_matter_path: bool = False,
    ):
        self.base_url = base_url
        self.path_prefix_to_strip = path_prefix_to_strip
        self.use_front_matter_path = use_front_matter_path

    def locate(
        self, document_path: str, sectionized: SectionizedDocument | None = None
    ) -> str:
        if self.use_front_matter_path and sectionized and sectionized.url_path:
            return self.base_url + sectionized.url_path
        return resolve_source_url(
            document_path, self.base_url, self.path_prefix_to_strip
        )
