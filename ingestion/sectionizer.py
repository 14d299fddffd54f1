from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Tuple

from common.logger import get_logger
from ingestion.document_models import SectionizedDocument

log = get_logger(__name__)

FRONT_MATTER_RE = re.compile(r"\A---\r?\n(.+?)\r?\n---[ \t]*(?=\r?\n|\Z)", re.DOTALL)
SOURCE_CODE_RE = re.compile(r"source_code:\s*src/(.+)")
SCRIPT_EXT_RE = re.compile(r"\.(?:js|mjs|cjs|jsx|ts|tsx)$")


@lru_cache(maxsize=16)
def _boundary_pattern(delimiter: str) -> re.Pattern:
    # One or more newlines, one or more repetitions of the delimiter, then whitespace.
    return re.compile(r"\n+(?:" + re.escape(delimiter) + r")+\s+")


def split_front_matter(document_content: str) -> Tuple[str | None, str]:
    """
    Return (front_matter_body, remaining_content). The front-matter only
    counts when the document starts with it.
    """
    match = FRONT_MATTER_RE.match(document_content)
    if not match:
        return None, document_content
    return match.group(1), document_content[match.end() :]


def parse_url_path(front_matter: str) -> str:
    """
    Pull `source_code: src/<path>` out of a front-matter block and drop the
    script extension, e.g. `src/components/foo.js` -> `components/foo`.
    """
    match = SOURCE_CODE_RE.search(front_matter.strip())
    if not match or not match.group(1).strip():
        log.warning(
            "Unable to extract source code URL from front-matter: %r", front_matter
        )
        return ""
    return SCRIPT_EXT_RE.sub("", match.group(1).strip())


def sectionize(document_content: str, delimiter: str) -> SectionizedDocument:
    """
    Split a Markdown document into heading-delimited sections.

    The front-matter block is removed first. The leading element (whatever
    precedes the first heading, often empty) is kept; callers that need
    non-empty sections filter explicitly.
    """
    if not delimiter:
        raise ValueError("delimiter must be a non-empty string")

    front_matter, body = split_front_matter(document_content)
    url_path = parse_url_path(front_matter) if front_matter is not None else ""
    sections = _boundary_pattern(delimiter).split(body)
    return SectionizedDocument(sections=sections, url_path=url_path)


def join_sections(sections: Iterable[str], delimiter: str) -> str:
    """Inverse of `sectionize` for documents using single-newline headings."""
    return f"\n{delimiter} ".join(sections)

