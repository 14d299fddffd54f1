from __future__ import annotations

import asyncio

import streamlit as st

from common.clients import build_content_source, build_crawl_driver
from common.errors import DocsLoreError
from ingestion.crawl_driver import CrawlReport


async def _refresh(mode: str, value: str) -> CrawlReport:
    async with build_content_source() as source:
        driver = build_crawl_driver(source)
        if mode == "all":
            return await driver.reindex_all()
        if mode == "pr":
            return await driver.reindex_pull_request(int(value))
        return await driver.reindex_changed_files([value])


def render_refresh_section():
    st.subheader("Refresh the index")
    st.write("Re-index documentation after it changes in the repository.")

    mode = st.radio(
        "What to refresh",
        options=["all", "pr", "file"],
        format_func={
            "all": "Everything under the docs root",
            "pr": "Files changed in a pull request",
            "file": "A single file",
        }.get,
        horizontal=True,
    )
    value = ""
    if mode == "pr":
        value = st.text_input("Pull request number")
    elif mode == "file":
        value = st.text_input("Repository path", placeholder="docs/core/entity.md")

    disabled = mode != "all" and not value.strip()
    if st.button("Run refresh", type="primary", disabled=disabled):
        if mode == "pr" and not value.strip().isdigit():
            st.error("Pull request number must be an integer.")
            return
        with st.spinner("Re-indexing documentation..."):
            try:
                report = asyncio.run(_refresh(mode, value.strip()))
            except DocsLoreError as e:
                st.error(f"Refresh aborted: {e}")
                return

        st.success(
            f"Processed {len(report.results)} documents, "
            f"{report.chunks_written} chunks written."
        )
        failed = [r for r in report.results if not r.ok]
        if report.failures or failed:
            st.warning("Some documents could not be fully indexed:")
            for path, err in report.failures.items():
                st.markdown(f"- `{path}`: {err}")
            for r in failed:
                st.markdown(f"- {r.source_url}: sections {r.failed_sections} {r.error or ''}")
