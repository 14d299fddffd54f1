from __future__ import annotations

import streamlit as st
from components.ask_section import render_ask_section
from components.refresh_section import render_refresh_section

from common.config import yaml_config

st.set_page_config(page_title="Docs Lore", layout="wide")

st.markdown(
    """
    <style>
    .big-title { font-size:2rem; font-weight:700; margin-bottom:1rem; }
    </style>
    """,
    unsafe_allow_html=True,
)

st.markdown(
    f"<p class='big-title'>📚 {yaml_config.assistant.topic} docs assistant</p>",
    unsafe_allow_html=True,
)
st.caption("Documentation sections indexed from GitHub | grounded answers with citations")

# --- Sidebar ---
gh = yaml_config.github
st.sidebar.title("Index")
st.sidebar.markdown("**Repository:**")
st.sidebar.text(f"{gh.repo_owner}/{gh.repo_name}/{gh.docs_path}")
st.sidebar.markdown("**Collection:**")
st.sidebar.text(yaml_config.vectorstore.collection)
st.sidebar.divider()
st.sidebar.caption(f"Embedding model: {yaml_config.vectorstore.embedding_model}")
st.sidebar.caption(
    f"Match threshold {yaml_config.retrieval.match_threshold} | "
    f"top {yaml_config.retrieval.match_count} | "
    f"{yaml_config.retrieval.char_budget} chars"
)

# --- Tabs ---
tab_refresh, tab_ask = st.tabs(["🔄 Refresh docs", "💬 Ask a Question"])

with tab_refresh:
    render_refresh_section()

with tab_ask:
    render_ask_section()
