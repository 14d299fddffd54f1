from __future__ import annotations

import asyncio

import streamlit as st

from common.clients import build_answerer, get_answer_log
from ingestion.source_locator import to_html_link


def render_ask_section():
    st.subheader("Ask a Question")

    question = st.text_input("Enter your question:")
    ask_button = st.button("Get Answer", type="primary", disabled=not question.strip())

    if ask_button:
        with st.spinner("Retrieving + reasoning..."):
            try:
                result = asyncio.run(build_answerer().ask(question.strip()))
                asyncio.run(get_answer_log().record(result, user_id="streamlit"))
            except Exception:
                st.error("Sorry, I couldn't answer that right now. Please try again later.")
                return

        st.markdown("### 🧩 Answer")
        st.write(result.answer)

        st.markdown("### 📑 Related documentation")
        if result.source_urls:
            for url in result.source_urls:
                link = to_html_link(url)
                st.markdown(f"- [{link}]({link})")
        else:
            st.info("No documentation sections matched; this answer is ungrounded.")
