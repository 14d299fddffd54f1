from __future__ import annotations

from dataclasses import dataclass
from typing import List

from langchain_core.language_models import BaseLanguageModel

from chains.context_composer import ComposedContext, compose
from chains.prompts import ANSWER_TEMPLATE
from common.logger import get_logger
from retrieval.retriever import Retriever

log = get_logger(__name__)


@dataclass(frozen=True)
class DocsAnswer:
    question: str
    answer: str
    source_urls: List[str]
    grounded: bool


class DocsAnswerer:
    """
    Retrieval-augmented answering:
      1) Retrieve the closest documentation sections
      2) Compose them with the question under a character budget
      3) Ask the QA LLM

    Retrieval failures degrade to an ungrounded answer. LLM failures are
    logged and re-raised for the top-level handler.
    """

    def __init__(
        self,
        retriever: Retriever,
        qa_llm: BaseLanguageModel,
        preamble: str,
        char_budget: int = 2000,
    ):
        self.retriever = retriever
        self.qa_llm = qa_llm
        self.preamble = preamble
        self.char_budget = char_budget

    async def build_context(self, question: str) -> ComposedContext:
        candidates = await self.retriever.retrieve(question)
        if candidates is None:
            log.warning("No grounding available for %r, answering without docs", question)
        return compose(candidates, question, self.char_budget, self.preamble)

    async def ask(self, question: str) -> DocsAnswer:
        context = await self.build_context(question)
        prompt = ANSWER_TEMPLATE.format(prompt_header=context.prompt_header)

        try:
            answer = await self.qa_llm.ainvoke(prompt)
        except Exception as e:
            log.error("QA LLM invocation failed for %r: %s", question, e, exc_info=True)
            raise

        # Chat models return a message, plain LLMs a string.
        text = getattr(answer, "content", answer)
        return DocsAnswer(
            question=question,
            answer=str(text).strip(),
            source_urls=context.source_urls,
            grounded=bool(context.source_urls),
        )
