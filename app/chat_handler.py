from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, Optional, Set

from app.answer_log import AnswerLog
from chains.answerer import DocsAnswerer
from common.logger import get_logger
from ingestion.source_locator import to_html_link

log = get_logger(__name__)

ReplySender = Callable[[str], Awaitable[None]]

DEFERRED_ACK: Dict[str, str] = {"type": "deferred"}
FAILURE_MESSAGE = "Sorry, I couldn't answer that right now. Please try again later."


@dataclass(frozen=True)
class SlashCommand:
    question: Optional[str]
    user_id: Optional[str] = None
    channel_id: Optional[str] = None


def format_reply(
    question: str, answer: str, source_urls: Iterable[str], user_id: Optional[str] = None
) -> str:
    mention = f"<@{user_id}> " if user_id else ""
    text = f"> {question}\n\n**{mention}{answer}**"
    links = [to_html_link(u) for u in source_urls]
    if links:
        text += "\n\nRelated documentation links:\n"
        text += "".join(f"- <{link}>\n" for link in links)
    return text


class SlashCommandHandler:
    """
    Transport-agnostic handler for the "ask" slash command.

    `handle` acknowledges at once; retrieval, generation, the answer log
    write and the reply run in a background task because they can outlast
    the chat platform's response deadline.
    """

    def __init__(
        self,
        answerer: DocsAnswerer,
        topic: str,
        answer_log: Optional[AnswerLog] = None,
    ):
        self.answerer = answerer
        self.topic = topic
        self.answer_log = answer_log
        self._tasks: Set[asyncio.Task] = set()

    async def handle(self, command: SlashCommand, reply: ReplySender) -> Dict[str, str]:
        task = asyncio.get_running_loop().create_task(self._complete(command, reply))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return DEFERRED_ACK

    async def drain(self) -> None:
        """Wait for in-flight background replies (tests, graceful shutdown)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _complete(self, command: SlashCommand, reply: ReplySender) -> None:
        question = (command.question or "").strip()
        if not question:
            await self._send(reply, f"How can I assist you with {self.topic}?")
            return

        try:
            result = await self.answerer.ask(question)
            content = format_reply(question, result.answer, result.source_urls, command.user_id)
        except Exception as e:
            log.error("Error processing command for %r: %s", question, e, exc_info=True)
            await self._send(reply, FAILURE_MESSAGE)
            return

        if self.answer_log is not None:
            try:
                await self.answer_log.record(result, user_id=command.user_id)
            except Exception as e:
                log.error("Failed to record answer for %r: %s", question, e, exc_info=True)
        await self._send(reply, content)

    async def _send(self, reply: ReplySender, content: str) -> None:
        try:
            await reply(content)
        except Exception as e:
            log.error("Failed to deliver reply: %s", e, exc_info=True)
