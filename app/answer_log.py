from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path

import orjson

from chains.answerer import DocsAnswer


class AnswerLog:
    """Append-only JSON-lines record of answered questions (for audit/debug)."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _append(self, line: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("ab") as f:
            f.write(line)

    async def record(self, answer: DocsAnswer, user_id: str | None = None) -> None:
        entry = {
            "at": datetime.now(timezone.utc),
            "user_id": user_id,
            "question": answer.question,
            "answer": answer.answer,
            "source_urls": answer.source_urls,
            "grounded": answer.grounded,
        }
        await asyncio.to_thread(self._append, orjson.dumps(entry) + b"\n")

    def read_all(self) -> list[dict]:
        if not self.path.exists():
            return []
        return [orjson.loads(line) for line in self.path.read_bytes().splitlines() if line]
