from __future__ import annotations

import argparse
import asyncio

from chains.answerer import DocsAnswer
from common.clients import build_answerer
from common.logger import get_logger
from ingestion.source_locator import to_html_link

log = get_logger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Ask a question grounded in the indexed documentation."
    )
    parser.add_argument(
        "--show_context",
        action="store_true",
        help="Print the composed prompt header instead of calling the LLM",
    )
    parser.add_argument("question", type=str, help="Your question")
    args = parser.parse_args()

    answerer = build_answerer()

    if args.show_context:
        context = asyncio.run(answerer.build_context(args.question))
        print(context.prompt_header)
        for url in context.source_urls:
            print(f"- {url}")
        return

    try:
        result: DocsAnswer = asyncio.run(answerer.ask(args.question))
    except Exception:
        log.error("Could not produce an answer.")
        raise SystemExit(1)

    print("\n=== ANSWER ===\n")
    print(result.answer)

    if result.source_urls:
        print("\n=== SOURCES ===\n")
        for url in result.source_urls:
            print(f"- {to_html_link(url)}")


if __name__ == "__main__":
    main()
