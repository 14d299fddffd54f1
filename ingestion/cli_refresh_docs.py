from __future__ import annotations

import argparse
import asyncio

from tqdm import tqdm

from common.clients import build_content_source, build_crawl_driver
from common.errors import DocsLoreError
from common.logger import get_logger
from ingestion.crawl_driver import CrawlReport

log = get_logger(__name__)


async def run(args: argparse.Namespace) -> CrawlReport:
    async with build_content_source() as source:
        with tqdm(desc="Re-indexing documents", unit="doc") as bar:
            driver = build_crawl_driver(source, on_file_done=lambda _: bar.update(1))
            if args.command == "all":
                return await driver.reindex_all(args.root, args.ext)
            if args.command == "pr":
                return await driver.reindex_pull_request(args.number)
            return await driver.reindex_changed_files(args.paths)


def main():
    parser = argparse.ArgumentParser(
        description="Refresh the documentation vector index from the GitHub repository."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_all = sub.add_parser("all", help="Re-index everything under the docs root")
    p_all.add_argument("--root", type=str, default=None, help="Repository path to crawl")
    p_all.add_argument("--ext", type=str, default=None, help="File extension, e.g. md")

    p_pr = sub.add_parser("pr", help="Re-index docs changed in a pull request")
    p_pr.add_argument("number", type=int, help="Pull request number")

    p_file = sub.add_parser("file", help="Re-index individual files")
    p_file.add_argument("paths", nargs="+", help="Repository paths, e.g. docs/core/entity.md")

    args = parser.parse_args()

    try:
        report = asyncio.run(run(args))
    except DocsLoreError as e:
        log.error("Refresh aborted: %s", e)
        raise SystemExit(1)

    log.info(
        "Refresh complete: %d documents, %d chunks written, %d failures",
        len(report.results),
        report.chunks_written,
        len(report.failures) + sum(1 for r in report.results if not r.ok),
    )
    for path, err in report.failures.items():
        log.error("  %s: %s", path, err)
    if not report.ok:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
