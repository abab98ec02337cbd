"""CLI entry-point: ``python -m repwatch search "Acme"`` / ``dashboard`` / ``factcheck`` / ``translate`` / ``clear``."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from repwatch import config
from repwatch.factcheck import fact_check_post
from repwatch.llm import LLMClient
from repwatch.pipeline import run_search
from repwatch.store import PostStore
from repwatch.translate import Translator

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _emit(payload: object) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _search(keyword: str) -> None:
    keyword = keyword.strip()
    if not keyword:
        logger.error("Keyword is required")
        sys.exit(2)
    result = asyncio.run(run_search(keyword))
    _emit(result.model_dump(mode="json", by_alias=True))
    for err in result.errors:
        logger.warning("  %s", err)


def _dashboard(time_range: str) -> None:
    stats = PostStore(config.db_path()).dashboard_stats(time_range)
    if stats is None:
        logger.error("Database not configured. Set REPWATCH_DB_PATH in .env")
        sys.exit(1)
    _emit(stats.model_dump(mode="json"))


def _factcheck(post_id: str) -> None:
    store = PostStore(config.db_path())
    row = store.get_post(post_id)
    if row is None:
        logger.error("Post %s not found", post_id)
        sys.exit(1)
    result = fact_check_post(store, post_id, row.full_text)
    _emit(
        {
            **result.model_dump(mode="json"),
            "admin_response": store.get_admin_response(post_id),
        }
    )


async def _run_translate(text: str) -> str | None:
    llm = LLMClient(api_key=config.LLM_API_KEY, model=config.LLM_MODEL)
    try:
        return await Translator(llm).translate(text)
    finally:
        await llm.aclose()


def _translate(text: str) -> None:
    translated = asyncio.run(_run_translate(text))
    if translated is None:
        logger.error("Translation unavailable")
        sys.exit(1)
    print(translated)


def _clear() -> None:
    if not PostStore(config.db_path()).clear_all():
        sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="repwatch",
        description="Reputation monitoring across Twitter, Reddit, Facebook and Google News.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    sub = parser.add_subparsers(dest="command")

    # ── search ─────────────────────────────────────────────────────────
    search_parser = sub.add_parser("search", help="Fetch, score and store posts for a keyword.")
    search_parser.add_argument("keyword", help="Entity name to search for.")

    # ── dashboard ──────────────────────────────────────────────────────
    dash_parser = sub.add_parser("dashboard", help="Print aggregate stats from the store.")
    dash_parser.add_argument(
        "--range",
        dest="time_range",
        choices=["24h", "7d", "30d"],
        default="7d",
        help="Trailing window (default: 7d).",
    )

    # ── factcheck ──────────────────────────────────────────────────────
    fc_parser = sub.add_parser("factcheck", help="Show stored evidence for a post as claims.")
    fc_parser.add_argument("post_id")

    # ── translate ──────────────────────────────────────────────────────
    tr_parser = sub.add_parser("translate", help="Translate text to English.")
    tr_parser.add_argument("text")

    # ── clear ──────────────────────────────────────────────────────────
    sub.add_parser("clear", help="Delete all stored data.")

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if args.command == "search":
        _search(args.keyword)
    elif args.command == "dashboard":
        _dashboard(args.time_range)
    elif args.command == "factcheck":
        _factcheck(args.post_id)
    elif args.command == "translate":
        _translate(args.text)
    elif args.command == "clear":
        _clear()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
