# oneword/cli.py
"""
Command-line entry points for the batch jobs.

    oneword import-wordnet path/to/dict
    oneword enrich [--limit N] [--restart]
    oneword score [--limit N] [--all]
    oneword select --date 2024-01-01 [--days 365] [--force]

Every command prints a one-line summary and exits non-zero when the run
aborted or any item failed.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import Settings, load_settings
from .daily import select_for_range
from .db_pg import SessionLocal, create_all
from .enrichment import run_enrichment
from .errors import BatchAborted, ConfigurationError
from .importer import import_wordnet
from .schema import RunSummary
from .scoring import run_scoring

log = logging.getLogger("oneword")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="oneword", description="OneWord word pipeline")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("import-wordnet", help="parse WordNet data files and store them")
    p.add_argument("dict_dir", type=Path, help="directory holding data.noun, data.verb, ...")

    p = sub.add_parser("enrich", help="fetch frequency and syllable data")
    p.add_argument("--limit", type=int, default=None)
    p.add_argument("--restart", action="store_true", help="ignore the saved checkpoint")

    p = sub.add_parser("score", help="compute difficulty scores")
    p.add_argument("--limit", type=int, default=None)
    p.add_argument("--all", dest="rescore_all", action="store_true", help="rescore words already scored")

    p = sub.add_parser("select", help="choose daily words for a date range")
    p.add_argument("--date", default=None, help="first date, YYYY-MM-DD (default today)")
    p.add_argument("--days", type=int, default=1)
    p.add_argument("--force", action="store_true", help="replace words already chosen")
    return parser


async def run(args: argparse.Namespace, settings: Settings) -> RunSummary:
    await create_all()

    if args.command == "import-wordnet":
        return await import_wordnet(SessionLocal, args.dict_dir)
    if args.command == "enrich":
        return await run_enrichment(SessionLocal, settings=settings, limit=args.limit, restart=args.restart)
    if args.command == "score":
        return await run_scoring(SessionLocal, settings, limit=args.limit, rescore_all=args.rescore_all)

    async with SessionLocal() as session:
        _, summary = await select_for_range(
            session, args.date or settings.today(), args.days, settings, force=args.force
        )
    return summary


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(name)s] %(levelname)s %(message)s",
    )

    try:
        settings = load_settings()
    except ConfigurationError as e:
        print(f"[oneword] configuration error: {e}", file=sys.stderr)
        return 2

    try:
        summary = asyncio.run(run(args, settings))
    except BatchAborted as e:
        print(f"[oneword] {e}", file=sys.stderr)
        if e.summary is not None:
            print(e.summary.line())
        return 1
    except ValueError as e:
        print(f"[oneword] {e}", file=sys.stderr)
        return 2

    print(summary.line())
    return 1 if summary.failed or summary.aborted else 0


if __name__ == "__main__":
    sys.exit(main())
