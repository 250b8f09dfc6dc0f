#!/usr/bin/env python3
"""crosspost: publish site articles to Dev.to and Hashnode.

Usage:
    python main.py content/posts/a.md content/posts/b.md
    python main.py --backend devto content/posts/a.md
    python main.py --concurrent --fail-on-error $(git diff --name-only HEAD~1)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace

from config import Config
from pipeline.sync import SyncOrchestrator, SyncReport
from publisher.backends import BACKENDS, build_backends

logger = logging.getLogger("crosspost")


async def run_sync(
    cfg: Config,
    paths: list[str],
    backend_names: list[str] | None = None,
    concurrent: bool = False,
) -> SyncReport:
    """Publish *paths* to the selected backends and return the run report."""
    orchestrator = SyncOrchestrator(
        build_backends(cfg, backend_names),
        base_url=cfg.base_url,
        extension=cfg.article_extension,
        concurrent=concurrent,
    )
    try:
        return await orchestrator.run(paths)
    finally:
        await orchestrator.close()


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _setup_logging(cfg: Config) -> None:
    log_dir = cfg.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers: list[logging.Handler] = [
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(log_dir / "crosspost.log"),
    ]
    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crosspost",
        description="Cross-post site articles to external blogging platforms",
    )
    parser.add_argument(
        "files", nargs="*",
        help="Article source files (non-.md paths are ignored)",
    )
    parser.add_argument(
        "--backend", action="append", choices=sorted(BACKENDS), default=None,
        help="Only publish to this backend (repeatable; default: all)",
    )
    parser.add_argument(
        "--base-url", type=str, default=None,
        help="Site root for canonical URLs (overrides SITE_BASE_URL)",
    )
    parser.add_argument(
        "--concurrent", action="store_true",
        help="Publish each article to all backends concurrently",
    )
    parser.add_argument(
        "--fail-on-error", action="store_true",
        help="Exit with status 1 if any file or backend attempt failed",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    cfg = Config.from_env()

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.base_url:
        cfg = replace(cfg, base_url=args.base_url)
    _setup_logging(cfg)
    logger.info("Cross-posting %d path(s) to %s", len(args.files), ", ".join(args.backend or BACKENDS))

    report = asyncio.run(
        run_sync(cfg, args.files, backend_names=args.backend, concurrent=args.concurrent)
    )
    if args.fail_on_error and not report.ok:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
