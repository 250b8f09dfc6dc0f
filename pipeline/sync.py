"""Sync orchestrator.

Takes article source paths, skips what should not be published, and hands
each article to every active backend. Failures stay with the file or
backend they happened in; nothing aborts the rest of the run.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from publisher.article import ARTICLE_EXTENSION, Article, ArticleError, load_article
from publisher.backends.base import FAILED, Backend, PublishResult
from publisher.identity import CanonicalIdentity, resolve_identity

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """What happened during one run, per file and per backend."""

    results: dict[str, list[PublishResult]] = field(default_factory=dict)
    drafts: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    failed_files: list[str] = field(default_factory=list)

    @property
    def failures(self) -> list[tuple[str, PublishResult]]:
        return [
            (path, result)
            for path, results in self.results.items()
            for result in results
            if not result.ok
        ]

    @property
    def ok(self) -> bool:
        return not self.failed_files and not self.failures

    def summary(self) -> str:
        attempts = sum(len(r) for r in self.results.values())
        return (
            f"{len(self.results)} article(s) processed, {attempts} backend attempt(s), "
            f"{len(self.failures)} failed; {len(self.drafts)} draft(s) skipped, "
            f"{len(self.missing)} missing, {len(self.failed_files)} unreadable"
        )


class SyncOrchestrator:
    """Drive every backend for every article.

    Parameters
    ----------
    backends:
        Backend adapters, attempted in this order.
    base_url:
        Site root used to build canonical URLs.
    extension:
        Only paths with this suffix are treated as articles.
    concurrent:
        Publish one article to all backends at once instead of in sequence.
    """

    def __init__(
        self,
        backends: Iterable[Backend],
        base_url: str,
        extension: str = ARTICLE_EXTENSION,
        concurrent: bool = False,
    ) -> None:
        self.backends = list(backends)
        self.base_url = base_url
        self.extension = extension
        self.concurrent = concurrent

    def active_backends(self) -> list[Backend]:
        return [b for b in self.backends if not b.skip()]

    async def close(self) -> None:
        for backend in self.backends:
            await backend.close()

    async def _publish_one(
        self, backend: Backend, article: Article, identity: CanonicalIdentity
    ) -> PublishResult:
        try:
            return await backend.publish(article, identity, article.publish_date)
        except Exception as exc:
            logger.exception("%s: unexpected error publishing %s", backend.name, article.title)
            return PublishResult(backend.name, FAILED, error=str(exc))

    async def publish_article(self, article: Article, backends: list[Backend]) -> list[PublishResult]:
        """Publish a loaded, non-draft article to *backends*."""
        identity = resolve_identity(article.source_path, article.title, self.base_url)
        logger.info("Canonical URL: %s", identity.url)

        if self.concurrent:
            return list(
                await asyncio.gather(
                    *(self._publish_one(b, article, identity) for b in backends)
                )
            )
        return [await self._publish_one(b, article, identity) for b in backends]

    async def run(self, paths: Iterable[str | Path]) -> SyncReport:
        report = SyncReport()
        # each file is published at most once per run
        paths = list(dict.fromkeys(str(p) for p in paths))
        if not paths:
            logger.info("No files provided")
            return report

        backends = self.active_backends()
        if not backends:
            logger.warning("No backends configured, nothing will be published")

        for raw in paths:
            path = Path(raw)
            if path.suffix != self.extension:
                logger.debug("Not an article, ignoring: %s", path)
                continue
            if not path.exists():
                logger.info("File not found: %s", path)
                report.missing.append(raw)
                continue

            logger.info("Processing %s...", path)
            try:
                article = await load_article(path)
            except (OSError, UnicodeDecodeError, ArticleError) as exc:
                logger.error("Error processing %s: %s", path, exc)
                report.failed_files.append(raw)
                continue

            if article.draft:
                logger.info("Skipping draft: %s", path)
                report.drafts.append(raw)
                continue

            report.results[raw] = await self.publish_article(article, backends)

        logger.info("Sync complete: %s", report.summary())
        for path, result in report.failures:
            logger.warning("  %s -> %s failed: %s", path, result.backend, result.error)
        return report
