"""Load Markdown article sources into immutable :class:`Article` records."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import aiofiles
import yaml

logger = logging.getLogger(__name__)

ARTICLE_EXTENSION = ".md"

_FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n(.*))?$", re.DOTALL)


class ArticleError(ValueError):
    """Raised when an article source cannot be turned into an Article."""


@dataclass(frozen=True)
class Article:
    title: str
    body: str
    tags: tuple[str, ...] = ()
    description: str = ""
    draft: bool = False
    publish_date: datetime | None = None
    source_path: Path | None = None


def _parse_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Split YAML frontmatter from Markdown body.

    Expected format:
        ---
        title: ...
        tags: [...]
        ---
        Body text here.
    """
    match = _FRONTMATTER_RE.match(text.lstrip("\ufeff"))
    if not match:
        return {}, text
    meta = yaml.safe_load(match.group(1)) or {}
    if not isinstance(meta, dict):
        raise ArticleError("front matter is not a mapping")
    body = match.group(2) or ""
    return meta, body


def parse_publish_date(value: Any) -> datetime | None:
    """Resolve a front-matter ``date`` to an aware UTC datetime.

    Bare dates mean midnight UTC and naive datetimes are taken as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise ArticleError(f"unparseable date: {value!r}") from exc
    else:
        raise ArticleError(f"unsupported date value: {value!r}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _parse_tags(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(t.strip() for t in value.split(",") if t.strip())
    if isinstance(value, (list, tuple)):
        return tuple(str(t) for t in value if t is not None)
    raise ArticleError(f"tags must be a list, got {type(value).__name__}")


def parse_article(text: str, source_path: Path | None = None) -> Article:
    """Build an Article from raw file contents."""
    try:
        meta, body = _parse_frontmatter(text)
    except yaml.YAMLError as exc:
        raise ArticleError(f"invalid front matter: {exc}") from exc

    title = meta.get("title")
    # drafts are never published, so nothing else in them is validated
    if meta.get("draft") is True:
        return Article(
            title=str(title or ""),
            body=body,
            draft=True,
            source_path=source_path,
        )
    if not title:
        raise ArticleError("article has no title")

    return Article(
        title=str(title),
        body=body,
        tags=_parse_tags(meta.get("tags")),
        description=str(meta.get("description") or ""),
        publish_date=parse_publish_date(meta.get("date")),
        source_path=source_path,
    )


async def load_article(path: Path) -> Article:
    """Read and parse an article file."""
    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        raw = await f.read()
    return parse_article(raw, source_path=path)
