"""Find the remote post that corresponds to a local article.

Match priority is strict: a post whose stored canonical URL equals the
article's canonical URL always wins; exact title equality is only a fallback
for when no post anywhere in the listing matches by URL.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable

import httpx

from publisher.http import BackendError
from publisher.identity import CanonicalIdentity, same_identity

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 50


@dataclass(frozen=True)
class RemotePost:
    id: str
    title: str
    url: str = ""


@dataclass(frozen=True)
class Page:
    """One batch of a backend's post listing."""

    posts: list[RemotePost] = field(default_factory=list)
    has_next: bool = False
    cursor: str | None = None


FetchPage = Callable[["str | None"], Awaitable[Page]]


def match_by_url(posts: Iterable[RemotePost], identity: CanonicalIdentity) -> RemotePost | None:
    for post in posts:
        if same_identity(post.url, identity.url):
            return post
    return None


def match_by_title(posts: Iterable[RemotePost], identity: CanonicalIdentity) -> RemotePost | None:
    for post in posts:
        if post.title == identity.title:
            return post
    return None


async def find_existing_post(
    fetch_page: FetchPage,
    identity: CanonicalIdentity,
    *,
    backend: str = "backend",
    max_pages: int = DEFAULT_MAX_PAGES,
    strict: bool = False,
) -> RemotePost | None:
    """Walk a (possibly single-page) listing until a URL match or exhaustion.

    The first title match is remembered while later pages are searched for
    a URL match, and returned once the listing runs out.

    A failed fetch ends the walk. By default that is logged and treated as
    the end of the listing, which may lead to a duplicate create; with
    ``strict=True`` the error propagates instead.
    """
    title_match: RemotePost | None = None
    cursor: str | None = None
    seen_cursors: set[str] = set()

    for page_no in range(1, max_pages + 1):
        try:
            page = await fetch_page(cursor)
        except (httpx.HTTPError, BackendError) as exc:
            logger.error(
                "Error listing %s posts (page %d): %s", backend, page_no, exc
            )
            if strict:
                raise
            break

        found = match_by_url(page.posts, identity)
        if found:
            logger.debug("%s: matched %s by URL on page %d", backend, found.id, page_no)
            return found
        # Keep walking for a URL match even after a title match; a title-only
        # match costs one listing call per remaining page.
        if title_match is None:
            title_match = match_by_title(page.posts, identity)

        if not page.has_next or not page.cursor:
            break
        if page.cursor in seen_cursors:
            logger.warning("%s listing repeated cursor %s, stopping", backend, page.cursor)
            break
        seen_cursors.add(page.cursor)
        cursor = page.cursor
    else:
        logger.warning("%s listing truncated after %d pages", backend, max_pages)

    if title_match:
        logger.debug("%s: matched %s by title", backend, title_match.id)
    return title_match
