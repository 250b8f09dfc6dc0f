"""Map free-form article tags onto what each backend accepts.

Two strategies:

* token   -- each tag is squeezed into the backend's alphabet (Dev.to).
* lookup  -- each tag is slugified and looked up remotely; unknown tags are
             dropped, nothing is ever created (Hashnode).
"""

from __future__ import annotations

import logging
import re
from typing import Awaitable, Callable, Iterable

import httpx

from publisher.http import BackendError

logger = logging.getLogger(__name__)

_ALNUM_RE = re.compile(r"[^a-z0-9]")
_ALNUM_DASH_RE = re.compile(r"[^a-z0-9-]")
_SLUG_RUN_RE = re.compile(r"[^a-z0-9]+")

TagLookup = Callable[[str], Awaitable["str | None"]]


def sanitize_token(tag: str, allow_dashes: bool = False) -> str:
    """Lower-case *tag* and remove everything outside the backend alphabet.

    ``"C++ Tips!"`` -> ``"ctips"``. May return an empty string.
    """
    pattern = _ALNUM_DASH_RE if allow_dashes else _ALNUM_RE
    return pattern.sub("", str(tag).lower())


def sanitize_tokens(
    tags: Iterable[str],
    allow_dashes: bool = False,
    drop_empty: bool = True,
    limit: int | None = None,
) -> list[str]:
    """Apply :func:`sanitize_token` to every tag, in authored order."""
    tokens: list[str] = []
    for tag in tags:
        token = sanitize_token(tag, allow_dashes=allow_dashes)
        if not token and drop_empty:
            logger.info("Dropping tag %r: nothing left after sanitizing", tag)
            continue
        tokens.append(token)

    if limit is not None and len(tokens) > limit:
        logger.warning(
            "Too many tags (%d), keeping the first %d: %s",
            len(tokens), limit, ", ".join(tokens[:limit]),
        )
        tokens = tokens[:limit]
    return tokens


def tag_slug(tag: str) -> str:
    """Slug used for remote tag lookups: ``"C++ Tips!"`` -> ``"c-tips"``."""
    return _SLUG_RUN_RE.sub("-", str(tag).lower()).strip("-")


async def lookup_tag_ids(tags: Iterable[str], lookup: TagLookup) -> list[str]:
    """Resolve each tag to a backend id via *lookup*, one call per slug.

    Tags that are not found, or whose lookup fails, are logged and dropped
    without affecting the rest.
    """
    ids: list[str] = []
    seen: set[str] = set()
    for tag in tags:
        slug = tag_slug(tag)
        if not slug:
            logger.info("Dropping tag %r: empty slug", tag)
            continue
        if slug in seen:
            continue
        seen.add(slug)

        try:
            tag_id = await lookup(slug)
        except (httpx.HTTPError, BackendError) as exc:
            logger.error("Error looking up tag %r: %s", tag, exc)
            continue

        if tag_id:
            ids.append(tag_id)
        else:
            logger.info("Tag not found, skipping: %s", tag)
    return ids
