"""Canonical identity of an article: the URL it lives at on our own site."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

_SCHEMES = ("http://", "https://")


@dataclass(frozen=True)
class CanonicalIdentity:
    """The (url, title) pair used to find earlier copies of an article."""

    url: str
    title: str


def canonical_url(source_path: str | Path, base_url: str) -> str:
    """Build the site URL for an article source file.

    ``content/posts/my-post.md`` -> ``{base_url}/posts/my-post/``
    """
    name = Path(source_path).stem
    return f"{base_url.rstrip('/')}/posts/{name}/"


def resolve_identity(
    source_path: str | Path, title: str, base_url: str
) -> CanonicalIdentity:
    return CanonicalIdentity(url=canonical_url(source_path, base_url), title=title)


def normalize_url(url: str | None) -> str:
    """Reduce a URL to its comparison form.

    Drops a leading http(s) scheme and one trailing slash, then lower-cases.
    Only for comparing; never send the result to a backend.
    """
    if not url:
        return ""
    value = url.strip()
    lowered = value.lower()
    for scheme in _SCHEMES:
        if lowered.startswith(scheme):
            value = value[len(scheme):]
            break
    if value.endswith("/"):
        value = value[:-1]
    return value.lower()


def same_identity(a: str | None, b: str | None) -> bool:
    """True if both URLs normalize to the same non-empty form."""
    left = normalize_url(a)
    return bool(left) and left == normalize_url(b)
