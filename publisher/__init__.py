"""Cross-posting core: article identity, tags, matching and backends."""

from publisher.article import Article, ArticleError, load_article
from publisher.identity import CanonicalIdentity, normalize_url, resolve_identity
from publisher.matcher import RemotePost

__all__ = [
    "Article",
    "ArticleError",
    "CanonicalIdentity",
    "RemotePost",
    "load_article",
    "normalize_url",
    "resolve_identity",
]
