"""Hashnode backend: a single GraphQL endpoint with cursor-paginated listings."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from config import HashnodeConfig
from publisher.article import Article
from publisher.backends.base import CREATED, FAILED, SKIPPED, UPDATED, Clock, PublishResult, utcnow
from publisher.http import ApiClient, BackendError
from publisher.identity import CanonicalIdentity
from publisher.matcher import Page, RemotePost, find_existing_post
from publisher.schedule import pass_through
from publisher.tags import lookup_tag_ids

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# GraphQL operations
# ---------------------------------------------------------------------------

TAG_QUERY = """
query GetTag($slug: String!) {
  tag(slug: $slug) {
    id
  }
}
"""

PUBLICATION_QUERY = """
query {
  me {
    publications(first: 1) {
      edges {
        node {
          id
        }
      }
    }
  }
}
"""

POSTS_QUERY = """
query GetPosts($publicationId: ObjectId!, $first: Int!, $after: String) {
  publication(id: $publicationId) {
    posts(first: $first, after: $after) {
      edges {
        node {
          id
          title
          originalArticleURL
        }
      }
      pageInfo {
        hasNextPage
        endCursor
      }
    }
  }
}
"""

PUBLISH_MUTATION = """
mutation PublishPost($input: PublishPostInput!) {
  publishPost(input: $input) {
    post {
      id
      url
    }
  }
}
"""

UPDATE_MUTATION = """
mutation UpdatePost($input: UpdatePostInput!) {
  updatePost(input: $input) {
    post {
      id
      url
    }
  }
}
"""


class HashnodeBackend:
    """Publish articles to a Hashnode publication.

    The publication id comes from config or is looked up once, on first use,
    from the token owner's first publication.
    """

    name = "Hashnode"

    def __init__(
        self,
        config: HashnodeConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.config = config
        self.clock = clock
        self.publication_id: str | None = config.publication_id or None
        self.api = ApiClient(self.name, self._headers(), transport=transport)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": self.config.access_token,
            "Content-Type": "application/json",
        }

    def skip(self) -> bool:
        if not self.config.enabled:
            logger.info("Skipping Hashnode: disabled")
            return True
        if not self.config.access_token:
            logger.info("Skipping Hashnode: HASHNODE_ACCESS_TOKEN not set")
            return True
        return False

    async def close(self) -> None:
        await self.api.close()

    async def _query(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.api.graphql(self.config.endpoint, query, variables)

    # -- Publication ----------------------------------------------------------

    async def ensure_publication_id(self) -> str:
        """Return the publication id, discovering it on the first call."""
        if self.publication_id:
            return self.publication_id

        data = await self._query(PUBLICATION_QUERY)
        try:
            edges = data["me"]["publications"]["edges"]
            publication_id = edges[0]["node"]["id"]
        except (KeyError, IndexError, TypeError) as exc:
            raise BackendError("Could not fetch Hashnode publication id", payload=data) from exc
        if not publication_id:
            raise BackendError("Could not fetch Hashnode publication id", payload=data)
        self.publication_id = str(publication_id)
        logger.info("Using Hashnode publication %s", self.publication_id)
        return self.publication_id

    # -- Lookup ---------------------------------------------------------------

    async def _fetch_page(self, cursor: str | None) -> Page:
        variables: dict[str, Any] = {
            "publicationId": self.publication_id,
            "first": self.config.page_size,
        }
        if cursor:
            variables["after"] = cursor
        data = await self._query(POSTS_QUERY, variables)

        publication = data.get("publication")
        if not publication:
            raise BackendError(
                f"Hashnode publication {self.publication_id} not found", payload=data
            )
        try:
            posts_conn = publication.get("posts") or {}
            page_info = posts_conn.get("pageInfo") or {}
            posts = [
                RemotePost(
                    id=node["id"],
                    title=node.get("title") or "",
                    url=node.get("originalArticleURL") or "",
                )
                for node in (edge.get("node") or {} for edge in posts_conn.get("edges") or [])
                if node.get("id")
            ]
            has_next = bool(page_info.get("hasNextPage"))
            cursor = page_info.get("endCursor")
        except (AttributeError, KeyError, TypeError) as exc:
            raise BackendError("Malformed Hashnode posts page", payload=data) from exc
        return Page(posts=posts, has_next=has_next, cursor=cursor)

    async def find_existing(self, identity: CanonicalIdentity) -> RemotePost | None:
        await self.ensure_publication_id()
        return await find_existing_post(
            self._fetch_page,
            identity,
            backend=self.name,
            max_pages=self.config.max_pages,
            strict=self.config.strict_lookup,
        )

    async def _lookup_tag(self, slug: str) -> str | None:
        data = await self._query(TAG_QUERY, {"slug": slug})
        tag = data.get("tag")
        if not tag:
            return None
        if not isinstance(tag, dict) or not tag.get("id"):
            raise BackendError(f"Malformed Hashnode tag for {slug}", payload=data)
        return tag["id"]

    async def resolve_tags(self, tags: tuple[str, ...]) -> list[dict[str, str]]:
        ids = await lookup_tag_ids(tags, self._lookup_tag)
        return [{"id": tag_id} for tag_id in ids]

    # -- Write ----------------------------------------------------------------

    def build_input(
        self,
        article: Article,
        identity: CanonicalIdentity,
        tags: list[dict[str, str]],
        publish_date: datetime | None,
    ) -> dict[str, Any]:
        data: dict[str, Any] = {
            "title": article.title,
            "contentMarkdown": article.body,
            "originalArticleURL": identity.url,
            "tags": tags,
            "publicationId": self.publication_id,
        }
        published_at = pass_through(publish_date, self.clock())
        if published_at:
            data["publishedAt"] = published_at
        return data

    async def publish(
        self,
        article: Article,
        identity: CanonicalIdentity,
        publish_date: datetime | None,
    ) -> PublishResult:
        if self.skip():
            return PublishResult(self.name, SKIPPED)

        try:
            existing = await self.find_existing(identity)
        except (httpx.HTTPError, BackendError) as exc:
            logger.error("Hashnode: cannot publish %s: %s", article.title, exc)
            return PublishResult(self.name, FAILED, error=getattr(exc, "payload", None) or str(exc))

        tags = await self.resolve_tags(article.tags)
        post_input = self.build_input(article, identity, tags, publish_date)

        if existing:
            logger.info("Updating existing Hashnode post: %s", article.title)
            post_input["id"] = existing.id
            mutation, field, action = UPDATE_MUTATION, "updatePost", UPDATED
        else:
            logger.info("Creating new Hashnode post: %s", article.title)
            mutation, field, action = PUBLISH_MUTATION, "publishPost", CREATED

        try:
            data = await self._query(mutation, {"input": post_input})
        except BackendError as exc:
            logger.error("Failed to process Hashnode post: %s", exc)
            logger.error("Hashnode error payload: %s", exc.payload)
            return PublishResult(self.name, FAILED, error=exc.payload)
        except httpx.HTTPError as exc:
            logger.error("Failed to process Hashnode post: %s", exc)
            return PublishResult(self.name, FAILED, error=str(exc))

        post = (data.get(field) or {}).get("post")
        if not post:
            logger.warning("Hashnode response missing post data: %s", data)
            return PublishResult(self.name, action, remote_id=existing.id if existing else None)

        logger.info("Successfully processed Hashnode post: %s", post.get("url"))
        return PublishResult(self.name, action, remote_id=post.get("id"), url=post.get("url"))
