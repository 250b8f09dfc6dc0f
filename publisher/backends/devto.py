"""Dev.to backend: REST API keyed by article id."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from config import DevtoConfig
from publisher.article import Article
from publisher.backends.base import CREATED, FAILED, SKIPPED, UPDATED, Clock, PublishResult, utcnow
from publisher.http import ApiClient, BackendError
from publisher.identity import CanonicalIdentity
from publisher.matcher import Page, RemotePost, find_existing_post
from publisher.schedule import future_only
from publisher.tags import sanitize_tokens

logger = logging.getLogger(__name__)


class DevtoBackend:
    """Publish articles to Dev.to.

    Parameters
    ----------
    config:
        Dev.to settings; an empty ``api_key`` means the backend is skipped.
    transport:
        Optional httpx transport (tests).
    clock:
        Returns the current aware UTC time; decides whether to schedule.
    """

    name = "Dev.to"

    def __init__(
        self,
        config: DevtoConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.config = config
        self.clock = clock
        self.api = ApiClient(self.name, self._headers(), transport=transport)

    def _headers(self) -> dict[str, str]:
        return {
            "api-key": self.config.api_key,
            "Content-Type": "application/json",
            "Accept": "application/vnd.forem.api-v1+json",
        }

    def skip(self) -> bool:
        if not self.config.enabled:
            logger.info("Skipping Dev.to: disabled")
            return True
        if not self.config.api_key:
            logger.info("Skipping Dev.to: DEVTO_API_KEY not set")
            return True
        return False

    async def close(self) -> None:
        await self.api.close()

    # -- Lookup ---------------------------------------------------------------

    async def _fetch_listing(self, cursor: str | None) -> Page:
        """The whole capped listing in one call; Dev.to has no cursor here."""
        data = await self.api.request_json(
            "GET",
            f"{self.config.api_base}/articles/me/all",
            params={"per_page": self.config.listing_cap},
        )
        if data is not None and not isinstance(data, list):
            raise BackendError("Dev.to listing is not a list", payload=data)
        posts = [
            RemotePost(
                id=str(item["id"]),
                title=item.get("title") or "",
                url=item.get("canonical_url") or "",
            )
            for item in data or []
            if isinstance(item, dict) and item.get("id") is not None
        ]
        return Page(posts=posts)

    async def find_existing(self, identity: CanonicalIdentity) -> RemotePost | None:
        return await find_existing_post(
            self._fetch_listing,
            identity,
            backend=self.name,
            max_pages=1,
            strict=self.config.strict_lookup,
        )

    async def resolve_tags(self, tags: tuple[str, ...]) -> list[str]:
        return sanitize_tokens(
            tags,
            drop_empty=self.config.drop_empty_tags,
            limit=self.config.max_tags,
        )

    # -- Write ----------------------------------------------------------------

    def build_payload(
        self,
        article: Article,
        identity: CanonicalIdentity,
        tags: list[str],
        publish_date: datetime | None,
    ) -> dict[str, Any]:
        """Map an article to the Dev.to ``{"article": {...}}`` body."""
        fields: dict[str, Any] = {
            "title": article.title,
            "body_markdown": article.body,
            "tags": tags,
            "canonical_url": identity.url,
            "published": True,
            "description": article.description,
        }
        published_at = future_only(publish_date, self.clock())
        if published_at:
            fields["published_at"] = published_at
        return {"article": fields}

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
            logger.error("Dev.to: could not check for an existing article, not publishing")
            return PublishResult(self.name, FAILED, error=getattr(exc, "payload", None) or str(exc))

        tags = await self.resolve_tags(article.tags)
        payload = self.build_payload(article, identity, tags, publish_date)

        try:
            if existing:
                logger.info("Updating existing Dev.to article: %s", existing.title)
                data = await self.api.request_json(
                    "PUT", f"{self.config.api_base}/articles/{existing.id}", json=payload
                )
                action = UPDATED
            else:
                logger.info("Creating new Dev.to article: %s", article.title)
                data = await self.api.request_json(
                    "POST", f"{self.config.api_base}/articles", json=payload
                )
                action = CREATED
        except BackendError as exc:
            logger.error("Failed to process Dev.to: %s", exc)
            logger.error("Dev.to error payload: %s", exc.payload)
            return PublishResult(self.name, FAILED, error=exc.payload)
        except httpx.HTTPError as exc:
            logger.error("Failed to process Dev.to: %s", exc)
            return PublishResult(self.name, FAILED, error=str(exc))

        data = data or {}
        remote_id = str(data.get("id") or (existing.id if existing else ""))
        url = data.get("url")
        logger.info("Dev.to article %s (id=%s): %s", action, remote_id, url)
        return PublishResult(self.name, action, remote_id=remote_id or None, url=url)
