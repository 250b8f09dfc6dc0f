"""The interface every publishing backend implements, and its result type."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Protocol, runtime_checkable

from publisher.article import Article
from publisher.identity import CanonicalIdentity
from publisher.matcher import RemotePost

Clock = Callable[[], datetime]

CREATED = "created"
UPDATED = "updated"
SKIPPED = "skipped"
FAILED = "failed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PublishResult:
    """Outcome of one (article, backend) attempt."""

    backend: str
    action: str
    remote_id: str | None = None
    url: str | None = None
    error: Any = None

    @property
    def ok(self) -> bool:
        return self.action != FAILED


@runtime_checkable
class Backend(Protocol):
    """Capability set of a publishing backend.

    Implementations are independent classes; nothing is shared by
    inheritance. ``publish`` must never raise: failures come back as a
    ``PublishResult`` with ``action == "failed"``.
    """

    name: str

    def skip(self) -> bool:
        """True (after logging why) when this backend must not be attempted."""
        ...

    async def find_existing(self, identity: CanonicalIdentity) -> RemotePost | None:
        ...

    async def resolve_tags(self, tags: tuple[str, ...]) -> list[Any]:
        ...

    async def publish(
        self,
        article: Article,
        identity: CanonicalIdentity,
        publish_date: datetime | None,
    ) -> PublishResult:
        ...

    async def close(self) -> None:
        ...
