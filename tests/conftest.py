"""In-memory fakes of the Dev.to and Hashnode APIs, served via httpx.MockTransport."""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

from config import DevtoConfig, HashnodeConfig
from publisher.backends.devto import DevtoBackend
from publisher.backends.hashnode import HashnodeBackend

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return NOW


# ---------------------------------------------------------------------------
# Dev.to
# ---------------------------------------------------------------------------

class FakeDevto:
    """Tiny stateful stand-in for the Dev.to articles API."""

    def __init__(self) -> None:
        self.posts: list[dict] = []
        self.calls: list[tuple[str, str]] = []
        self.payloads: list[dict] = []
        self.next_id = 1000
        self.fail_listing = False
        self.write_status: int | None = None  # force an error status on writes
        self.listing_text: str | None = None  # serve a non-JSON 200 listing

    def add_post(self, title: str, canonical_url: str | None = None) -> dict:
        post = {"id": self.next_id, "title": title, "canonical_url": canonical_url}
        self.next_id += 1
        self.posts.append(post)
        return post

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((request.method, path))

        if request.method == "GET" and path == "/api/articles/me/all":
            if self.fail_listing:
                return httpx.Response(503, json={"error": "unavailable"})
            if self.listing_text is not None:
                return httpx.Response(200, text=self.listing_text)
            return httpx.Response(200, json=self.posts)

        if self.write_status:
            return httpx.Response(self.write_status, json={"error": "Unprocessable", "status": self.write_status})

        body = json.loads(request.content)
        self.payloads.append(body)
        fields = body["article"]

        if request.method == "POST" and path == "/api/articles":
            post = self.add_post(fields["title"], fields["canonical_url"])
            return httpx.Response(201, json={**post, "url": f"https://dev.to/me/{post['id']}"})

        match = re.fullmatch(r"/api/articles/(\d+)", path)
        if request.method == "PUT" and match:
            post_id = int(match.group(1))
            for post in self.posts:
                if post["id"] == post_id:
                    post.update(title=fields["title"], canonical_url=fields["canonical_url"])
                    return httpx.Response(200, json={**post, "url": f"https://dev.to/me/{post_id}"})
            return httpx.Response(404, json={"error": "not found"})

        return httpx.Response(404, json={"error": "no route"})

    @property
    def writes(self) -> list[tuple[str, str]]:
        return [c for c in self.calls if c[0] in ("POST", "PUT")]


# ---------------------------------------------------------------------------
# Hashnode
# ---------------------------------------------------------------------------

class FakeHashnode:
    """Tiny stateful stand-in for the Hashnode GraphQL API."""

    def __init__(self, publication_id: str = "pub-1") -> None:
        self.publication_id = publication_id
        self.posts: list[dict] = []
        self.tags: dict[str, str] = {}
        self.failing_tags: set[str] = set()
        self.garbled_tags: set[str] = set()  # answered with a non-JSON 200
        self.publication_edges: list | None = None
        self.ops: list[str] = []
        self.inputs: list[dict] = []
        self.page_variables: list[dict] = []
        self.fail_listing = False
        self.write_errors: list[dict] | None = None
        self.next_id = 1

    def add_post(self, title: str, url: str | None = None) -> dict:
        post = {"id": f"post-{self.next_id}", "title": title, "originalArticleURL": url}
        self.next_id += 1
        self.posts.append(post)
        return post

    def _op(self, query: str) -> str:
        for op in ("publishPost", "updatePost"):
            if op in query:
                return op
        if "tag(slug" in query:
            return "tag"
        if "me {" in query:
            return "me"
        if "publication(id" in query:
            return "posts"
        return "unknown"

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        op = self._op(body["query"])
        variables = body.get("variables") or {}
        self.ops.append(op)

        if op == "tag":
            slug = variables["slug"]
            if slug in self.failing_tags:
                return httpx.Response(500, json={"message": "boom"})
            if slug in self.garbled_tags:
                return httpx.Response(200, text="<html>oops</html>")
            tag_id = self.tags.get(slug)
            return httpx.Response(200, json={"data": {"tag": {"id": tag_id} if tag_id else None}})

        if op == "me":
            edges = [{"node": {"id": self.publication_id}}] if self.publication_id else []
            if self.publication_edges is not None:
                edges = self.publication_edges
            return httpx.Response(200, json={"data": {"me": {"publications": {"edges": edges}}}})

        if op == "posts":
            self.page_variables.append(variables)
            if self.fail_listing:
                return httpx.Response(502, text="Bad Gateway")
            start = int(variables.get("after") or 0)
            end = start + variables["first"]
            page = self.posts[start:end]
            return httpx.Response(200, json={"data": {"publication": {"posts": {
                "edges": [{"node": p} for p in page],
                "pageInfo": {"hasNextPage": end < len(self.posts), "endCursor": str(end)},
            }}}})

        if self.write_errors:
            return httpx.Response(200, json={"data": None, "errors": self.write_errors})

        post_input = variables["input"]
        self.inputs.append(post_input)
        if op == "publishPost":
            post = self.add_post(post_input["title"], post_input["originalArticleURL"])
        else:
            post = next(p for p in self.posts if p["id"] == post_input["id"])
            post.update(title=post_input["title"], originalArticleURL=post_input["originalArticleURL"])
        return httpx.Response(200, json={"data": {op: {"post": {
            "id": post["id"], "url": f"https://blog.example.com/{post['id']}",
        }}}})

    @property
    def writes(self) -> list[str]:
        return [op for op in self.ops if op in ("publishPost", "updatePost")]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def fake_devto() -> FakeDevto:
    return FakeDevto()


@pytest.fixture()
def fake_hashnode() -> FakeHashnode:
    return FakeHashnode()


@pytest.fixture()
def devto(fake_devto: FakeDevto) -> DevtoBackend:
    return DevtoBackend(
        DevtoConfig(api_key="devto-key"),
        transport=httpx.MockTransport(fake_devto.handler),
        clock=fixed_clock,
    )


@pytest.fixture()
def hashnode(fake_hashnode: FakeHashnode) -> HashnodeBackend:
    return HashnodeBackend(
        HashnodeConfig(access_token="hn-token", page_size=2),
        transport=httpx.MockTransport(fake_hashnode.handler),
        clock=fixed_clock,
    )


@pytest.fixture()
def write_article(tmp_path: Path):
    """Write a Markdown article with front matter and return its path."""

    def _write(name: str = "my-post.md", front_matter: str | None = None, body: str = "Hello.\n") -> Path:
        if front_matter is None:
            front_matter = "title: My Post\ntags: [python, C++ Tips!]\ndescription: A post"
        path = tmp_path / name
        path.write_text(f"---\n{front_matter}\n---\n{body}", encoding="utf-8")
        return path

    return _write
