"""Tests for tag sanitizing and remote tag lookups."""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import AsyncMock

import httpx
import pytest

from publisher.http import BackendError
from publisher.tags import lookup_tag_ids, sanitize_token, sanitize_tokens, tag_slug


class TestSanitizeToken:
    def test_strips_to_alphanumerics(self):
        assert sanitize_token("C++ Tips!") == "ctips"

    def test_dashes_kept_when_allowed(self):
        assert sanitize_token("Web-Dev 101", allow_dashes=True) == "web-dev101"
        assert sanitize_token("Web-Dev 101") == "webdev101"

    def test_non_ascii_removed(self):
        assert sanitize_token("Café") == "caf"

    def test_can_become_empty(self):
        assert sanitize_token("++!") == ""


class TestSanitizeTokens:
    def test_keeps_order(self):
        assert sanitize_tokens(["Python", "C++ Tips!", "AWS"]) == ["python", "ctips", "aws"]

    def test_empty_tokens_dropped_by_default(self, caplog):
        with caplog.at_level(logging.INFO):
            tokens = sanitize_tokens(["python", "!!!", "go"])
        assert tokens == ["python", "go"]
        assert "nothing left after sanitizing" in caplog.text

    def test_empty_tokens_kept_when_asked(self):
        assert sanitize_tokens(["python", "!!!"], drop_empty=False) == ["python", ""]

    def test_limit(self, caplog):
        with caplog.at_level(logging.WARNING):
            tokens = sanitize_tokens(["a", "b", "c", "d", "e"], limit=4)
        assert tokens == ["a", "b", "c", "d"]
        assert "Too many tags" in caplog.text


class TestTagSlug:
    @pytest.mark.parametrize(
        ("tag", "slug"),
        [
            ("C++ Tips!", "c-tips"),
            ("Machine Learning", "machine-learning"),
            ("  spaced  out  ", "spaced-out"),
            ("node.js", "node-js"),
            ("!!!", ""),
        ],
    )
    def test_slugs(self, tag, slug):
        assert tag_slug(tag) == slug


class TestLookupTagIds:
    def test_found_tags_resolved_in_order(self):
        lookup = AsyncMock(side_effect=lambda slug: {"python": "t1", "c-tips": "t2"}.get(slug))
        ids = asyncio.run(lookup_tag_ids(["Python", "C++ Tips!"], lookup))
        assert ids == ["t1", "t2"]
        assert [c.args[0] for c in lookup.await_args_list] == ["python", "c-tips"]

    def test_unknown_tags_dropped(self, caplog):
        lookup = AsyncMock(side_effect=lambda slug: "t1" if slug == "python" else None)
        with caplog.at_level(logging.INFO):
            ids = asyncio.run(lookup_tag_ids(["python", "made-up"], lookup))
        assert ids == ["t1"]
        assert "Tag not found" in caplog.text

    def test_lookup_error_only_drops_that_tag(self):
        async def lookup(slug):
            if slug == "broken":
                raise httpx.ConnectError("down")
            if slug == "rejected":
                raise BackendError("nope", status=500)
            return f"id-{slug}"

        ids = asyncio.run(lookup_tag_ids(["a", "broken", "rejected", "b"], lookup))
        assert ids == ["id-a", "id-b"]

    def test_duplicate_and_empty_slugs_looked_up_once(self):
        lookup = AsyncMock(return_value="t1")
        ids = asyncio.run(lookup_tag_ids(["Python", "python", "???"], lookup))
        assert ids == ["t1"]
        lookup.assert_awaited_once_with("python")
