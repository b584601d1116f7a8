"""Tests for article extraction."""

import json
import time

import httpx
import pytest
import respx

from bookmark_router import article
from bookmark_router.article import extract_article

ARTICLE_URL = "https://blog.example.com/post"


@pytest.fixture
def client():
    with httpx.Client() as c:
        yield c


def _fake_extract(payload: dict | None):
    def extract(html, **kwargs):
        assert kwargs["output_format"] == "json"
        return json.dumps(payload) if payload is not None else None

    return extract


class TestExtractArticle:
    @respx.mock
    def test_extracts_content_and_metadata(self, client, monkeypatch):
        respx.get(ARTICLE_URL).mock(
            return_value=httpx.Response(
                200, html="<html><body><p>Hello</p></body></html>"
            )
        )
        monkeypatch.setattr(
            article.trafilatura,
            "extract",
            _fake_extract(
                {
                    "title": "Async Python",
                    "author": "Jane Doe",
                    "date": "2025-02-01",
                    "text": "Body text.",
                }
            ),
        )

        result = extract_article(ARTICLE_URL, client, timeout=5)

        assert result.is_ok
        assert result.value.title == "Async Python"
        assert result.value.author == "Jane Doe"
        assert result.value.published == "2025-02-01"
        assert result.value.content == "Body text."

    @respx.mock
    def test_no_content_is_empty(self, client, monkeypatch):
        respx.get(ARTICLE_URL).mock(return_value=httpx.Response(200, html="<html></html>"))
        monkeypatch.setattr(article.trafilatura, "extract", _fake_extract(None))

        result = extract_article(ARTICLE_URL, client, timeout=5)
        assert result.is_empty

    @respx.mock
    def test_http_error_is_soft(self, client):
        respx.get(ARTICLE_URL).mock(return_value=httpx.Response(500))

        result = extract_article(ARTICLE_URL, client, timeout=5)
        assert result.is_error
        assert not result.is_ok

    @respx.mock
    def test_network_timeout_is_soft(self, client):
        respx.get(ARTICLE_URL).mock(side_effect=httpx.ReadTimeout("slow"))

        result = extract_article(ARTICLE_URL, client, timeout=5)
        assert result.is_error
        assert result.error.startswith("Timeout")

    @respx.mock
    def test_wall_clock_timeout(self, client, monkeypatch):
        respx.get(ARTICLE_URL).mock(return_value=httpx.Response(200, html="<p>x</p>"))

        def slow_extract(html, **kwargs):
            time.sleep(1)
            return None

        monkeypatch.setattr(article.trafilatura, "extract", slow_extract)

        result = extract_article(ARTICLE_URL, client, timeout=0.05)
        assert result.is_error
        assert "timed out" in result.error

    @respx.mock
    def test_non_html_is_empty(self, client):
        respx.get(ARTICLE_URL).mock(
            return_value=httpx.Response(
                200, content=b"%PDF-1.4", headers={"content-type": "application/pdf"}
            )
        )

        result = extract_article(ARTICLE_URL, client, timeout=5)
        assert result.is_empty
