"""Tests for URL discovery, classification and truncation."""

import pytest

from bookmark_router.urls import (
    extract_urls,
    extract_video_id,
    format_duration,
    is_image_url,
    is_shortened_url,
    is_twitter_url,
    is_youtube_url,
    truncate_content,
)


class TestExtractUrls:
    def test_strips_trailing_period(self):
        assert extract_urls("check http://a.com/x.") == ["http://a.com/x"]

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("see https://a.com/x, then", "https://a.com/x"),
            ("(https://a.com/x)", "https://a.com/x"),
            ('"https://a.com/x"', "https://a.com/x"),
            ("`https://a.com/x`", "https://a.com/x"),
            ("wow https://a.com/x!?", "https://a.com/x"),
            ("https://a.com/x%60", "https://a.com/x"),
            ("https://a.com/x%22.", "https://a.com/x"),
            ("https://a.com/x%27", "https://a.com/x"),
        ],
    )
    def test_strips_punctuation_artifacts(self, text, expected):
        assert extract_urls(text) == [expected]

    def test_keeps_order_and_duplicates(self):
        text = "https://b.com then https://a.com and https://b.com again"
        assert extract_urls(text) == ["https://b.com", "https://a.com", "https://b.com"]

    def test_no_urls(self):
        assert extract_urls("just words") == []
        assert extract_urls("") == []


class TestClassifiers:
    def test_shortener(self):
        assert is_shortened_url("https://t.co/abc123")
        assert is_shortened_url("https://bit.ly/xyz")
        assert not is_shortened_url("https://example.com/t.co/abc")

    def test_twitter(self):
        assert is_twitter_url("https://x.com/user/status/1")
        assert is_twitter_url("https://twitter.com/user/status/1")
        assert not is_twitter_url("https://dropbox.com/s/file")

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/pic.png",
            "https://example.com/pic.JPG",
            "https://example.com/pic.webp?size=large",
        ],
    )
    def test_image(self, url):
        assert is_image_url(url)

    def test_not_image(self):
        assert not is_image_url("https://example.com/png-guide")

    @pytest.mark.parametrize(
        "url, video_id",
        [
            ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
            ("https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
            ("https://youtu.be/dQw4w9WgXcQ?t=42", "dQw4w9WgXcQ"),
            ("https://www.youtube.com/embed/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
            ("https://www.youtube.com/shorts/abc123", "abc123"),
        ],
    )
    def test_youtube(self, url, video_id):
        assert is_youtube_url(url)
        assert extract_video_id(url) == video_id

    def test_not_youtube(self):
        assert not is_youtube_url("https://www.youtube.com/@channel")
        assert extract_video_id("https://example.com") is None


class TestTruncateContent:
    def test_short_content_unchanged(self):
        assert truncate_content("short", 10) == "short"
        assert truncate_content("x" * 10, 10) == "x" * 10

    def test_hard_cut_without_late_break(self):
        content = "a" * 200
        result = truncate_content(content, 100)
        assert result == "a" * 100 + "..."

    def test_breaks_at_late_sentence(self):
        content = "a" * 80 + ". " + "b" * 100
        result = truncate_content(content, 100)
        assert result == "a" * 80 + "." + "..."

    def test_breaks_at_late_newline(self):
        content = "a" * 90 + "\n" + "b" * 100
        result = truncate_content(content, 100)
        assert result == "a" * 90 + "\n..."

    def test_ignores_early_break(self):
        content = "a" * 10 + ". " + "b" * 200
        result = truncate_content(content, 100)
        assert result == content[:100] + "..."

    @pytest.mark.parametrize("max_length", [1, 7, 50, 99, 100, 101])
    def test_length_bound(self, max_length):
        content = "Sentence one. Sentence two.\nLine three " * 10
        result = truncate_content(content, max_length)
        assert len(result) <= max_length + len("...")


def test_format_duration():
    assert format_duration(59) == "0:59"
    assert format_duration(125) == "2:05"
    assert format_duration(3725) == "1:02:05"
