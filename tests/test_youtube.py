"""Tests for YouTube transcript fetching."""

from types import SimpleNamespace
from unittest.mock import patch

import requests
from youtube_transcript_api import TranscriptsDisabled

from bookmark_router.youtube import TimeoutSession, fetch_transcript


def _snippet(text, start, duration):
    return SimpleNamespace(text=text, start=start, duration=duration)


class TestFetchTranscript:
    @patch("bookmark_router.youtube.YouTubeTranscriptApi")
    def test_joins_snippets(self, mock_api):
        mock_api.return_value.fetch.return_value = [
            _snippet("hello", 0.0, 2.0),
            _snippet("world", 2.0, 3.4),
        ]

        result = fetch_transcript("abc123", timeout=5)

        assert result.is_ok
        assert result.value.text == "hello world"
        assert result.value.duration == 5
        assert result.value.video_id == "abc123"
        mock_api.return_value.fetch.assert_called_once_with("abc123")
        session = mock_api.call_args.kwargs["http_client"]
        assert isinstance(session, TimeoutSession)
        assert session.timeout == 5

    @patch("bookmark_router.youtube.YouTubeTranscriptApi")
    def test_disabled_transcript_is_empty_not_error(self, mock_api):
        mock_api.return_value.fetch.side_effect = TranscriptsDisabled("abc123")

        result = fetch_transcript("abc123", timeout=5)

        assert result.is_empty
        assert result.error is None

    @patch("bookmark_router.youtube.YouTubeTranscriptApi")
    def test_no_snippets_is_empty(self, mock_api):
        mock_api.return_value.fetch.return_value = []

        assert fetch_transcript("abc123", timeout=5).is_empty

    @patch("bookmark_router.youtube.YouTubeTranscriptApi")
    def test_other_failure_is_error(self, mock_api):
        mock_api.return_value.fetch.side_effect = ConnectionError("network down")

        result = fetch_transcript("abc123", timeout=5)

        assert result.is_error
        assert "network down" in result.error


class TestTimeoutSession:
    @patch.object(requests.Session, "request")
    def test_applies_default_timeout(self, mock_request):
        TimeoutSession(3).request("GET", "https://www.youtube.com/watch?v=abc123")
        mock_request.assert_called_once_with(
            "GET", "https://www.youtube.com/watch?v=abc123", timeout=3
        )

    @patch.object(requests.Session, "request")
    def test_explicit_timeout_wins(self, mock_request):
        TimeoutSession(3).request("GET", "https://example.com", timeout=1)
        assert mock_request.call_args.kwargs["timeout"] == 1
