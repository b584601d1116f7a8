"""YouTube transcript fetching via youtube-transcript-api."""

import logging
from dataclasses import dataclass

import requests
from youtube_transcript_api import (
    NoTranscriptFound,
    TranscriptsDisabled,
    YouTubeTranscriptApi,
)

from .models import FetchResult
from .timeout import CallTimeout, call_with_timeout

logger = logging.getLogger(__name__)


@dataclass
class Transcript:
    video_id: str
    text: str
    duration: int | None = None  # seconds, from the last caption
    title: str | None = None  # needs the Data API; left empty


def fetch_transcript(video_id: str, timeout: float = 30.0) -> FetchResult[Transcript]:
    """Fetch the transcript for a video.

    Disabled or missing captions are an expected outcome and come back
    empty; anything else is reported as an error.
    """
    try:
        snippets = call_with_timeout(_fetch_snippets, timeout, video_id, timeout)
    except (TranscriptsDisabled, NoTranscriptFound):
        logger.debug("No transcript available for video %s", video_id)
        return FetchResult.empty()
    except CallTimeout as e:
        logger.debug("Transcript fetch timed out for video %s", video_id)
        return FetchResult.failed(f"Timeout: {e}")
    except Exception as e:  # the library surfaces network and parse errors as-is
        logger.warning("Failed to get YouTube transcript for %s: %s", video_id, e)
        return FetchResult.failed(str(e))

    if not snippets:
        return FetchResult.empty()

    text = " ".join(s.text for s in snippets if s.text)
    last = snippets[-1]
    duration = round(last.start + last.duration)
    return FetchResult.ok(Transcript(video_id=video_id, text=text, duration=duration))


class TimeoutSession(requests.Session):
    """requests session that applies a default timeout to every request."""

    def __init__(self, timeout: float):
        super().__init__()
        self.timeout = timeout

    def request(self, method, url, **kwargs):
        kwargs.setdefault("timeout", self.timeout)
        return super().request(method, url, **kwargs)


def _fetch_snippets(video_id: str, timeout: float) -> list:
    with TimeoutSession(timeout) as session:
        api = YouTubeTranscriptApi(http_client=session)
        return list(api.fetch(video_id))
