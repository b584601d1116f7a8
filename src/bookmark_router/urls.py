"""Pure helpers for finding, classifying and trimming linked content."""

import re
from urllib.parse import parse_qs, urlparse

URL_RE = re.compile(r"https?://[^\s)]+")

# Trailing characters that end a sentence rather than a URL, and their
# percent-encoded forms as they show up in pasted links.
_TRAILING_PUNCT_RE = re.compile(r"""[.,;:!?`'"]+$""")
_TRAILING_ENCODED = ("%60", "%27", "%22")

SHORTENER_HOSTS = frozenset(
    {
        "t.co",
        "bit.ly",
        "buff.ly",
        "tinyurl.com",
        "ow.ly",
        "lnkd.in",
        "dlvr.it",
        "goo.gl",
    }
)

TWITTER_HOSTS = frozenset(
    {
        "twitter.com",
        "www.twitter.com",
        "mobile.twitter.com",
        "x.com",
        "www.x.com",
        "mobile.x.com",
    }
)

IMAGE_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg)(\?|$)", re.IGNORECASE)

_YOUTUBE_MARKERS = (
    "youtube.com/watch",
    "youtu.be/",
    "youtube.com/embed",
    "youtube.com/shorts",
)

_VIDEO_ID_PATTERNS = [
    re.compile(r"youtu\.be/([^?&#/]+)"),
    re.compile(r"youtube\.com/embed/([^?&#/]+)"),
    re.compile(r"youtube\.com/v/([^?&#/]+)"),
    re.compile(r"youtube\.com/shorts/([^?&#/]+)"),
]


def extract_urls(text: str) -> list[str]:
    """Find URLs in free text, in order of appearance.

    Duplicates are kept: every occurrence is enriched on its own.
    """
    urls = []
    for match in URL_RE.findall(text or ""):
        url = _strip_trailing(match)
        if url:
            urls.append(url)
    return urls


def _strip_trailing(url: str) -> str:
    while True:
        stripped = _TRAILING_PUNCT_RE.sub("", url)
        for encoded in _TRAILING_ENCODED:
            if stripped.endswith(encoded):
                stripped = stripped[: -len(encoded)]
        if stripped == url:
            return url
        url = stripped


def _host(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def is_shortened_url(url: str) -> bool:
    return _host(url) in SHORTENER_HOSTS


def is_twitter_url(url: str) -> bool:
    return _host(url) in TWITTER_HOSTS


def is_image_url(url: str) -> bool:
    return bool(IMAGE_RE.search(url))


def is_youtube_url(url: str) -> bool:
    return any(marker in url for marker in _YOUTUBE_MARKERS)


def extract_video_id(url: str) -> str | None:
    """Pull the video ID out of the common YouTube URL shapes."""
    if "youtube.com/watch" in url:
        video_ids = parse_qs(urlparse(url).query).get("v")
        return video_ids[0] if video_ids else None
    for pattern in _VIDEO_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def truncate_content(content: str, max_length: int) -> str:
    """Cut content to max_length, preferring a sentence or line break.

    A break is used only if it falls past 70% of max_length; either way
    "..." is appended, so the result is at most max_length + 3 long.
    """
    if len(content) <= max_length:
        return content

    truncated = content[:max_length]
    break_point = max(truncated.rfind(". "), truncated.rfind("\n"))
    if break_point > max_length * 0.7:
        return truncated[: break_point + 1] + "..."
    return truncated + "..."


def format_duration(seconds: int) -> str:
    """Format seconds as M:SS or H:MM:SS."""
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
