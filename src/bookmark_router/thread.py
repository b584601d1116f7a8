"""Thread detection, thread expansion and quoted-tweet formatting."""

import logging
import re
from dataclasses import dataclass
from typing import Protocol

from .models import Bookmark, FetchResult

logger = logging.getLogger(__name__)

THREAD_PATTERNS = [
    re.compile(r"\d+/\d+"),
    re.compile(r"thread:", re.IGNORECASE),
    re.compile("\U0001f9f5"),  # thread emoji
    re.compile(r"a thread", re.IGNORECASE),
]

# Quoted tweets can quote tweets; stop formatting after this many levels.
MAX_QUOTE_DEPTH = 3


class ThreadSource(Protocol):
    def get_thread(self, id_or_url: str, timeout: float | None = None) -> list[Bookmark]:
        ...


@dataclass
class ThreadContent:
    tweets: list[Bookmark]
    full_text: str

    @property
    def tweet_count(self) -> int:
        return len(self.tweets)


def is_likely_thread(bookmark: Bookmark) -> bool:
    """Heuristic: replies, mid-conversation tweets, or thread-style text."""
    if bookmark.in_reply_to_id:
        return True
    if bookmark.conversation_id and bookmark.conversation_id != bookmark.id:
        return True
    return any(pattern.search(bookmark.text) for pattern in THREAD_PATTERNS)


def expand_thread(
    bookmark: Bookmark, source: ThreadSource, timeout: float = 30.0
) -> FetchResult[ThreadContent]:
    """Fetch the full conversation. A lone tweet counts as no thread."""
    try:
        tweets = source.get_thread(bookmark.id, timeout)
    except Exception as e:  # a custom source may raise; thread context is optional
        logger.warning("Failed to expand thread for %s: %s", bookmark.id, e)
        return FetchResult.failed(str(e))

    if len(tweets) <= 1:
        return FetchResult.empty()

    total = len(tweets)
    full_text = "\n\n".join(
        f"[{i}/{total}] @{tweet.author.username}: {tweet.text}"
        for i, tweet in enumerate(tweets, start=1)
    )
    return FetchResult.ok(ThreadContent(tweets=tweets, full_text=full_text))


def format_quoted_tweet(quoted: Bookmark) -> str:
    """Attributed summary of a quoted tweet, including nested quotes."""
    lines: list[str] = []
    seen: set[str] = set()
    current: Bookmark | None = quoted
    depth = 0

    while current is not None and depth < MAX_QUOTE_DEPTH:
        if current.id in seen:
            logger.debug("Quote cycle detected at %s", current.id)
            break
        seen.add(current.id)

        prefix = "Quoted" if depth == 0 else "> " * depth + "Quoting"
        lines.append(f"{prefix}: @{current.author.username} ({current.created_at}):")
        lines.append(current.text)
        current = current.quoted_tweet
        depth += 1

    return "\n".join(lines)
