"""Parse bird CLI JSON output into Bookmark model objects.

bird emits camelCase objects:
    {"id": "...", "text": "...", "createdAt": "...",
     "author": {"username": "...", "name": "..."}, "authorId": "...",
     "conversationId": "...", "inReplyToId": "...",
     "quotedTweet": {...}, "media": [{"type": "photo", "url": "..."}]}

bookmark_to_dict() is the inverse and is used for the ledger's cached
snapshot, so a cached bookmark round-trips through the same parser.
"""

import logging

from .models import Bookmark, MediaItem, User

logger = logging.getLogger(__name__)

# Quoted tweets nest; the source gives no depth guarantee.
MAX_QUOTE_DEPTH = 5


def parse_bookmarks(raw_items: list[dict]) -> list[Bookmark]:
    """Parse a list of raw bird objects, skipping malformed ones."""
    bookmarks = []
    for item in raw_items:
        try:
            bookmarks.append(parse_bookmark(item))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            item_id = item.get("id", "?") if isinstance(item, dict) else "?"
            logger.warning("Skipping malformed bookmark %s: %s", item_id, e)
    return bookmarks


def parse_bookmark(data: dict, depth: int = 0) -> Bookmark:
    """Parse a single bird object. Raises KeyError/TypeError if malformed."""
    if not isinstance(data, dict):
        raise TypeError(f"expected object, got {type(data).__name__}")

    tweet_id = str(data["id"])
    author = _parse_author(data.get("author") or {}, data.get("authorId"))

    quoted = None
    quoted_data = data.get("quotedTweet")
    if quoted_data:
        if depth + 1 > MAX_QUOTE_DEPTH:
            logger.debug(
                "tweet %s: quoted tweet nesting exceeds %d, dropping",
                tweet_id,
                MAX_QUOTE_DEPTH,
            )
        else:
            try:
                quoted = parse_bookmark(quoted_data, depth + 1)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.debug("tweet %s: unparseable quoted tweet: %s", tweet_id, e)

    media = [
        MediaItem(type=m.get("type", "photo"), url=m.get("url", ""))
        for m in data.get("media") or []
        if isinstance(m, dict)
    ]

    return Bookmark(
        id=tweet_id,
        text=data.get("text") or "",
        author=author,
        created_at=data.get("createdAt") or "",
        reply_count=_optional_int(data.get("replyCount")),
        retweet_count=_optional_int(data.get("retweetCount")),
        like_count=_optional_int(data.get("likeCount")),
        media=media,
        conversation_id=_optional_str(data.get("conversationId")),
        in_reply_to_id=_optional_str(data.get("inReplyToId")),
        quoted_tweet=quoted,
    )


def _parse_author(author, author_id: str | None) -> User:
    if not isinstance(author, dict):
        logger.debug("author is not an object: %r", author)
        author = {}
    username = author.get("username") or author.get("screen_name")
    if not username:
        logger.debug("author has no username, keys=%s", list(author.keys()))
        username = "unknown"
    return User(
        username=username,
        display_name=author.get("name") or username,
        id=_optional_str(author.get("id") or author_id),
    )


def _optional_int(value) -> int | None:
    if value is None:
        return None
    return int(value)


def _optional_str(value) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def bookmark_to_dict(bookmark: Bookmark, depth: int = 0) -> dict:
    """Serialize a Bookmark back to bird's JSON shape."""
    data: dict = {
        "id": bookmark.id,
        "text": bookmark.text,
        "createdAt": bookmark.created_at,
        "author": {
            "username": bookmark.author.username,
            "name": bookmark.author.display_name,
        },
    }
    if bookmark.author.id:
        data["authorId"] = bookmark.author.id
    for key, value in (
        ("replyCount", bookmark.reply_count),
        ("retweetCount", bookmark.retweet_count),
        ("likeCount", bookmark.like_count),
        ("conversationId", bookmark.conversation_id),
        ("inReplyToId", bookmark.in_reply_to_id),
    ):
        if value is not None:
            data[key] = value
    if bookmark.media:
        data["media"] = [{"type": m.type, "url": m.url} for m in bookmark.media]
    if bookmark.quoted_tweet is not None and depth < MAX_QUOTE_DEPTH:
        data["quotedTweet"] = bookmark_to_dict(bookmark.quoted_tweet, depth + 1)
    return data
