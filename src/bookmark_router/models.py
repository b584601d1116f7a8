"""Data models for bookmarks, enrichment results and processing state."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class User:
    username: str  # handle without @
    display_name: str
    id: str | None = None


@dataclass
class MediaItem:
    type: str  # "photo", "video", "animated_gif"
    url: str


@dataclass
class Bookmark:
    id: str
    text: str
    author: User
    created_at: str  # as delivered by bird, e.g. "Mon Feb 10 18:30:00 +0000 2025"
    reply_count: int | None = None
    retweet_count: int | None = None
    like_count: int | None = None
    media: list[MediaItem] = field(default_factory=list)
    conversation_id: str | None = None
    in_reply_to_id: str | None = None
    quoted_tweet: "Bookmark | None" = None


class LinkType(str, Enum):
    ARTICLE = "article"
    VIDEO = "youtube"
    TWITTER = "twitter"
    IMAGE = "image"
    UNKNOWN = "unknown"


@dataclass
class LinkInfo:
    url: str
    type: LinkType
    title: str | None = None
    author: str | None = None
    published_date: str | None = None
    duration: int | None = None  # seconds
    content: str | None = None
    error: str | None = None


@dataclass
class BookmarkMetadata:
    has_links: bool = False
    has_media: bool = False
    is_thread: bool = False
    is_quote: bool = False
    link_types: list[LinkType] = field(default_factory=list)


@dataclass
class EnrichedBookmark:
    bookmark: Bookmark
    source_url: str  # https://x.com/{username}/status/{id}
    links: list[LinkInfo] = field(default_factory=list)
    thread_content: str | None = None
    quoted_content: str | None = None
    metadata: BookmarkMetadata = field(default_factory=BookmarkMetadata)


@dataclass
class ProcessedEntry:
    id: str
    processed_at: datetime
    author: str | None = None
    destination: str | None = None
    action: str | None = None
    error: str | None = None
    bookmark: Bookmark | None = None  # cached so reprocessing needs no refetch


@dataclass
class DestinationResult:
    success: bool
    message: str
    id: str | None = None
    error: str | None = None


@dataclass
class FetchResult(Generic[T]):
    """Outcome of a fetch that may legitimately come back empty.

    Exactly one of three shapes: a value, nothing (expected absence such as
    a video without captions), or an error message.
    """

    value: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, value: T) -> "FetchResult[T]":
        return cls(value=value)

    @classmethod
    def empty(cls) -> "FetchResult[T]":
        return cls()

    @classmethod
    def failed(cls, error: str) -> "FetchResult[T]":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.value is not None

    @property
    def is_empty(self) -> bool:
        return self.value is None and self.error is None

    @property
    def is_error(self) -> bool:
        return self.error is not None
