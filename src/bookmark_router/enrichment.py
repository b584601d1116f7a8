"""Enrichment pipeline for bookmarks.

For every URL in a bookmark's text:
    discover -> resolve shortener -> classify -> fetch -> truncate

Classification is first-match-wins:
    1. YouTube video (when transcripts are enabled)
    2. twitter.com / x.com link (no fetch)
    3. image file
    4. generic article (when article fetching is enabled), else unknown

Thread context and quoted-tweet summaries are resolved alongside. Link and
context failures never propagate: they end up as an `error` on the
LinkInfo or as missing context.
"""

import logging
from typing import Callable

import httpx

from .article import ArticleContent, extract_article
from .config import EnrichmentConfig
from .models import (
    Bookmark,
    BookmarkMetadata,
    EnrichedBookmark,
    FetchResult,
    LinkInfo,
    LinkType,
)
from .thread import ThreadSource, expand_thread, format_quoted_tweet, is_likely_thread
from .urls import (
    extract_urls,
    extract_video_id,
    is_image_url,
    is_shortened_url,
    is_twitter_url,
    is_youtube_url,
    truncate_content,
)
from .youtube import Transcript, fetch_transcript

logger = logging.getLogger(__name__)

TranscriptFetcher = Callable[[str, float], FetchResult[Transcript]]
ArticleExtractor = Callable[[str, httpx.Client, float], FetchResult[ArticleContent]]

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)


def build_source_url(bookmark: Bookmark) -> str:
    return f"https://x.com/{bookmark.author.username}/status/{bookmark.id}"


def build_metadata(bookmark: Bookmark, links: list[LinkInfo]) -> BookmarkMetadata:
    link_types: list[LinkType] = []
    for link in links:
        if link.type not in link_types:
            link_types.append(link.type)

    return BookmarkMetadata(
        has_links=bool(links),
        has_media=bool(bookmark.media),
        is_thread=is_likely_thread(bookmark),
        is_quote=bookmark.quoted_tweet is not None,
        link_types=link_types,
    )


def minimal_enrichment(bookmark: Bookmark) -> EnrichedBookmark:
    """Fallback record used when enrichment of a bookmark blows up."""
    return EnrichedBookmark(
        bookmark=bookmark,
        source_url=build_source_url(bookmark),
        links=[],
        metadata=BookmarkMetadata(),
    )


class Enricher:
    """Enriches bookmarks with linked content and thread context."""

    def __init__(
        self,
        config: EnrichmentConfig,
        thread_source: ThreadSource | None = None,
        client: httpx.Client | None = None,
        transcript_fetcher: TranscriptFetcher = fetch_transcript,
        article_extractor: ArticleExtractor = extract_article,
    ):
        self.config = config
        self._thread_source = thread_source
        self._owns_client = client is None
        self._client = client or httpx.Client(
            headers={"User-Agent": USER_AGENT},
            timeout=config.timeout,
            follow_redirects=True,
        )
        self._fetch_transcript = transcript_fetcher
        self._extract_article = article_extractor

    def resolve_url(self, url: str) -> FetchResult[str]:
        """Follow a link shortener's redirects with a HEAD request.

        Non-shortened URLs come back unchanged.
        """
        if not is_shortened_url(url):
            return FetchResult.ok(url)

        try:
            response = self._client.head(
                url, follow_redirects=True, timeout=self.config.timeout
            )
        except httpx.HTTPError as e:
            logger.debug("Could not resolve %s: %s", url, e)
            return FetchResult.failed(str(e))
        return FetchResult.ok(str(response.url))

    def enrich_link(self, url: str) -> LinkInfo:
        resolved = self.resolve_url(url)
        resolved_url = resolved.value if resolved.is_ok else url

        if self.config.fetch_youtube and is_youtube_url(resolved_url):
            return self._enrich_video(resolved_url)

        # Never fetch tweets as articles
        if is_twitter_url(resolved_url):
            return LinkInfo(url=resolved_url, type=LinkType.TWITTER)

        if is_image_url(resolved_url):
            return LinkInfo(url=resolved_url, type=LinkType.IMAGE)

        if self.config.fetch_articles:
            result = self._extract_article(resolved_url, self._client, self.config.timeout)
            if result.is_ok:
                article = result.value
                return LinkInfo(
                    url=resolved_url,
                    type=LinkType.ARTICLE,
                    title=article.title,
                    author=article.author,
                    published_date=article.published,
                    content=truncate_content(
                        article.content, self.config.max_content_length
                    ),
                )

        return LinkInfo(url=resolved_url, type=LinkType.UNKNOWN)

    def _enrich_video(self, url: str) -> LinkInfo:
        video_id = extract_video_id(url)
        if not video_id:
            return LinkInfo(
                url=url, type=LinkType.VIDEO, error="Could not extract video ID"
            )

        result = self._fetch_transcript(video_id, self.config.timeout)
        if result.is_error:
            return LinkInfo(url=url, type=LinkType.VIDEO, error=result.error)
        if result.is_empty:
            return LinkInfo(url=url, type=LinkType.VIDEO)

        transcript = result.value
        return LinkInfo(
            url=url,
            type=LinkType.VIDEO,
            title=transcript.title,
            duration=transcript.duration,
            content=truncate_content(transcript.text, self.config.max_content_length),
        )

    def enrich_bookmark(self, bookmark: Bookmark) -> EnrichedBookmark:
        links: list[LinkInfo] = []
        for url in extract_urls(bookmark.text):
            try:
                links.append(self.enrich_link(url))
            except Exception as e:  # one bad link must not cost the others
                logger.error("Failed to enrich link %s: %s", url, e)
                links.append(LinkInfo(url=url, type=LinkType.UNKNOWN, error=str(e)))

        thread_content = None
        if (
            self.config.expand_threads
            and self._thread_source is not None
            and is_likely_thread(bookmark)
        ):
            thread = expand_thread(bookmark, self._thread_source, self.config.timeout)
            if thread.is_ok:
                thread_content = thread.value.full_text

        quoted_content = None
        if bookmark.quoted_tweet is not None:
            quoted_content = format_quoted_tweet(bookmark.quoted_tweet)

        return EnrichedBookmark(
            bookmark=bookmark,
            source_url=build_source_url(bookmark),
            links=links,
            thread_content=thread_content,
            quoted_content=quoted_content,
            metadata=build_metadata(bookmark, links),
        )

    def enrich_safely(self, bookmark: Bookmark) -> EnrichedBookmark:
        """enrich_bookmark(), but never loses the bookmark."""
        try:
            return self.enrich_bookmark(bookmark)
        except Exception as e:
            logger.error("Failed to enrich bookmark %s: %s", bookmark.id, e)
            return minimal_enrichment(bookmark)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
