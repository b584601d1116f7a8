"""Article content extraction.

Pages are downloaded with httpx and run through trafilatura, which finds
the main text and the title/author/date metadata.
"""

import json
import logging
from dataclasses import dataclass

import httpx
import trafilatura

from .models import FetchResult
from .timeout import CallTimeout, call_with_timeout

logger = logging.getLogger(__name__)


@dataclass
class ArticleContent:
    url: str
    content: str | None = None
    title: str | None = None
    author: str | None = None
    published: str | None = None
    description: str | None = None


def extract_article(
    url: str, client: httpx.Client, timeout: float = 30.0
) -> FetchResult[ArticleContent]:
    """Download and extract an article, giving up after `timeout` seconds.

    Timeouts are expected for some sites and only logged at debug level.
    """
    try:
        article = call_with_timeout(_download_and_extract, timeout, url, client, timeout)
    except (CallTimeout, httpx.TimeoutException) as e:
        logger.debug("Article extraction timed out for %s: %s", url, e)
        return FetchResult.failed(f"Timeout: {e}")
    except httpx.HTTPError as e:
        logger.warning("Failed to fetch article from %s: %s", url, e)
        return FetchResult.failed(str(e))
    except Exception as e:  # trafilatura/lxml raise a wide range of parse errors
        logger.warning("Failed to extract article from %s: %s", url, e)
        return FetchResult.failed(str(e))

    if article is None or not article.content:
        return FetchResult.empty()
    return FetchResult.ok(article)


def _download_and_extract(
    url: str, client: httpx.Client, timeout: float
) -> ArticleContent | None:
    response = client.get(url, timeout=timeout, follow_redirects=True)
    response.raise_for_status()

    content_type = response.headers.get("content-type", "")
    if content_type and "html" not in content_type and "xml" not in content_type:
        logger.debug("Not an HTML page (%s): %s", content_type, url)
        return None

    final_url = str(response.url)
    extracted = trafilatura.extract(
        response.text,
        url=final_url,
        output_format="json",
        with_metadata=True,
        include_comments=False,
    )
    if not extracted:
        return None

    data = json.loads(extracted)
    return ArticleContent(
        url=final_url,
        content=data.get("text") or None,
        title=data.get("title") or None,
        author=data.get("author") or None,
        published=data.get("date") or None,
        description=data.get("excerpt") or data.get("description") or None,
    )
