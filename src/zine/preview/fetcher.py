"""Fetches external pages and scrapes their preview metadata."""

from __future__ import annotations

import logging
from types import TracebackType
from urllib.parse import urljoin

import httpx
from lxml import etree, html

from zine.exceptions import PreviewFetchError
from zine.preview.models import PreviewMetadata

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "zine-preview/1.0"
MAX_FIELD_LENGTH = 200


def _truncate(value: str | None) -> str | None:
    if value is None:
        return None
    value = " ".join(value.split())
    if not value:
        return None
    return value[:MAX_FIELD_LENGTH]


def _meta(document: html.HtmlElement, *names: str) -> str | None:
    for name in names:
        for attribute in ("property", "name"):
            values = document.xpath(f"//meta[@{attribute}=$name]/@content", name=name)
            for value in values:
                if value and value.strip():
                    return value.strip()
    return None


def parse_metadata(content: str | bytes, url: str) -> PreviewMetadata:
    """Extract title, description and image from an HTML document.

    Open Graph tags win over Twitter cards, which win over ``<title>`` and
    ``meta[name=description]``. Relative image URLs are resolved against ``url``.

    Raises:
        PreviewFetchError: if the document cannot be parsed or has no title.

    """
    try:
        document = html.fromstring(content)
    except (etree.ParserError, ValueError) as exc:
        raise PreviewFetchError(url, f"unparseable HTML: {exc}") from exc

    title = _meta(document, "og:title", "twitter:title")
    if title is None:
        title = next(iter(document.xpath("//title/text()")), None)
    title = _truncate(title)
    if not title:
        raise PreviewFetchError(url, "no title metadata")

    description = _truncate(_meta(document, "og:description", "twitter:description", "description"))
    image = _meta(document, "og:image", "og:image:url", "twitter:image")
    if image:
        image = urljoin(url, image)

    return PreviewMetadata(title=title, description=description, image=image)


class PreviewFetcher:
    """HTTP client for link previews.

    Usage:
        async with PreviewFetcher(timeout=5) as fetcher:
            metadata = await fetcher.fetch("https://example.com")
    """

    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )

    async def __aenter__(self) -> PreviewFetcher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch(self, url: str) -> PreviewMetadata:
        """Fetch ``url`` and scrape its metadata.

        Raises:
            PreviewFetchError: on timeouts, network errors, non-2xx responses,
                non-HTML content and pages without usable metadata.

        """
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except (httpx.InvalidURL, ValueError) as exc:
            raise PreviewFetchError(url, "invalid URL") from exc
        except httpx.TimeoutException as exc:
            raise PreviewFetchError(url, "timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise PreviewFetchError(url, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise PreviewFetchError(url, str(exc) or type(exc).__name__) from exc

        content_type = response.headers.get("content-type", "")
        if "html" not in content_type.lower():
            raise PreviewFetchError(url, f"unsupported content type {content_type!r}")

        logger.debug("Fetched %s (%d bytes)", url, len(response.content))
        return parse_metadata(response.content, str(response.url))
