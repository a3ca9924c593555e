"""Checks that link-preview URLs still resolve."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

import httpx

from zine.preview.fetcher import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

HTTP_NOT_FOUND = 404
HTTP_SERVER_ERROR = 500


class UrlCondition(str, Enum):
    OK = "ok"
    NOT_FOUND = "not-found"
    REDIRECTED = "redirected"
    SERVER_ERROR = "server-error"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True, slots=True)
class UrlStatus:
    url: str
    condition: UrlCondition
    status_code: int | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.condition is UrlCondition.OK


async def check_url(client: httpx.AsyncClient, url: str) -> UrlStatus:
    try:
        response = await client.head(url)
    except httpx.HTTPError as exc:
        return UrlStatus(url, UrlCondition.UNREACHABLE, detail=str(exc) or type(exc).__name__)

    status = response.status_code
    if status == HTTP_NOT_FOUND:
        return UrlStatus(url, UrlCondition.NOT_FOUND, status)
    if response.is_redirect:
        return UrlStatus(url, UrlCondition.REDIRECTED, status, detail=response.headers.get("location"))
    if status >= HTTP_SERVER_ERROR:
        return UrlStatus(url, UrlCondition.SERVER_ERROR, status)
    return UrlStatus(url, UrlCondition.OK, status)


async def lint_urls(
    urls: Iterable[str],
    *,
    timeout: float = 10.0,
    user_agent: str = DEFAULT_USER_AGENT,
    max_concurrency: int = 8,
    client: httpx.AsyncClient | None = None,
) -> list[UrlStatus]:
    """HEAD every distinct URL, without following redirects, in input order."""
    unique = list(dict.fromkeys(urls))
    semaphore = asyncio.Semaphore(max_concurrency)
    owns_client = client is None
    http = client or httpx.AsyncClient(
        timeout=timeout, follow_redirects=False, headers={"User-Agent": user_agent}
    )

    async def _check(url: str) -> UrlStatus:
        async with semaphore:
            status = await check_url(http, url)
        if not status.ok:
            logger.debug("%s: %s", url, status.condition.value)
        return status

    try:
        return list(await asyncio.gather(*(_check(url) for url in unique)))
    finally:
        if owns_client:
            await http.aclose()
