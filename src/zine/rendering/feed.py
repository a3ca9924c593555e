"""Atom feed and sitemap serialization."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from xml.etree.ElementTree import Element, SubElement, tostring

from zine.core.types import Article, Site
from zine.rendering.filters import absolute_url, to_datetime

ATOM_NS = "http://www.w3.org/2005/Atom"
SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
XML_DECLARATION = "<?xml version='1.0' encoding='UTF-8'?>\n"


def _timestamp(article: Article) -> str:
    return to_datetime(article.pub_date).replace(tzinfo=UTC).isoformat()


def feed_to_xml_string(
    site: Site,
    entries: Sequence[Article],
    *,
    summaries: dict[tuple[str, str], str] | None = None,
    updated: datetime | None = None,
) -> str:
    """Serialize the latest articles to an Atom XML string.

    ``entries`` must already be filtered and ordered (published only, newest first).
    """
    summaries = summaries or {}
    root = Element("feed", attrib={"xmlns": ATOM_NS})
    SubElement(root, "id").text = absolute_url("/", site.url)
    SubElement(root, "title").text = site.name
    if site.description:
        SubElement(root, "subtitle").text = site.description
    if updated is None:
        updated = to_datetime(entries[0].pub_date).replace(tzinfo=UTC) if entries else datetime.now(UTC)
    SubElement(root, "updated").text = updated.isoformat()
    SubElement(root, "link", attrib={"href": absolute_url("/", site.url)})
    SubElement(root, "link", attrib={"rel": "self", "href": absolute_url("/feed.xml", site.url)})

    for article in entries:
        url = absolute_url(article.url, site.url)
        entry_el = SubElement(root, "entry")
        SubElement(entry_el, "id").text = url
        SubElement(entry_el, "title").text = article.title
        SubElement(entry_el, "updated").text = _timestamp(article)
        SubElement(entry_el, "published").text = _timestamp(article)
        SubElement(entry_el, "link", attrib={"href": url})

        for author in article.authors:
            author_el = SubElement(entry_el, "author")
            SubElement(author_el, "name").text = author.name
            if not author.is_anonymous:
                SubElement(author_el, "uri").text = absolute_url(author.url, site.url)

        for topic in article.topics:
            SubElement(entry_el, "category", attrib={"term": topic})

        summary = summaries.get(article.key)
        if summary:
            SubElement(entry_el, "summary").text = summary

    return XML_DECLARATION + tostring(root, encoding="unicode")


def sitemap_to_xml_string(site: Site, urls: Iterable[tuple[str, str | None]]) -> str:
    """Serialize ``(path, lastmod)`` pairs to a sitemap, in the given order."""
    root = Element("urlset", attrib={"xmlns": SITEMAP_NS})
    for path, lastmod in urls:
        url_el = SubElement(root, "url")
        SubElement(url_el, "loc").text = absolute_url(path, site.url)
        if lastmod:
            SubElement(url_el, "lastmod").text = lastmod
    return XML_DECLARATION + tostring(root, encoding="unicode")
