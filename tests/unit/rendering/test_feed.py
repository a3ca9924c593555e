from datetime import UTC, date, datetime
from pathlib import Path

from defusedxml import ElementTree

from zine.core.types import ANONYMOUS, Article, Author, Site
from zine.rendering.feed import feed_to_xml_string, sitemap_to_xml_string

ATOM = "{http://www.w3.org/2005/Atom}"
SITE = Site(name="Zine & Co", url="https://zine.example", description="Weekly")


def _article(slug: str, day: int, *authors: Author, topics: tuple[str, ...] = ()) -> Article:
    return Article(
        issue_slug="issue-1",
        slug=slug,
        file=f"{slug}.md",
        source=Path(f"/site/content/issue-1/{slug}.md"),
        title=f"Title {slug}",
        pub_date=date(2024, 1, day),
        authors=authors,
        publish=True,
        topics=topics,
    )


def test_feed_serializes_entries_in_given_order():
    alice = Author(id="alice", name="Alice")
    entries = [_article("new", 9, alice, topics=("python",)), _article("old", 2, ANONYMOUS)]

    xml = feed_to_xml_string(SITE, entries, summaries={("issue-1", "new"): "Summary of new"})

    feed = ElementTree.fromstring(xml.encode("utf-8"))
    assert feed.findtext(f"{ATOM}title") == "Zine & Co"
    assert feed.findtext(f"{ATOM}updated") == "2024-01-09T00:00:00+00:00"
    first, second = feed.findall(f"{ATOM}entry")
    assert first.findtext(f"{ATOM}id") == "https://zine.example/issue-1/new"
    assert first.findtext(f"{ATOM}summary") == "Summary of new"
    assert first.findtext(f"{ATOM}author/{ATOM}uri") == "https://zine.example/@alice"
    assert first.find(f"{ATOM}category").get("term") == "python"
    assert second.findtext(f"{ATOM}author/{ATOM}name") == "Anonymous"
    assert second.find(f"{ATOM}author/{ATOM}uri") is None
    assert second.find(f"{ATOM}summary") is None


def test_empty_feed_uses_given_update_time():
    updated = datetime(2024, 5, 1, tzinfo=UTC)

    xml = feed_to_xml_string(SITE, [], updated=updated)

    feed = ElementTree.fromstring(xml.encode("utf-8"))
    assert feed.findall(f"{ATOM}entry") == []
    assert feed.findtext(f"{ATOM}updated") == updated.isoformat()


def test_sitemap_keeps_order_and_lastmod():
    xml = sitemap_to_xml_string(SITE, [("/", None), ("/issue-1/a", "2024-01-02")])

    root = ElementTree.fromstring(xml.encode("utf-8"))
    ns = "{http://www.sitemaps.org/schemas/sitemap/0.9}"
    urls = root.findall(f"{ns}url")
    assert [url.findtext(f"{ns}loc") for url in urls] == ["https://zine.example/", "https://zine.example/issue-1/a"]
    assert urls[0].find(f"{ns}lastmod") is None
    assert urls[1].findtext(f"{ns}lastmod") == "2024-01-02"
