"""HTML snippets for the markdown extensions.

Every value interpolated here goes through :meth:`markupsafe.Markup.format`, which
escapes it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from urllib.parse import urlsplit

from markupsafe import Markup

from zine.core.types import Article, Author
from zine.markdown.fenced import CalloutKind

PREVIEW_ERROR = "Url preview error"


@dataclass(frozen=True, slots=True)
class Card:
    """Shared shape of URL preview cards and article cross-link cards."""

    url: str
    title: str
    description: str | None = None
    image: str | None = None

    @property
    def host(self) -> str:
        return urlsplit(self.url).netloc or self.url


def author_code(author: Author) -> Markup:
    return Markup(
        '<a class="author-code" href="{url}" title="{name}">'
        '<img class="author-avatar" src="{avatar}" alt="{name}" loading="lazy">'
        '<span class="author-name">{name}</span></a>'
    ).format(url=author.url, name=author.name, avatar=author.avatar)


def card(item: Card, *, inline: bool = False, css_class: str = "preview-card") -> Markup:
    """Render a card; inline cards use ``<span>`` so they can sit inside a paragraph."""
    tag = "span" if inline else "div"
    parts = [Markup('<a class="{cls}" href="{url}">').format(cls=css_class, url=item.url)]
    if item.image:
        parts.append(
            Markup('<img class="{cls}-image" src="{src}" alt="" loading="lazy">').format(
                cls=css_class, src=item.image
            )
        )
    parts.append(Markup('<{tag} class="{cls}-body">').format(tag=Markup(tag), cls=css_class))
    parts.append(Markup('<{tag} class="{cls}-title">{title}</{tag}>').format(tag=Markup(tag), cls=css_class, title=item.title))
    if item.description:
        parts.append(
            Markup('<{tag} class="{cls}-description">{text}</{tag}>').format(
                tag=Markup(tag), cls=css_class, text=item.description
            )
        )
    parts.append(Markup('<{tag} class="{cls}-url">{host}</{tag}>').format(tag=Markup(tag), cls=css_class, host=item.host))
    parts.append(Markup("</{tag}></a>").format(tag=Markup(tag)))
    return Markup("").join(parts)


def preview_card(item: Card) -> Markup:
    return Markup('<div class="url-preview">{card}</div>\n').format(card=card(item))


def fallback_card(url: str, reason: str | None = None) -> Markup:
    """Plain link shown when a preview is missing or failed."""
    return Markup(
        '<div class="url-preview url-preview-fallback" title="{title}">'
        '<a href="{url}" rel="noopener">{url}</a></div>\n'
    ).format(url=url, title=f"{PREVIEW_ERROR}: {reason}" if reason else PREVIEW_ERROR)


def inline_link(article: Article, *, description: str | None = None, default_cover: str | None = None) -> Markup:
    item = Card(
        url=article.url,
        title=article.title,
        description=description,
        image=article.cover or default_cover,
    )
    return card(item, inline=True, css_class="inline-link")


def plain_link(target: str) -> Markup:
    return Markup('<a class="inline-link-missing" href="{url}">{url}</a>').format(url=target)


def callout(
    kind: CalloutKind,
    body_html: str,
    *,
    bg_color: str | None = None,
    border_color: str | None = None,
) -> Markup:
    styles = []
    if bg_color:
        styles.append(f"background-color: {bg_color}")
    if border_color:
        styles.append(f"border-color: {border_color}")
    style = Markup(' style="{}"').format("; ".join(styles)) if styles else Markup("")
    return Markup('<div class="callout callout-{kind}"{style}>{body}</div>\n').format(
        kind=kind.value, style=style, body=Markup(body_html)
    )


def gallery(images: Iterable[str]) -> Markup:
    items = Markup("").join(
        Markup('<img src="{src}" alt="" loading="lazy">').format(src=src) for src in images
    )
    return Markup('<div class="gallery">{items}</div>\n').format(items=items)
