"""The markdown extension engine.

Article bodies are split into plain markdown blocks and directive blocks. Plain blocks
go to markdown-it unchanged; directives (URL previews, callouts, galleries) and inline
extensions (author mentions, article cross-links) are evaluated against the resolved
content graph and the link-preview cache.

Rendering happens in two phases. Every ``urlpreview`` URL of a document is collected
and looked up first, concurrently; the HTML is then produced synchronously from the
finished lookups, so the output only depends on the graph and the cache contents.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING, Any

from markdown_it import MarkdownIt
from markdown_it.rules_core import StateCore
from markupsafe import escape
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from zine.core.diagnostics import Diagnostics
from zine.core.types import Article
from zine.markdown import widgets
from zine.markdown.description import extract_description
from zine.markdown.end_matter import split_end_matter
from zine.markdown.fenced import CalloutKind, DirectiveKind, Fenced
from zine.markdown.nodes import (
    ContentNode,
    DirectiveNode,
    Heading,
    ParsedDocument,
    RenderedComment,
    RenderedDocument,
    RenderNode,
)
from zine.markdown.toc import AnchorRegistry, build_toc

if TYPE_CHECKING:
    from zine.core.graph import ContentGraph
    from zine.preview.cache import LinkPreviewCache
    from zine.preview.models import PreviewRecord

logger = logging.getLogger(__name__)

_CROSS_LINK_RE = re.compile(r"^/[\w.~-]+/[\w.~-]+/?$")
_ENGINE_KEY = "zine_engine"


def _first_line(payload: str) -> str:
    return next((line.strip() for line in payload.splitlines() if line.strip()), "")


def _heading_anchors(state: StateCore) -> None:
    registry: AnchorRegistry | None = state.env.get("anchors")
    if registry is None:
        return
    tokens = state.tokens
    for index, token in enumerate(tokens):
        if token.type != "heading_open":
            continue
        inline = tokens[index + 1]
        text = "".join(
            child.content for child in inline.children or [] if child.type in ("text", "code_inline")
        ).strip()
        anchor = registry.anchor_for(text)
        token.attrSet("id", anchor)
        state.env["headings"].append(Heading(level=int(token.tag[1:]), text=text, anchor=anchor))


def _render_code_inline(renderer: Any, tokens: list, idx: int, options: Any, env: dict) -> str:
    engine: ExtensionEngine | None = env.get(_ENGINE_KEY)
    if engine is not None:
        rendered = engine.render_inline_code(tokens[idx].content.strip(), env)
        if rendered is not None:
            return rendered
    return renderer.code_inline(tokens, idx, options, env)


def _render_fence(renderer: Any, tokens: list, idx: int, options: Any, env: dict) -> str:
    token = tokens[idx]
    fenced = Fenced.parse(token.info)
    engine: ExtensionEngine | None = env.get(_ENGINE_KEY)
    if engine is not None and fenced.kind is not DirectiveKind.CODE:
        return engine.render_directive(DirectiveNode(fenced, token.content), env)
    if fenced.options:
        token.info = fenced.language
    return renderer.fence(tokens, idx, options, env)


class ExtensionEngine:
    """Parses and evaluates article bodies.

    One engine is shared by every article of a build. It holds no per-document
    state; that lives in the markdown-it ``env`` of each evaluation.
    """

    def __init__(
        self,
        graph: ContentGraph | None = None,
        cache: LinkPreviewCache | None = None,
        *,
        highlight_code: bool = True,
        highlight_theme: str = "monokai",
    ) -> None:
        self.graph = graph
        self.cache = cache
        self.highlight_code = highlight_code
        self.highlight_theme = highlight_theme
        self._formatter = HtmlFormatter(nowrap=True)

        options: dict[str, Any] = {"html": True}
        if highlight_code:
            options["highlight"] = self._highlight
        self.md = MarkdownIt("commonmark", options)
        self.md.add_render_rule("code_inline", _render_code_inline)
        self.md.add_render_rule("fence", _render_fence)
        self.md.core.ruler.push("heading_anchors", _heading_anchors)

    @classmethod
    def for_graph(cls, graph: ContentGraph, cache: LinkPreviewCache | None = None) -> ExtensionEngine:
        return cls(
            graph,
            cache,
            highlight_code=graph.markdown.highlight_code,
            highlight_theme=graph.markdown.highlight_theme,
        )

    def stylesheet(self) -> str:
        """Pygments CSS for the configured theme, scoped to ``.highlight``."""
        return HtmlFormatter(style=self.highlight_theme).get_style_defs(".highlight")

    def _highlight(self, code: str, lang: str, _attrs: str) -> str:
        if not lang:
            return ""
        try:
            lexer = get_lexer_by_name(lang)
        except ClassNotFound:
            logger.debug("No lexer for %r, leaving code block plain", lang)
            return ""
        body = highlight(code, lexer, self._formatter)
        return f'<pre class="highlight"><code class="language-{escape(lang)}">{body}</code></pre>\n'

    # -- parsing ---------------------------------------------------------------------

    def parse(self, text: str, *, entity: str = "article") -> ParsedDocument:
        """Split ``text`` into render nodes and its end-matter comments."""
        end_matter = split_end_matter(text, entity=entity)
        body = end_matter.body
        env: dict[str, Any] = {}
        tokens = self.md.parse(body, env)
        lines = body.splitlines(keepends=True)

        nodes: list[RenderNode] = []
        cursor = 0

        def flush(until: int) -> None:
            chunk = "".join(lines[cursor:until])
            if chunk.strip():
                nodes.append(ContentNode(chunk))

        for token in tokens:
            if token.type != "fence" or token.level != 0 or token.map is None:
                continue
            fenced = Fenced.parse(token.info)
            if fenced.kind is DirectiveKind.CODE:
                continue
            start, end = token.map
            flush(start)
            nodes.append(DirectiveNode(fenced, token.content))
            cursor = end
        flush(len(lines))

        return ParsedDocument(
            nodes=tuple(nodes),
            comments=end_matter.comments,
            problems=end_matter.problems,
            references=dict(env.get("references", {})),
        )

    def preview_urls(self, parsed: ParsedDocument) -> list[str]:
        """Every ``urlpreview`` URL in the document, including fences nested in lists and callouts."""
        urls: list[str] = []
        for node in parsed.nodes:
            if isinstance(node, DirectiveNode):
                self._collect_directive_urls(node.fenced, node.payload, urls)
            else:
                self._collect_markdown_urls(node.markdown, urls)
        return [url for url in dict.fromkeys(urls) if url]

    def _collect_directive_urls(self, fenced: Fenced, payload: str, urls: list[str]) -> None:
        if fenced.kind is DirectiveKind.URL_PREVIEW:
            urls.append(_first_line(payload))
        elif fenced.kind is DirectiveKind.CALLOUT:
            self._collect_markdown_urls(payload, urls)

    def _collect_markdown_urls(self, markdown: str, urls: list[str]) -> None:
        for token in self.md.parse(markdown, {}):
            if token.type == "fence":
                self._collect_directive_urls(Fenced.parse(token.info), token.content, urls)

    # -- evaluation ------------------------------------------------------------------

    async def _lookup_previews(self, urls: list[str]) -> dict[str, PreviewRecord]:
        if self.cache is None or not urls:
            return {}
        records = await asyncio.gather(*(self.cache.lookup(url) for url in urls))
        return dict(zip(urls, records, strict=True))

    def _new_env(self, entity: str, previews: dict[str, PreviewRecord], references: dict[str, Any]) -> dict[str, Any]:
        return {
            _ENGINE_KEY: self,
            "entity": entity,
            "anchors": AnchorRegistry(),
            "headings": [],
            "previews": previews,
            "diagnostics": Diagnostics(),
            "references": dict(references),
        }

    async def evaluate(self, parsed: ParsedDocument, article: Article | None = None) -> RenderedDocument:
        """Render a parsed document to HTML with its headings, TOC and comments."""
        entity = f"article:{article.issue_slug}/{article.slug}" if article else "document"
        previews = await self._lookup_previews(self.preview_urls(parsed))
        env = self._new_env(entity, previews, parsed.references)

        parts: list[str] = []
        for node in parsed.nodes:
            if isinstance(node, ContentNode):
                parts.append(self.md.render(node.markdown, env))
            else:
                parts.append(self.render_directive(node, env))

        comments = tuple(
            RenderedComment(comment, self.md.render(comment.content, self._new_env(entity, {}, {})))
            for comment in parsed.comments
        )
        headings = tuple(env["headings"])
        problems = parsed.problems + tuple(env["diagnostics"].problems)
        return RenderedDocument(
            html="".join(parts),
            nodes=parsed.nodes,
            headings=headings,
            toc=build_toc(headings),
            comments=comments,
            problems=problems,
        )

    async def render(self, text: str, article: Article | None = None) -> RenderedDocument:
        return await self.evaluate(self.parse(text), article)

    # -- extensions ------------------------------------------------------------------

    def render_inline_code(self, content: str, env: dict[str, Any]) -> str | None:
        """Author mentions and cross-links; ``None`` keeps the default inline code."""
        if self.graph is None:
            return None
        if content.startswith("@") and len(content) > 1:
            author = self.graph.author(content[1:])
            if author is None:
                return None
            return widgets.author_code(author)

        if content.startswith("/"):
            target = self.graph.article_by_path(content)
            if target is not None:
                return widgets.inline_link(
                    target,
                    description=extract_description(target.markdown) or None,
                    default_cover=self.graph.theme.default_cover,
                )
            if _CROSS_LINK_RE.match(content):
                env["diagnostics"].warn(env["entity"], f"unresolved article link {content}", field="link")
                return widgets.plain_link(content)
        return None

    def render_directive(self, node: DirectiveNode, env: dict[str, Any]) -> str:
        kind = node.kind
        if kind is DirectiveKind.URL_PREVIEW:
            return self._render_preview(_first_line(node.payload), env)
        if kind is DirectiveKind.CALLOUT:
            return self._render_callout(node.fenced, node.payload, env)
        if kind is DirectiveKind.GALLERY:
            images = [line.strip() for line in node.payload.splitlines() if line.strip()]
            return widgets.gallery(images)
        return self.md.render(f"```{node.fenced.name}\n{node.payload}```\n", env)

    def _render_preview(self, url: str, env: dict[str, Any]) -> str:
        record = env["previews"].get(url)
        if record is not None and record.ok:
            return widgets.preview_card(
                widgets.Card(url=url, title=record.title or url, description=record.description, image=record.image)
            )
        reason = record.error if record is not None else "not fetched"
        env["diagnostics"].warn(env["entity"], f"no preview for {url}: {reason}", field="urlpreview")
        return widgets.fallback_card(url, reason)

    def _render_callout(self, fenced: Fenced, payload: str, env: dict[str, Any]) -> str:
        raw_kind = fenced.options.get("kind", CalloutKind.NOTE.value)
        try:
            kind = CalloutKind(raw_kind.lower())
        except ValueError:
            env["diagnostics"].warn(env["entity"], f"unknown callout kind {raw_kind!r}, using note", field="callout")
            kind = CalloutKind.NOTE
        return widgets.callout(
            kind,
            self.md.render(payload, env),
            bg_color=fenced.options.get("bg_color"),
            border_color=fenced.options.get("border_color"),
        )
