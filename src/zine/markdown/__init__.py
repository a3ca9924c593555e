"""Markdown extensions: directives, author mentions, cross-links, TOC and end-matter."""

from zine.markdown.description import extract_description
from zine.markdown.end_matter import split_end_matter
from zine.markdown.engine import ExtensionEngine
from zine.markdown.fenced import CalloutKind, DirectiveKind, Fenced
from zine.markdown.nodes import ContentNode, DirectiveNode, Heading, ParsedDocument, RenderedDocument
from zine.markdown.toc import AnchorRegistry, build_toc

__all__ = [
    "AnchorRegistry",
    "CalloutKind",
    "ContentNode",
    "DirectiveKind",
    "DirectiveNode",
    "ExtensionEngine",
    "Fenced",
    "Heading",
    "ParsedDocument",
    "RenderedDocument",
    "build_toc",
    "extract_description",
    "split_end_matter",
]
