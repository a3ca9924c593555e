"""Render nodes produced by parsing and evaluating an article body."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from zine.core.diagnostics import Problem
from zine.core.types import Comment, TocEntry
from zine.markdown.fenced import DirectiveKind, Fenced


@dataclass(frozen=True, slots=True)
class Heading:
    level: int
    text: str
    anchor: str


@dataclass(frozen=True, slots=True)
class ContentNode:
    """Verbatim markdown handed to the base markdown renderer."""

    markdown: str


@dataclass(frozen=True, slots=True)
class DirectiveNode:
    fenced: Fenced
    payload: str

    @property
    def kind(self) -> DirectiveKind:
        return self.fenced.kind


RenderNode = ContentNode | DirectiveNode


@dataclass(frozen=True, slots=True)
class ParsedDocument:
    nodes: tuple[RenderNode, ...]
    comments: tuple[Comment, ...] = ()
    problems: tuple[Problem, ...] = ()
    # Link reference definitions of the whole body, shared by every content node.
    references: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RenderedComment:
    comment: Comment
    html: str


@dataclass(frozen=True, slots=True)
class RenderedDocument:
    html: str
    nodes: tuple[RenderNode, ...]
    headings: tuple[Heading, ...]
    toc: list[TocEntry]
    comments: tuple[RenderedComment, ...] = ()
    problems: tuple[Problem, ...] = ()
