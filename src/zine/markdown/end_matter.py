"""Comment end-matter appended after an article body.

A line consisting only of ``+++`` (outside a code fence) ends the body. Everything after
it is TOML holding ``[[comment]]`` tables::

    +++
    [[comment]]
    author = "Bob"
    bio = "Reader"
    content = "Great read!"
"""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, ValidationError

from zine.core.diagnostics import Diagnostics, Problem
from zine.core.types import Comment

DELIMITER = "+++"
_FENCE_RE = re.compile(r"^\s{0,3}(`{3,}|~{3,})")


class CommentConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    author: str
    content: str
    bio: str | None = None
    avatar: str | None = None
    link: str | None = None


class EndMatterConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    comment: list[CommentConfig] = []


@dataclass(frozen=True, slots=True)
class EndMatter:
    body: str
    comments: tuple[Comment, ...] = ()
    problems: tuple[Problem, ...] = ()


def _find_delimiter(lines: list[str]) -> int | None:
    fence: str | None = None
    for index, line in enumerate(lines):
        match = _FENCE_RE.match(line)
        if match:
            marker = match.group(1)
            if fence is None:
                fence = marker
            elif marker[0] == fence[0] and len(marker) >= len(fence):
                fence = None
            continue
        if fence is None and line.strip() == DELIMITER:
            return index
    return None


def split_end_matter(text: str, *, entity: str = "end-matter") -> EndMatter:
    """Split ``text`` into the body and its parsed comments.

    Invalid end-matter is a warning: the body is kept and no comments are returned.
    """
    lines = text.splitlines(keepends=True)
    index = _find_delimiter(lines)
    if index is None:
        return EndMatter(body=text)

    body = "".join(lines[:index])
    raw = "".join(lines[index + 1 :])
    diagnostics = Diagnostics()
    try:
        config = EndMatterConfig.model_validate(tomllib.loads(raw))
    except tomllib.TOMLDecodeError as exc:
        diagnostics.warn(entity, f"invalid end-matter TOML: {exc}", field="comment")
        return EndMatter(body=body, problems=tuple(diagnostics.problems))
    except ValidationError as exc:
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"])
            diagnostics.warn(entity, f"invalid comment: {error['msg']}", field=location)
        return EndMatter(body=body, problems=tuple(diagnostics.problems))

    comments = tuple(
        Comment(
            author=item.author,
            content=item.content,
            bio=item.bio,
            avatar=item.avatar,
            link=item.link,
        )
        for item in config.comment
    )
    return EndMatter(body=body, comments=comments)
