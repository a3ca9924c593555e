"""Plain-text meta descriptions taken from markdown."""

from __future__ import annotations

from markdown_it import MarkdownIt

MAX_DESCRIPTION_LENGTH = 200

_md = MarkdownIt("commonmark")


def _plain_text(line: str) -> str:
    parts: list[str] = []
    for token in _md.parseInline(line):
        for child in token.children or []:
            if child.type in ("text", "code_inline"):
                parts.append(child.content)
            elif child.type in ("softbreak", "hardbreak"):
                parts.append(" ")
    return "".join(parts).strip()


def extract_description(markdown: str) -> str:
    """Return the first meaningful line of ``markdown`` as plain text.

    Headings, images, fenced blocks and raw HTML lines are skipped. The result is at
    most 200 characters and has double quotes replaced by single quotes so it can be
    placed in an attribute.
    """
    in_fence = False
    for raw in markdown.splitlines():
        line = raw.strip()
        if line.startswith(("```", "~~~")):
            in_fence = not in_fence
            continue
        if in_fence or not line:
            continue
        if line.startswith(("#", "![", "<", "+++")):
            continue
        line = line.lstrip(">").lstrip()
        if line[:2] in ("- ", "* ", "+ "):
            line = line[2:]
        text = _plain_text(line)
        if text:
            return text[:MAX_DESCRIPTION_LENGTH].replace('"', "'")
    return ""
