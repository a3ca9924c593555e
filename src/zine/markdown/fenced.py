"""Fence info parsing and the closed set of directive kinds."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


class DirectiveKind(str, Enum):
    """Directive recognized from a fence's name.

    ``CODE`` is the fallback for ordinary code fences and unknown names.
    """

    URL_PREVIEW = "urlpreview"
    CALLOUT = "callout"
    GALLERY = "gallery"
    CODE = "code"

    @classmethod
    def from_name(cls, name: str) -> DirectiveKind:
        try:
            kind = cls(name.lower())
        except ValueError:
            return cls.CODE
        return kind


class CalloutKind(str, Enum):
    NOTE = "note"
    TIP = "tip"
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True, slots=True)
class Fenced:
    """A parsed fence info string: ``name, key: value, key: value``."""

    name: str
    options: dict[str, str] = field(default_factory=dict)

    @property
    def kind(self) -> DirectiveKind:
        return DirectiveKind.from_name(self.name)

    @property
    def language(self) -> str:
        return self.name.split(maxsplit=1)[0] if self.name else ""

    @classmethod
    def parse(cls, info: str) -> Fenced:
        name, *raw_options = (part.strip() for part in info.split(","))
        options: dict[str, str] = {}
        for raw in raw_options:
            key, sep, value = raw.partition(":")
            key, value = key.strip(), value.strip()
            if not sep or not key:
                logger.debug("Ignoring malformed fence option %r in %r", raw, info)
                continue
            options[key] = value.strip("\"'")
        return cls(name=name, options=options)
