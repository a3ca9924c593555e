"""Known locales and the builtin strings shown in rendered pages."""

from __future__ import annotations

LOCALES: dict[str, str] = {
    "en": "English",
    "fr": "Français",
    "es": "Español",
    "ja": "日本語",
    "zh": "中文",
    "zh_CN": "简体中文",
    "zh_TW": "繁體中文",
}

_EN = {
    "issues": "Issues",
    "featured": "Featured",
    "authors": "Authors",
    "author-list": "All authors",
    "editor": "Editor",
    "anonymous": "Anonymous",
    "comments": "Comments",
    "toc": "Table of contents",
    "published-on": "Published on",
    "previous": "Previous",
    "next": "Next",
    "articles": "Articles",
    "edit-page": "Edit this page",
}

_ZH_CN = {
    "issues": "期刊",
    "featured": "精选",
    "authors": "作者",
    "author-list": "所有作者",
    "editor": "编辑",
    "anonymous": "匿名",
    "comments": "评论",
    "toc": "目录",
    "published-on": "发布于",
    "previous": "上一篇",
    "next": "下一篇",
    "articles": "文章",
    "edit-page": "编辑本页",
}

_TRANSLATIONS: dict[str, dict[str, str]] = {
    "en": _EN,
    "zh_CN": _ZH_CN,
    "zh": _ZH_CN,
}


def is_known_locale(locale: str) -> bool:
    return locale in LOCALES


def locale_name(locale: str) -> str:
    """Native name of ``locale``, shown in language switchers."""
    return LOCALES.get(locale, locale)


def translation_table(locale: str) -> dict[str, str]:
    """Return the builtin strings for ``locale``, falling back to English per key."""
    table = dict(_EN)
    table.update(_TRANSLATIONS.get(locale, {}))
    return table
