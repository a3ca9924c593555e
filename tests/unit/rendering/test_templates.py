from datetime import date

import pytest
from jinja2 import TemplateNotFound

from zine.core.types import Site, Theme
from zine.rendering import filters
from zine.rendering.templates import TemplateLoader

SITE = Site(name="Zine", url="https://zine.example", locale="zh_CN")
THEME = Theme(
    primary_color="#111",
    primary_text_color="#fff",
    primary_link_color="#00f",
    secondary_color="#eee",
    footer_template="<p class='footer'>Footer</p>",
)


def test_templates_use_locale_strings_and_escape_values():
    loader = TemplateLoader(locale="zh_CN")

    html = loader.render_template(
        "author_list.jinja2",
        site=SITE,
        theme=THEME,
        authors=[],
        description="<script>alert(1)</script>",
    )

    assert "所有作者" in html
    assert "&lt;script&gt;" in html
    assert "<p class='footer'>Footer</p>" in html
    assert "--primary-color: #111" in html


def test_live_reload_script_is_injected_when_requested():
    loader = TemplateLoader()

    html = loader.render_template(
        "author_list.jinja2", site=SITE, theme=THEME, authors=[], live_reload="ws://127.0.0.1:3001/"
    )

    assert 'new WebSocket("ws://127.0.0.1:3001/")' in html


def test_missing_template_raises():
    with pytest.raises(TemplateNotFound):
        TemplateLoader().load_template("nope.jinja2")


def test_filters():
    assert filters.format_date(date(2024, 3, 9)) == "2024-03-09"
    assert filters.format_date("not a date") == "not a date"
    assert filters.isoformat(date(2024, 3, 9)) == "2024-03-09"
    assert filters.truncate_words("one two three", 2) == "one two…"
    assert filters.truncate_words("one two", 2) == "one two"
    assert filters.absolute_url("/feed.xml", "https://zine.example/") == "https://zine.example/feed.xml"
    assert filters.absolute_url("https://cdn.example/x.png", "https://zine.example") == "https://cdn.example/x.png"
