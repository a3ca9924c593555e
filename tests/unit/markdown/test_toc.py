from zine.markdown.nodes import Heading
from zine.markdown.toc import AnchorRegistry, anchor_slug, build_toc


def _headings(*levels: int) -> list[Heading]:
    return [Heading(level=level, text=f"H{i}", anchor=f"h{i}") for i, level in enumerate(levels)]


def test_skipped_levels_nest_under_previous_shallower_heading():
    """It should give [2, 4, 2, 3] two roots with one child each."""
    toc = build_toc(_headings(2, 4, 2, 3))

    assert [entry.anchor for entry in toc] == ["h0", "h2"]
    assert [child.anchor for child in toc[0].children] == ["h1"]
    assert [child.anchor for child in toc[1].children] == ["h3"]


def test_deeper_first_heading_starts_a_root():
    toc = build_toc(_headings(3, 2, 3))

    assert [entry.level for entry in toc] == [3, 2]
    assert toc[1].children[0].anchor == "h2"


def test_empty_document_has_empty_toc():
    assert build_toc([]) == []


def test_to_dict_is_nested():
    toc = build_toc(_headings(1, 2))

    assert toc[0].to_dict() == {
        "level": 1,
        "anchor": "h0",
        "text": "H0",
        "children": [{"level": 2, "anchor": "h1", "text": "H1", "children": []}],
    }


def test_anchor_slug_normalizes_text():
    assert anchor_slug("Hello, World!") == "hello-world"
    assert anchor_slug("  Spaces   and_underscores ") == "spaces-and-underscores"
    assert anchor_slug("Café crème") == "café-crème"


def test_empty_heading_gets_fallback_anchor():
    assert anchor_slug("") == "section"
    assert anchor_slug("!!!") == "section"


def test_duplicate_anchors_are_suffixed():
    registry = AnchorRegistry()

    anchors = [registry.anchor_for(text) for text in ["Intro", "Intro", "Intro"]]

    assert anchors == ["intro", "intro-1", "intro-2"]


def test_suffix_skips_anchor_taken_by_literal_heading():
    registry = AnchorRegistry()

    anchors = [registry.anchor_for(text) for text in ["Intro 1", "Intro", "Intro"]]

    assert anchors == ["intro-1", "intro", "intro-2"]
