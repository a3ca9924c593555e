import pytest

from zine.markdown.fenced import DirectiveKind, Fenced


@pytest.mark.parametrize(
    ("info", "kind"),
    [
        ("urlpreview", DirectiveKind.URL_PREVIEW),
        ("URLPreview", DirectiveKind.URL_PREVIEW),
        ("callout, type: tip", DirectiveKind.CALLOUT),
        ("gallery", DirectiveKind.GALLERY),
        ("python", DirectiveKind.CODE),
        ("", DirectiveKind.CODE),
    ],
)
def test_kind_from_fence_name(info, kind):
    assert Fenced.parse(info).kind is kind


def test_options_are_parsed_and_unquoted():
    fenced = Fenced.parse('callout, type: warning, bg_color: "#fff3cd", border_color: #ffc107')

    assert fenced.name == "callout"
    assert fenced.options == {"type": "warning", "bg_color": "#fff3cd", "border_color": "#ffc107"}


def test_malformed_options_are_ignored():
    fenced = Fenced.parse("callout, nonsense, : empty, type: tip")

    assert fenced.options == {"type": "tip"}


def test_language_is_first_word_of_name():
    assert Fenced.parse("rust ignore").language == "rust"
    assert Fenced.parse("").language == ""
