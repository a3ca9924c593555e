from zine.core.diagnostics import Severity
from zine.markdown.end_matter import split_end_matter

ARTICLE = """# Title

Body text.

+++
[[comment]]
author = "Bob"
bio = "Reader"
content = "Great **read**!"

[[comment]]
author = "Carol"
content = "Agreed."
link = "https://carol.example"
"""


def test_comments_are_split_from_body():
    end_matter = split_end_matter(ARTICLE)

    assert end_matter.body == "# Title\n\nBody text.\n\n"
    assert [comment.author for comment in end_matter.comments] == ["Bob", "Carol"]
    assert end_matter.comments[0].bio == "Reader"
    assert end_matter.comments[1].link == "https://carol.example"
    assert end_matter.problems == ()


def test_text_without_delimiter_is_all_body():
    end_matter = split_end_matter("just a body\n")

    assert end_matter.body == "just a body\n"
    assert end_matter.comments == ()


def test_delimiter_inside_code_fence_is_not_end_matter():
    text = "```toml\n+++\nkey = 1\n```\n\nafter\n"

    end_matter = split_end_matter(text)

    assert end_matter.body == text
    assert end_matter.comments == ()


def test_invalid_toml_is_a_warning_and_keeps_body():
    end_matter = split_end_matter("body\n+++\n[[comment]\n", entity="issue:one/article:a")

    assert end_matter.body == "body\n"
    assert end_matter.comments == ()
    assert end_matter.problems[0].severity is Severity.WARNING
    assert end_matter.problems[0].entity == "issue:one/article:a"


def test_comment_without_content_is_a_warning():
    end_matter = split_end_matter('body\n+++\n[[comment]]\nauthor = "Bob"\n')

    assert end_matter.comments == ()
    assert end_matter.problems
    assert all(problem.severity is Severity.WARNING for problem in end_matter.problems)
