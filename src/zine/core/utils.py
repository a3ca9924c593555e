"""Small text helpers shared across zine."""


def capitalize(text: str) -> str:
    """Upper-case the first character only.

    Unlike :meth:`str.capitalize`, the rest of the text keeps its case.

    Examples:
        >>> capitalize("release notes")
        'Release notes'
        >>> capitalize("iOS tips")
        'IOS tips'

    """
    return text[:1].upper() + text[1:]
