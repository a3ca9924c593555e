"""Custom Jinja2 filters for the site templates."""

from datetime import date, datetime


def format_date(value: date, format_str: str = "%Y-%m-%d") -> str:
    """Format a date or datetime object.

    Args:
        value: Date to format
        format_str: strftime format string

    Returns:
        Formatted date string

    """
    if not isinstance(value, date):
        return str(value)
    return value.strftime(format_str)


def isoformat(value: date) -> str:
    if not isinstance(value, date):
        return str(value)
    return value.isoformat()


def truncate_words(text: str, max_words: int = 30, suffix: str = "…") -> str:
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + suffix


def absolute_url(path: str, base_url: str) -> str:
    """Join a site-relative ``path`` onto ``base_url``; absolute URLs pass through."""
    if "://" in path:
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def to_datetime(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)
