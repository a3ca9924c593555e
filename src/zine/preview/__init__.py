"""Link previews: metadata fetching, caching and URL linting."""

from zine.preview.cache import LinkPreviewCache
from zine.preview.fetcher import PreviewFetcher, parse_metadata
from zine.preview.models import FetchOutcome, PreviewMetadata, PreviewRecord
from zine.preview.urls import normalize_url

__all__ = [
    "FetchOutcome",
    "LinkPreviewCache",
    "PreviewFetcher",
    "PreviewMetadata",
    "PreviewRecord",
    "normalize_url",
    "parse_metadata",
]
