"""Link-preview records, stored as JSON in the disk cache."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from enum import Enum

from pydantic import BaseModel, Field


class FetchOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class PreviewMetadata(BaseModel):
    """Metadata scraped from an HTML page."""

    title: str
    description: str | None = None
    image: str | None = None


class PreviewRecord(BaseModel):
    """Cached result of previewing one normalized URL."""

    url: str
    outcome: FetchOutcome
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    title: str | None = None
    description: str | None = None
    image: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is FetchOutcome.SUCCESS

    @classmethod
    def success(cls, url: str, metadata: PreviewMetadata) -> PreviewRecord:
        return cls(
            url=url,
            outcome=FetchOutcome.SUCCESS,
            title=metadata.title,
            description=metadata.description,
            image=metadata.image,
        )

    @classmethod
    def failure(cls, url: str, error: str) -> PreviewRecord:
        return cls(url=url, outcome=FetchOutcome.FAILURE, error=error)

    def is_live(self, *, success_ttl: float, failure_ttl: float, now: datetime | None = None) -> bool:
        ttl = success_ttl if self.ok else failure_ttl
        current = now or datetime.now(UTC)
        return current - self.fetched_at < timedelta(seconds=ttl)
