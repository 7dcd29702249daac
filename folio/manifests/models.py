"""Pydantic models describing manifest structures."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class ManifestItem(BaseModel):
    """Slim document representation for index pages, feeds and client scripts."""

    slug: str = Field(...)
    title: str = Field(...)
    url: str = Field(description="Site-relative URL of the rendered page.")
    section: str = Field(default="posts")
    subtitle: Optional[str] = Field(default=None)
    author: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)
    excerpt: Optional[str] = Field(default=None)
    tags: list[str] = Field(default_factory=list)
    featured: bool = Field(default=False)
    draft: bool = Field(default=False)
    date: datetime = Field(...)
    lastmod: Optional[datetime] = Field(default=None)
    word_count: int = Field(default=0, ge=0)
    reading_time_minutes: int = Field(default=0, ge=0)
    resource_count: int = Field(default=0, ge=0)
    example_url: Optional[str] = Field(default=None)


class ManifestPage(BaseModel):
    """Chunked payload of manifest items."""

    id: str = Field(description="Stable identifier for the page (e.g., 'posts-001').")
    page: int = Field(ge=1)
    total_pages: int = Field(ge=1)
    total_items: int = Field(ge=0)
    items: list[ManifestItem] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=utc_now)


class TagIndex(BaseModel):
    """Mapping of tag to the page URLs (``/<section>/<slug>/``) carrying it, newest first."""

    tags: dict[str, list[str]] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=utc_now)

    def counts(self) -> dict[str, int]:
        return {tag: len(urls) for tag, urls in self.tags.items()}
