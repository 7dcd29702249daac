"""Typed representations of Folio content documents."""

from __future__ import annotations

from datetime import date as date_type, datetime, time, timezone
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from .body import count_summary_cuts, split_summary


class MediaKind(str, Enum):
    """Rendering category for a resource file."""

    IMAGE = "image"
    ANIMATION = "animation"
    VIDEO = "video"
    OTHER = "other"


IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".webp", ".svg", ".heic", ".avif"}
ANIMATION_SUFFIXES = {".gif", ".apng"}
VIDEO_SUFFIXES = {".mp4", ".mov", ".m4v", ".webm"}


class ResourceReference(BaseModel):
    """Named auxiliary file colocated with a document."""

    name: str = Field(description="Identifier used by shortcodes in the body.")
    src: str = Field(description="Path to the file, relative to the page bundle.")
    title: Optional[str] = Field(default=None, description="Caption shown with the resource.")

    @field_validator("name")
    def _require_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("resource name cannot be empty")
        return cleaned

    @field_validator("src")
    def _normalize_src(cls, value: str) -> str:
        cleaned = value.strip().lstrip("/")
        while cleaned.startswith("./"):
            cleaned = cleaned[2:]
        if not cleaned:
            raise ValueError("resource src cannot be empty")
        return cleaned

    @property
    def media_kind(self) -> MediaKind:
        suffix = PurePosixPath(self.src).suffix.lower()
        if suffix in ANIMATION_SUFFIXES:
            return MediaKind.ANIMATION
        if suffix in VIDEO_SUFFIXES:
            return MediaKind.VIDEO
        if suffix in IMAGE_SUFFIXES:
            return MediaKind.IMAGE
        return MediaKind.OTHER


class ContentMeta(BaseModel):
    """Metadata block for a document."""

    slug: str = Field(description="URL-friendly identifier.")
    title: str = Field(description="Display title.")
    subtitle: Optional[str] = Field(default=None)
    date: datetime = Field(description="Publication timestamp.")
    lastmod: Optional[datetime] = Field(default=None, description="Last modification timestamp.")
    author: Optional[str] = Field(default=None, description="Author handle.")
    description: Optional[str] = Field(default=None, description="Short description for feeds.")
    tags: list[str] = Field(default_factory=list, description="Ordered set of tags.")
    featured: bool = Field(default=False)
    draft: bool = Field(default=False)
    example: Optional[str] = Field(
        default=None, description="Link or identifier of the companion working example."
    )
    resources: list[ResourceReference] = Field(default_factory=list)
    extra: dict[str, Any] = Field(default_factory=dict, description="Unrecognized metadata keys.")

    @field_validator("slug")
    def _normalize_slug(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("slug cannot be empty")
        return cleaned

    @field_validator("title")
    def _require_title(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("title cannot be empty")
        return cleaned

    @field_validator("date", "lastmod", mode="before")
    def _promote_dates(cls, value: Any) -> Any:
        if isinstance(value, date_type) and not isinstance(value, datetime):
            return datetime.combine(value, time.min)
        return value

    @field_validator("date", "lastmod")
    def _ensure_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("author")
    def _strip_handle(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip().lstrip("@")
        return cleaned or None

    @field_validator("example", "subtitle", "description")
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    @field_validator("tags")
    def _ordered_set(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        tags: list[str] = []
        for tag in value:
            cleaned = tag.strip()
            if not cleaned or cleaned in seen:
                continue
            seen.add(cleaned)
            tags.append(cleaned)
        return tags

    def example_url(self, base_url: str | None = None) -> str | None:
        """Resolve the working example against ``base_url`` unless it is already a URL."""
        if not self.example:
            return None
        if self.example.startswith(("http://", "https://")) or not base_url:
            return self.example
        return f"{base_url.rstrip('/')}/{self.example.lstrip('/')}"

    def resource(self, name: str) -> ResourceReference | None:
        for reference in self.resources:
            if reference.name == name:
                return reference
        return None


class ContentDocument(BaseModel):
    """Full representation of a content document."""

    meta: ContentMeta = Field(description="Metadata block.")
    body: str = Field(description="Raw markdown body.")
    source_path: str = Field(description="Path to the source file.")
    bundle_dir: Optional[str] = Field(
        default=None, description="Directory that holds the document's resources."
    )
    section: str = Field(default="posts", description="Top-level content section.")

    @property
    def slug(self) -> str:
        return self.meta.slug

    @property
    def identity(self) -> tuple[str, datetime]:
        return (self.meta.title, self.meta.date)

    @property
    def summary(self) -> str | None:
        teaser, _ = split_summary(self.body)
        return teaser

    @property
    def has_summary_cut(self) -> bool:
        return self.summary_cut_count > 0

    @property
    def summary_cut_count(self) -> int:
        return count_summary_cuts(self.body)

    @property
    def url_path(self) -> str:
        return f"/{self.section}/{self.slug}/"
