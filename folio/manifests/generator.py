"""Utilities for building paginated manifest files."""

from __future__ import annotations

from math import ceil
from typing import Iterable, Iterator, Optional, Sequence, Tuple

from ..content.models import ContentDocument, ContentMeta
from ..markdown import extract_plain_text, truncate_words
from .models import ManifestItem, ManifestPage, TagIndex

DEFAULT_PAGE_SIZE = 200
DEFAULT_SUMMARY_WORDS = 70
AVERAGE_READING_SPEED_WPM = 200


class ManifestGenerator:
    """Generate manifest pages from content documents."""

    def __init__(
        self,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        summary_words: int = DEFAULT_SUMMARY_WORDS,
        example_base_url: str | None = None,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.page_size = page_size
        self.summary_words = summary_words
        self.example_base_url = example_base_url

    def build_pages(self, documents: Sequence[ContentDocument], prefix: str) -> list[ManifestPage]:
        sorted_docs = sort_documents(documents)
        chunks = list(chunk_documents(sorted_docs, self.page_size))
        total_items = len(documents)
        total_pages = max(len(chunks), 1)

        pages: list[ManifestPage] = []
        for index, chunk in enumerate(chunks, start=1):
            items = [self.to_item(document) for document in chunk]
            pages.append(
                ManifestPage(
                    id=f"{prefix}-{index:03d}",
                    page=index,
                    total_pages=total_pages,
                    total_items=total_items,
                    items=items,
                )
            )

        if not pages:
            pages.append(
                ManifestPage(
                    id=f"{prefix}-001",
                    page=1,
                    total_pages=1,
                    total_items=0,
                    items=[],
                )
            )

        return pages

    def to_item(self, document: ContentDocument) -> ManifestItem:
        return to_manifest_item(
            document,
            summary_words=self.summary_words,
            example_base_url=self.example_base_url,
        )


def to_manifest_item(
    document: ContentDocument,
    *,
    summary_words: int = DEFAULT_SUMMARY_WORDS,
    example_base_url: str | None = None,
) -> ManifestItem:
    meta = document.meta
    excerpt, word_count = _summarize(document, summary_words)
    return ManifestItem(
        slug=meta.slug,
        title=meta.title,
        url=document.url_path,
        section=document.section,
        subtitle=meta.subtitle,
        author=meta.author,
        description=meta.description,
        excerpt=excerpt,
        tags=meta.tags,
        featured=meta.featured,
        draft=meta.draft,
        date=meta.date,
        lastmod=meta.lastmod,
        word_count=word_count,
        reading_time_minutes=reading_time_minutes(word_count),
        resource_count=len(meta.resources),
        example_url=meta.example_url(example_base_url),
    )


def sort_documents(documents: Iterable[ContentDocument]) -> list[ContentDocument]:
    """Newest first; ties broken by title then slug."""
    ordered = sorted(documents, key=lambda doc: _tiebreak_key(doc.meta))
    return sorted(ordered, key=lambda doc: doc.meta.date, reverse=True)


def build_tag_index(documents: Iterable[ContentDocument]) -> TagIndex:
    """Map each tag (alphabetical) to its documents' page URLs, newest first."""
    tags: dict[str, list[str]] = {}
    for document in sort_documents(documents):
        for tag in document.meta.tags:
            tags.setdefault(tag, []).append(document.url_path)
    return TagIndex(tags=dict(sorted(tags.items(), key=lambda entry: entry[0].lower())))


def chunk_documents(documents: Iterable[ContentDocument], page_size: int = DEFAULT_PAGE_SIZE) -> Iterator[list[ContentDocument]]:
    """Yield documents in deterministic page-sized chunks."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")

    batch: list[ContentDocument] = []
    for document in documents:
        batch.append(document)
        if len(batch) >= page_size:
            yield batch
            batch = []
    if batch:
        yield batch


def reading_time_minutes(word_count: int) -> int:
    if word_count == 0:
        return 0
    return max(1, ceil(word_count / AVERAGE_READING_SPEED_WPM))


def _tiebreak_key(meta: ContentMeta) -> tuple[str, str]:
    return (meta.title.lower(), meta.slug)


def _summarize(document: ContentDocument, summary_words: int) -> Tuple[Optional[str], int]:
    plain = extract_plain_text(document.body)
    word_count = len(plain.split()) if plain else 0

    teaser = document.summary
    if teaser:
        excerpt: str | None = extract_plain_text(teaser) or None
    elif document.meta.description:
        excerpt = document.meta.description
    else:
        excerpt = truncate_words(plain, summary_words) if plain else None
    return excerpt, word_count

