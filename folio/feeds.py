"""Syndication feed generation helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime as format_rfc2822
from html import escape
from pathlib import Path
from typing import Iterable, Sequence

from .config import Config, FeedConfig
from .manifests import ManifestPage

RSS_FILENAME = "feed.xml"
ATOM_FILENAME = "atom.xml"
JSON_FILENAME = "feed.json"


@dataclass(slots=True)
class FeedEntry:
    """Normalized feed entry derived from manifest items."""

    slug: str
    title: str
    url: str
    summary: str | None
    tags: list[str]
    published: datetime
    updated: datetime
    author: str | None
    example_url: str | None

    @property
    def identifier(self) -> str:
        return self.url


def generate_feeds(config: Config, pages: Sequence[ManifestPage]) -> list[Path]:
    """Generate RSS, Atom, and JSON feeds from manifest pages."""
    settings = config.feeds
    if not settings.enabled:
        return []

    base_url = _normalize_base_url(settings.base_url)
    entries = _collect_entries(pages, limit=settings.limit, base_url=base_url)
    if not entries:
        return []

    relative_base = _feed_relative_base(settings)
    metadata = {
        "title": settings.title or config.project_name,
        "description": settings.description,
        "home_url": _make_absolute("/", base_url),
        "feed_rss": _make_absolute(f"{relative_base}/{RSS_FILENAME}", base_url),
        "feed_atom": _make_absolute(f"{relative_base}/{ATOM_FILENAME}", base_url),
        "feed_json": _make_absolute(f"{relative_base}/{JSON_FILENAME}", base_url),
    }
    updated = max(entry.updated for entry in entries)

    feed_root = _resolve_feed_root(config)
    feed_root.mkdir(parents=True, exist_ok=True)

    rss_path = feed_root / RSS_FILENAME
    atom_path = feed_root / ATOM_FILENAME
    json_path = feed_root / JSON_FILENAME

    rss_path.write_text(_render_rss(metadata, entries, updated), encoding="utf-8")
    atom_path.write_text(_render_atom(metadata, entries, updated), encoding="utf-8")
    json_path.write_text(_render_json(metadata, entries, updated), encoding="utf-8")

    return [rss_path, atom_path, json_path]


def _collect_entries(
    pages: Iterable[ManifestPage],
    *,
    limit: int,
    base_url: str | None,
) -> list[FeedEntry]:
    collected: list[FeedEntry] = []
    seen_urls: set[str] = set()

    for page in pages:
        for item in page.items:
            if item.draft:
                continue
            url = _make_absolute(item.url, base_url)
            if url in seen_urls:
                continue

            collected.append(
                FeedEntry(
                    slug=item.slug,
                    title=item.title,
                    url=url,
                    summary=item.description or item.excerpt or None,
                    tags=list(item.tags),
                    published=item.date,
                    updated=item.lastmod or item.date,
                    author=item.author,
                    example_url=item.example_url,
                )
            )
            seen_urls.add(url)

    collected.sort(key=lambda entry: _utc(entry.published), reverse=True)
    return collected[:limit]


def _render_rss(metadata: dict[str, str], entries: Sequence[FeedEntry], updated: datetime) -> str:
    parts = [
        '<?xml version="1.0" encoding="utf-8"?>',
        '<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">',
        "  <channel>",
        f"    <title>{escape(metadata['title'])}</title>",
        f"    <link>{escape(metadata['home_url'])}</link>",
        f"    <description>{escape(metadata['description'])}</description>",
        f'    <atom:link href="{escape(metadata["feed_rss"])}" rel="self" type="application/rss+xml" />',
        f"    <lastBuildDate>{_format_rfc2822(updated)}</lastBuildDate>",
    ]

    for entry in entries:
        parts.extend(
            [
                "    <item>",
                f"      <title>{escape(entry.title)}</title>",
                f"      <link>{escape(entry.url)}</link>",
                f'      <guid isPermaLink="true">{escape(entry.identifier)}</guid>',
                f"      <pubDate>{_format_rfc2822(entry.published)}</pubDate>",
            ]
        )
        if entry.summary:
            parts.append(f"      <description>{escape(entry.summary)}</description>")
        for tag in entry.tags:
            parts.append(f"      <category>{escape(tag)}</category>")
        parts.append("    </item>")

    parts.extend(["  </channel>", "</rss>"])
    return "\n".join(parts) + "\n"


def _render_atom(metadata: dict[str, str], entries: Sequence[FeedEntry], updated: datetime) -> str:
    parts = [
        '<?xml version="1.0" encoding="utf-8"?>',
        '<feed xmlns="http://www.w3.org/2005/Atom">',
        f"  <title>{escape(metadata['title'])}</title>",
        f'  <link href="{escape(metadata["home_url"])}" rel="alternate" />',
        f'  <link href="{escape(metadata["feed_atom"])}" rel="self" />',
        f"  <updated>{_format_iso(updated)}</updated>",
        f"  <id>{escape(metadata['home_url'])}</id>",
    ]

    if metadata.get("description"):
        parts.append(f"  <subtitle>{escape(metadata['description'])}</subtitle>")

    for entry in entries:
        parts.extend(
            [
                "  <entry>",
                f"    <title>{escape(entry.title)}</title>",
                f'    <link href="{escape(entry.url)}" />',
                f"    <id>{escape(entry.identifier)}</id>",
                f"    <updated>{_format_iso(entry.updated)}</updated>",
                f"    <published>{_format_iso(entry.published)}</published>",
            ]
        )
        if entry.author:
            parts.append(f"    <author><name>{escape(entry.author)}</name></author>")
        if entry.summary:
            parts.append(f"    <summary>{escape(entry.summary)}</summary>")
        if entry.example_url:
            parts.append(f'    <link href="{escape(entry.example_url)}" rel="related" />')
        for tag in entry.tags:
            parts.append(f'    <category term="{escape(tag)}" />')
        parts.append("  </entry>")

    parts.append("</feed>")
    return "\n".join(parts) + "\n"


def _render_json(metadata: dict[str, str], entries: Sequence[FeedEntry], updated: datetime) -> str:
    feed: dict[str, object] = {
        "version": "https://jsonfeed.org/version/1.1",
        "title": metadata["title"],
        "home_page_url": metadata["home_url"],
        "feed_url": metadata["feed_json"],
        "description": metadata["description"],
        "updated": _format_iso(updated),
    }

    items: list[dict[str, object]] = []
    for entry in entries:
        item: dict[str, object] = {
            "id": entry.identifier,
            "url": entry.url,
            "title": entry.title,
            "date_published": _format_iso(entry.published),
            "date_modified": _format_iso(entry.updated),
        }
        if entry.summary:
            item["summary"] = entry.summary
            item["content_text"] = entry.summary
        if entry.tags:
            item["tags"] = entry.tags
        if entry.author:
            item["authors"] = [{"name": entry.author}]
        if entry.example_url:
            item["external_url"] = entry.example_url
        items.append(item)

    feed["items"] = items
    return json.dumps(feed, ensure_ascii=False, indent=2) + "\n"


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _format_rfc2822(value: datetime) -> str:
    return format_rfc2822(_utc(value))


def _format_iso(value: datetime) -> str:
    return _utc(value).isoformat().replace("+00:00", "Z")


def _normalize_base_url(base_url: str | None) -> str | None:
    if not base_url:
        return None
    text = base_url.strip()
    if not text:
        return None
    return text.rstrip("/")


def _make_absolute(path: str, base_url: str | None) -> str:
    if not path:
        return ""
    if path.startswith("http://") or path.startswith("https://"):
        return path
    normalized = f"/{path.lstrip('/')}"
    if base_url:
        return f"{base_url}{normalized}"
    return normalized


def _resolve_feed_root(config: Config) -> Path:
    subdir = config.feeds.output_subdir
    if subdir is None:
        return config.output_dir
    if subdir.is_absolute():
        return subdir
    return config.output_dir / subdir


def _feed_relative_base(settings: FeedConfig) -> str:
    subdir = settings.output_subdir
    if subdir is None:
        return ""
    parts = str(subdir.as_posix()).strip("/")
    if not parts:
        return ""
    return f"/{parts}"
