"""Build reporting helpers."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from pydantic import BaseModel, Field

from .content import ContentDocument
from .manifests import ManifestPage
from .staging import StagingResult

REPORT_FILENAME = "build-report.json"


class DocumentStats(BaseModel):
    total: int
    published: int
    drafts: int
    featured: int
    tags: int
    resources: int


class ManifestStats(BaseModel):
    pages: int
    items: int


class ResourceStats(BaseModel):
    copied: int
    reused: int
    static: int
    missing: list[str] = Field(default_factory=list)


class BuildReport(BaseModel):
    project: str
    generated_at: datetime
    duration_seconds: float
    documents: DocumentStats
    manifests: ManifestStats
    resources: ResourceStats
    pages_written: int = 0
    feeds_written: int = 0
    warnings: list[str] = Field(default_factory=list)


def build_document_stats(documents: Iterable[ContentDocument]) -> DocumentStats:
    total = published = drafts = featured = resources = 0
    tags: set[str] = set()
    for document in documents:
        total += 1
        meta = document.meta
        if meta.draft:
            drafts += 1
        else:
            published += 1
        if meta.featured:
            featured += 1
        resources += len(meta.resources)
        tags.update(meta.tags)
    return DocumentStats(
        total=total,
        published=published,
        drafts=drafts,
        featured=featured,
        tags=len(tags),
        resources=resources,
    )


def build_manifest_stats(pages: Iterable[ManifestPage]) -> ManifestStats:
    pages_list = list(pages)
    total_items = sum(len(page.items) for page in pages_list)
    return ManifestStats(pages=len(pages_list), items=total_items)


def build_resource_stats(result: StagingResult) -> ResourceStats:
    return ResourceStats(
        copied=len(result.copied_resources),
        reused=len(result.reused_resources),
        static=len(result.static_paths),
        missing=list(result.missing_resources),
    )


def assemble_report(
    *,
    project: str,
    duration_seconds: float,
    documents: DocumentStats,
    manifests: ManifestStats,
    resources: ResourceStats,
    pages_written: int = 0,
    feeds_written: int = 0,
) -> BuildReport:
    warnings = [f"Missing resource: {entry}" for entry in resources.missing]

    return BuildReport(
        project=project,
        generated_at=datetime.now(timezone.utc),
        duration_seconds=duration_seconds,
        documents=documents,
        manifests=manifests,
        resources=resources,
        pages_written=pages_written,
        feeds_written=feeds_written,
        warnings=warnings,
    )


def write_report(report: BuildReport, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / REPORT_FILENAME
    with target.open("w", encoding="utf-8") as handle:
        json.dump(report.model_dump(mode="json"), handle, ensure_ascii=False, indent=2)
    return target
