import json
from datetime import UTC, datetime
from pathlib import Path

from folio.content.models import ContentDocument, ContentMeta, ResourceReference
from folio.manifests.models import ManifestItem, ManifestPage
from folio.reporting import (
    assemble_report,
    build_document_stats,
    build_manifest_stats,
    build_resource_stats,
    write_report,
)
from folio.staging import StagingResult

DATE = datetime(2024, 1, 1, tzinfo=UTC)


def _doc(slug: str, *, draft: bool = False, featured: bool = False, tags: list[str] | None = None) -> ContentDocument:
    meta = ContentMeta(
        slug=slug,
        title=slug.title(),
        date=DATE,
        draft=draft,
        featured=featured,
        tags=tags or [],
        resources=[ResourceReference(name="pic", src="pic.png")],
    )
    return ContentDocument(meta=meta, body="Body", source_path=f"{slug}/index.md")


def _item(slug: str) -> ManifestItem:
    return ManifestItem(slug=slug, title=slug.upper(), url=f"/posts/{slug}/", date=DATE)


def test_build_document_stats_counts_drafts_and_features() -> None:
    documents = [
        _doc("a", tags=["x", "y"]),
        _doc("b", draft=True, tags=["y"]),
        _doc("c", featured=True),
    ]
    stats = build_document_stats(documents)
    assert stats.total == 3
    assert stats.published == 2
    assert stats.drafts == 1
    assert stats.featured == 1
    assert stats.tags == 2
    assert stats.resources == 3


def test_build_manifest_stats_counts_items() -> None:
    page = ManifestPage(
        id="posts-001",
        page=1,
        total_pages=1,
        total_items=2,
        items=[_item("a"), _item("b")],
    )
    stats = build_manifest_stats([page])
    assert stats.pages == 1
    assert stats.items == 2


def test_write_report_writes_json(tmp_path: Path) -> None:
    staging = StagingResult(
        copied_resources=[tmp_path / "site" / "posts" / "a" / "pic.png"],
        missing_resources=["content/posts/b/index.md: gone.mp4"],
    )
    report = assemble_report(
        project="Folio",
        duration_seconds=0.5,
        documents=build_document_stats([_doc("a")]),
        manifests=build_manifest_stats(
            [ManifestPage(id="posts-001", page=1, total_pages=1, total_items=1, items=[_item("a")])]
        ),
        resources=build_resource_stats(staging),
        pages_written=2,
        feeds_written=3,
    )

    assert report.resources.copied == 1
    assert report.warnings == ["Missing resource: content/posts/b/index.md: gone.mp4"]

    path = write_report(report, tmp_path / "site")
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert path.name == "build-report.json"
    assert payload["project"] == "Folio"
    assert payload["pages_written"] == 2
    assert payload["feeds_written"] == 3
    assert payload["documents"]["total"] == 1
    assert payload["resources"]["missing"] == ["content/posts/b/index.md: gone.mp4"]
