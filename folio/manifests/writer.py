"""Persistence helpers for manifest pages."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from .models import ManifestPage, TagIndex

TAG_INDEX_FILENAME = "tags.json"


def write_manifest_pages(pages: Iterable[ManifestPage], destination: Path) -> list[Path]:
    """Serialize manifest pages to JSON files within the destination directory."""
    destination.mkdir(parents=True, exist_ok=True)
    existing_files = {path for path in destination.glob("*.json") if path.name != TAG_INDEX_FILENAME}
    written: list[Path] = []

    for page in pages:
        path = destination / f"{page.id}.json"
        with path.open("w", encoding="utf-8") as handle:
            json.dump(page.model_dump(mode="json"), handle, ensure_ascii=False, indent=2)
        written.append(path)
        existing_files.discard(path)

    for leftover in existing_files:
        leftover.unlink(missing_ok=True)

    return written


def write_tag_index(index: TagIndex, destination: Path) -> Path:
    destination.mkdir(parents=True, exist_ok=True)
    path = destination / TAG_INDEX_FILENAME
    with path.open("w", encoding="utf-8") as handle:
        json.dump(index.model_dump(mode="json"), handle, ensure_ascii=False, indent=2)
    return path
