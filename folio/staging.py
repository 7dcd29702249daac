"""Utilities for preparing the deployable site bundle."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .config import Config
from .content import ContentDocument

logger = logging.getLogger(__name__)


@dataclass
class StagingResult:
    """Summary of staged resources and static assets."""

    copied_resources: list[Path] = field(default_factory=list)
    reused_resources: list[Path] = field(default_factory=list)
    missing_resources: list[str] = field(default_factory=list)
    static_paths: list[Path] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.copied_resources) + len(self.reused_resources) + len(self.static_paths)


def reset_directory(path: Path) -> None:
    """Remove a directory and recreate it empty."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


def stage_static_site(
    config: Config,
    documents: Iterable[ContentDocument],
    *,
    include_drafts: bool = False,
) -> StagingResult:
    """Copy page-bundle resources next to their rendered pages and stage static files.

    Returns details about staged and missing assets.
    """
    result = StagingResult()
    output_root = config.output_dir
    output_root.mkdir(parents=True, exist_ok=True)

    for document in documents:
        if document.meta.draft and not include_drafts:
            continue
        _stage_resources(document, output_root, result)

    static_root = config.static_dir
    if static_root is not None and static_root.exists():
        for item in sorted(static_root.iterdir()):
            destination = output_root / item.name
            if item.is_dir():
                _copytree(item, destination)
            else:
                shutil.copy2(item, destination)
            result.static_paths.append(destination)

    return result


def _stage_resources(document: ContentDocument, output_root: Path, result: StagingResult) -> None:
    if not document.meta.resources or document.bundle_dir is None:
        return

    bundle = Path(document.bundle_dir).resolve()
    page_dir = output_root / document.section / document.slug
    for reference in document.meta.resources:
        source = (bundle / reference.src).resolve()
        try:
            source.relative_to(bundle)
        except ValueError:
            result.missing_resources.append(f"{document.source_path}: {reference.src}")
            continue
        if not source.is_file():
            logger.warning("Resource '%s' for %s not found at %s.", reference.name, document.slug, source)
            result.missing_resources.append(f"{document.source_path}: {reference.src}")
            continue

        destination = page_dir / reference.src
        if _is_current(source, destination):
            result.reused_resources.append(destination)
            continue
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, destination)
        result.copied_resources.append(destination)


def _is_current(source: Path, destination: Path) -> bool:
    if not destination.exists():
        return False
    source_stat = source.stat()
    destination_stat = destination.stat()
    return (
        source_stat.st_size == destination_stat.st_size
        and int(source_stat.st_mtime) <= int(destination_stat.st_mtime)
    )


def _copytree(source: Path, destination: Path) -> None:
    if destination.exists():
        shutil.rmtree(destination)
    shutil.copytree(source, destination)
