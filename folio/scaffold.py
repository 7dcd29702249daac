"""Utilities for scaffolding new content documents."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from .config import Config
from .content.body import SUMMARY_CUT
from .utils import slugify, title_from_stem


class ScaffoldError(RuntimeError):
    """Raised when scaffolding cannot continue."""


@dataclass(slots=True)
class ScaffoldResult:
    """Details about filesystem writes performed during scaffolding."""

    created: list[Path] = field(default_factory=list)
    updated: list[Path] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    def record(self, path: Path, existed: bool) -> None:
        if existed:
            self.updated.append(path)
        else:
            self.created.append(path)


def normalize_slug(raw: str) -> str:
    """Convert arbitrary user input into a filesystem-safe slug."""
    slug = slugify(raw, fallback="")
    if not slug:
        raise ScaffoldError("Unable to derive a valid slug. Provide letters, numbers, or hyphens.")
    return slug


def default_title(slug: str) -> str:
    """Generate a human-friendly title from a slug."""
    return title_from_stem(slug)


def scaffold_post(
    config: Config,
    slug: str,
    title: str | None = None,
    *,
    section: str | None = None,
    tags: Sequence[str] = (),
    force: bool = False,
) -> ScaffoldResult:
    """Create a page bundle holding an ``index.md`` with TOML metadata."""
    slug = normalize_slug(slug)
    title = title.strip() if title else ""
    if not title:
        title = default_title(slug)
    section_name = normalize_slug(section) if section else config.default_section

    bundle_dir = config.content_dir / section_name / slug
    index_path = bundle_dir / "index.md"
    existed = _write_text(index_path, _render_post(title, tags), force=force)

    result = ScaffoldResult()
    result.record(index_path, existed)
    result.notes.append(
        f"Drop images or recordings into {bundle_dir.as_posix()} and declare them under [[resources]]."
    )
    result.notes.append("Set draft = false once the post is ready, then run 'folio lint'.")
    return result


def _render_post(title: str, tags: Sequence[str]) -> str:
    tag_list = ", ".join(json.dumps(tag.strip()) for tag in tags if tag.strip())
    return (
        "+++\n"
        f"title = {json.dumps(title)}\n"
        f"date = {_timestamp()}\n"
        f"tags = [{tag_list}]\n"
        "featured = false\n"
        "draft = true\n"
        'example = ""\n'
        "\n"
        "# [[resources]]\n"
        '# name = "demo"\n'
        '# src = "demo.gif"\n'
        '# title = "Caption shown under the animation"\n'
        "+++\n"
        "\n"
        "Teaser paragraph shown on the index page.\n"
        "\n"
        f"{SUMMARY_CUT}\n"
        "\n"
        "The rest of the article. Reference declared resources with\n"
        "`{{</* img name=\"demo\" */>}}`.\n"
    )


def _timestamp() -> str:
    moment = datetime.now(timezone.utc).replace(microsecond=0)
    return moment.isoformat().replace("+00:00", "Z")


def _write_text(path: Path, content: str, *, force: bool) -> bool:
    path.parent.mkdir(parents=True, exist_ok=True)
    existed = path.exists()
    if existed and not force:
        raise ScaffoldError(f"Path already exists: {path}")
    path.write_text(content, encoding="utf-8")
    return existed
