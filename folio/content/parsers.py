"""Parse source files into `ContentDocument` instances."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .body import count_summary_cuts, iter_resource_references, split_summary
from .models import ContentDocument, ContentMeta, ResourceReference

TOML_DELIMITER = "+++"
YAML_DELIMITER = "---"
DEFAULT_SECTION = "posts"
BUNDLE_INDEX_NAMES ={"index.md", "index.markdown", "_index.md"}
KNOWN_KEYS = set(ContentMeta.model_fields) - {"extra"}

__all__ = [
    "FrontMatterError",
    "count_summary_cuts",
    "iter_resource_references",
    "load_markdown_document",
    "parse_document",
    "split_summary",
]


class FrontMatterError(ValueError):
    """Raised when a markdown file has malformed metadata."""

    def __init__(self, message: str, *, source_path: str | None = None, pointer: str | None = None) -> None:
        super().__init__(message)
        self.source_path = source_path
        self.pointer = pointer


def load_markdown_document(
    path: str | Path,
    *,
    content_root: Path | None = None,
    default_section: str = DEFAULT_SECTION,
) -> ContentDocument:
    """Load a markdown file with TOML or YAML metadata into a content document."""
    source_path = Path(path)
    try:
        text = source_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise FrontMatterError(
            f"{source_path} is not valid UTF-8 (byte {exc.start}): {exc.reason}",
            source_path=str(source_path),
        ) from exc
    return parse_document(text, source_path, content_root=content_root, default_section=default_section)


def parse_document(
    text: str,
    source_path: Path,
    *,
    content_root: Path | None = None,
    default_section: str = DEFAULT_SECTION,
) -> ContentDocument:
    """Parse raw document text; ``source_path`` drives slug, section and bundle defaults."""
    front_matter, body = _split_front_matter(text, source_path)

    try:
        meta = _parse_meta(front_matter, source_path)
    except ValidationError as exc:
        first = exc.errors()[0]
        pointer = ".".join(str(part) for part in first["loc"])
        raise FrontMatterError(
            f"Invalid metadata in {source_path}: {pointer}: {first['msg']}",
            source_path=str(source_path),
            pointer=f"meta.{pointer}" if pointer else None,
        ) from exc

    return ContentDocument(
        meta=meta,
        body=body.strip(),
        source_path=str(source_path),
        bundle_dir=str(source_path.parent),
        section=_section_for(source_path, content_root, default_section),
    )


def _split_front_matter(text: str, source_path: Path) -> tuple[dict[str, Any], str]:
    lines = text.lstrip("\ufeff").splitlines()
    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1
    if start == len(lines):
        raise FrontMatterError(f"{source_path} is empty.", source_path=str(source_path))

    delimiter = lines[start].strip()
    if delimiter not in {TOML_DELIMITER, YAML_DELIMITER}:
        raise FrontMatterError(
            f"{source_path} does not start with a '+++' or '---' metadata block.",
            source_path=str(source_path),
        )

    front_lines: list[str] = []
    for idx in range(start + 1, len(lines)):
        line = lines[idx]
        if line.strip() == delimiter:
            raw_front_matter = "\n".join(front_lines)
            body = "\n".join(lines[idx + 1 :])
            return _load_mapping(raw_front_matter, delimiter, source_path), body
        front_lines.append(line)
    raise FrontMatterError(
        f"Closing metadata delimiter '{delimiter}' missing in {source_path}.",
        source_path=str(source_path),
    )


def _load_mapping(raw: str, delimiter: str, source_path: Path) -> dict[str, Any]:
    data: Any
    if delimiter == TOML_DELIMITER:
        try:
            data = tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise FrontMatterError(
                f"Invalid TOML metadata in {source_path}: {exc}", source_path=str(source_path)
            ) from exc
    else:
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise FrontMatterError(
                f"Invalid YAML metadata in {source_path}: {exc}", source_path=str(source_path)
            ) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FrontMatterError(
            f"Metadata in {source_path} must be a mapping of keys to values.",
            source_path=str(source_path),
        )
    return data


def _parse_meta(data: dict[str, Any], source_path: Path) -> ContentMeta:
    data = dict(data)
    resources_data = data.pop("resources", []) or []
    if not isinstance(resources_data, list):
        raise FrontMatterError(
            f"'resources' in {source_path} must be a list of entries.",
            source_path=str(source_path),
            pointer="meta.resources",
        )

    if "slug" not in data:
        data["slug"] = _default_slug(source_path)

    extra = {key: data.pop(key) for key in list(data) if key not in KNOWN_KEYS}
    resources = [_ensure_resource(entry, source_path, index) for index, entry in enumerate(resources_data)]
    return ContentMeta(**data, resources=resources, extra=extra)


def _ensure_resource(entry: Any, source_path: Path, index: int) -> ResourceReference | dict[str, Any]:
    if isinstance(entry, ResourceReference):
        return entry
    if not isinstance(entry, dict):
        raise FrontMatterError(
            f"Resource entry in {source_path} must be a table, got {type(entry).__name__}",
            source_path=str(source_path),
            pointer=f"meta.resources[{index}]",
        )
    return entry


def _default_slug(source_path: Path) -> str:
    stem = source_path.parent.name if source_path.name.lower() in BUNDLE_INDEX_NAMES else source_path.stem
    return stem.strip().replace(" ", "-").lower()


def _section_for(source_path: Path, content_root: Path | None, default: str) -> str:
    if content_root is None:
        return default
    try:
        relative = source_path.resolve().relative_to(content_root.resolve())
    except ValueError:
        return default
    # Files directly under the content root take the configured section.
    if len(relative.parts) < 2:
        return default
    return relative.parts[0]
