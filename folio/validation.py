"""Schema validation helpers and lint diagnostics for content documents."""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum, auto
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Iterable, Iterator, Sequence, cast

from jsonschema import Draft202012Validator

from .config import Config
from .content import ContentDocument, FrontMatterError, MediaKind, load_markdown_document
from .content.body import iter_resource_references

SCHEMA_PACKAGE = "folio.schemas"
CONTENT_SCHEMA_NAME = "content_post.schema.json"
SUPPORTED_SUFFIXES = {".md", ".markdown"}
CAPTIONED_KINDS = {MediaKind.IMAGE, MediaKind.ANIMATION}


class DocumentValidationError(ValueError):
    """Raised when a content document fails schema validation."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class IssueSeverity(Enum):
    """Severity level for lint issues."""

    ERROR = auto()
    WARNING = auto()


@dataclass(slots=True)
class DocumentIssue:
    """Represents a lint finding for a document."""

    slug: str
    source_path: str
    message: str
    severity: IssueSeverity
    pointer: str | None = None


@dataclass(slots=True)
class LintReport:
    """Aggregate lint results for a workspace."""

    issues: list[DocumentIssue] = field(default_factory=list)
    document_count: int = 0

    def add(self, issue: DocumentIssue) -> None:
        self.issues.append(issue)

    def extend(self, issues: Iterable[DocumentIssue]) -> None:
        self.issues.extend(issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity is IssueSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity is IssueSeverity.WARNING)


def validate_document(document: ContentDocument) -> None:
    """Validate a content document against the canonical JSON schema."""
    data = document.model_dump(mode="json", exclude_none=True)
    validator = _get_content_validator()
    errors = sorted(validator.iter_errors(data), key=lambda err: list(err.path))
    if errors:
        first = errors[0]
        pointer = "/".join(str(elem) for elem in first.path)
        message = f"{document.source_path}: {first.message}"
        if pointer:
            message += f" (at {pointer})"
        raise DocumentValidationError(message, path=pointer or None)


def lint_document(document: ContentDocument, config: Config) -> list[DocumentIssue]:
    """Run per-document lint checks."""
    issues: list[DocumentIssue] = []

    def report(message: str, severity: IssueSeverity, pointer: str | None = None) -> None:
        issues.append(
            DocumentIssue(
                slug=document.slug,
                source_path=document.source_path,
                message=message,
                severity=severity,
                pointer=pointer,
            )
        )

    try:
        validate_document(document)
    except DocumentValidationError as exc:
        report(str(exc), IssueSeverity.ERROR, exc.path)

    if document.meta.draft:
        report("Document is marked as a draft. Publish before deployment.", IssueSeverity.WARNING, "meta.draft")

    cuts = document.summary_cut_count
    if cuts > 1:
        report(
            f"Found {cuts} summary cut markers; a document may contain at most one.",
            IssueSeverity.ERROR,
            "body",
        )
    elif cuts == 0:
        severity = IssueSeverity.ERROR if config.lint.require_summary_cut else IssueSeverity.WARNING
        report("No summary cut marker; the teaser falls back to the leading words.", severity, "body")

    issues.extend(_lint_resources(document, config))

    example = document.meta.example
    if example and not _is_absolute_url(example) and config.examples.base_url is None:
        report(
            f"Working example '{example}' is not a URL and no examples.base_url is configured.",
            IssueSeverity.WARNING,
            "meta.example",
        )

    return issues


def lint_corpus(documents: Sequence[ContentDocument]) -> list[DocumentIssue]:
    """Run checks that span documents: identity and slug uniqueness."""
    issues: list[DocumentIssue] = []
    seen_identity: dict[tuple[str, Any], ContentDocument] = {}
    seen_slugs: dict[tuple[str, str], ContentDocument] = {}

    for document in documents:
        identity = document.identity
        first = seen_identity.get(identity)
        if first is not None:
            issues.append(
                DocumentIssue(
                    slug=document.slug,
                    source_path=document.source_path,
                    message=(
                        f"Title '{document.meta.title}' and date {document.meta.date.isoformat()} "
                        f"duplicate {first.source_path}."
                    ),
                    severity=IssueSeverity.ERROR,
                    pointer="meta.title",
                )
            )
        else:
            seen_identity[identity] = document

        slug_key = (document.section, document.slug)
        owner = seen_slugs.get(slug_key)
        if owner is not None:
            issues.append(
                DocumentIssue(
                    slug=document.slug,
                    source_path=document.source_path,
                    message=f"Slug '{document.slug}' is already used by {owner.source_path}.",
                    severity=IssueSeverity.ERROR,
                    pointer="meta.slug",
                )
            )
        else:
            seen_slugs[slug_key] = document

    return issues


def lint_workspace(config: Config) -> LintReport:
    """Collect documents and emit lint diagnostics for the configured workspace."""
    report = LintReport()
    documents: list[ContentDocument] = []

    content_dir = config.content_dir
    if content_dir.exists():
        for path in iter_markdown_files(content_dir):
            try:
                document = load_markdown_document(
                    path, content_root=content_dir, default_section=config.default_section
                )
            except FrontMatterError as exc:
                report.add(
                    DocumentIssue(
                        slug=Path(path).stem,
                        source_path=str(path),
                        message=str(exc),
                        severity=IssueSeverity.ERROR,
                        pointer=exc.pointer,
                    )
                )
                continue
            documents.append(document)

    report.document_count = len(documents)

    for document in documents:
        report.extend(lint_document(document, config))
    report.extend(lint_corpus(documents))

    return report


def iter_markdown_files(root: Path) -> Iterator[Path]:
    """Yield content files in a deterministic order (sorted directories, then files)."""
    directories = sorted(p for p in root.rglob("*") if p.is_dir())
    directories.insert(0, root)

    for directory in directories:
        for path in sorted(directory.iterdir()):
            if path.is_file() and path.suffix.lower() in SUPPORTED_SUFFIXES:
                yield path


@lru_cache(maxsize=1)
def _get_content_validator() -> Draft202012Validator:
    schema = _load_schema(CONTENT_SCHEMA_NAME)
    return Draft202012Validator(schema)


def _load_schema(name: str) -> dict[str, Any]:
    with resources.files(SCHEMA_PACKAGE).joinpath(name).open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"Schema '{name}' must be a JSON object.")
    return cast(dict[str, Any], payload)


def _lint_resources(document: ContentDocument, config: Config) -> list[DocumentIssue]:
    issues: list[DocumentIssue] = []
    declared = document.meta.resources

    def report(message: str, severity: IssueSeverity, pointer: str) -> None:
        issues.append(
            DocumentIssue(
                slug=document.slug,
                source_path=document.source_path,
                message=message,
                severity=severity,
                pointer=pointer,
            )
        )

    counts = Counter(reference.name for reference in declared)
    for name, count in sorted(counts.items()):
        if count > 1:
            report(f"Resource name '{name}' is declared {count} times.", IssueSeverity.ERROR, "meta.resources")

    referenced = list(iter_resource_references(document.body))
    declared_names = set(counts)
    reported: set[str] = set()
    for name in referenced:
        if name in declared_names or name in reported:
            continue
        reported.add(name)
        report(
            f"Body references resource '{name}' which is not declared in the metadata.",
            IssueSeverity.ERROR,
            "body",
        )

    bundle = Path(document.bundle_dir) if document.bundle_dir else None
    referenced_names = set(referenced)
    for index, reference in enumerate(declared):
        pointer = f"meta.resources[{index}]"
        if bundle is not None:
            resolved = _resolve_resource_path(bundle, reference.src)
            if resolved is None:
                report(
                    f"Resource '{reference.name}' points outside the page bundle: {reference.src}",
                    IssueSeverity.ERROR,
                    f"{pointer}.src",
                )
            elif not resolved.is_file():
                report(
                    f"Resource file not found: {reference.src} (expected at {resolved})",
                    IssueSeverity.ERROR,
                    f"{pointer}.src",
                )

        if config.lint.warn_unused_resources and reference.name not in referenced_names:
            report(
                f"Resource '{reference.name}' is declared but never referenced in the body.",
                IssueSeverity.WARNING,
                f"{pointer}.name",
            )

        if config.lint.require_captions and reference.media_kind in CAPTIONED_KINDS and not reference.title:
            report(
                f"Resource '{reference.name}' ({reference.src}) has no caption title.",
                IssueSeverity.WARNING,
                f"{pointer}.title",
            )

    return issues


def _resolve_resource_path(bundle: Path, src: str) -> Path | None:
    base = bundle.resolve()
    candidate = (base / src).resolve()
    try:
        candidate.relative_to(base)
    except ValueError:
        return None
    return candidate


def _is_absolute_url(value: str) -> bool:
    return value.startswith("http://") or value.startswith("https://")
