"""CLI entrypoints for Folio build tooling."""

import logging
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Optional, Sequence

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .articles import write_article_pages, write_index_pages
from .config import CONFIG_FILENAME, Config, load_config
from .content import ContentDocument, FrontMatterError
from .feeds import generate_feeds
from .ingest import load_documents
from .manifests import ManifestGenerator, build_tag_index, write_manifest_pages, write_tag_index
from .reporting import (
    BuildReport,
    assemble_report,
    build_document_stats,
    build_manifest_stats,
    build_resource_stats,
    write_report,
)
from .scaffold import ScaffoldError, ScaffoldResult, normalize_slug, scaffold_post
from .staging import StagingResult, reset_directory, stage_static_site
from .state import BuildTracker, ChangeSummary
from .templates import TemplateAssets, TemplateError
from .validation import DocumentIssue, DocumentValidationError, IssueSeverity, lint_corpus, lint_workspace

console = Console()
app = typer.Typer(help="Folio static publishing toolkit.")

ConfigPathOption = Annotated[
    str,
    typer.Option("--config", "-c", help="Path to configuration file."),
]
ForceFlag = Annotated[
    bool,
    typer.Option("--force", "-f", help="Overwrite existing files if they already exist."),
]


@dataclass(slots=True)
class BuildOutputs:
    """Aggregate results from the main build pipeline."""

    report: BuildReport
    article_pages: list[Path]
    index_pages: list[Path]
    manifest_paths: list[Path]
    feed_paths: list[Path]
    staging: StagingResult
    report_path: Path


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def new(  # noqa: PLR0913
    slug: Annotated[
        str,
        typer.Argument(..., help="Slug identifier used for the page bundle directory."),
    ],
    title: Annotated[
        Optional[str],
        typer.Option("--title", "-t", help="Override the default title derived from the slug."),
    ] = None,
    section: Annotated[
        Optional[str],
        typer.Option("--section", "-s", help="Content section; defaults to the configured section."),
    ] = None,
    tags: Annotated[
        Optional[list[str]],
        typer.Option("--tag", help="Tag to add; repeat for several."),
    ] = None,
    config_path: ConfigPathOption = CONFIG_FILENAME,
    force: ForceFlag = False,
) -> None:
    """Create a new post bundle with the recommended metadata."""
    try:
        normalized_slug = normalize_slug(slug)
    except ScaffoldError as exc:
        console.print(f"[bold red]Cannot scaffold[/]: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    config = _load(config_path)

    try:
        result = scaffold_post(
            config,
            normalized_slug,
            title,
            section=section,
            tags=tags or (),
            force=force,
        )
    except ScaffoldError as exc:
        console.print(f"[bold red]Cannot scaffold[/]: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    if normalized_slug != slug:
        console.print(f"[bold yellow]Note[/]: slug normalized to '{normalized_slug}'.")

    _print_scaffold_summary(normalized_slug, result)


@app.command()
def lint(
    config_path: ConfigPathOption = CONFIG_FILENAME,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Treat warnings as errors."),
    ] = False,
) -> None:
    """Check metadata, resource references, summary cuts and corpus identity."""
    config = _load(config_path)
    report = lint_workspace(config)

    if not report.issues:
        console.print(
            f"[bold green]Lint clean[/]: no issues detected across {report.document_count} document(s)."
        )
        raise typer.Exit()

    for issue in sorted(report.issues, key=_lint_sort_key):
        style = "red" if issue.severity is IssueSeverity.ERROR else "yellow"
        location = _display_path(Path(issue.source_path))
        if issue.pointer:
            location = f"{location} :: {issue.pointer}"
        console.print(f"[bold {style}]{issue.severity.name}[/] {escape(location)} - {escape(issue.message)}")

    console.print(
        f"[bold blue]Summary[/]: {report.error_count} error(s), {report.warning_count} warning(s) "
        f"across {report.document_count} document(s)."
    )

    exit_code = 0
    if report.error_count > 0 or (strict and report.warning_count > 0):
        exit_code = 1
    raise typer.Exit(code=exit_code)


@app.command()
def build(
    config_path: ConfigPathOption = CONFIG_FILENAME,
    force: ForceFlag = False,
    drafts: Annotated[
        bool,
        typer.Option("--drafts", help="Render documents marked as drafts."),
    ] = False,
    output_dir: Annotated[
        Optional[Path],
        typer.Option("--output-dir", help="Override the configured output directory."),
    ] = None,
) -> None:
    """Render pages, indexes, manifests and feeds into the output directory."""
    config = _load(config_path)
    if output_dir is not None:
        config.output_dir = output_dir.resolve()
    tracker = BuildTracker(config, Path(config_path))
    inputs = tracker.snapshot()
    change_summary = tracker.compare(inputs)

    _prepare_output_directory(config, change_summary, force)

    documents = _load_build_documents(config)

    try:
        outputs = _generate_site(config, documents, include_drafts=drafts)
    except TemplateError as exc:
        console.print(f"[bold red]Rendering failed[/]: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    _print_build_summary(config, outputs)
    tracker.persist(inputs)


@app.command()
def tags(config_path: ConfigPathOption = CONFIG_FILENAME) -> None:
    """List tags with the number of documents carrying each."""
    config = _load(config_path)
    documents = _load_build_documents(config)
    counts = build_tag_index(documents).counts()
    if not counts:
        console.print("[bold yellow]No tags[/]: no document declares tags.")
        return
    for tag, count in sorted(counts.items(), key=lambda entry: (-entry[1], entry[0].lower())):
        console.print(f"[bold green]{escape(tag)}[/] {count}")


@app.command()
def clean(
    config_path: ConfigPathOption = CONFIG_FILENAME,
    include_cache: Annotated[
        bool,
        typer.Option("--cache", help="Also remove the configured cache directory."),
    ] = False,
) -> None:
    """Remove generated artifacts (site bundle and optional cache)."""
    config = _load(config_path)
    targets: list[tuple[str, Path]] = [("site output", Path(config.output_dir))]
    if include_cache:
        targets.append(("cache", Path(config.cache_dir)))

    removed = 0
    for label, path in targets:
        if path.exists():
            console.print(f"[bold green]Removing[/]: {label} ({path})")
            _remove_path(path)
            removed += 1
        else:
            console.print(f"[bold yellow]Skipping[/]: {label} ({path}) not found")

    noun = "directory" if removed == 1 else "directories"
    console.print(f"[bold green]Clean complete[/]: removed {removed} {noun}.")


def _prepare_output_directory(config: Config, change_summary: ChangeSummary, force: bool) -> None:
    if force:
        console.print("[bold yellow]Force rebuild[/]: clearing the output directory before regenerating.")
        reset_directory(config.output_dir)
        return

    config.output_dir.mkdir(parents=True, exist_ok=True)

    if change_summary.first_run:
        console.print("[bold yellow]Build[/]: no previous state detected.")
        return

    if change_summary.has_changes:
        console.print(f"[bold green]Build[/]: changes detected in {escape(change_summary.describe())}.")
        return

    console.print("[bold blue]Build[/]: no input changes since the last build.")


def _load_build_documents(config: Config) -> list[ContentDocument]:
    try:
        documents = load_documents(config)
    except (FrontMatterError, DocumentValidationError) as error:
        console.print(f"[bold red]Validation failed[/]: {escape(str(error))}")
        raise typer.Exit(code=1) from error

    corpus_issues = lint_corpus(documents)
    if corpus_issues:
        for issue in corpus_issues:
            console.print(f"[bold red]Validation failed[/]: {issue.source_path} - {escape(issue.message)}")
        raise typer.Exit(code=1)
    return documents


def _generate_site(
    config: Config,
    documents: Sequence[ContentDocument],
    *,
    include_drafts: bool,
) -> BuildOutputs:
    start = time.perf_counter()
    publishable = [doc for doc in documents if include_drafts or not doc.meta.draft]

    assets = TemplateAssets(config)
    article_pages = write_article_pages(publishable, config, assets=assets, include_drafts=True)
    index_pages = write_index_pages(publishable, config, assets=assets)

    generator = ManifestGenerator(
        page_size=config.page_size,
        summary_words=config.summary_words,
        example_base_url=config.examples.base_url,
    )
    pages = generator.build_pages(publishable, prefix=config.default_section)
    manifest_dir = config.output_dir / "manifests"
    manifest_paths = write_manifest_pages(pages, manifest_dir)
    manifest_paths.append(write_tag_index(build_tag_index(publishable), manifest_dir))
    feed_paths = generate_feeds(config, pages)

    staging = stage_static_site(config, publishable, include_drafts=True)

    report = assemble_report(
        project=config.project_name,
        duration_seconds=time.perf_counter() - start,
        documents=build_document_stats(documents),
        manifests=build_manifest_stats(pages),
        resources=build_resource_stats(staging),
        pages_written=len(article_pages) + len(index_pages),
        feeds_written=len(feed_paths),
    )
    report_path = write_report(report, config.output_dir)

    return BuildOutputs(
        report=report,
        article_pages=article_pages,
        index_pages=index_pages,
        manifest_paths=manifest_paths,
        feed_paths=feed_paths,
        staging=staging,
        report_path=report_path,
    )


def _print_build_summary(config: Config, outputs: BuildOutputs) -> None:
    report = outputs.report
    documents = report.documents
    console.print(
        "[bold green]Documents[/]: "
        f"{documents.total} "
        f"(published {documents.published}, drafts {documents.drafts}, featured {documents.featured})"
    )
    console.print(
        "[bold green]Pages[/]: "
        f"rendered {len(outputs.article_pages)} article(s) and {len(outputs.index_pages)} index page(s) "
        f"in {_display_path(config.output_dir)}"
    )
    console.print(
        "[bold green]Manifests[/]: "
        f"{report.manifests.pages} page(s) with {report.manifests.items} item(s); "
        f"written {len(outputs.manifest_paths)} file(s)"
    )
    if outputs.feed_paths:
        feed_locations = ", ".join(_display_path(path) for path in outputs.feed_paths)
        console.print(f"[bold green]Feeds[/]: generated {feed_locations}")

    resources = report.resources
    console.print(
        "[bold green]Resources[/]: "
        f"{resources.copied} copied, {resources.reused} unchanged, {resources.static} static item(s)"
    )
    console.print(
        "[bold green]Report[/]: "
        f"{_display_path(outputs.report_path)} (duration {report.duration_seconds:.2f}s)"
    )

    if report.warnings:
        console.print("[bold yellow]Warnings:[/]")
        for warning in report.warnings:
            console.print(f"- {escape(warning)}")


def _print_scaffold_summary(slug: str, result: ScaffoldResult) -> None:
    console.print(f"[bold green]Scaffold ready[/]: post '{slug}'")

    for path in result.created:
        console.print(f"- {_display_path(path)} (new)")
    for path in result.updated:
        console.print(f"- {_display_path(path)} (updated)")

    if result.notes:
        console.print("[bold blue]Next steps[/]:")
        for note in result.notes:
            console.print(f"- {escape(note)}")


def _lint_sort_key(issue: DocumentIssue) -> tuple[int, str, str]:
    severity_order = 0 if issue.severity is IssueSeverity.ERROR else 1
    pointer = issue.pointer or ""
    return (severity_order, issue.source_path, pointer)


def _display_path(path: Path) -> str:
    try:
        return path.resolve().relative_to(Path.cwd().resolve()).as_posix()
    except ValueError:
        return path.as_posix()


def _load(path: str) -> Config:
    try:
        return load_config(path)
    except FileNotFoundError as exc:
        raise typer.BadParameter(f"Config file not found: {path}") from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _remove_path(path: Path) -> None:
    if path.is_dir():
        shutil.rmtree(path, ignore_errors=True)
    elif path.exists():
        path.unlink(missing_ok=True)
