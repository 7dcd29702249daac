"""Render and write article pages, the home index and tag listings."""

from __future__ import annotations

import html
import logging
import shutil
from pathlib import Path
from typing import Iterable, Sequence, Set

from .config import Config
from .content import ContentDocument, MediaKind, ResourceReference
from .content.body import Shortcode, find_shortcodes, remove_summary_cuts, unwrap_inert_shortcodes
from .manifests import ManifestItem, build_tag_index, to_manifest_item
from .manifests.generator import reading_time_minutes, sort_documents
from .markdown import extract_plain_text, render_markdown
from .templates import TemplateAssets
from .utils import tag_slug

logger = logging.getLogger(__name__)

TAGS_DIRNAME = "tags"


class ArticleBodyRenderer:
    """Transform an article body and its resource shortcodes into HTML."""

    def render_body(self, document: ContentDocument) -> str:
        """Render the body, expanding resource shortcodes and dropping the summary cut."""
        body = remove_summary_cuts(document.body)
        if not body.strip():
            return ""

        pieces: list[str] = []
        cursor = 0
        for shortcode in find_shortcodes(body):
            if not shortcode.references_resource:
                continue
            pieces.append(unwrap_inert_shortcodes(body[cursor : shortcode.start]))
            pieces.append(f"\n\n{self._render_shortcode(document, shortcode)}\n\n")
            cursor = shortcode.end
        pieces.append(unwrap_inert_shortcodes(body[cursor:]))
        return render_markdown("".join(pieces)).strip()

    def count_words(self, body: str) -> int:
        """Count prose words, ignoring code blocks and shortcodes."""
        plain_text = extract_plain_text(body)
        return len(plain_text.split()) if plain_text else 0

    def resource_url(self, document: ContentDocument, reference: ResourceReference) -> str:
        return f"{document.url_path}{reference.src}"

    def _render_shortcode(self, document: ContentDocument, shortcode: Shortcode) -> str:
        name = shortcode.name or ""
        reference = document.meta.resource(name)
        if reference is None:
            logger.warning("%s: shortcode references undeclared resource '%s'.", document.source_path, name)
            return f'<p class="missing-resource"><em>Missing resource: {html.escape(name)}</em></p>'

        url = html.escape(self.resource_url(document, reference))
        caption = shortcode.params.get("caption") or reference.title or ""
        alt_text = html.escape(shortcode.params.get("alt") or caption or reference.name)
        caption_html = f"<figcaption>{html.escape(caption)}</figcaption>" if caption else ""
        kind = reference.media_kind

        if kind is MediaKind.VIDEO:
            media_html = f'<video src="{url}" controls loop muted playsinline preload="metadata"></video>'
        elif kind in {MediaKind.IMAGE, MediaKind.ANIMATION}:
            media_html = f'<img src="{url}" alt="{alt_text}" loading="lazy" />'
        else:
            label = html.escape(caption or reference.src)
            return f'<p class="resource-link"><a href="{url}">{label}</a></p>'

        return f'<figure class="post-media post-media--{kind.value}">{media_html}{caption_html}</figure>'


class ArticlePageRenderer:
    """Render a single ContentDocument into its final HTML page."""

    def __init__(self, assets: TemplateAssets) -> None:
        self._assets = assets
        self._config = assets.config
        self._body_renderer = ArticleBodyRenderer()

    def render(self, document: ContentDocument) -> str:
        body_html = self._body_renderer.render_body(document)
        word_count = self._body_renderer.count_words(document.body)
        return self._assets.render(
            "post.html",
            {
                "site": self._assets.site_context(),
                "meta": document.meta,
                "document": document,
                "body_html": body_html,
                "reading_time": reading_time_minutes(word_count),
                "example_url": document.meta.example_url(self._config.examples.base_url),
                "example_label": self._config.examples.link_label,
            },
        )


class ArticlePageWriter:
    """Coordinate rendering and writing article pages to disk."""

    def __init__(self, config: Config, assets: TemplateAssets | None = None) -> None:
        self._config = config
        self._assets = assets or TemplateAssets(config)
        self._renderer = ArticlePageRenderer(self._assets)

    def write(self, documents: Iterable[ContentDocument], *, include_drafts: bool = False) -> list[Path]:
        """Render every publishable document and write the HTML output."""
        output_root = self._config.output_dir
        written_paths: list[Path] = []
        current_dirs: Set[Path] = set()
        section_roots: Set[Path] = set()

        for document in documents:
            if document.meta.draft and not include_drafts:
                continue

            html_text = self._renderer.render(document)
            destination = output_root / document.section / document.slug / "index.html"
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(html_text, encoding="utf-8")

            section_roots.add(output_root / document.section)
            current_dirs.add(destination.parent)
            written_paths.append(destination)

        existing_dirs: Set[Path] = {
            path for root in section_roots for path in root.iterdir() if path.is_dir()
        }
        DirectoryPruner.prune(existing_dirs - current_dirs)
        return written_paths


class DirectoryPruner:
    """Remove stale page directories after rendering."""

    @staticmethod
    def prune(stale_dirs: Iterable[Path]) -> None:
        """Remove directories not touched during the current build."""
        for directory in sorted(stale_dirs, key=lambda item: len(item.parts), reverse=True):
            if directory.exists():
                shutil.rmtree(directory, ignore_errors=True)


def write_article_pages(
    documents: Iterable[ContentDocument],
    config: Config,
    *,
    assets: TemplateAssets | None = None,
    include_drafts: bool = False,
) -> list[Path]:
    """
    Render published articles into static HTML pages.

    Args:
        documents: An iterable of content documents to be rendered.
        config: Build configuration containing template and output directories.
        assets: Optional preloaded template environment.
        include_drafts: Also render documents flagged as drafts.

    Returns:
        A list of paths to the written HTML files.
    """
    writer = ArticlePageWriter(config, assets)
    return writer.write(documents, include_drafts=include_drafts)


def write_index_pages(
    documents: Sequence[ContentDocument],
    config: Config,
    *,
    assets: TemplateAssets | None = None,
) -> list[Path]:
    """Write the home listing (featured first, then newest) and one listing per tag."""
    assets = assets or TemplateAssets(config)
    output_root = config.output_dir
    site = assets.site_context()
    ordered = sort_documents(documents)
    # Slugs repeat across sections, so listings are keyed by page URL.
    items = {document.url_path: _item(document, config) for document in ordered}

    featured = [items[doc.url_path] for doc in ordered if doc.meta.featured]
    regular = [items[doc.url_path] for doc in ordered if not doc.meta.featured]

    written: list[Path] = []
    home = output_root / "index.html"
    home.parent.mkdir(parents=True, exist_ok=True)
    home.write_text(
        assets.render("list.html", {"site": site, "heading": None, "items": featured + regular}),
        encoding="utf-8",
    )
    written.append(home)

    tags_root = output_root / TAGS_DIRNAME
    existing_dirs: Set[Path] = (
        {path for path in tags_root.iterdir() if path.is_dir()} if tags_root.exists() else set()
    )
    current_dirs: Set[Path] = set()
    for tag, urls in build_tag_index(ordered).tags.items():
        destination = tags_root / tag_slug(tag) / "index.html"
        destination.parent.mkdir(parents=True, exist_ok=True)
        listing = [items[url] for url in urls]
        destination.write_text(
            assets.render("list.html", {"site": site, "heading": f"#{tag}", "items": listing}),
            encoding="utf-8",
        )
        current_dirs.add(destination.parent)
        written.append(destination)

    DirectoryPruner.prune(existing_dirs - current_dirs)
    return written


def _item(document: ContentDocument, config: Config) -> ManifestItem:
    return to_manifest_item(
        document,
        summary_words=config.summary_words,
        example_base_url=config.examples.base_url,
    )
