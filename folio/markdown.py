"""Shared Markdown rendering helpers."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import cast

from markdown_it import MarkdownIt
from mdit_py_plugins.deflist import deflist_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

from .content.body import strip_code_blocks

LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
IMAGE_RE = re.compile(r"!\[[^\]]*\]\([^)]+\)")
CODE_RE = re.compile(r"`([^`]+)`")
SHORTCODE_TEXT_RE = re.compile(r"\{\{[<%].*?[>%]\}\}")
COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
TAG_RE = re.compile(r"<[^>]+>")


@lru_cache(maxsize=1)
def _renderer() -> MarkdownIt:
    """Configure and cache a CommonMark-compliant renderer."""
    md = MarkdownIt("commonmark", {"html": True, "typographer": True})
    md.enable("table").enable("strikethrough")
    md.use(deflist_plugin)
    md.use(footnote_plugin)
    md.use(tasklists_plugin, label=True)
    return md


def render_markdown(text: str) -> str:
    """Render Markdown to HTML using the shared renderer."""
    if not text.strip():
        return ""
    return cast(str, _renderer().render(text))


def extract_plain_text(body: str) -> str:
    """Reduce a Markdown body to prose: no code blocks, shortcodes, markup or comments."""
    prose = COMMENT_RE.sub(" ", strip_code_blocks(body))
    text_parts: list[str] = []
    for line in prose.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        stripped = SHORTCODE_TEXT_RE.sub("", stripped)
        stripped = IMAGE_RE.sub("", stripped)
        stripped = LINK_RE.sub(r"\1", stripped)
        stripped = CODE_RE.sub(r"\1", stripped)
        stripped = TAG_RE.sub("", stripped)
        stripped = stripped.lstrip("#>*-1234567890. ").strip()
        if stripped:
            text_parts.append(stripped)
    return " ".join(text_parts)


def truncate_words(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` words, appending an ellipsis when shortened."""
    words = text.split()
    if len(words) <= limit:
        return " ".join(words)
    return " ".join(words[:limit]) + "…"
