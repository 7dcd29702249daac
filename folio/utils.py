"""Small text helpers shared across the pipeline."""

from __future__ import annotations

import re

SLUG_PATTERN = re.compile(r"[^a-z0-9\-]+")
WHITESPACE_PATTERN = re.compile(r"\s+")


def slugify(value: str, *, fallback: str = "item") -> str:
    """Convert arbitrary text into a filesystem-safe slug."""
    text = value.strip().lower()
    text = WHITESPACE_PATTERN.sub("-", text)
    text = re.sub(r"_+", "-", text)
    text = SLUG_PATTERN.sub("-", text)
    text = re.sub(r"-{2,}", "-", text)
    return text.strip("-") or fallback


def tag_slug(tag: str) -> str:
    return slugify(tag, fallback="tag")


def title_from_stem(stem: str) -> str:
    """Generate a human-friendly title from a slug or filename stem."""
    text = stem.replace("_", " ").replace("-", " ")
    text = WHITESPACE_PATTERN.sub(" ", text).strip()
    if not text:
        return "Untitled"
    words = [word.capitalize() if not word.isupper() else word for word in text.split()]
    return " ".join(words)
