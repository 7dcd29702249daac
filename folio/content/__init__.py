"""Utilities for ingesting and validating source content."""

from .models import ContentDocument, ContentMeta, MediaKind, ResourceReference
from .parsers import (
    FrontMatterError,
    count_summary_cuts,
    iter_resource_references,
    load_markdown_document,
    parse_document,
    split_summary,
)

__all__ = [
    "ContentDocument",
    "ContentMeta",
    "FrontMatterError",
    "MediaKind",
    "ResourceReference",
    "count_summary_cuts",
    "iter_resource_references",
    "load_markdown_document",
    "parse_document",
    "split_summary",
]
