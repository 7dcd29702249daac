"""Manifest data structures and helpers."""

from .generator import ManifestGenerator, build_tag_index, chunk_documents, to_manifest_item
from .models import ManifestItem, ManifestPage, TagIndex
from .writer import write_manifest_pages, write_tag_index

__all__ = [
    "ManifestGenerator",
    "ManifestItem",
    "ManifestPage",
    "TagIndex",
    "build_tag_index",
    "chunk_documents",
    "to_manifest_item",
    "write_manifest_pages",
    "write_tag_index",
]
