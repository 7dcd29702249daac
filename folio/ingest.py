"""High-level ingestion helpers to load content documents from the workspace."""

from __future__ import annotations

from typing import List

from .config import Config
from .content import ContentDocument, load_markdown_document
from .validation import iter_markdown_files, validate_document


def load_documents(config: Config, *, include_drafts: bool = True) -> list[ContentDocument]:
    """Load all supported content documents from the configured content directory."""
    root = config.content_dir

    documents: List[ContentDocument] = []
    if not root.exists():
        return documents

    for path in iter_markdown_files(root):
        document = load_markdown_document(path, content_root=root, default_section=config.default_section)
        validate_document(document)
        if document.meta.draft and not include_drafts:
            continue
        documents.append(document)

    return documents
