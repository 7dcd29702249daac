"""Record build inputs between runs so a build can say what changed."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from pydantic import BaseModel, Field, ValidationError

from .config import Config
from .templates import BUNDLED_TEMPLATES_DIR

logger = logging.getLogger(__name__)

STATE_FILENAME = "build-state.json"
STATE_VERSION = 2


class InputSnapshot(BaseModel):
    """Digests of everything a build reads, as stored in ``build-state.json``."""

    version: int = STATE_VERSION
    settings: dict[str, str] = Field(
        default_factory=dict,
        description="Digest per non-content input: config, templates and static files.",
    )
    content: dict[str, str] = Field(
        default_factory=dict,
        description="Digest per file under content_dir, keyed by its POSIX path relative to it.",
    )

    @property
    def is_empty(self) -> bool:
        return not self.settings and not self.content

    @classmethod
    def read(cls, path: Path) -> "InputSnapshot":
        """Load a stored snapshot; unreadable or outdated files count as no snapshot."""
        if not path.is_file():
            return cls()
        try:
            snapshot = cls.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError:
            logger.warning("Ignoring unreadable build state at %s", path)
            return cls()
        if snapshot.version != STATE_VERSION:
            logger.info("Discarding build state written by format %s", snapshot.version)
            return cls()
        return snapshot

    def write(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")


@dataclass
class ChangeSummary:
    """Difference between the stored snapshot and the current inputs."""

    first_run: bool
    settings: set[str] = field(default_factory=set)
    added: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def content_changed(self) -> bool:
        return bool(self.added or self.modified or self.removed)

    @property
    def has_changes(self) -> bool:
        return self.first_run or bool(self.settings) or self.content_changed

    def describe(self) -> str:
        """One-line description such as ``config, content (1 added, 0 modified, 0 removed)``."""
        parts = sorted(self.settings)
        if self.content_changed:
            parts.append(
                f"content ({len(self.added)} added, {len(self.modified)} modified, {len(self.removed)} removed)"
            )
        return ", ".join(parts)


class BuildTracker:
    """Snapshot build inputs and compare them with the previous successful build."""

    def __init__(self, config: Config, config_path: Path):
        self._config = config
        self._config_path = Path(config_path)
        self.state_path = config.cache_dir / STATE_FILENAME
        self._previous = InputSnapshot.read(self.state_path)

    def snapshot(self) -> InputSnapshot:
        config = self._config
        settings = {
            "config": _digest_config(self._config_path, config),
            "templates": _digest_tree(config.templates_dir or BUNDLED_TEMPLATES_DIR),
        }
        if config.static_dir is not None:
            settings["static"] = _digest_tree(config.static_dir)
        return InputSnapshot(settings=settings, content=dict(_digest_files(config.content_dir)))

    def compare(self, current: InputSnapshot) -> ChangeSummary:
        previous = self._previous
        if previous.is_empty:
            return ChangeSummary(first_run=True)

        keys = current.settings.keys() | previous.settings.keys()
        before, after = previous.content, current.content
        return ChangeSummary(
            first_run=False,
            settings={key for key in keys if current.settings.get(key) != previous.settings.get(key)},
            added=sorted(after.keys() - before.keys()),
            modified=sorted(path for path in after.keys() & before.keys() if after[path] != before[path]),
            removed=sorted(before.keys() - after.keys()),
        )

    def persist(self, current: InputSnapshot) -> None:
        current.write(self.state_path)
        logger.debug("Recorded %d content file digest(s) in %s", len(current.content), self.state_path)


def _digest_config(config_path: Path, config: Config) -> str:
    hasher = hashlib.sha256()
    if config_path.is_file():
        hasher.update(config_path.read_bytes())
    # CLI overrides such as --output-dir only show up in the resolved values.
    hasher.update(config.model_dump_json().encode("utf-8"))
    return hasher.hexdigest()


def _digest_tree(root: Path) -> str:
    hasher = hashlib.sha256()
    for relative, digest in _digest_files(root):
        hasher.update(f"{relative}\0{digest}\n".encode("utf-8"))
    return hasher.hexdigest()


def _digest_files(root: Path) -> Iterator[tuple[str, str]]:
    if not root.is_dir():
        return
    for path in sorted(entry for entry in root.rglob("*") if entry.is_file()):
        yield path.relative_to(root).as_posix(), hashlib.sha256(path.read_bytes()).hexdigest()
