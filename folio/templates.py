"""Jinja2 environment used to render site pages."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Sequence

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from .config import Config
from .utils import tag_slug

logger = logging.getLogger(__name__)

BUNDLED_TEMPLATES_DIR = Path(__file__).resolve().parent / "layouts"
REQUIRED_TEMPLATES = ("base.html", "post.html", "list.html")


class TemplateError(RuntimeError):
    """Raised when page templates cannot be loaded or rendered."""


class TemplateAssets:
    """Load the template environment and site-wide context for rendered pages."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.search_paths = self._resolve_search_paths()
        self.environment = self._build_environment()
        self.ensure_templates(REQUIRED_TEMPLATES)

    def render(self, template_name: str, context: dict[str, Any]) -> str:
        try:
            template = self.environment.get_template(template_name)
        except TemplateNotFound as exc:
            raise TemplateError(f"Template '{template_name}' not found in {self._describe_paths()}.") from exc
        return template.render(**context)

    def ensure_templates(self, names: Sequence[str]) -> None:
        for name in names:
            try:
                self.environment.get_template(name)
            except TemplateNotFound as exc:
                raise TemplateError(
                    f"Required template '{name}' not found in {self._describe_paths()}."
                ) from exc

    def site_context(self) -> dict[str, Any]:
        feeds = self.config.feeds
        return {
            "title": feeds.title or self.config.project_name,
            "description": feeds.description,
            "base_url": (feeds.base_url or "").rstrip("/"),
            "feeds_enabled": feeds.enabled,
            "year": datetime.now().year,
        }

    def _resolve_search_paths(self) -> list[Path]:
        paths: list[Path] = []
        custom = self.config.templates_dir
        if custom is not None:
            if custom.exists():
                paths.append(custom)
            else:
                logger.warning("Templates directory %s not found; using bundled templates.", custom)
        paths.append(BUNDLED_TEMPLATES_DIR)
        return paths

    def _build_environment(self) -> Environment:
        environment = Environment(
            loader=FileSystemLoader([str(path) for path in self.search_paths]),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        environment.filters["display_date"] = _display_date
        environment.filters["iso_date"] = _iso_date
        environment.filters["tag_slug"] = tag_slug
        return environment

    def _describe_paths(self) -> str:
        return ", ".join(path.as_posix() for path in self.search_paths)


def _display_date(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.strftime("%b %d, %Y")


def _iso_date(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.isoformat()
