from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

CONFIG_FILENAME = "folio.yml"


class ExamplesConfig(BaseModel):
    """Where companion working examples are hosted."""

    base_url: str | None = Field(
        default=None,
        description="Prefix joined with non-URL 'example' identifiers (e.g. a repository tree URL).",
    )
    link_label: str = Field(default="View the working example")

    @field_validator("base_url")
    def _normalize_base_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip().rstrip("/")
        return text or None


class FeedConfig(BaseModel):
    """Options controlling feed generation."""

    enabled: bool = Field(
        default=True,
        description="Toggle syndication feed generation.",
    )
    limit: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Maximum number of entries to include per feed.",
    )
    base_url: str | None = Field(
        default=None,
        description="Canonical site URL used for absolute links (e.g., 'https://example.com').",
    )
    title: str | None = Field(default=None, description="Feed title; defaults to the project name.")
    description: str = Field(default="")
    output_subdir: Path | None = Field(
        default=None,
        description="Optional subdirectory (relative to output_dir) where feeds should be written.",
    )

    @field_validator("output_subdir", mode="before")
    def _ensure_path(cls, value: Any) -> Path | None:
        if value is None:
            return None
        return Path(value)


class LintConfig(BaseModel):
    """Toggles for optional lint rules."""

    require_summary_cut: bool = Field(
        default=False,
        description="Report a missing summary cut as an error instead of a warning.",
    )
    require_captions: bool = Field(
        default=True,
        description="Warn when image or animation resources have no caption.",
    )
    warn_unused_resources: bool = Field(default=True)


class Config(BaseModel):
    project_name: str = Field(default="Folio Site")
    content_dir: Path = Field(default=Path("content"))
    output_dir: Path = Field(default=Path("site"))
    templates_dir: Path | None = Field(
        default=None,
        description="Directory with Jinja2 templates overriding the bundled ones.",
    )
    static_dir: Path | None = Field(
        default=None,
        description="Directory copied verbatim into the output root.",
    )
    cache_dir: Path = Field(default=Path(".cache"))
    default_section: str = Field(default="posts")
    summary_words: int = Field(
        default=70,
        ge=1,
        description="Teaser length used when a document has no summary cut.",
    )
    page_size: int = Field(default=200, ge=1, description="Items per manifest page.")
    examples: ExamplesConfig = Field(default_factory=ExamplesConfig)
    feeds: FeedConfig = Field(default_factory=FeedConfig)
    lint: LintConfig = Field(default_factory=LintConfig)

    @field_validator("content_dir", "output_dir", "cache_dir", mode="before")
    def _ensure_path(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("templates_dir", "static_dir", mode="before")
    def _ensure_optional_path(cls, value: Any) -> Path | None:
        if value is None or value == "":
            return None
        return Path(value)

    @field_validator("default_section")
    def _normalize_section(cls, value: str) -> str:
        cleaned = value.strip().strip("/")
        if not cleaned:
            raise ValueError("default_section cannot be empty")
        return cleaned


def load_config(path: str | Path) -> Config:
    """Load configuration and resolve relative paths based on the config location.

    The ``path`` argument may point to a file (e.g., ``/blog/folio.yml``) or a
    directory containing that file. All relative paths inside the configuration
    are interpreted relative to the directory holding the config file.
    """
    candidate = Path(path)
    data: Any = {}
    base_dir: Path
    if candidate.is_dir():
        # A project directory without a config file uses defaults.
        config_file = candidate / CONFIG_FILENAME
        if config_file.exists():
            data = _read_yaml(config_file)
        base_dir = candidate.resolve()
    else:
        if not candidate.exists():
            raise FileNotFoundError(candidate)
        data = _read_yaml(candidate)
        base_dir = candidate.parent.resolve()

    if not isinstance(data, dict):
        raise ValueError(f"Configuration {candidate} must be a mapping.")

    cfg = Config(**data)

    def _abs_required(value: Path) -> Path:
        return value if value.is_absolute() else (base_dir / value).resolve()

    def _abs_optional(value: Path | None) -> Path | None:
        if value is None:
            return None
        return _abs_required(value)

    cfg.content_dir = _abs_required(cfg.content_dir)
    cfg.output_dir = _abs_required(cfg.output_dir)
    cfg.cache_dir = _abs_required(cfg.cache_dir)
    cfg.templates_dir = _abs_optional(cfg.templates_dir)
    cfg.static_dir = _abs_optional(cfg.static_dir)

    # feeds.output_subdir stays relative to output_dir.
    return cfg


def _read_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        try:
            return yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
