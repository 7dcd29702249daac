from __future__ import annotations

from pathlib import Path

import pytest

from folio.config import load_config


def _write_project_config(root: Path) -> Path:
    config_text = (
        "project_name: External Project\n"
        "content_dir: content\n"
        "output_dir: site\n"
        "templates_dir: layouts\n"
        "static_dir: static\n"
        "cache_dir: .cache\n"
        "default_section: /articles/\n"
        "examples:\n"
        "  base_url: https://github.com/example/demos/tree/main/\n"
        "feeds:\n"
        "  enabled: true\n"
        "  output_subdir: feeds\n"
        "lint:\n"
        "  require_summary_cut: true\n"
    )
    cfg_path = root / "folio.yml"
    cfg_path.write_text(config_text, encoding="utf-8")
    return cfg_path


def test_load_config_resolves_paths_relative_to_config_directory(tmp_path: Path) -> None:
    project = tmp_path / "project"
    project.mkdir()
    _write_project_config(project)

    # Pass a directory path; loader should find folio.yml inside it.
    cfg = load_config(project)

    assert cfg.project_name == "External Project"
    assert cfg.content_dir == (project / "content").resolve()
    assert cfg.output_dir == (project / "site").resolve()
    assert cfg.templates_dir == (project / "layouts").resolve()
    assert cfg.static_dir == (project / "static").resolve()
    assert cfg.cache_dir == (project / ".cache").resolve()
    assert cfg.default_section == "articles"
    assert cfg.examples.base_url == "https://github.com/example/demos/tree/main"
    assert cfg.lint.require_summary_cut is True

    # feeds.output_subdir remains a relative subpath (joined under output_dir elsewhere)
    assert str(cfg.feeds.output_subdir) == "feeds"
    assert not Path(cfg.feeds.output_subdir).is_absolute()  # type: ignore[arg-type]


def test_load_config_accepts_file_path(tmp_path: Path) -> None:
    cfg_path = _write_project_config(tmp_path)

    cfg = load_config(cfg_path)

    assert cfg.content_dir == (tmp_path / "content").resolve()


def test_directory_without_config_uses_defaults(tmp_path: Path) -> None:
    cfg = load_config(tmp_path)

    assert cfg.project_name == "Folio Site"
    assert cfg.content_dir == (tmp_path / "content").resolve()
    assert cfg.output_dir == (tmp_path / "site").resolve()
    assert cfg.templates_dir is None
    assert cfg.static_dir is None
    assert cfg.feeds.enabled is True
    assert cfg.lint.require_summary_cut is False


def test_missing_config_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yml")


def test_non_mapping_config_raises(tmp_path: Path) -> None:
    cfg_path = tmp_path / "folio.yml"
    cfg_path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(cfg_path)


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    cfg_path = tmp_path / "folio.yml"
    cfg_path.write_text("project_name: [unclosed\n", encoding="utf-8")

    with pytest.raises(ValueError) as excinfo:
        load_config(cfg_path)
    assert "Invalid YAML" in str(excinfo.value)
