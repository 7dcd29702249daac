from pathlib import Path

from folio.config import Config
from folio.content.parsers import load_markdown_document
from folio.staging import reset_directory, stage_static_site


def _project(tmp_path: Path) -> Config:
    content = tmp_path / "content"
    bundle = content / "posts" / "demo"
    (bundle / "media").mkdir(parents=True)
    (bundle / "clip.gif").write_bytes(b"GIF89a")
    (bundle / "media" / "walk.mp4").write_bytes(b"video")
    (bundle / "index.md").write_text(
        "+++\n"
        'title = "Demo"\n'
        "date = 2024-01-01\n"
        "\n[[resources]]\nname = \"clip\"\nsrc = \"clip.gif\"\n"
        "\n[[resources]]\nname = \"walk\"\nsrc = \"media/walk.mp4\"\n"
        "\n[[resources]]\nname = \"gone\"\nsrc = \"gone.png\"\n"
        "\n[[resources]]\nname = \"sneaky\"\nsrc = \"../../secret.txt\"\n"
        "+++\nBody\n",
        encoding="utf-8",
    )
    static = tmp_path / "static"
    (static / "css").mkdir(parents=True)
    (static / "css" / "site.css").write_text("body {}", encoding="utf-8")
    (static / "robots.txt").write_text("User-agent: *", encoding="utf-8")
    return Config(content_dir=content, output_dir=tmp_path / "site", static_dir=static)


def test_stage_static_site_copies_bundle_resources(tmp_path: Path) -> None:
    config = _project(tmp_path)
    document = load_markdown_document(config.content_dir / "posts" / "demo" / "index.md", content_root=config.content_dir)

    result = stage_static_site(config, [document])

    page_dir = config.output_dir / "posts" / "demo"
    assert (page_dir / "clip.gif").read_bytes() == b"GIF89a"
    assert (page_dir / "media" / "walk.mp4").exists()
    assert sorted(path.name for path in result.copied_resources) == ["clip.gif", "walk.mp4"]
    assert len(result.missing_resources) == 2
    assert any(entry.endswith("gone.png") for entry in result.missing_resources)
    assert (config.output_dir / "css" / "site.css").exists()
    assert (config.output_dir / "robots.txt").exists()
    assert len(result.static_paths) == 2
    assert result.total == 4


def test_stage_static_site_reuses_current_copies(tmp_path: Path) -> None:
    config = _project(tmp_path)
    document = load_markdown_document(config.content_dir / "posts" / "demo" / "index.md", content_root=config.content_dir)

    stage_static_site(config, [document])
    second = stage_static_site(config, [document])

    assert second.copied_resources == []
    assert sorted(path.name for path in second.reused_resources) == ["clip.gif", "walk.mp4"]


def test_stage_static_site_skips_drafts(tmp_path: Path) -> None:
    config = _project(tmp_path)
    path = config.content_dir / "posts" / "demo" / "index.md"
    path.write_text(path.read_text(encoding="utf-8").replace("date = 2024-01-01", "date = 2024-01-01\ndraft = true"), encoding="utf-8")
    document = load_markdown_document(path, content_root=config.content_dir)

    result = stage_static_site(config, [document])

    assert result.copied_resources == []
    assert not (config.output_dir / "posts" / "demo").exists()


def test_reset_directory_recreates_empty(tmp_path: Path) -> None:
    target = tmp_path / "site"
    (target / "nested").mkdir(parents=True)
    (target / "nested" / "file.txt").write_text("x", encoding="utf-8")

    reset_directory(target)

    assert target.is_dir()
    assert list(target.iterdir()) == []
