from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from folio.articles import ArticleBodyRenderer, write_article_pages, write_index_pages
from folio.config import Config, ExamplesConfig
from folio.content import ContentDocument, ContentMeta, ResourceReference

BODY = """First paragraph.

<!--more-->

{{< img name="ripple" >}}

{{< video "walkthrough" >}}

```markdown
{{< img name="not-a-reference" >}}
```
"""


def _make_document(
    slug: str = "sample-post",
    *,
    title: str = "Sample Post",
    body: str = BODY,
    date: datetime | None = None,
    tags: list[str] | None = None,
    featured: bool = False,
    draft: bool = False,
    example: str | None = "sample-post",
    section: str = "posts",
) -> ContentDocument:
    meta = ContentMeta(
        slug=slug,
        title=title,
        subtitle="A subtitle",
        date=date or datetime(2024, 1, 1, tzinfo=UTC),
        author="ada",
        tags=["journal", "Release Notes"] if tags is None else tags,
        featured=featured,
        draft=draft,
        example=example,
        resources=[
            ResourceReference(name="ripple", src="ripple.gif", title="Ripple effect"),
            ResourceReference(name="walkthrough", src="media/walkthrough.mp4"),
        ],
    )
    return ContentDocument(
        meta=meta,
        body=body,
        source_path=f"content/{section}/{slug}/index.md",
        bundle_dir=f"content/{section}/{slug}",
        section=section,
    )


def _config(tmp_path: Path) -> Config:
    return Config(
        project_name="Test Site",
        output_dir=tmp_path / "site",
        examples=ExamplesConfig(base_url="https://github.com/example/demos/tree/main"),
    )


def test_body_renderer_expands_resource_shortcodes() -> None:
    html = ArticleBodyRenderer().render_body(_make_document())

    assert "<p>First paragraph.</p>" in html
    assert "more-->" not in html
    assert '<figure class="post-media post-media--animation">' in html
    assert '<img src="/posts/sample-post/ripple.gif" alt="Ripple effect" loading="lazy" />' in html
    assert "<figcaption>Ripple effect</figcaption>" in html
    assert '<video src="/posts/sample-post/media/walkthrough.mp4" controls loop muted playsinline' in html
    assert "{{&lt; img name=&quot;not-a-reference&quot; &gt;}}" in html


def test_body_renderer_marks_undeclared_resources() -> None:
    document = _make_document(body='Intro\n\n{{< img name="ghost" >}}\n')

    html = ArticleBodyRenderer().render_body(document)

    assert "Missing resource: ghost" in html


def test_body_renderer_leaves_inline_code_literal() -> None:
    document = _make_document(
        body=(
            "Teaser\n\n<!--more-->\n\n"
            "Hugo splits at `<!--more-->` and `{{< img name=\"ripple\" >}}` embeds a file.\n"
        )
    )

    html = ArticleBodyRenderer().render_body(document)

    assert "<code>&lt;!--more--&gt;</code>" in html
    assert "<code>{{&lt; img name=&quot;ripple&quot; &gt;}}</code>" in html
    assert "<figure" not in html


def test_body_renderer_unwraps_commented_shortcodes() -> None:
    document = _make_document(body='Write `{{</* img name="demo" */>}}` to embed.\n\n{{%/* resource "notes" */%}}\n')

    html = ArticleBodyRenderer().render_body(document)

    assert "<code>{{&lt; img name=&quot;demo&quot; &gt;}}</code>" in html
    assert "{{% resource &quot;notes&quot; %}}" in html
    assert "/*" not in html


def test_count_words_ignores_code_and_shortcodes() -> None:
    renderer = ArticleBodyRenderer()
    assert renderer.count_words(BODY) == 2


def test_write_article_page_uses_bundled_layout(tmp_path: Path) -> None:
    config = _config(tmp_path)

    written = write_article_pages([_make_document()], config)

    assert written == [config.output_dir / "posts" / "sample-post" / "index.html"]
    page = written[0].read_text(encoding="utf-8")
    assert "<title>Sample Post - Test Site</title>" in page
    assert '<p class="post-subtitle">A subtitle</p>' in page
    assert '<span class="post-author">@ada</span>' in page
    assert '<a href="/tags/release-notes/">#Release Notes</a>' in page
    assert 'href="https://github.com/example/demos/tree/main/sample-post"' in page
    assert "View the working example" in page


def test_write_article_pages_skips_drafts_and_prunes_stale_pages(tmp_path: Path) -> None:
    config = _config(tmp_path)
    stale = config.output_dir / "posts" / "removed-post"
    stale.mkdir(parents=True)
    (stale / "index.html").write_text("old", encoding="utf-8")

    published = _make_document("live")
    draft = _make_document("wip", draft=True)

    written = write_article_pages([published, draft], config)

    assert [path.parent.name for path in written] == ["live"]
    assert not stale.exists()
    assert not (config.output_dir / "posts" / "wip").exists()

    with_drafts = write_article_pages([published, draft], config, include_drafts=True)
    assert sorted(path.parent.name for path in with_drafts) == ["live", "wip"]


def test_write_index_pages_lists_featured_first_and_tags(tmp_path: Path) -> None:
    config = _config(tmp_path)
    stale_tag = config.output_dir / "tags" / "obsolete"
    stale_tag.mkdir(parents=True)

    older_featured = _make_document(
        "older", title="Older Featured", date=datetime(2023, 1, 1, tzinfo=UTC), featured=True, tags=["journal"]
    )
    newer = _make_document("newer", title="Newer Post", date=datetime(2024, 6, 1, tzinfo=UTC), tags=["journal", "Release Notes"])

    written = write_index_pages([newer, older_featured], config)

    home = config.output_dir / "index.html"
    assert home in written
    home_html = home.read_text(encoding="utf-8")
    assert home_html.index("Older Featured") < home_html.index("Newer Post")
    assert "post-summary--featured" in home_html
    assert "First paragraph." in home_html

    journal = config.output_dir / "tags" / "journal" / "index.html"
    release = config.output_dir / "tags" / "release-notes" / "index.html"
    assert journal.exists() and release.exists()
    journal_html = journal.read_text(encoding="utf-8")
    assert "<h1>#journal</h1>" in journal_html
    assert journal_html.index("Newer Post") < journal_html.index("Older Featured")
    assert "Older Featured" not in release.read_text(encoding="utf-8")
    assert not stale_tag.exists()


def test_empty_home_page(tmp_path: Path) -> None:
    config = _config(tmp_path)

    write_index_pages([], config)

    assert "Nothing published yet." in (config.output_dir / "index.html").read_text(encoding="utf-8")


def test_index_pages_keep_same_slug_in_different_sections(tmp_path: Path) -> None:
    config = _config(tmp_path)
    post = _make_document("intro", title="Posts Intro", tags=["start"], date=datetime(2024, 2, 1, tzinfo=UTC))
    guide = _make_document(
        "intro", title="Guides Intro", tags=["start"], section="guides", date=datetime(2024, 1, 1, tzinfo=UTC)
    )

    write_index_pages([post, guide], config)

    home_html = (config.output_dir / "index.html").read_text(encoding="utf-8")
    assert "Posts Intro" in home_html
    assert "Guides Intro" in home_html
    assert 'href="/guides/intro/"' in home_html
    tag_html = (config.output_dir / "tags" / "start" / "index.html").read_text(encoding="utf-8")
    assert tag_html.index("Posts Intro") < tag_html.index("Guides Intro")
