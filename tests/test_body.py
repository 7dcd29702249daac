from folio.content.body import (
    count_summary_cuts,
    find_shortcodes,
    iter_resource_references,
    mask_code,
    mask_code_blocks,
    remove_summary_cuts,
    split_summary,
)


def test_split_summary_returns_teaser_and_remainder() -> None:
    teaser, rest = split_summary("First paragraph.\n\n<!-- more -->\n\nSecond paragraph.")
    assert teaser == "First paragraph."
    assert rest == "Second paragraph."


def test_split_summary_without_marker() -> None:
    teaser, rest = split_summary("Only text.")
    assert teaser is None
    assert rest == "Only text."


def test_markers_inside_code_fences_are_ignored() -> None:
    body = "Intro\n\n```html\n<!--more-->\n```\n\n<!--MORE-->\nTail"
    assert count_summary_cuts(body) == 1
    teaser, _ = split_summary(body)
    assert teaser is not None and "```html" in teaser


def test_multiple_markers_are_counted() -> None:
    assert count_summary_cuts("a <!--more--> b <!--more--> c") == 2


def test_remove_summary_cuts_keeps_code_examples() -> None:
    body = "Intro\n<!--more-->\n~~~\n<!--more-->\n~~~\n"
    cleaned = remove_summary_cuts(body)
    assert cleaned.count("<!--more-->") == 1
    assert "~~~\n<!--more-->\n~~~" in cleaned


def test_mask_preserves_offsets() -> None:
    body = "a\n```\ncode\n```\nb"
    masked = mask_code_blocks(body)
    assert len(masked) == len(body)
    assert "code" not in masked
    assert masked.endswith("b")


def test_find_shortcodes_parses_named_and_positional_params() -> None:
    body = '{{< img name="ripple" caption="Look" >}} and {{% video demo %}} and {{< note >}}'
    shortcodes = find_shortcodes(body)

    assert [shortcode.kind for shortcode in shortcodes] == ["img", "video", "note"]
    assert shortcodes[0].name == "ripple"
    assert shortcodes[0].params["caption"] == "Look"
    assert shortcodes[1].name == "demo"
    assert shortcodes[1].references_resource is True
    assert shortcodes[2].references_resource is False
    assert body[shortcodes[0].start : shortcodes[0].end] == '{{< img name="ripple" caption="Look" >}}'


def test_iter_resource_references_skips_code_and_other_shortcodes() -> None:
    body = (
        '{{< figure name="diagram" >}}\n'
        "```\n"
        '{{< img name="inside-code" >}}\n'
        "```\n"
        '{{< youtube "abc" >}}\n'
        '{{< gif "loop" >}}\n'
    )
    assert list(iter_resource_references(body)) == ["diagram", "loop"]


def test_markers_inside_inline_code_are_ignored() -> None:
    body = "Teaser\n\n<!--more-->\n\nHugo splits at `<!--more-->` and ``a `<!--more-->` b`` too."
    assert count_summary_cuts(body) == 1
    cleaned = remove_summary_cuts(body)
    assert cleaned.count("<!--more-->") == 2


def test_shortcodes_inside_inline_code_are_not_references() -> None:
    assert list(iter_resource_references('Write `{{< img name="demo" >}}` to embed.')) == []
    assert list(iter_resource_references('An escaped \\`{{< img name="real" >}}` tick.')) == ["real"]


def test_code_nested_in_list_items_is_masked() -> None:
    body = '1. Step one\n\n    ```swift\n    {{< img name="ghost" >}}\n    ```\n\n2. Step two {{< img name="kept" >}}\n'
    assert list(iter_resource_references(body)) == ["kept"]


def test_indented_code_blocks_are_masked() -> None:
    body = 'Paragraph.\n\n    {{< img name="ghost" >}}\n    <!--more-->\n\nAfter.\n'
    assert list(iter_resource_references(body)) == []
    assert count_summary_cuts(body) == 0


def test_mask_code_blanks_spans_but_keeps_prose() -> None:
    body = "Use `pip install` then\n```\nrun\n```\n"
    masked = mask_code(body)
    assert len(masked) == len(body)
    assert "pip" not in masked and "run" not in masked
    assert masked.startswith("Use ")
    assert "pip install" in mask_code_blocks(body)
