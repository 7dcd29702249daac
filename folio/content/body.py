"""Scanning helpers for Markdown bodies: summary cuts and resource shortcodes."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterator

from markdown_it import MarkdownIt

SUMMARY_CUT = "<!--more-->"
SUMMARY_CUT_RE = re.compile(r"<!--\s*more\s*-->", re.IGNORECASE)
BACKTICK_RUN_RE = re.compile(r"`+")
LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")
CODE_BLOCK_TOKENS = frozenset({"fence", "code_block"})
SHORTCODE_RE = re.compile(
    r"\{\{(?P<open>[<%])\s*(?P<kind>[A-Za-z][\w-]*)(?P<params>[^{}]*?)\s*[>%]\}\}"
)
PARAM_RE = re.compile(
    r'(?:(?P<key>[A-Za-z_][\w-]*)\s*=\s*)?(?:"(?P<quoted>[^"]*)"|(?P<bare>[^\s"=]+))'
)
RESOURCE_SHORTCODES = frozenset({"img", "image", "figure", "gif", "video", "resource"})
INERT_SHORTCODE_RE = re.compile(r"\{\{(?P<open>[<%])/\*(?P<inner>.*?)\*/(?P<close>[>%])\}\}", re.DOTALL)


@dataclass(slots=True)
class Shortcode:
    """A shortcode occurrence found outside code."""

    kind: str
    start: int
    end: int
    params: dict[str, str] = field(default_factory=dict)
    positional: list[str] = field(default_factory=list)

    @property
    def name(self) -> str | None:
        if "name" in self.params:
            return self.params["name"].strip() or None
        if self.positional:
            return self.positional[0].strip() or None
        return None

    @property
    def references_resource(self) -> bool:
        return self.kind.lower() in RESOURCE_SHORTCODES


def mask_code_blocks(body: str) -> str:
    """Blank out fenced and indented code blocks, keeping every character offset intact."""
    offsets = _line_offsets(body)
    ranges = [
        (offsets[token.map[0]], offsets[token.map[1]])
        for token in _parser().parse(body)
        if token.type in CODE_BLOCK_TOKENS and token.map
    ]
    return _mask(body, ranges)


def mask_code(body: str) -> str:
    """Blank out code blocks and inline code spans, keeping every character offset intact."""
    offsets = _line_offsets(body)
    ranges: list[tuple[int, int]] = []
    for token in _parser().parse(body):
        if not token.map:
            continue
        start, end = offsets[token.map[0]], offsets[token.map[1]]
        if token.type in CODE_BLOCK_TOKENS:
            ranges.append((start, end))
        elif token.type == "inline":
            ranges.extend((start + a, start + b) for a, b in _code_span_ranges(body[start:end]))
    return _mask(body, ranges)


@lru_cache(maxsize=1)
def _parser() -> MarkdownIt:
    # Block structure only; rendering plugins do not change where code lives.
    return MarkdownIt("commonmark", {"html": True}).enable("table")


def _line_offsets(body: str) -> list[int]:
    offsets = [0]
    for match in LINE_BREAK_RE.finditer(body):
        offsets.append(match.end())
    # Sentinel so the map end of the last line resolves to the end of the body.
    offsets.append(len(body))
    return offsets


def _code_span_ranges(text: str) -> list[tuple[int, int]]:
    """Pair backtick runs of equal length the way CommonMark code spans do."""
    runs = [(match.start(), match.end()) for match in BACKTICK_RUN_RE.finditer(text)]
    spans: list[tuple[int, int]] = []
    index = 0
    while index < len(runs):
        start, end = runs[index]
        width = end - start
        if _escaped(text, start):
            index += 1
            continue
        closing = next(
            (later for later in range(index + 1, len(runs)) if runs[later][1] - runs[later][0] == width),
            None,
        )
        if closing is None:
            index += 1
            continue
        spans.append((start, runs[closing][1]))
        index = closing + 1
    return spans


def _escaped(text: str, position: int) -> bool:
    backslashes = 0
    while position - backslashes > 0 and text[position - backslashes - 1] == "\\":
        backslashes += 1
    return backslashes % 2 == 1


def _mask(body: str, ranges: list[tuple[int, int]]) -> str:
    if not ranges:
        return body
    chars = list(body)
    for start, end in ranges:
        for index in range(start, min(end, len(chars))):
            if chars[index] not in "\r\n":
                chars[index] = " "
    return "".join(chars)


def count_summary_cuts(body: str) -> int:
    """Count summary-cut markers that are not inside code blocks or code spans."""
    return len(SUMMARY_CUT_RE.findall(mask_code(body)))


def split_summary(body: str) -> tuple[str | None, str]:
    """Split a body at its first summary cut into ``(teaser, remainder)``.

    The teaser is ``None`` when the body has no marker; the remainder is then
    the whole body.
    """
    match = SUMMARY_CUT_RE.search(mask_code(body))
    if match is None:
        return None, body
    return body[: match.start()].strip(), body[match.end():].strip()


def remove_summary_cuts(body: str) -> str:
    """Drop summary-cut markers outside code, leaving the text around them."""
    masked = mask_code(body)
    pieces: list[str] = []
    cursor = 0
    for match in SUMMARY_CUT_RE.finditer(masked):
        pieces.append(body[cursor : match.start()])
        cursor = match.end()
    pieces.append(body[cursor:])
    return "".join(pieces)


def find_shortcodes(body: str) -> list[Shortcode]:
    """Locate shortcodes outside code blocks and inline code spans."""
    found: list[Shortcode] = []
    for match in SHORTCODE_RE.finditer(mask_code(body)):
        params: dict[str, str] = {}
        positional: list[str] = []
        for param in PARAM_RE.finditer(match.group("params")):
            value = param.group("quoted")
            if value is None:
                value = param.group("bare")
            key = param.group("key")
            if key:
                params[key] = value
            else:
                positional.append(value)
        found.append(
            Shortcode(
                kind=match.group("kind"),
                start=match.start(),
                end=match.end(),
                params=params,
                positional=positional,
            )
        )
    return found


def iter_resource_references(body: str) -> Iterator[str]:
    """Yield resource names referenced by shortcodes, in body order."""
    for shortcode in find_shortcodes(body):
        if not shortcode.references_resource:
            continue
        name = shortcode.name
        if name:
            yield name


def strip_code_blocks(body: str) -> str:
    """Return the body with code blocks removed, used for prose word counts."""
    return "\n".join(line for line in mask_code_blocks(body).splitlines() if line.strip())


def unwrap_inert_shortcodes(text: str) -> str:
    """Turn ``{{</* kind ... */>}}`` into the literal ``{{< kind ... >}}`` it documents."""
    return INERT_SHORTCODE_RE.sub(
        lambda match: "{{" + match.group("open") + match.group("inner") + match.group("close") + "}}",
        text,
    )
