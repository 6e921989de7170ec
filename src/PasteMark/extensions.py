"""markdown-it rules for the paste syntax that CommonMark does not cover.

Inline: ``==mark==``, ``~sub~``, ``^sup^``, ``++kbd++``, ``%red%colored%%``,
``!>spoiler`` (to the end of the line) and ``:shortcode:`` emoji.

Block: marker lines (``!name{50%``, ``%}``, ``[TOC]``, ``[[toc]]``, ``!;``)
always form a paragraph of their own, so they work without blank lines around
them. The tree passes in :mod:`PasteMark.transforms` give them meaning.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Callable

from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock
from markdown_it.rules_inline import StateInline
from pymdownx import gemoji_db

MARKER_LINE_PATTERN = re.compile(r"^(?:!\w+\{\d+%|%\}|\[TOC\]|\[\[toc\]\]|!;)$")
COLOR_OPEN_PATTERN = re.compile(r"%(#[0-9A-Fa-f]{3,8}|[A-Za-z]+)%")
EMOJI_PATTERN = re.compile(r":([a-z0-9_+\-]+):")

InlineRule = Callable[[StateInline, bool], bool]


def paste_syntax_plugin(md: MarkdownIt) -> None:
    md.inline.ruler.before("emphasis", "mark", _delimited_rule("==", "mark", "mark"))
    md.inline.ruler.before("emphasis", "sub", _delimited_rule("~", "sub", "sub", spaces=False))
    md.inline.ruler.before("emphasis", "sup", _delimited_rule("^", "sup", "sup", spaces=False))
    md.inline.ruler.before("emphasis", "kbd", _delimited_rule("++", "kbd", "kbd", nested=False))
    md.inline.ruler.before("emphasis", "color", _color_rule)
    md.inline.ruler.before("emphasis", "spoiler", _spoiler_rule)
    md.inline.ruler.before("emphasis", "emoji", _emoji_rule)
    md.block.ruler.before("paragraph", "marker_line", _marker_line_rule, {"alt": ["paragraph"]})


def _delimited_rule(marker: str, name: str, tag: str, nested: bool = True, spaces: bool = True) -> InlineRule:
    width = len(marker)

    def rule(state: StateInline, silent: bool) -> bool:
        start = state.pos
        if silent or not state.src.startswith(marker, start):
            return False
        # ``~~`` belongs to strikethrough, ``===`` is not a mark opener
        if state.src.startswith(marker[0], start + width):
            return False
        content_start = start + width
        end = state.src.find(marker, content_start, state.posMax)
        if end == -1 or end == content_start:
            return False
        content = state.src[content_start:end]
        if content != content.strip():
            return False
        if not spaces and re.search(r"(?<!\\)\s", content):
            return False

        if nested:
            old_max = state.posMax
            state.pos = content_start
            state.posMax = end
            token = state.push(f"{name}_open", tag, 1)
            token.markup = marker
            state.md.inline.tokenize(state)
            token = state.push(f"{name}_close", tag, -1)
            token.markup = marker
            state.posMax = old_max
        else:
            token = state.push(name, tag, 0)
            token.markup = marker
            token.content = content
        state.pos = end + width
        return True

    return rule


def _color_rule(state: StateInline, silent: bool) -> bool:
    if silent or state.src[state.pos] != "%":
        return False
    match = COLOR_OPEN_PATTERN.match(state.src, state.pos, state.posMax)
    if not match:
        return False
    end = state.src.find("%%", match.end(), state.posMax)
    if end == -1 or end == match.end():
        return False

    old_max = state.posMax
    state.pos = match.end()
    state.posMax = end
    token = state.push("color_open", "span", 1)
    token.markup = match.group(0)
    token.meta = {"color": match.group(1)}
    state.md.inline.tokenize(state)
    token = state.push("color_close", "span", -1)
    token.markup = "%%"
    state.posMax = old_max
    state.pos = end + 2
    return True


def _spoiler_rule(state: StateInline, silent: bool) -> bool:
    start = state.pos
    if silent or not state.src.startswith("!>", start):
        return False
    line_start = state.src.rfind("\n", 0, start) + 1
    if state.src[line_start:start].strip():
        return False
    end = state.src.find("\n", start, state.posMax)
    if end == -1:
        end = state.posMax
    if not state.src[start + 2 : end].strip():
        return False

    old_max = state.posMax
    state.pos = start + 2
    state.posMax = end
    token = state.push("spoiler_open", "span", 1)
    token.markup = "!>"
    state.md.inline.tokenize(state)
    state.push("spoiler_close", "span", -1)
    state.posMax = old_max
    state.pos = end
    return True


def _emoji_rule(state: StateInline, silent: bool) -> bool:
    if state.src[state.pos] != ":":
        return False
    match = EMOJI_PATTERN.match(state.src, state.pos, state.posMax)
    if not match:
        return False
    char = lookup_emoji(match.group(1))
    if char is None:
        return False
    if not silent:
        token = state.push("emoji", "", 0)
        token.markup = match.group(1)
        token.content = char
    state.pos = match.end()
    return True


@lru_cache(maxsize=None)
def lookup_emoji(shortcode: str) -> str | None:
    """Return the unicode character(s) for a GitHub gemoji shortcode."""
    key = f":{shortcode}:"
    key = gemoji_db.aliases.get(key, key)
    entry = gemoji_db.emoji.get(key)
    if not entry or not entry.get("unicode"):
        return None
    return "".join(chr(int(point, 16)) for point in entry["unicode"].split("-"))


def _marker_line_rule(state: StateBlock, start_line: int, end_line: int, silent: bool) -> bool:
    if state.sCount[start_line] - state.blkIndent >= 4:
        return False
    pos = state.bMarks[start_line] + state.tShift[start_line]
    maximum = state.eMarks[start_line]
    line = state.src[pos:maximum].strip()
    if not MARKER_LINE_PATTERN.match(line):
        return False
    if silent:
        return True

    token = state.push("paragraph_open", "p", 1)
    token.map = [start_line, start_line + 1]
    token = state.push("inline", "", 0)
    token.content = line
    token.map = [start_line, start_line + 1]
    token.children = []
    state.push("paragraph_close", "p", -1)
    state.line = start_line + 1
    return True
