"""Passes over the rendered HTML tree.

They run on a BeautifulSoup document after :func:`render_document` and mutate
it in place; the soup belongs to a single render invocation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

from . import styles
from .config import DEFAULT_CONFIG, RenderConfig
from .renderer_html import TOC_PLACEHOLDER_CLASS

logger = logging.getLogger(__name__)

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")

RAW_HTML_CLASSES = {
    "details": styles.DETAILS,
    "summary": styles.SUMMARY,
    "abbr": styles.ABBR,
    "kbd": styles.KBD,
    "u": styles.UNDERLINE,
}


@dataclass(frozen=True)
class HeadingEntry:
    level: int
    text: str
    anchor_id: str


def _is_toc_placeholder(tag: Tag) -> bool:
    return tag.name == "div" and TOC_PLACEHOLDER_CLASS in (tag.get("class") or [])


def _is_heading_or_placeholder(tag: Tag) -> bool:
    return tag.name in HEADING_TAGS or _is_toc_placeholder(tag)


def inject_table_of_contents(soup: BeautifulSoup, config: RenderConfig = DEFAULT_CONFIG) -> int:
    """Replace every TOC placeholder with a navigation list of the headings.

    Returns the number of placeholders replaced.
    """
    sequence = soup.find_all(_is_heading_or_placeholder)
    if not any(_is_toc_placeholder(tag) for tag in sequence):
        return 0

    # Headings are collected before any placeholder is replaced so generated
    # titles never show up in another table of contents.
    entries: list[tuple[int, HeadingEntry]] = []
    placeholders: list[tuple[int, Tag]] = []
    for position, tag in enumerate(sequence):
        if _is_toc_placeholder(tag):
            placeholders.append((position, tag))
            continue
        text = tag.get_text().strip()
        anchor_id = tag.get("id")
        if not anchor_id or text == config.toc_title:
            continue
        entries.append((position, HeadingEntry(level=int(tag.name[1]), text=text, anchor_id=anchor_id)))

    for position, placeholder in placeholders:
        scope = placeholder.get("data-toc-scope", "document")
        try:
            max_depth = int(placeholder.get("data-toc-depth", 6))
        except ValueError:
            max_depth = 6
        selected = [
            entry
            for entry_position, entry in entries
            if entry.level <= max_depth and (scope != "following" or entry_position > position)
        ]
        nav = soup.new_tag("nav", attrs={"class": styles.TOC_NAV})
        if scope != "following":
            title = soup.new_tag("h2", attrs={"class": styles.TOC_TITLE})
            title.string = config.toc_title
            nav.append(title)
        nav.append(build_toc_list(soup, selected))
        placeholder.replace_with(nav)
    logger.debug("Injected %d table(s) of contents with %d heading(s)", len(placeholders), len(entries))
    return len(placeholders)


def build_toc_list(soup: BeautifulSoup, entries: list[HeadingEntry]) -> Tag:
    """Nest headings into ``<ul>`` lists; deeper levels go under the previous item."""
    root = soup.new_tag("ul", attrs={"class": styles.TOC_LIST})
    stack: list[list] = []  # [level, ul, last li]
    for entry in entries:
        if not stack:
            stack.append([entry.level, root, None])
        while len(stack) > 1 and entry.level < stack[-1][0]:
            stack.pop()
        level, ul, last_li = stack[-1]
        if entry.level > level and last_li is not None:
            nested = soup.new_tag("ul", attrs={"class": styles.TOC_NESTED_LIST})
            last_li.append(nested)
            stack.append([entry.level, nested, None])
            ul = nested

        li = soup.new_tag("li", attrs={"class": f"toc-level-{entry.level}"})
        link = soup.new_tag("a", attrs={"href": f"#{entry.anchor_id}", "class": styles.TOC_LINK})
        link.string = entry.text
        li.append(link)
        ul.append(li)
        stack[-1][2] = li
    return root


def style_raw_html(soup: BeautifulSoup, config: RenderConfig = DEFAULT_CONFIG) -> int:
    """Give unclassed raw-HTML elements the same look as their markdown forms."""
    if not config.allow_html:
        return 0
    styled = 0
    for tag in soup.find_all(list(RAW_HTML_CLASSES)):
        if tag.get("class"):
            continue
        tag["class"] = RAW_HTML_CLASSES[tag.name].split()
        styled += 1
    return styled
