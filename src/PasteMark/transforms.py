"""Tree passes applied between parsing and rendering.

Every pass takes a :class:`Document` and returns a new one; input lists are
never modified in place. ``apply_transforms`` runs them in their fixed order.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Callable, List

from .config import DEFAULT_CONFIG, RenderConfig
from .model import (
    Block,
    BlockQuote,
    CustomBlock,
    DefinitionItem,
    DefinitionList,
    DirectiveContainer,
    Document,
    FloatClear,
    FootnoteSection,
    Heading,
    ListBlock,
    ListItem,
    Paragraph,
    Text,
    TocPlaceholder,
    inline_plain_text,
)

logger = logging.getLogger(__name__)

TOC_MARKERS = ("[TOC]", "[[toc]]")
WIDTH_BLOCK_OPEN = re.compile(r"^!(\w+)\{(\d+)%$")
WIDTH_BLOCK_CLOSE = "%}"
FLOAT_CLEAR_MARKER = "!;"
ADMONITION_TYPES = ("note", "tip", "info", "warning", "danger", "important", "caution")

Transform = Callable[[Document, RenderConfig], Document]


def sole_text(block: Block) -> str | None:
    """Return the text of a paragraph made of exactly one text node."""
    if isinstance(block, Paragraph) and len(block.inline) == 1 and isinstance(block.inline[0], Text):
        return block.inline[0].text
    return None


def substitute_toc_markers(doc: Document, config: RenderConfig = DEFAULT_CONFIG) -> Document:
    blocks: List[Block] = []
    for block in doc.blocks:
        text = sole_text(block)
        if text is not None and text.strip() in TOC_MARKERS:
            blocks.append(TocPlaceholder())
        else:
            blocks.append(block)
    return replace(doc, blocks=blocks)


def expand_width_blocks(doc: Document, config: RenderConfig = DEFAULT_CONFIG) -> Document:
    children = doc.blocks
    blocks: List[Block] = []
    i = 0
    while i < len(children):
        child = children[i]
        text = sole_text(child)
        match = WIDTH_BLOCK_OPEN.match(text) if text is not None else None
        if match:
            j = i + 1
            while j < len(children) and sole_text(children[j]) != WIDTH_BLOCK_CLOSE:
                j += 1
            if j < len(children):
                name, width = match.group(1), int(match.group(2))
                blocks.append(CustomBlock(name=name, width=width, blocks=list(children[i + 1 : j])))
                i = j + 1
                continue
            logger.debug("Width block %r has no closing marker; leaving it as text", text)
        blocks.append(child)
        i += 1
    return replace(doc, blocks=blocks)


def label_admonitions(doc: Document, config: RenderConfig = DEFAULT_CONFIG) -> Document:
    return replace(doc, blocks=_map_blocks(doc.blocks, _label_container))


def _label_container(block: Block) -> Block:
    if isinstance(block, DirectiveContainer) and block.name in ADMONITION_TYPES:
        return replace(block, admonition=block.name)
    return block


def insert_contents_heading_toc(doc: Document, config: RenderConfig = DEFAULT_CONFIG) -> Document:
    """Put a table of contents under a heading titled like the TOC title.

    The content between that heading and the next heading of the same or a
    higher rank is replaced by the generated list.
    """
    children = doc.blocks
    blocks: List[Block] = []
    i = 0
    while i < len(children):
        child = children[i]
        blocks.append(child)
        i += 1
        if isinstance(child, Heading) and inline_plain_text(child.inline).strip() == config.toc_title:
            blocks.append(TocPlaceholder(scope="following", max_depth=config.contents_toc_depth))
            while i < len(children):
                nxt = children[i]
                if isinstance(nxt, Heading) and nxt.level <= child.level:
                    break
                i += 1
    return replace(doc, blocks=blocks)


def substitute_float_clears(doc: Document, config: RenderConfig = DEFAULT_CONFIG) -> Document:
    blocks: List[Block] = []
    for block in doc.blocks:
        text = sole_text(block)
        blocks.append(FloatClear() if text is not None and text.strip() == FLOAT_CLEAR_MARKER else block)
    return replace(doc, blocks=blocks)


TRANSFORMS: list[Transform] = [
    substitute_toc_markers,
    expand_width_blocks,
    label_admonitions,
    insert_contents_heading_toc,
    substitute_float_clears,
]


def apply_transforms(doc: Document, config: RenderConfig = DEFAULT_CONFIG) -> Document:
    """Apply all tree passes in order; a failing pass is skipped."""
    for transform in TRANSFORMS:
        try:
            doc = transform(doc, config)
        except Exception:
            logger.exception("Tree pass %s failed; continuing without it", transform.__name__)
    return doc


def _map_blocks(blocks: List[Block], fn: Callable[[Block], Block]) -> List[Block]:
    """Rebuild ``blocks`` bottom-up, applying ``fn`` to every block."""
    result: List[Block] = []
    for block in blocks:
        if isinstance(block, (BlockQuote, DirectiveContainer, CustomBlock)):
            block = replace(block, blocks=_map_blocks(block.blocks, fn))
        elif isinstance(block, ListBlock):
            items = [ListItem(blocks=_map_blocks(item.blocks, fn), checked=item.checked) for item in block.items]
            block = replace(block, items=items)
        elif isinstance(block, DefinitionList):
            items = [
                DefinitionItem(term=item.term, definitions=[_map_blocks(d, fn) for d in item.definitions])
                for item in block.items
            ]
            block = replace(block, items=items)
        elif isinstance(block, FootnoteSection):
            items = [replace(item, blocks=_map_blocks(item.blocks, fn)) for item in block.items]
            block = replace(block, items=items)
        result.append(fn(block))
    return result
