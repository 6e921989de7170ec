from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List


@dataclass
class Block:
    """Base class for block-level nodes."""


@dataclass
class Document:
    blocks: List[Block]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class Heading(Block):
    level: int
    inline: List["InlineElement"]


@dataclass
class Paragraph(Block):
    inline: List["InlineElement"]
    tight: bool = False


@dataclass
class ListItem:
    blocks: List[Block]
    checked: bool | None = None


@dataclass
class ListBlock(Block):
    items: List[ListItem]
    ordered: bool
    start: int | None = None
    tight: bool = False


@dataclass
class CodeBlock(Block):
    language: str | None
    code: str


@dataclass
class MathBlock(Block):
    latex: str
    label: str | None = None


@dataclass
class HorizontalRule(Block):
    """Horizontal rule / thematic break."""


@dataclass
class TableCell:
    inline: List["InlineElement"]
    align: str | None = None
    header: bool = False


@dataclass
class TableBlock(Block):
    header: List[TableCell]
    rows: List[List[TableCell]]


@dataclass
class BlockQuote(Block):
    blocks: List[Block]


@dataclass
class DirectiveContainer(Block):
    """``:::name`` or ``!!! name`` container; ``admonition`` is set by labeling."""

    name: str
    blocks: List[Block]
    title: List["InlineElement"] = field(default_factory=list)
    attributes: dict[str, str] = field(default_factory=dict)
    admonition: str | None = None


@dataclass
class CustomBlock(Block):
    """Run of blocks enclosed by ``!name{N%`` ... ``%}`` markers."""

    name: str
    width: int
    blocks: List[Block]


@dataclass
class TocPlaceholder(Block):
    """Marks where a generated table of contents goes."""

    scope: str = "document"
    max_depth: int = 6


@dataclass
class FloatClear(Block):
    """Clears image floats (``!;``)."""


@dataclass
class HtmlBlock(Block):
    content: str


@dataclass
class DefinitionItem:
    term: List["InlineElement"]
    definitions: List[List[Block]]


@dataclass
class DefinitionList(Block):
    items: List[DefinitionItem]


@dataclass
class FootnoteItem:
    number: int
    label: str | None
    blocks: List[Block]


@dataclass
class FootnoteSection(Block):
    items: List[FootnoteItem]


@dataclass
class InlineElement:
    """Base class for inline nodes."""


@dataclass
class Text(InlineElement):
    text: str


@dataclass
class SoftBreak(InlineElement):
    """Single newline inside a paragraph."""


@dataclass
class HardBreak(InlineElement):
    """Explicit line break (two trailing spaces or backslash)."""


@dataclass
class Strong(InlineElement):
    children: List[InlineElement]


@dataclass
class Emphasis(InlineElement):
    children: List[InlineElement]


@dataclass
class Strikethrough(InlineElement):
    children: List[InlineElement]


@dataclass
class Mark(InlineElement):
    children: List[InlineElement]


@dataclass
class Subscript(InlineElement):
    children: List[InlineElement]


@dataclass
class Superscript(InlineElement):
    children: List[InlineElement]


@dataclass
class Keyboard(InlineElement):
    text: str


@dataclass
class Spoiler(InlineElement):
    children: List[InlineElement]


@dataclass
class ColoredText(InlineElement):
    color: str
    children: List[InlineElement]


@dataclass
class InlineCode(InlineElement):
    code: str


@dataclass
class InlineMath(InlineElement):
    latex: str


@dataclass
class Link(InlineElement):
    url: str
    children: List[InlineElement]
    title: str | None = None


@dataclass
class Image(InlineElement):
    src: str
    alt: str = ""
    title: str | None = None


@dataclass
class FootnoteRef(InlineElement):
    number: int
    label: str | None = None
    sub_id: int = 0


@dataclass
class Emoji(InlineElement):
    shortcode: str
    char: str


@dataclass
class HtmlInline(InlineElement):
    content: str


def inline_plain_text(inlines: List[InlineElement]) -> str:
    """Return the visible text of an inline sequence."""
    parts: list[str] = []
    for inline in inlines:
        if isinstance(inline, Text):
            parts.append(inline.text)
        elif isinstance(inline, (SoftBreak, HardBreak)):
            parts.append(" ")
        elif isinstance(inline, InlineCode):
            parts.append(inline.code)
        elif isinstance(inline, InlineMath):
            parts.append(inline.latex)
        elif isinstance(inline, Keyboard):
            parts.append(inline.text)
        elif isinstance(inline, Emoji):
            parts.append(inline.char)
        elif isinstance(inline, Image):
            parts.append(inline.alt)
        elif hasattr(inline, "children"):
            parts.append(inline_plain_text(inline.children))
    return "".join(parts)
