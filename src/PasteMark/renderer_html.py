from __future__ import annotations

import logging
from dataclasses import dataclass, field
from html import escape
from typing import Iterable, List

from pygments import highlight
from pygments.formatters.html import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from . import styles
from .config import DEFAULT_CONFIG, RenderConfig
from .images import parse_image_directive, split_size_suffix
from .model import (
    Block,
    BlockQuote,
    CodeBlock,
    ColoredText,
    CustomBlock,
    DefinitionList,
    DirectiveContainer,
    Document,
    Emoji,
    Emphasis,
    FloatClear,
    FootnoteRef,
    FootnoteSection,
    HardBreak,
    Heading,
    HorizontalRule,
    HtmlBlock,
    HtmlInline,
    Image,
    InlineCode,
    InlineElement,
    InlineMath,
    Keyboard,
    Link,
    ListBlock,
    ListItem,
    Mark,
    MathBlock,
    Paragraph,
    SoftBreak,
    Spoiler,
    Strikethrough,
    Strong,
    Subscript,
    Superscript,
    TableBlock,
    TableCell,
    Text,
    TocPlaceholder,
    inline_plain_text,
)
from .slugs import Slugger

logger = logging.getLogger(__name__)

DIAGRAM_PLACEHOLDER_CLASS = "diagram-placeholder"
TOC_PLACEHOLDER_CLASS = "toc-placeholder"


@dataclass
class RenderState:
    config: RenderConfig = DEFAULT_CONFIG
    slugger: Slugger = field(default_factory=Slugger)
    diagram_count: int = 0
    formatter: HtmlFormatter | None = None

    def __post_init__(self) -> None:
        if self.formatter is None:
            self.formatter = make_formatter(self.config.pygments_style, nowrap=True)


def make_formatter(style: str, **options) -> HtmlFormatter:
    """Pygments formatter for ``style``; unknown styles use the default one."""
    try:
        return HtmlFormatter(style=style, **options)
    except ClassNotFound:
        logger.warning("Unknown Pygments style %r; using %r", style, DEFAULT_CONFIG.pygments_style)
        return HtmlFormatter(style=DEFAULT_CONFIG.pygments_style, **options)


def render_document(doc: Document, config: RenderConfig = DEFAULT_CONFIG) -> str:
    state = RenderState(config=config)
    out: list[str] = []
    for block in doc.blocks:
        _dispatch_block(out, block, state)
    return "".join(out)


def _dispatch_block(out: list[str], block: Block, state: RenderState) -> None:
    if isinstance(block, Heading):
        _render_heading(out, block, state)
    elif isinstance(block, Paragraph):
        _render_paragraph(out, block, state)
    elif isinstance(block, ListBlock):
        _render_list(out, block, state)
    elif isinstance(block, CodeBlock):
        _render_code_block(out, block, state)
    elif isinstance(block, MathBlock):
        _render_math_block(out, block)
    elif isinstance(block, HorizontalRule):
        out.append("<hr />\n")
    elif isinstance(block, TableBlock):
        _render_table_block(out, block, state)
    elif isinstance(block, BlockQuote):
        out.append(f'<blockquote class="{styles.BLOCKQUOTE}">\n')
        _render_blocks(out, block.blocks, state)
        out.append("</blockquote>\n")
    elif isinstance(block, DirectiveContainer):
        _render_directive(out, block, state)
    elif isinstance(block, CustomBlock):
        _render_custom_block(out, block, state)
    elif isinstance(block, TocPlaceholder):
        out.append(
            f'<div class="{TOC_PLACEHOLDER_CLASS}" data-toc-scope="{escape(block.scope)}" '
            f'data-toc-depth="{block.max_depth}"></div>\n'
        )
    elif isinstance(block, FloatClear):
        out.append('<div class="float-clear" style="clear: both;"></div>\n')
    elif isinstance(block, HtmlBlock):
        if state.config.allow_html:
            out.append(block.content)
        else:
            out.append(f'<p class="{styles.PARAGRAPH}">{escape(block.content.strip())}</p>\n')
    elif isinstance(block, DefinitionList):
        _render_definition_list(out, block, state)
    elif isinstance(block, FootnoteSection):
        _render_footnotes(out, block, state)
    else:
        logger.warning("No renderer for block kind %s", type(block).__name__)


def _render_blocks(out: list[str], blocks: Iterable[Block], state: RenderState) -> None:
    for block in blocks:
        _dispatch_block(out, block, state)


def _render_heading(out: list[str], heading: Heading, state: RenderState) -> None:
    align, inline = split_alignment(heading.inline)
    anchor = state.slugger.slug(inline_plain_text(inline))
    tag = f"h{heading.level}"
    class_attr = f' class="text-{align}"' if align else ""
    out.append(
        f'<{tag} id="{escape(anchor)}"{class_attr}><a class="heading-anchor" href="#{escape(anchor)}">'
        f"{render_inline(inline, state)}</a></{tag}>\n"
    )


def _render_paragraph(out: list[str], paragraph: Paragraph, state: RenderState) -> None:
    align, inline = split_alignment(paragraph.inline)
    if paragraph.tight and align is None:
        out.append(render_inline(inline, state))
        return
    css = {"right": styles.PARAGRAPH_RIGHT, "center": styles.PARAGRAPH_CENTER}.get(align, styles.PARAGRAPH)
    out.append(f'<p class="{css}">{render_inline(inline, state)}</p>\n')


def split_alignment(inline: List[InlineElement]) -> tuple[str | None, List[InlineElement]]:
    """Detect ``text->`` (right) and ``->text<-`` (centre) markers and strip them."""
    if not inline or not isinstance(inline[-1], Text):
        return None, inline
    first = inline[0]
    starts = isinstance(first, Text) and first.text.lstrip().startswith("->")
    tail = inline[-1].text.rstrip()
    if tail.endswith("->"):
        align = "right"
    elif starts and tail.endswith("<-"):
        align = "center"
    else:
        return None, inline

    items = list(inline)
    items[-1] = Text(tail[:-2].rstrip())
    if starts:
        head = items[0].text.lstrip()
        items[0] = Text(head[2:].lstrip())
    return align, [item for item in items if not (isinstance(item, Text) and not item.text)]


def _render_list(out: list[str], block: ListBlock, state: RenderState) -> None:
    if block.ordered:
        start = f' start="{block.start}"' if block.start not in (None, 1) else ""
        out.append(f"<ol{start}>\n")
    else:
        out.append("<ul>\n")
    for item in block.items:
        _render_list_item(out, item, state)
    out.append("</ol>\n" if block.ordered else "</ul>\n")


def _render_list_item(out: list[str], item: ListItem, state: RenderState) -> None:
    if item.checked is None:
        out.append("<li>")
    else:
        checked = " checked" if item.checked else ""
        out.append(
            f'<li class="task-list-item"><input type="checkbox" class="{styles.TASK_CHECKBOX}" disabled{checked} />'
        )
    _render_blocks(out, item.blocks, state)
    out.append("</li>\n")


def _render_code_block(out: list[str], block: CodeBlock, state: RenderState) -> None:
    language = block.language
    if language and language == state.config.diagram_language:
        diagram_id = f"diagram-{state.diagram_count}"
        state.diagram_count += 1
        out.append(
            f'<div class="{DIAGRAM_PLACEHOLDER_CLASS} {escape(language)}" data-diagram-id="{diagram_id}" '
            f'data-diagram-language="{escape(language)}">{escape(block.code)}</div>\n'
        )
        return
    if not language:
        out.append(f'<pre><code class="{styles.CODE_BLOCK}">{escape(block.code)}</code></pre>\n')
        return
    highlighted = _highlight(block.code, language, state)
    body = highlighted if highlighted is not None else escape(block.code)
    out.append(
        f'<pre><code class="{styles.CODE_BLOCK} {styles.HIGHLIGHT_CSS_CLASS} language-{escape(language)}">'
        f"{body}</code></pre>\n"
    )


def _highlight(code: str, language: str, state: RenderState) -> str | None:
    try:
        lexer = get_lexer_by_name(language)
    except ClassNotFound:
        logger.debug("No Pygments lexer for %r; rendering plain code", language)
        return None
    return highlight(code, lexer, state.formatter)


def _render_math_block(out: list[str], block: MathBlock) -> None:
    label = f' data-label="{escape(block.label)}"' if block.label else ""
    out.append(f'<div class="math math-display"{label}>\\[{escape(block.latex)}\\]</div>\n')


def _render_table_block(out: list[str], block: TableBlock, state: RenderState) -> None:
    out.append(f'<div class="{styles.TABLE_WRAPPER}"><table class="{styles.TABLE}">\n')
    if block.header:
        out.append("<thead>\n<tr>")
        for cell in block.header:
            out.append(_render_cell(cell, state))
        out.append("</tr>\n</thead>\n")
    if block.rows:
        out.append("<tbody>\n")
        for row in block.rows:
            out.append("<tr>")
            for cell in row:
                out.append(_render_cell(cell, state))
            out.append("</tr>\n")
        out.append("</tbody>\n")
    out.append("</table></div>\n")


def _render_cell(cell: TableCell, state: RenderState) -> str:
    tag = "th" if cell.header else "td"
    style = f' style="text-align: {cell.align}"' if cell.align else ""
    return f"<{tag}{style}>{render_inline(cell.inline, state)}</{tag}>"


def _render_directive(out: list[str], block: DirectiveContainer, state: RenderState) -> None:
    extra_id = block.attributes.get("id")
    id_attr = f' id="{escape(extra_id)}"' if extra_id else ""
    if block.admonition is not None:
        out.append(
            f'<div class="{styles.admonition_classes(block.admonition)}" '
            f'data-admonition="{escape(block.admonition)}"{id_attr}>\n'
        )
        if block.title:
            out.append(f'<p class="{styles.ADMONITION_TITLE}">{render_inline(block.title, state)}</p>\n')
    else:
        css = f"directive directive-{escape(block.name)} {styles.CONTAINER}"
        extra_class = block.attributes.get("class")
        if extra_class:
            css += f" {escape(extra_class)}"
        width = styles.width_style(block.attributes.get("width"))
        style_attr = f' style="{width}"' if width else ""
        out.append(f'<div class="{css}"{id_attr}{style_attr}>\n')
        if block.title:
            out.append(f'<p class="directive-title font-semibold">{render_inline(block.title, state)}</p>\n')
    _render_blocks(out, block.blocks, state)
    out.append("</div>\n")


def _render_custom_block(out: list[str], block: CustomBlock, state: RenderState) -> None:
    out.append(
        f'<div class="custom-block custom-block-{escape(block.name)} {styles.CONTAINER}" '
        f'style="{styles.width_style(block.width)}">\n'
    )
    _render_blocks(out, block.blocks, state)
    out.append("</div>\n")


def _render_definition_list(out: list[str], block: DefinitionList, state: RenderState) -> None:
    out.append(f'<dl class="{styles.DL}">\n')
    for item in block.items:
        out.append(f'<dt class="{styles.DT}">{render_inline(item.term, state)}</dt>\n')
        for definition in item.definitions:
            out.append(f'<dd class="{styles.DD}">')
            _render_blocks(out, definition, state)
            out.append("</dd>\n")
    out.append("</dl>\n")


def _render_footnotes(out: list[str], block: FootnoteSection, state: RenderState) -> None:
    out.append(f'<section class="{styles.FOOTNOTES}">\n<hr />\n<ol>\n')
    for item in block.items:
        out.append(f'<li id="fn{item.number}">')
        _render_blocks(out, item.blocks, state)
        out.append(f'<a href="#fnref{item.number}" class="footnote-backref">↩</a></li>\n')
    out.append("</ol>\n</section>\n")


def render_inline(inlines: List[InlineElement], state: RenderState) -> str:
    parts: list[str] = []
    i = 0
    while i < len(inlines):
        inline = inlines[i]
        if isinstance(inline, Image):
            size = None
            rest = None
            if i + 1 < len(inlines) and isinstance(inlines[i + 1], Text):
                size, rest = split_size_suffix(inlines[i + 1].text)
            parts.append(_render_image(inline, size))
            if size is not None:
                parts.append(escape(rest))
                i += 1
        else:
            parts.append(_render_inline_node(inline, state))
        i += 1
    return "".join(parts)


def _render_image(image: Image, size: tuple[str, str] | None) -> str:
    directive = parse_image_directive(image, size)
    css = styles.IMAGE_CENTER if directive.align == "center" else styles.IMAGE
    title = f' title="{escape(image.title)}"' if image.title else ""
    style = directive.style()
    style_attr = f' style="{escape(style)}"' if style else ""
    return (
        f'<img src="{escape(directive.src)}" alt="{escape(directive.alt)}"{title} '
        f'class="{css}"{style_attr} />'
    )


def _wrap(tag: str, css: str | None, inner: str) -> str:
    class_attr = f' class="{css}"' if css else ""
    return f"<{tag}{class_attr}>{inner}</{tag}>"


def _render_inline_node(inline: InlineElement, state: RenderState) -> str:
    if isinstance(inline, Text):
        return escape(inline.text)
    if isinstance(inline, SoftBreak):
        return "<br />\n" if state.config.breaks else "\n"
    if isinstance(inline, HardBreak):
        return "<br />\n"
    if isinstance(inline, Strong):
        return _wrap("strong", None, render_inline(inline.children, state))
    if isinstance(inline, Emphasis):
        return _wrap("em", None, render_inline(inline.children, state))
    if isinstance(inline, Strikethrough):
        return _wrap("del", None, render_inline(inline.children, state))
    if isinstance(inline, Mark):
        return _wrap("mark", styles.MARK, render_inline(inline.children, state))
    if isinstance(inline, Subscript):
        return _wrap("sub", styles.SUB, render_inline(inline.children, state))
    if isinstance(inline, Superscript):
        return _wrap("sup", styles.SUP, render_inline(inline.children, state))
    if isinstance(inline, Keyboard):
        return _wrap("kbd", styles.KBD, escape(inline.text))
    if isinstance(inline, Spoiler):
        return _wrap("span", styles.SPOILER, render_inline(inline.children, state))
    if isinstance(inline, ColoredText):
        style = styles.color_style(inline.color)
        inner = render_inline(inline.children, state)
        if style is None:
            return inner
        return f'<span style="{escape(style)}">{inner}</span>'
    if isinstance(inline, InlineCode):
        return _wrap("code", styles.INLINE_CODE, escape(inline.code))
    if isinstance(inline, InlineMath):
        return _wrap("span", "math math-inline", f"\\({escape(inline.latex)}\\)")
    if isinstance(inline, Link):
        title = f' title="{escape(inline.title)}"' if inline.title else ""
        return f'<a href="{escape(inline.url)}"{title}>{render_inline(inline.children, state)}</a>'
    if isinstance(inline, Image):
        return _render_image(inline, None)
    if isinstance(inline, FootnoteRef):
        ref_id = f"fnref{inline.number}" + (f":{inline.sub_id}" if inline.sub_id else "")
        return (
            f'<sup class="footnote-ref"><a href="#fn{inline.number}" id="{ref_id}">'
            f"[{inline.number}]</a></sup>"
        )
    if isinstance(inline, Emoji):
        return f'<span class="emoji" title=":{escape(inline.shortcode)}:">{inline.char}</span>'
    if isinstance(inline, HtmlInline):
        return inline.content if state.config.allow_html else escape(inline.content)
    logger.warning("No renderer for inline kind %s", type(inline).__name__)
    return ""
