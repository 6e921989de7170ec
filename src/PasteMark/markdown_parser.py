from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import List, Sequence

import yaml
from markdown_it import MarkdownIt
from mdit_py_plugins.admon import admon_plugin
from mdit_py_plugins.container import container_plugin
from mdit_py_plugins.deflist import deflist_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.front_matter import front_matter_plugin
from mdit_py_plugins.tasklists import tasklists_plugin
from mdit_py_plugins.texmath import texmath_plugin

from .config import DEFAULT_CONFIG, RenderConfig
from .extensions import paste_syntax_plugin
from .model import (
    Block,
    BlockQuote,
    CodeBlock,
    ColoredText,
    DefinitionItem,
    DefinitionList,
    DirectiveContainer,
    Document,
    Emoji,
    Emphasis,
    FootnoteItem,
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
)

logger = logging.getLogger(__name__)

DIRECTIVE_INFO_PATTERN = re.compile(
    r"^\s*(?P<name>[A-Za-z][\w-]*)(?:\[(?P<label>[^\]]*)\])?(?:\{(?P<attrs>[^}]*)\})?\s*(?P<rest>.*?)\s*$"
)
DIRECTIVE_ATTR_PATTERN = re.compile(
    r"""([#.])([\w-]+)|([\w-]+)=(?:"([^"]*)"|'([^']*)'|([^\s"']+))|([\w-]+)"""
)
TEXT_ALIGN_PATTERN = re.compile(r"text-align:\s*(left|right|center)")
TASK_CHECKBOX_CLASS = "task-list-item-checkbox"

_INLINE_CONTAINERS = {
    "strong_open": ("strong_close", Strong),
    "em_open": ("em_close", Emphasis),
    "s_open": ("s_close", Strikethrough),
    "mark_open": ("mark_close", Mark),
    "sub_open": ("sub_close", Subscript),
    "sup_open": ("sup_close", Superscript),
    "spoiler_open": ("spoiler_close", Spoiler),
}
_MATH_INLINE_TYPES = {"math_inline", "math_single", "math_inline_double"}


def parse_markdown(text: str, config: RenderConfig = DEFAULT_CONFIG) -> Document:
    md = build_markdown(config)
    tokens = md.parse(text)
    metadata: dict = {}
    blocks, _ = _parse_blocks(tokens, 0, stop_types=set(), metadata=metadata)
    return Document(blocks=blocks, metadata=metadata)


@lru_cache(maxsize=8)
def build_markdown(config: RenderConfig = DEFAULT_CONFIG) -> MarkdownIt:
    """Return the markdown-it parser for ``config``; one instance per config."""
    md = MarkdownIt(
        "commonmark",
        {"html": config.allow_html, "linkify": config.linkify, "breaks": config.breaks},
    )
    md.enable(["table", "strikethrough"])
    if config.linkify:
        md.enable("linkify")
    (
        md.use(front_matter_plugin)
        .use(footnote_plugin)
        .use(tasklists_plugin)
        .use(deflist_plugin)
        .use(texmath_plugin)
        .use(admon_plugin)
        .use(container_plugin, "directive", validate=_validate_directive)
        .use(paste_syntax_plugin)
    )
    return md


def _validate_directive(params: str, *args) -> bool:
    return DIRECTIVE_INFO_PATTERN.match(params) is not None


def _parse_blocks(tokens, index: int, stop_types: set[str], metadata: dict) -> tuple[list, int]:
    blocks: List[Block] = []
    i = index
    while i < len(tokens):
        tok = tokens[i]
        if tok.type in stop_types:
            break
        if tok.type == "heading_open":
            level = int(tok.tag[1])
            inline = tokens[i + 1]
            blocks.append(Heading(level=level, inline=_parse_inline_token(inline)))
            i += 3
        elif tok.type == "paragraph_open":
            inline = tokens[i + 1]
            blocks.append(Paragraph(inline=_parse_inline_token(inline), tight=bool(tok.hidden)))
            i = _skip_past(tokens, i + 2, "paragraph_close")
        elif tok.type in ("bullet_list_open", "ordered_list_open"):
            list_block, i = _parse_list(tokens, i, metadata)
            blocks.append(list_block)
        elif tok.type == "blockquote_open":
            inner, i = _parse_blocks(tokens, i + 1, {"blockquote_close"}, metadata)
            blocks.append(BlockQuote(blocks=inner))
            i += 1
        elif tok.type == "fence":
            info = (tok.info or "").strip()
            language = info.split()[0] if info else None
            blocks.append(CodeBlock(language=language, code=tok.content))
            i += 1
        elif tok.type == "code_block":
            blocks.append(CodeBlock(language=None, code=tok.content))
            i += 1
        elif tok.type in ("math_block", "math_block_eqno"):
            label = tok.info.strip() if tok.type == "math_block_eqno" and tok.info else None
            blocks.append(MathBlock(latex=tok.content.strip(), label=label))
            i += 1
        elif tok.type == "hr":
            blocks.append(HorizontalRule())
            i += 1
        elif tok.type == "table_open":
            table_block, i = _parse_table(tokens, i)
            blocks.append(table_block)
        elif tok.type == "html_block":
            blocks.append(HtmlBlock(content=tok.content))
            i += 1
        elif tok.type == "front_matter":
            metadata.update(_parse_front_matter(tok.content))
            i += 1
        elif tok.type == "container_directive_open":
            container, i = _parse_directive(tokens, i, metadata)
            blocks.append(container)
        elif tok.type == "admonition_open":
            container, i = _parse_admonition(tokens, i, metadata)
            blocks.append(container)
        elif tok.type == "dl_open":
            definition_list, i = _parse_definition_list(tokens, i, metadata)
            blocks.append(definition_list)
        elif tok.type == "footnote_block_open":
            section, i = _parse_footnotes(tokens, i, metadata)
            blocks.append(section)
        else:
            logger.debug("Skipping token %s", tok.type)
            i += 1
    return blocks, i


def _skip_past(tokens, index: int, closing_type: str) -> int:
    i = index
    while i < len(tokens) and tokens[i].type != closing_type:
        i += 1
    return i + 1


def _parse_list(tokens, index: int, metadata: dict) -> tuple[ListBlock, int]:
    tok = tokens[index]
    ordered = tok.type == "ordered_list_open"
    closing = "ordered_list_close" if ordered else "bullet_list_close"
    start = None
    if ordered:
        raw_start = tok.attrGet("start")
        start = int(raw_start) if raw_start is not None else None
    items: list[ListItem] = []
    i = index + 1
    while i < len(tokens) and tokens[i].type != closing:
        if tokens[i].type == "list_item_open":
            is_task = "task-list-item" in str(tokens[i].attrGet("class") or "")
            item_blocks, i = _parse_blocks(tokens, i + 1, {"list_item_close"}, metadata)
            items.append(_list_item(item_blocks, is_task))
            i += 1  # skip list_item_close
        else:
            i += 1
    paragraphs = [b for item in items for b in item.blocks if isinstance(b, Paragraph)]
    tight = all(p.tight for p in paragraphs)
    return ListBlock(items=items, ordered=ordered, start=start, tight=tight), i + 1


def _list_item(blocks: list[Block], is_task: bool) -> ListItem:
    if not is_task or not blocks or not isinstance(blocks[0], Paragraph):
        return ListItem(blocks=blocks)
    first = blocks[0]
    if not first.inline or not isinstance(first.inline[0], HtmlInline):
        return ListItem(blocks=blocks)
    checkbox = first.inline[0].content
    if TASK_CHECKBOX_CLASS not in checkbox:
        return ListItem(blocks=blocks)
    rest = list(first.inline[1:])
    if rest and isinstance(rest[0], Text):
        rest[0] = Text(rest[0].text.lstrip())
    checked = 'checked="checked"' in checkbox
    paragraph = Paragraph(inline=rest, tight=first.tight)
    return ListItem(blocks=[paragraph, *blocks[1:]], checked=checked)


def _parse_table(tokens, index: int) -> tuple[TableBlock, int]:
    header: list[TableCell] = []
    rows: list[list[TableCell]] = []
    current: list[TableCell] | None = None
    in_head = False
    i = index + 1
    while i < len(tokens):
        tok = tokens[i]
        if tok.type == "table_close":
            break
        if tok.type == "thead_open":
            in_head = True
        elif tok.type == "thead_close":
            in_head = False
        elif tok.type == "tr_open":
            current = []
        elif tok.type == "tr_close":
            if current is not None:
                if in_head:
                    header = current
                else:
                    rows.append(current)
            current = None
        elif tok.type in ("th_open", "td_open"):
            style = str(tok.attrGet("style") or "")
            align = TEXT_ALIGN_PATTERN.search(style)
            cell = TableCell(
                inline=_parse_inline_token(tokens[i + 1]),
                align=align.group(1) if align else None,
                header=tok.type == "th_open",
            )
            if current is not None:
                current.append(cell)
            i += 3  # skip open, inline, close
            continue
        i += 1
    return TableBlock(header=header, rows=rows), i + 1


def _parse_directive(tokens, index: int, metadata: dict) -> tuple[DirectiveContainer, int]:
    tok = tokens[index]
    match = DIRECTIVE_INFO_PATTERN.match(tok.info or "")
    name = match.group("name") if match else "div"
    attrs = _parse_directive_attrs(match.group("attrs") or "") if match else {}
    label = ""
    if match:
        label = match.group("label") if match.group("label") is not None else match.group("rest")
    if label:
        attrs.setdefault("title", label)
    blocks, i = _parse_blocks(tokens, index + 1, {"container_directive_close"}, metadata)
    title = [Text(label)] if label else []
    return DirectiveContainer(name=name, blocks=blocks, title=title, attributes=attrs), i + 1


def _parse_directive_attrs(raw: str) -> dict[str, str]:
    attrs: dict[str, str] = {}
    classes: list[str] = []
    for match in DIRECTIVE_ATTR_PATTERN.finditer(raw):
        sigil, ident, key, dquoted, squoted, bare, flag = match.groups()
        if sigil == "#":
            attrs["id"] = ident
        elif sigil == ".":
            classes.append(ident)
        elif key:
            value = next(v for v in (dquoted, squoted, bare) if v is not None)
            attrs[key] = value
        elif flag:
            attrs[flag] = ""
    if classes:
        attrs["class"] = " ".join(classes)
    return attrs


def _parse_admonition(tokens, index: int, metadata: dict) -> tuple[DirectiveContainer, int]:
    tok = tokens[index]
    meta = tok.meta or {}
    name = meta.get("tag") or (tok.info or "").strip().split(" ")[0].lower() or "note"
    i = index + 1
    title: list[InlineElement] = []
    if i < len(tokens) and tokens[i].type == "admonition_title_open":
        title = _parse_inline_token(tokens[i + 1])
        i = _skip_past(tokens, i + 2, "admonition_title_close")
    blocks, i = _parse_blocks(tokens, i, {"admonition_close"}, metadata)
    return DirectiveContainer(name=name, blocks=blocks, title=title), i + 1


def _parse_definition_list(tokens, index: int, metadata: dict) -> tuple[DefinitionList, int]:
    items: list[DefinitionItem] = []
    i = index + 1
    while i < len(tokens) and tokens[i].type != "dl_close":
        tok = tokens[i]
        if tok.type == "dt_open":
            items.append(DefinitionItem(term=_parse_inline_token(tokens[i + 1]), definitions=[]))
            i = _skip_past(tokens, i + 2, "dt_close")
        elif tok.type == "dd_open":
            blocks, i = _parse_blocks(tokens, i + 1, {"dd_close"}, metadata)
            if not items:
                items.append(DefinitionItem(term=[], definitions=[]))
            items[-1].definitions.append(blocks)
            i += 1
        else:
            i += 1
    return DefinitionList(items=items), i + 1


def _parse_footnotes(tokens, index: int, metadata: dict) -> tuple[FootnoteSection, int]:
    items: list[FootnoteItem] = []
    i = index + 1
    while i < len(tokens) and tokens[i].type != "footnote_block_close":
        tok = tokens[i]
        if tok.type == "footnote_open":
            meta = tok.meta or {}
            blocks, i = _parse_blocks(tokens, i + 1, {"footnote_close"}, metadata)
            items.append(FootnoteItem(number=int(meta.get("id", len(items))) + 1, label=meta.get("label"), blocks=blocks))
        i += 1
    return FootnoteSection(items=items), i + 1


def _parse_front_matter(content: str) -> dict:
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        logger.warning("Ignoring invalid front matter: %s", exc)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring front matter that is not a mapping (%s)", type(data).__name__)
        return {}
    return data


def _parse_inline_token(inline) -> list[InlineElement]:
    elements, _ = _parse_inline(inline.children or [], 0, None)
    return elements


def _parse_inline(tokens: Sequence, index: int, closing_type: str | None) -> tuple[list[InlineElement], int]:
    result: list[InlineElement] = []
    i = index
    while i < len(tokens):
        tok = tokens[i]
        if closing_type is not None and tok.type == closing_type:
            break
        if tok.type in ("text", "text_special"):
            _append_text(result, tok.content)
        elif tok.type == "softbreak":
            result.append(SoftBreak())
        elif tok.type == "hardbreak":
            result.append(HardBreak())
        elif tok.type in _INLINE_CONTAINERS:
            closing, node_cls = _INLINE_CONTAINERS[tok.type]
            children, i = _parse_inline(tokens, i + 1, closing)
            result.append(node_cls(children=children))
        elif tok.type == "color_open":
            children, i = _parse_inline(tokens, i + 1, "color_close")
            result.append(ColoredText(color=(tok.meta or {}).get("color", ""), children=children))
        elif tok.type == "link_open":
            children, i = _parse_inline(tokens, i + 1, "link_close")
            href = str(tok.attrGet("href") or "")
            title = tok.attrGet("title")
            result.append(Link(url=href, children=children, title=str(title) if title else None))
        elif tok.type == "code_inline":
            result.append(InlineCode(tok.content))
        elif tok.type in _MATH_INLINE_TYPES:
            result.append(InlineMath(tok.content))
        elif tok.type == "image":
            src = str(tok.attrGet("src") or "")
            alt = tok.content or str(tok.attrGet("alt") or "")
            title = tok.attrGet("title")
            result.append(Image(src=src, alt=alt, title=str(title) if title else None))
        elif tok.type == "footnote_ref":
            meta = tok.meta or {}
            result.append(
                FootnoteRef(number=int(meta.get("id", 0)) + 1, label=meta.get("label"), sub_id=int(meta.get("subId", 0)))
            )
        elif tok.type == "emoji":
            result.append(Emoji(shortcode=tok.markup, char=tok.content))
        elif tok.type == "kbd":
            result.append(Keyboard(tok.content))
        elif tok.type == "html_inline":
            result.append(HtmlInline(tok.content))
        else:
            logger.debug("Skipping inline token %s", tok.type)
        i += 1
    return result, i


def _append_text(result: list[InlineElement], content: str) -> None:
    if result and isinstance(result[-1], Text):
        result[-1] = Text(result[-1].text + content)
    else:
        result.append(Text(content))
