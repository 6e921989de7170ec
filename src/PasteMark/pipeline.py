"""Paste rendering pipeline: text -> Document -> HTML -> BeautifulSoup tree."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from html import escape
from typing import Any, Dict

from bs4 import BeautifulSoup

from .config import DEFAULT_CONFIG, RenderConfig
from .diagrams import DiagramEngine, DiagramPass, get_diagram_engine
from .dom_passes import inject_table_of_contents, style_raw_html
from .markdown_parser import parse_markdown
from .model import CodeBlock, Document
from .renderer_html import render_document
from .transforms import apply_transforms

logger = logging.getLogger(__name__)

DOCUMENT_CLASS = "pastemark prose prose-lg dark:prose-invert max-w-none"


@dataclass
class RenderedDocument:
    soup: BeautifulSoup
    metadata: Dict[str, Any] = field(default_factory=dict)
    generation: int = 0

    @property
    def html(self) -> str:
        return str(self.soup)

    def supersede(self) -> None:
        """Mark the document as replaced; pending diagram results are discarded."""
        self.generation += 1


def preprocess(text: str) -> str:
    return text


def _parse(text: str, config: RenderConfig) -> Document:
    try:
        return parse_markdown(text, config)
    except Exception:
        logger.exception("Markdown parsing failed; rendering the paste as plain text")
        return Document(blocks=[CodeBlock(language=None, code=text)])


def _render_html(doc: Document, source: str, config: RenderConfig) -> str:
    try:
        return render_document(doc, config)
    except Exception:
        logger.exception("Rendering failed; falling back to the escaped source")
        return f"<pre>{escape(source)}</pre>\n"


def _build(text: str, config: RenderConfig) -> RenderedDocument:
    started = time.perf_counter()
    text = preprocess(text if isinstance(text, str) else str(text))
    doc = _parse(text, config)
    doc = apply_transforms(doc, config)
    body = _render_html(doc, text, config)
    soup = BeautifulSoup(f'<div class="{DOCUMENT_CLASS}">{body}</div>', "html.parser")
    logger.debug(
        "Rendered %d characters into %d blocks in %.1f ms",
        len(text),
        len(doc.blocks),
        (time.perf_counter() - started) * 1000,
    )
    return RenderedDocument(soup=soup, metadata=doc.metadata)


def _finish(rendered: RenderedDocument, config: RenderConfig) -> None:
    for dom_pass in (inject_table_of_contents, style_raw_html):
        try:
            dom_pass(rendered.soup, config)
        except Exception:
            logger.exception("DOM pass %s failed; skipping it", dom_pass.__name__)


def render_markdown(text: str, config: RenderConfig | None = None) -> RenderedDocument:
    """Render a paste synchronously.

    Diagram blocks stay as ``div.mermaid`` placeholders carrying their source,
    ready for client-side rendering.
    """
    config = config or DEFAULT_CONFIG
    rendered = _build(text, config)
    _finish(rendered, config)
    return rendered


async def render_markdown_async(
    text: str,
    config: RenderConfig | None = None,
    engine: DiagramEngine | None = None,
) -> RenderedDocument:
    """Render a paste and replace diagram placeholders with engine output.

    Diagram tasks are started before the table of contents is injected and
    awaited afterwards, so TOC injection never waits on a diagram.
    """
    config = config or DEFAULT_CONFIG
    rendered = _build(text, config)
    if engine is None:
        engine = get_diagram_engine(config)
    tasks = DiagramPass(engine).schedule(rendered)
    _finish(rendered, config)
    if tasks:
        await asyncio.gather(*tasks)
    return rendered
