"""Asynchronous diagram rendering.

Diagram code blocks are rendered as placeholders first; :class:`DiagramPass`
then asks an engine for an SVG per placeholder and swaps it in once it
arrives. A result is dropped when its document was superseded or the
placeholder was detached in the meantime.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import tempfile
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from bs4 import BeautifulSoup, Tag

from .config import DEFAULT_CONFIG, RenderConfig
from .errors import DiagramError
from .renderer_html import DIAGRAM_PLACEHOLDER_CLASS

if TYPE_CHECKING:
    from .pipeline import RenderedDocument

logger = logging.getLogger(__name__)

RENDERED_DIAGRAM_CLASS = "mermaid diagram"


class DiagramEngine(Protocol):
    async def render_diagram(self, source: str) -> str:
        ...


class MermaidCliEngine:
    """Render mermaid sources to SVG with the ``mmdc`` command line tool."""

    def __init__(
        self,
        command: str = "mmdc",
        theme: str = "default",
        background: str = "transparent",
        timeout: float = 30.0,
    ) -> None:
        self.command = command
        self.theme = theme
        self.background = background
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: RenderConfig) -> "MermaidCliEngine":
        return cls(
            command=config.mermaid_command,
            theme=config.mermaid_theme,
            background=config.mermaid_background,
            timeout=config.diagram_timeout,
        )

    async def render_diagram(self, source: str) -> str:
        executable = shutil.which(self.command)
        if executable is None:
            raise DiagramError(f"Diagram renderer {self.command!r} was not found on PATH", source)

        with tempfile.TemporaryDirectory(prefix="pastemark-") as tmp:
            input_path = Path(tmp) / "diagram.mmd"
            output_path = Path(tmp) / "diagram.svg"
            input_path.write_text(source, encoding="utf-8")
            process = await asyncio.create_subprocess_exec(
                executable,
                "-i",
                str(input_path),
                "-o",
                str(output_path),
                "-t",
                self.theme,
                "-b",
                self.background,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            try:
                _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()
                raise DiagramError(f"Diagram renderer timed out after {self.timeout:g}s", source) from None

            if process.returncode != 0:
                message = stderr.decode("utf-8", errors="replace").strip()
                raise DiagramError(message or f"Diagram renderer exited with {process.returncode}", source)
            if not output_path.exists():
                raise DiagramError("Diagram renderer produced no output", source)
            svg = output_path.read_text(encoding="utf-8")
        if not svg.strip():
            raise DiagramError("Diagram renderer produced an empty graphic", source)
        return svg


_ENGINE: DiagramEngine | None = None
_ENGINE_LOCK = threading.Lock()


def get_diagram_engine(config: RenderConfig = DEFAULT_CONFIG) -> DiagramEngine:
    """Return the process-wide engine, creating it on first use."""
    global _ENGINE
    if _ENGINE is None:
        with _ENGINE_LOCK:
            if _ENGINE is None:
                _ENGINE = MermaidCliEngine.from_config(config)
                logger.debug("Initialised diagram engine using %s", config.mermaid_command)
    return _ENGINE


def set_diagram_engine(engine: DiagramEngine | None) -> None:
    """Replace the process-wide engine; ``None`` resets to lazy creation."""
    global _ENGINE
    with _ENGINE_LOCK:
        _ENGINE = engine


def _is_attached(tag: Tag, document: "RenderedDocument") -> bool:
    return any(parent is document.soup for parent in tag.parents)


class DiagramPass:
    def __init__(self, engine: DiagramEngine) -> None:
        self.engine = engine

    def schedule(self, document: "RenderedDocument") -> list[asyncio.Task]:
        """Start one task per placeholder; must be called inside a running loop."""
        tasks: list[asyncio.Task] = []
        for placeholder in document.soup.find_all("div", class_=DIAGRAM_PLACEHOLDER_CLASS):
            placeholder["data-generation"] = str(document.generation)
            source = placeholder.get_text()
            tasks.append(asyncio.create_task(self._render_one(document, placeholder, source)))
        return tasks

    async def run(self, document: "RenderedDocument") -> int:
        """Render every placeholder and return how many were replaced."""
        tasks = self.schedule(document)
        if not tasks:
            return 0
        results = await asyncio.gather(*tasks)
        return sum(1 for replaced in results if replaced)

    async def _render_one(self, document: "RenderedDocument", placeholder: Tag, source: str) -> bool:
        diagram_id = placeholder.get("data-diagram-id", "diagram")
        generation = placeholder.get("data-generation")
        try:
            svg = await self.engine.render_diagram(source)
            if not isinstance(svg, str):
                raise DiagramError(f"Diagram engine returned {type(svg).__name__}, expected SVG markup", source)
        except DiagramError as exc:
            logger.warning("Could not render %s: %s", diagram_id, exc)
            return False
        except Exception:
            logger.exception("Diagram engine failed on %s", diagram_id)
            return False

        if generation != str(document.generation) or not _is_attached(placeholder, document):
            logger.debug("Discarding stale result for %s", diagram_id)
            return False

        replacement = document.soup.new_tag(
            "div",
            attrs={"class": RENDERED_DIAGRAM_CLASS, "data-diagram-id": diagram_id},
        )
        graphic = BeautifulSoup(svg, "html.parser")
        for child in list(graphic.contents):
            replacement.append(child.extract())
        placeholder.replace_with(replacement)
        return True
